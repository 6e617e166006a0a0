# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared fixtures: an in-memory SQLite database with the real schema, a
seeding helper, and a GenerationService wired to that database.
"""
from datetime import date

import pytest
from sqlalchemy import text

from rodizio.core.database import build_engine, init_schema
from rodizio.models.domain import Cycle, Organist, Service, Track
from rodizio.repositories.assignment_repository import AssignmentRepository
from rodizio.repositories.church_repository import ChurchRepository
from rodizio.repositories.cycle_repository import CycleRepository
from rodizio.repositories.service_repository import ServiceRepository
from rodizio.services.generation_service import GenerationService
from rodizio.services.locks import ChurchLockRegistry
from rodizio.services.notification_client import NotificationClient

MONDAY = date(2026, 1, 5)
SUNDAY = date(2026, 1, 11)


# ── In-memory model builders ─────────────────────────────────────────────
def organist(oid, name=None, category="official"):
    return Organist(id=oid, name=name or f"Organist {oid}", category=category)


def cycle(cid, members, number=None, track="official", name=None, order=1):
    return Cycle(
        id=cid,
        church_id=1,
        track=track,
        number=number if number is not None or track != "official" else cid,
        name=name or f"Cycle {cid}",
        order=order,
        members=members,
    )


def service(sid, weekday=0, time="19:30", track="official", monthly_occurrence=None):
    return Service(
        id=sid,
        church_id=1,
        weekday=weekday,
        time=time,
        track=Track(track),
        monthly_occurrence=monthly_occurrence,
    )


# ── Database seeding ─────────────────────────────────────────────────────
class Seeder:
    """Insert configuration rows the way the admin CRUD would."""

    def __init__(self, engine):
        self._engine = engine

    def _insert(self, sql, params):
        with self._engine.begin() as conn:
            conn.execute(text(sql), params)

    def church(self, cid=1, name="Central", same_organist_both_roles=False,
               always_combine_weekday=None):
        self._insert(
            "INSERT INTO churches (id, name, same_organist_both_roles, always_combine_weekday) "
            "VALUES (:id, :name, :same, :weekday)",
            {"id": cid, "name": name, "same": same_organist_both_roles,
             "weekday": always_combine_weekday},
        )
        return cid

    def organist(self, oid, name, category="official", active=True, church_id=1):
        self._insert(
            "INSERT INTO organists (id, church_id, name, category, active) "
            "VALUES (:id, :church_id, :name, :category, :active)",
            {"id": oid, "church_id": church_id, "name": name,
             "category": category, "active": active},
        )
        return oid

    def cycle(self, cid, name, members, track="official", number=None, order=1,
              active=True, church_id=1):
        self._insert(
            "INSERT INTO cycles (id, church_id, track, number, name, sort_order, active) "
            "VALUES (:id, :church_id, :track, :number, :name, :sort_order, :active)",
            {"id": cid, "church_id": church_id, "track": track, "number": number,
             "name": name, "sort_order": order, "active": active},
        )
        for position, organist_id in enumerate(members):
            self._insert(
                "INSERT INTO cycle_members (cycle_id, organist_id, position) "
                "VALUES (:cycle_id, :organist_id, :position)",
                {"cycle_id": cid, "organist_id": organist_id, "position": position},
            )
        return cid

    def service(self, sid, weekday, time="19:30", track="official", cycle_id=None,
                monthly_occurrence=None, active=True, church_id=1):
        self._insert(
            "INSERT INTO services (id, church_id, weekday, time, track, cycle_id, "
            "monthly_occurrence, active) VALUES (:id, :church_id, :weekday, :time, "
            ":track, :cycle_id, :monthly_occurrence, :active)",
            {"id": sid, "church_id": church_id, "weekday": weekday, "time": time,
             "track": track, "cycle_id": cycle_id,
             "monthly_occurrence": monthly_occurrence, "active": active},
        )
        return sid


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def seed(engine):
    return Seeder(engine)


def make_service(engine, strict=False, notification_client=None, locks=None):
    return GenerationService(
        church_repo=ChurchRepository(engine),
        cycle_repo=CycleRepository(engine),
        service_repo=ServiceRepository(engine),
        assignment_repo=AssignmentRepository(engine),
        notification_client=notification_client or NotificationClient(url=""),
        locks=locks or ChurchLockRegistry(),
        strict=strict,
    )


@pytest.fixture
def generation_service(engine):
    return make_service(engine)
