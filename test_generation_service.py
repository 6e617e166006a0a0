# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Tests for GenerationService against an in-memory SQLite database:
loading, planning, persistence, idempotency, locking and the webhook.
Run:  pytest test_generation_service.py -v
"""
import json
import logging
from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pytest
from prometheus_client import REGISTRY

from conftest import MONDAY, make_service
from rodizio.core.exceptions import (
    ChurchNotFoundError,
    ConfigurationError,
    GenerationInProgressError,
    UnfulfillableAssignmentError,
)
from rodizio.core.logging import JSONFormatter
from rodizio.repositories.assignment_repository import AssignmentRepository
from rodizio.services.locks import ChurchLockRegistry
from rodizio.services.notification_client import NotificationClient

MONDAYS_IN_WINDOW = 13
SUNDAYS_IN_WINDOW = 12


@pytest.fixture
def church(seed):
    """Two official cycles, one youth cycle, a Monday and a Sunday service."""
    seed.church(1, "Central")
    seed.organist(1, "Ana")
    seed.organist(2, "Bruna")
    seed.organist(3, "Carla")
    seed.organist(20, "Rita", category="youth")
    seed.organist(21, "Sara", category="youth")
    seed.cycle(1, "Ciclo 1", [1, 2], number=1)
    seed.cycle(2, "Ciclo 2", [3], number=2)
    seed.cycle(5, "RJM", [20, 21], track="youth")
    seed.service(1, weekday=0, time="19:30")
    seed.service(2, weekday=6, time="10:00", track="youth")
    return 1


def mains(rows, service_id=1):
    return [r["organist_id"] for r in rows if r["role"] == "main" and r["service_id"] == service_id]


# ═══════════════════════════════════════════════════════════════════════════
# GENERATE
# ═══════════════════════════════════════════════════════════════════════════
class TestGenerate:
    def test_writes_full_window(self, church, generation_service):
        rows = generation_service.generate(church, 3, start_date=MONDAY)
        assert len(rows) == MONDAYS_IN_WINDOW * 2 + SUNDAYS_IN_WINDOW
        assert rows[0]["service_date"] == "2026-01-05"
        assert rows[-1]["service_date"] == "2026-03-30"

    def test_rows_are_enriched(self, church, generation_service):
        first, second = generation_service.generate(church, 3, start_date=MONDAY)[:2]
        assert first["role"] == "warmup"
        assert first["slot_time"] == "19:00"
        assert first["organist_name"] == "Ana"
        assert first["origin_cycle_name"] == "Ciclo 1"
        assert first["service_time"] == "19:30"
        assert first["track"] == "official"
        assert second["role"] == "main"
        assert second["slot_time"] == "19:30"

    def test_official_rotation_order(self, church, generation_service):
        rows = generation_service.generate(church, 3, start_date=MONDAY)
        assert mains(rows)[:6] == [1, 2, 3, 1, 2, 3]

    def test_youth_service_main_only(self, church, generation_service):
        rows = generation_service.generate(church, 3, start_date=MONDAY)
        youth = [r for r in rows if r["service_id"] == 2]
        assert {r["role"] for r in youth} == {"main"}
        assert [r["organist_id"] for r in youth[:3]] == [20, 21, 20]

    def test_rerun_is_idempotent(self, church, engine, generation_service):
        first = generation_service.generate(church, 3, start_date=MONDAY)
        second = generation_service.generate(church, 3, start_date=MONDAY)
        assert first == second
        assert AssignmentRepository(engine).list_enriched(church) == first

    def test_unchanged_rows_are_not_counted_as_written(self, church, engine, generation_service):
        repo = AssignmentRepository(engine)
        plan = generation_service.plan(church, 3, start_date=MONDAY)
        assert repo.upsert_many(church, plan.assignments) == len(plan.assignments)
        assert repo.upsert_many(church, plan.assignments) == 0

        shifted = generation_service.plan(church, 3, start_date=MONDAY, start_organist_ref="Carla")
        assert repo.upsert_many(church, shifted.assignments) == MONDAYS_IN_WINDOW * 2

    def test_rerun_leaves_written_counter_alone(self, church, generation_service):
        generation_service.generate(church, 3, start_date=MONDAY)
        before = REGISTRY.get_sample_value("rodizio_assignments_written_total")
        generation_service.generate(church, 3, start_date=MONDAY)
        assert REGISTRY.get_sample_value("rodizio_assignments_written_total") == before

    def test_changed_plan_updates_in_place(self, church, generation_service):
        before = generation_service.generate(church, 3, start_date=MONDAY)
        after = generation_service.generate(
            church, 3, start_date=MONDAY, start_organist_ref="Carla"
        )
        assert len(after) == len(before)
        assert mains(after)[:3] == [3, 1, 2]

    def test_start_cycle_reference(self, church, generation_service):
        rows = generation_service.generate(church, 3, start_cycle_ref="ciclo 2", start_date=MONDAY)
        assert mains(rows)[0] == 3

    def test_unknown_church(self, generation_service):
        with pytest.raises(ChurchNotFoundError):
            generation_service.generate(99, 3, start_date=MONDAY)

    def test_invalid_period(self, church, generation_service):
        with pytest.raises(ValueError):
            generation_service.generate(church, 5, start_date=MONDAY)

    def test_no_cycles_is_configuration_error(self, seed, generation_service):
        seed.church(2, "Nova")
        seed.service(7, weekday=0, church_id=2)
        with pytest.raises(ConfigurationError):
            generation_service.generate(2, 3, start_date=MONDAY)

    def test_defaults_to_today(self, church, generation_service):
        report = generation_service.run(church, 3)
        assert report.start == date.today()


# ═══════════════════════════════════════════════════════════════════════════
# CYCLE LOADING
# ═══════════════════════════════════════════════════════════════════════════
class TestCycleLoading:
    def test_inactive_organists_are_skipped(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna", active=False)
        seed.organist(3, "Carla")
        seed.cycle(1, "Ciclo 1", [1, 2, 3], number=1)
        seed.service(1, weekday=0)
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        assert mains(rows)[:4] == [1, 3, 1, 3]

    def test_cycle_without_active_members_is_dropped(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna", active=False)
        seed.cycle(1, "Vazio", [2], number=1)
        seed.cycle(2, "Ciclo 2", [1], number=2)
        seed.service(1, weekday=0)
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        assert {r["origin_cycle_id"] for r in rows} == {2}

    def test_inactive_cycle_is_ignored(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna")
        seed.cycle(1, "Antigo", [2], number=1, active=False)
        seed.cycle(2, "Atual", [1], number=2)
        seed.service(1, weekday=0)
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        assert set(mains(rows)) == {1}

    def test_official_cycles_ordered_by_number(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna")
        seed.cycle(10, "Segundo", [2], number=2)
        seed.cycle(11, "Primeiro", [1], number=1)
        seed.service(1, weekday=0)
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        assert mains(rows)[:2] == [1, 2]

    def test_organist_in_both_tracks_is_rejected(self, seed, engine, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna")
        seed.cycle(1, "Ciclo 1", [1, 2], number=1)
        seed.cycle(5, "RJM", [1], track="youth")
        seed.service(1, weekday=6, time="19:00")
        seed.service(2, weekday=6, time="10:00", track="youth")
        with pytest.raises(ConfigurationError) as exc_info:
            generation_service.generate(1, 3, start_date=MONDAY)
        assert "[1]" in str(exc_info.value)
        assert AssignmentRepository(engine).list_enriched(1) == []

    def test_inactive_organist_in_both_tracks_is_allowed(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.organist(2, "Bruna", active=False)
        seed.organist(20, "Rita", category="youth")
        seed.cycle(1, "Ciclo 1", [1, 2], number=1)
        seed.cycle(5, "RJM", [20, 2], track="youth")
        seed.service(1, weekday=6, time="19:00")
        seed.service(2, weekday=6, time="10:00", track="youth")
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        official = {r["organist_id"] for r in rows if r["track"] == "official"}
        youth = {r["organist_id"] for r in rows if r["track"] == "youth"}
        assert official == {1}
        assert youth == {20}


# ═══════════════════════════════════════════════════════════════════════════
# UNFILLED MAIN ROLE
# ═══════════════════════════════════════════════════════════════════════════
class TestUnfilledMainRole:
    @pytest.fixture
    def apprentices_only(self, seed):
        seed.church(1)
        seed.organist(1, "Paula", category="apprentice")
        seed.organist(2, "Rita", category="youth")
        seed.cycle(1, "Ciclo 1", [1, 2], number=1)
        seed.service(1, weekday=0)
        return 1

    def test_default_reports_gaps(self, apprentices_only, generation_service):
        report = generation_service.run(apprentices_only, 3, start_date=MONDAY)
        assert len(report.gaps) == MONDAYS_IN_WINDOW
        assert {r["role"] for r in report.assignments} == {"warmup"}

    def test_strict_mode_raises_before_writing(self, apprentices_only, engine):
        service = make_service(engine, strict=True)
        with pytest.raises(UnfulfillableAssignmentError) as exc_info:
            service.generate(apprentices_only, 3, start_date=MONDAY)
        assert len(exc_info.value.gaps) == MONDAYS_IN_WINDOW
        assert AssignmentRepository(engine).list_enriched(apprentices_only) == []


# ═══════════════════════════════════════════════════════════════════════════
# PREVIEW / LIST / REGENERATE / DELETE
# ═══════════════════════════════════════════════════════════════════════════
class TestOtherOperations:
    def test_preview_writes_nothing(self, church, engine, generation_service):
        report = generation_service.preview(church, 3, start_date=MONDAY)
        assert len(report.assignments) == MONDAYS_IN_WINDOW * 2 + SUNDAYS_IN_WINDOW
        assert report.assignments[0]["organist_name"] == "Ana"
        assert report.assignments[0]["service_date"] == "2026-01-05"
        assert AssignmentRepository(engine).list_enriched(church) == []

    def test_preview_matches_generate(self, church, generation_service):
        planned = generation_service.preview(church, 3, start_date=MONDAY).assignments
        written = generation_service.generate(church, 3, start_date=MONDAY)
        planned_keys = {(p["service_id"], p["service_date"], p["role"], p["organist_id"])
                        for p in planned}
        written_keys = {(w["service_id"], w["service_date"], w["role"], w["organist_id"])
                        for w in written}
        assert planned_keys == written_keys

    def test_list_with_range(self, church, generation_service):
        generation_service.generate(church, 3, start_date=MONDAY)
        rows = generation_service.list_assignments(church, date(2026, 1, 5), date(2026, 1, 12))
        assert {r["service_date"] for r in rows} == {"2026-01-05", "2026-01-11"}

    def test_list_unknown_church(self, generation_service):
        with pytest.raises(ChurchNotFoundError):
            generation_service.list_assignments(42)

    def test_regenerate_from_keeps_history(self, church, generation_service):
        first_run = generation_service.generate(church, 3, start_date=MONDAY)
        cutoff = date(2026, 2, 2)
        report = generation_service.regenerate_from(
            church, cutoff, 3, start_organist_ref="Carla"
        )
        assert report.start == cutoff
        assert mains(report.assignments)[0] == 3

        everything = generation_service.list_assignments(church)
        history = [r for r in everything if r["service_date"] < cutoff.isoformat()]
        assert history == [r for r in first_run if r["service_date"] < cutoff.isoformat()]
        assert everything[-1]["service_date"] == "2026-04-27"

    def test_delete_everything(self, church, generation_service):
        rows = generation_service.generate(church, 3, start_date=MONDAY)
        assert generation_service.delete_assignments(church) == len(rows)
        assert generation_service.list_assignments(church) == []

    def test_delete_range(self, church, generation_service):
        generation_service.generate(church, 3, start_date=MONDAY)
        deleted = generation_service.delete_assignments(church, start=date(2026, 3, 1))
        remaining = generation_service.list_assignments(church)
        assert deleted > 0
        assert all(r["service_date"] < "2026-03-01" for r in remaining)


# ═══════════════════════════════════════════════════════════════════════════
# LOCKING
# ═══════════════════════════════════════════════════════════════════════════
class TestLocking:
    def test_lock_scope_is_one_registry(self):
        worker_a, worker_b = ChurchLockRegistry(), ChurchLockRegistry()
        with worker_a.hold(1):
            with worker_b.hold(1):
                assert worker_a.is_locked(1)
                assert worker_b.is_locked(1)

    def test_concurrent_generation_rejected(self, church, engine):
        locks = ChurchLockRegistry()
        service = make_service(engine, locks=locks)
        with locks.hold(church):
            with pytest.raises(GenerationInProgressError):
                service.generate(church, 3, start_date=MONDAY)
        assert not locks.is_locked(church)

    def test_other_church_not_blocked(self, church, engine):
        locks = ChurchLockRegistry()
        service = make_service(engine, locks=locks)
        with locks.hold(2):
            assert service.generate(church, 3, start_date=MONDAY)

    def test_lock_released_after_failure(self, engine):
        locks = ChurchLockRegistry()
        service = make_service(engine, locks=locks)
        with pytest.raises(ChurchNotFoundError):
            service.generate(7, 3, start_date=MONDAY)
        assert not locks.is_locked(7)


# ═══════════════════════════════════════════════════════════════════════════
# WEBHOOK
# ═══════════════════════════════════════════════════════════════════════════
class TestWebhook:
    URL = "http://hooks.test/rotation"

    def test_disabled_without_url(self, church, engine):
        with patch("rodizio.services.notification_client.httpx.Client") as client_cls:
            make_service(engine).generate(church, 3, start_date=MONDAY)
        client_cls.assert_not_called()

    def test_payload_sent_after_generation(self, church, engine):
        service = make_service(engine, notification_client=NotificationClient(url=self.URL))
        with patch("rodizio.services.notification_client.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.post.return_value = MagicMock(status_code=200, is_success=True)
            rows = service.generate(church, 3, start_date=MONDAY)

        http.post.assert_called_once()
        url = http.post.call_args[0][0]
        payload = http.post.call_args[1]["json"]
        assert url == self.URL
        assert payload["church_id"] == church
        assert payload["total"] == len(rows)
        assert payload["period"] == {"start": "2026-01-05", "end": "2026-04-05"}
        assert payload["assignments"][0] == {
            "service_id": 1,
            "date": "2026-01-05",
            "time": "19:00",
            "role": "warmup",
            "organist": "Ana",
            "cycle": "Ciclo 1",
        }

    def test_webhook_failure_does_not_fail_generation(self, church, engine):
        service = make_service(engine, notification_client=NotificationClient(url=self.URL))
        with patch("rodizio.services.notification_client.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.post.side_effect = httpx.ConnectError("connection refused")
            rows = service.generate(church, 3, start_date=MONDAY)
        assert len(rows) == MONDAYS_IN_WINDOW * 2 + SUNDAYS_IN_WINDOW

    def test_preview_sends_nothing(self, church, engine):
        service = make_service(engine, notification_client=NotificationClient(url=self.URL))
        with patch("rodizio.services.notification_client.httpx.Client") as client_cls:
            service.preview(church, 3, start_date=MONDAY)
        client_cls.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# LOGGING / LISTING DETAILS
# ═══════════════════════════════════════════════════════════════════════════
class TestLoggingContext:
    def test_planning_log_carries_church_id(self, church, generation_service):
        with patch("rodizio.services.generation_service.logger") as log:
            generation_service.preview(church, 3, start_date=MONDAY)
        assert log.info.call_args.kwargs["extra"] == {"church_id": church}

    def test_loader_log_carries_church_id(self, church, generation_service):
        with patch("rodizio.services.cycle_loader.logger") as log:
            generation_service.preview(church, 3, start_date=MONDAY)
        assert log.info.call_args.kwargs["extra"] == {"church_id": church}

    def test_formatter_emits_church_id(self):
        record = logging.LogRecord(
            "rodizio.services.generation_service", logging.INFO, __file__, 1,
            "Planned %d assignments", (38,), None,
        )
        record.church_id = 7
        data = json.loads(JSONFormatter().format(record))
        assert data["church_id"] == 7
        assert data["message"] == "Planned 38 assignments"
        assert data["level"] == "INFO"


class TestEarlyServiceListing:
    def test_warmup_listed_before_main_after_midnight(self, seed, generation_service):
        seed.church(1)
        seed.organist(1, "Ana")
        seed.cycle(1, "Vigília", [1], number=1)
        seed.service(1, weekday=0, time="00:10")
        rows = generation_service.generate(1, 3, start_date=MONDAY)
        first_day = [(r["role"], r["slot_time"]) for r in rows if r["service_date"] == "2026-01-05"]
        assert first_day == [("warmup", "00:00"), ("main", "00:10")]
