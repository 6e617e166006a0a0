# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Turn a service calendar into role assignments.

Rules:
  - The official cursor is pulled at most once per calendar date; every
    official service on that date shares the day's candidate.
  - Youth services take the next youth member for the main role only.
  - Only official-category organists play the main role on the official
    track. Anyone may play warmup. When the candidate is not official the
    main role goes to the next official member found within a bounded
    lookahead, and the cursor stays past everyone skipped.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple, Optional

from rodizio.core.config import settings
from rodizio.core.logging import get_logger
from rodizio.models.domain import (
    Church,
    PlannedAssignment,
    Role,
    Service,
    Track,
    UnfilledSlot,
)
from rodizio.services.rotation import Pick, RotationCursor

logger = get_logger(__name__)


class ResolutionResult(NamedTuple):
    assignments: list[PlannedAssignment]
    gaps: list[UnfilledSlot]


def shift_time(value: str, minutes: int) -> str:
    """Return ``value`` ("HH:MM[:SS]") moved by ``minutes``, as "HH:MM".

    The result stays on the same day, clamped to 00:00 or 23:59.
    """
    parts = [int(p) for p in value.split(":")]
    base = datetime(2000, 1, 1, parts[0], parts[1])
    shifted = base + timedelta(minutes=minutes)
    if shifted.date() < base.date():
        shifted = base.replace(hour=0, minute=0)
    elif shifted.date() > base.date():
        shifted = base.replace(hour=23, minute=59)
    return shifted.strftime("%H:%M")


class AssignmentResolver:
    """Per-date state machine over the official and youth cursors."""

    def __init__(
        self,
        church: Church,
        official_cursor: RotationCursor,
        youth_cursor: RotationCursor,
        lookahead_limit: Optional[int] = None,
        warmup_lead_minutes: Optional[int] = None,
    ) -> None:
        self._church = church
        self._official = official_cursor
        self._youth = youth_cursor
        self._lookahead_limit = (
            settings.LOOKAHEAD_LIMIT if lookahead_limit is None else lookahead_limit
        )
        self._warmup_lead = (
            settings.WARMUP_LEAD_MINUTES if warmup_lead_minutes is None else warmup_lead_minutes
        )
        self._warned_tracks: set[Track] = set()

    def resolve(self, calendar: Iterable[tuple[date, list[Service]]]) -> ResolutionResult:
        assignments: list[PlannedAssignment] = []
        gaps: list[UnfilledSlot] = []

        for day, services in calendar:
            daily_official_candidate: Optional[Pick] = None
            for service in services:
                if service.track == Track.YOUTH:
                    if not self._has_members(self._youth, Track.YOUTH):
                        continue
                    pick = self._youth.next()
                    assignments.append(self._planned(service, day, Role.MAIN, pick))
                    continue

                if not self._has_members(self._official, Track.OFFICIAL):
                    continue
                if daily_official_candidate is None:
                    daily_official_candidate = self._official.next()
                self._assign_official(service, day, daily_official_candidate, assignments, gaps)

        return ResolutionResult(assignments, gaps)

    # ── Official track ──

    def _assign_official(
        self,
        service: Service,
        day: date,
        candidate: Pick,
        assignments: list[PlannedAssignment],
        gaps: list[UnfilledSlot],
    ) -> None:
        assignments.append(self._planned(service, day, Role.WARMUP, candidate))

        if candidate.organist.is_official:
            # Official candidates take both roles whether or not the church
            # combines them (same_organist_both_roles / always_combine_weekday).
            main: Optional[Pick] = candidate
        else:
            main = self._lookahead_official()

        if main is None:
            gaps.append(UnfilledSlot(service_id=service.id, service_date=day, role=Role.MAIN))
            logger.warning(
                "No official organist within %d positions for service %d on %s; main role left unassigned",
                self._lookahead_limit, service.id, day.isoformat(),
            )
            return
        assignments.append(self._planned(service, day, Role.MAIN, main))

    def _lookahead_official(self) -> Optional[Pick]:
        snapshot = self._official.save()
        for _ in range(self._lookahead_limit):
            pick = self._official.next()
            if pick.organist.is_official:
                return pick
        self._official.restore(snapshot)
        return None

    # ── Helpers ──

    def _has_members(self, cursor: RotationCursor, track: Track) -> bool:
        if cursor:
            return True
        if track not in self._warned_tracks:
            self._warned_tracks.add(track)
            logger.warning(
                "Church %d has %s services but no %s cycles with members; those services are skipped",
                self._church.id, track.value, track.value,
            )
        return False

    def _planned(self, service: Service, day: date, role: Role, pick: Pick) -> PlannedAssignment:
        slot_time = service.time[:5]
        if role == Role.WARMUP:
            slot_time = shift_time(service.time, -self._warmup_lead)
        return PlannedAssignment(
            service_id=service.id,
            service_date=day,
            role=role,
            organist_id=pick.organist.id,
            organist_name=pick.organist.name,
            origin_cycle_id=pick.cycle.id,
            slot_time=slot_time,
        )
