# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation generation, the business logic for building a calendar.
Coordinates configuration reads, the cursor state machine, persistence,
metrics, and the downstream webhook.

Flow:
    CycleLoader ─► PointerResolver ─► RotationCursor (official / youth)
    ServiceCalendar ─► AssignmentResolver ─► AssignmentRepository
"""

import time
from datetime import date
from typing import Any, NamedTuple, Optional

from rodizio.core.config import settings
from rodizio.core.exceptions import ChurchNotFoundError, UnfulfillableAssignmentError
from rodizio.core.logging import get_logger
from rodizio.metrics.prometheus import (
    ASSIGNMENTS_WRITTEN,
    GENERATION_DURATION,
    GENERATIONS_TOTAL,
    UNFILLED_ROLES,
)
from rodizio.models.domain import Church, PlannedAssignment, UnfilledSlot
from rodizio.repositories.assignment_repository import AssignmentRepository
from rodizio.repositories.church_repository import ChurchRepository
from rodizio.repositories.cycle_repository import CycleRepository
from rodizio.repositories.service_repository import ServiceRepository
from rodizio.services.assignment_resolver import AssignmentResolver
from rodizio.services.cycle_loader import CycleLoader
from rodizio.services.locks import ChurchLockRegistry
from rodizio.services.notification_client import NotificationClient
from rodizio.services.pointer import PointerResolver
from rodizio.services.rotation import RotationCursor
from rodizio.services.service_calendar import VALID_PERIODS, add_months, iter_service_dates

logger = get_logger(__name__)


class GenerationPlan(NamedTuple):
    church: Church
    start: date
    end: date
    assignments: list[PlannedAssignment]
    gaps: list[UnfilledSlot]


class GenerationReport(NamedTuple):
    start: date
    end: date
    assignments: list[dict[str, Any]]
    gaps: list[UnfilledSlot]


class GenerationService:
    """Builds and persists organist rotations for one church at a time."""

    def __init__(
        self,
        church_repo: ChurchRepository,
        cycle_repo: CycleRepository,
        service_repo: ServiceRepository,
        assignment_repo: AssignmentRepository,
        notification_client: Optional[NotificationClient] = None,
        locks: Optional[ChurchLockRegistry] = None,
        strict: Optional[bool] = None,
        lookahead_limit: Optional[int] = None,
    ) -> None:
        self._churches = church_repo
        self._loader = CycleLoader(cycle_repo)
        self._services = service_repo
        self._assignments = assignment_repo
        self._notifications = notification_client or NotificationClient()
        self._locks = locks or ChurchLockRegistry()
        self._strict = settings.STRICT_MAIN_ROLE if strict is None else strict
        self._lookahead_limit = lookahead_limit

    # ── Commands ──

    def generate(
        self,
        church_id: int,
        months: int,
        start_cycle_ref: Any = None,
        start_date: Optional[date] = None,
        start_organist_ref: Any = None,
    ) -> list[dict[str, Any]]:
        """Generate, persist, and return the enriched rows for the window."""
        return self.run(
            church_id, months, start_cycle_ref, start_date, start_organist_ref
        ).assignments

    def run(
        self,
        church_id: int,
        months: int,
        start_cycle_ref: Any = None,
        start_date: Optional[date] = None,
        start_organist_ref: Any = None,
    ) -> GenerationReport:
        """Like generate(), but also reports the roles left unfilled."""
        with self._locks.hold(church_id):
            return self._write(
                "generate",
                lambda: self.plan(church_id, months, start_cycle_ref, start_date, start_organist_ref),
                lambda plan: self._assignments.upsert_many(church_id, plan.assignments),
            )

    def regenerate_from(
        self,
        church_id: int,
        from_date: date,
        months: int,
        start_cycle_ref: Any = None,
        start_organist_ref: Any = None,
    ) -> GenerationReport:
        """Drop everything on/after from_date and generate a fresh window from there."""
        with self._locks.hold(church_id):
            return self._write(
                "regenerate",
                lambda: self.plan(church_id, months, start_cycle_ref, from_date, start_organist_ref),
                lambda plan: self._assignments.replace_from(church_id, from_date, plan.assignments)[1],
            )

    def delete_assignments(
        self,
        church_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        self._require_church(church_id)
        with self._locks.hold(church_id):
            deleted = self._assignments.delete_range(church_id, start, end)
        logger.info("Deleted %d assignments for church %d", deleted, church_id,
                    extra={"church_id": church_id})
        return deleted

    # ── Queries ──

    def preview(
        self,
        church_id: int,
        months: int,
        start_cycle_ref: Any = None,
        start_date: Optional[date] = None,
        start_organist_ref: Any = None,
    ) -> GenerationReport:
        """Plan the window without writing anything."""
        plan = self.plan(church_id, months, start_cycle_ref, start_date, start_organist_ref)
        GENERATIONS_TOTAL.labels(mode="preview", status="ok").inc()
        return GenerationReport(
            plan.start,
            plan.end,
            [a.model_dump(mode="json") for a in plan.assignments],
            plan.gaps,
        )

    def list_assignments(
        self,
        church_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        self._require_church(church_id)
        return self._assignments.list_enriched(church_id, start, end)

    def plan(
        self,
        church_id: int,
        months: int,
        start_cycle_ref: Any = None,
        start_date: Optional[date] = None,
        start_organist_ref: Any = None,
    ) -> GenerationPlan:
        """Run the rotation state machine in memory. Raises before any write."""
        if months not in VALID_PERIODS:
            raise ValueError(f"months must be one of {VALID_PERIODS}")
        church = self._require_church(church_id)
        tracks = self._loader.load(church_id)
        services = self._services.list_active(church_id)

        start = start_date or date.today()
        end = add_months(start, months)

        seed = PointerResolver(tracks.official, tracks.youth).resolve(
            start_cycle_ref, start_organist_ref
        )
        resolver = AssignmentResolver(
            church,
            RotationCursor(tracks.official, seed),
            RotationCursor(tracks.youth),
            lookahead_limit=self._lookahead_limit,
        )
        result = resolver.resolve(iter_service_dates(start, months, services))

        for gap in result.gaps:
            UNFILLED_ROLES.labels(role=gap.role.value).inc()
        if result.gaps:
            logger.warning(
                "Church %d: %d role(s) left unfilled between %s and %s",
                church_id, len(result.gaps), start.isoformat(), end.isoformat(),
                extra={"church_id": church_id},
            )
            if self._strict:
                raise UnfulfillableAssignmentError(result.gaps)

        logger.info(
            "Planned %d assignments for church %d (%s -> %s, seed=%s)",
            len(result.assignments), church_id, start.isoformat(), end.isoformat(), tuple(seed),
            extra={"church_id": church_id},
        )
        return GenerationPlan(church, start, end, result.assignments, result.gaps)

    # ── Internals ──

    def _require_church(self, church_id: int) -> Church:
        church = self._churches.get(church_id)
        if church is None:
            raise ChurchNotFoundError(church_id)
        return church

    def _write(self, mode: str, make_plan, persist) -> GenerationReport:
        started = time.perf_counter()
        try:
            plan = make_plan()
            written = persist(plan)
            rows = self._assignments.list_enriched(plan.church.id, plan.start, plan.end)
        except Exception:
            GENERATIONS_TOTAL.labels(mode=mode, status="error").inc()
            raise
        GENERATION_DURATION.observe(time.perf_counter() - started)
        GENERATIONS_TOTAL.labels(mode=mode, status="ok").inc()
        ASSIGNMENTS_WRITTEN.inc(written)

        self._notifications.send_rotation(
            plan.church.id, plan.start.isoformat(), plan.end.isoformat(), rows
        )
        return GenerationReport(plan.start, plan.end, rows, plan.gaps)
