# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire repositories and services.
"""

from rodizio.core.database import engine
from rodizio.repositories.assignment_repository import AssignmentRepository
from rodizio.repositories.church_repository import ChurchRepository
from rodizio.repositories.cycle_repository import CycleRepository
from rodizio.repositories.service_repository import ServiceRepository
from rodizio.services.generation_service import GenerationService
from rodizio.services.locks import ChurchLockRegistry
from rodizio.services.notification_client import NotificationClient

# ── Repository instances (share the engine's connection pool) ──
_church_repo = ChurchRepository(engine)
_cycle_repo = CycleRepository(engine)
_service_repo = ServiceRepository(engine)
_assignment_repo = AssignmentRepository(engine)
_notification_client = NotificationClient()

# ── Service instance (owns the per-church generation locks) ──
_generation_service = GenerationService(
    church_repo=_church_repo,
    cycle_repo=_cycle_repo,
    service_repo=_service_repo,
    assignment_repo=_assignment_repo,
    notification_client=_notification_client,
    locks=ChurchLockRegistry(),
)


# ── FastAPI dependency functions ──
def get_generation_service() -> GenerationService:
    return _generation_service


def get_engine():
    return engine
