# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Rotation generation and assignment endpoints.
Thin HTTP layer that delegates ALL logic to GenerationService.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from rodizio.core.dependencies import get_generation_service
from rodizio.core.exceptions import (
    ChurchNotFoundError,
    ConfigurationError,
    GenerationInProgressError,
    UnfulfillableAssignmentError,
)
from rodizio.schemas.rotation import (
    DeleteResponse,
    GenerateRequest,
    GenerateResponse,
    RegenerateRequest,
)
from rodizio.services.generation_service import GenerationReport, GenerationService

router = APIRouter(prefix="/api/v1/rotations", tags=["Rotations"])


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, ChurchNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, UnfulfillableAssignmentError):
        return HTTPException(
            status_code=409,
            detail={
                "error": str(exc),
                "unfilled": [g.model_dump(mode="json") for g in exc.gaps],
            },
        )
    if isinstance(exc, GenerationInProgressError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _response(message: str, church_id: int, report: GenerationReport) -> dict:
    return {
        "message": message,
        "church_id": church_id,
        "period_start": report.start.isoformat(),
        "period_end": report.end.isoformat(),
        "count": len(report.assignments),
        "unfilled": [g.model_dump(mode="json") for g in report.gaps],
        "assignments": report.assignments,
    }


HANDLED = (
    ChurchNotFoundError,
    ConfigurationError,
    UnfulfillableAssignmentError,
    GenerationInProgressError,
    ValueError,
)


@router.post("/generate", response_model=GenerateResponse)
def generate_rotation(
    payload: GenerateRequest,
    service: GenerationService = Depends(get_generation_service),
):
    """Generate and persist the rotation for a 3, 6 or 12 month window."""
    try:
        report = service.run(
            church_id=payload.church_id,
            months=payload.months,
            start_cycle_ref=payload.start_cycle,
            start_date=payload.start_date,
            start_organist_ref=payload.start_organist,
        )
    except HANDLED as e:
        raise _to_http(e)
    return _response(
        f"Rotation generated for {payload.months} months", payload.church_id, report
    )


@router.post("/preview", response_model=GenerateResponse)
def preview_rotation(
    payload: GenerateRequest,
    service: GenerationService = Depends(get_generation_service),
):
    """Simulate a generation; nothing is saved."""
    try:
        report = service.preview(
            church_id=payload.church_id,
            months=payload.months,
            start_cycle_ref=payload.start_cycle,
            start_date=payload.start_date,
            start_organist_ref=payload.start_organist,
        )
    except HANDLED as e:
        raise _to_http(e)
    return _response("Rotation preview", payload.church_id, report)


@router.post("/regenerate", response_model=GenerateResponse)
def regenerate_rotation(
    payload: RegenerateRequest,
    service: GenerationService = Depends(get_generation_service),
):
    """Rebuild every assignment from a given date onwards."""
    try:
        report = service.regenerate_from(
            church_id=payload.church_id,
            from_date=payload.from_date,
            months=payload.months,
            start_cycle_ref=payload.start_cycle,
            start_organist_ref=payload.start_organist,
        )
    except HANDLED as e:
        raise _to_http(e)
    return _response(
        f"Rotation regenerated from {payload.from_date.isoformat()}", payload.church_id, report
    )


@router.get("")
def list_rotation(
    church_id: int = Query(..., ge=1),
    start: Optional[date] = Query(default=None, description="Inclusive"),
    end: Optional[date] = Query(default=None, description="Exclusive"),
    service: GenerationService = Depends(get_generation_service),
):
    """List persisted assignments for a church."""
    try:
        return service.list_assignments(church_id, start, end)
    except HANDLED as e:
        raise _to_http(e)


@router.delete("/church/{church_id}", response_model=DeleteResponse)
def delete_rotation(
    church_id: int,
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    service: GenerationService = Depends(get_generation_service),
):
    """Delete a church's assignments, optionally limited to a period."""
    try:
        deleted = service.delete_assignments(church_id, start, end)
    except HANDLED as e:
        raise _to_http(e)
    return {"church_id": church_id, "deleted": deleted}
