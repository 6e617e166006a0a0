# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas for the HTTP API.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from rodizio.services.service_calendar import VALID_PERIODS

Reference = Optional[Union[int, str]]


# ── Generation Schemas ──

class GenerateRequest(BaseModel):
    church_id: int = Field(..., ge=1, description="Church to generate for")
    months: int = Field(..., description="Window length: 3, 6 or 12 months")
    start_cycle: Reference = Field(
        default=None, description="Cycle id, ordinal number, or name"
    )
    start_date: Optional[date] = Field(
        default=None, description="First day of the window (defaults to today)"
    )
    start_organist: Reference = Field(
        default=None, description="Organist id or name to start the rotation with"
    )

    @field_validator("months")
    @classmethod
    def check_months(cls, v: int) -> int:
        if v not in VALID_PERIODS:
            raise ValueError(f"months must be one of {VALID_PERIODS}")
        return v

    @field_validator("start_cycle", "start_organist")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RegenerateRequest(GenerateRequest):
    from_date: date = Field(..., description="Assignments on/after this date are rebuilt")


class UnfilledSlotResponse(BaseModel):
    service_id: int
    service_date: date
    role: str


class AssignmentResponse(BaseModel):
    service_id: int
    service_date: str
    role: str
    slot_time: str
    organist_id: int
    organist_name: str
    origin_cycle_id: Optional[int] = None
    organist_category: Optional[str] = None
    origin_cycle_name: Optional[str] = None
    weekday: Optional[int] = None
    service_time: Optional[str] = None
    track: Optional[str] = None


class GenerateResponse(BaseModel):
    message: str
    church_id: int
    period_start: str
    period_end: str
    count: int
    unfilled: list[UnfilledSlotResponse]
    assignments: list[AssignmentResponse]


class DeleteResponse(BaseModel):
    church_id: int
    deleted: int
