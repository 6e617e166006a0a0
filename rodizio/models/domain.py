# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Category(str, Enum):
    """Organist qualification tier."""
    OFFICIAL = "official"
    YOUTH = "youth"
    APPRENTICE = "apprentice"


class Track(str, Enum):
    """Independent rotation universe."""
    OFFICIAL = "official"
    YOUTH = "youth"


class Role(str, Enum):
    WARMUP = "warmup"
    MAIN = "main"


class Organist(BaseModel):
    """A person who can be placed on the rotation."""
    id: int
    name: str = Field(..., min_length=1, max_length=255)
    category: Category = Category.OFFICIAL
    active: bool = True

    @property
    def is_official(self) -> bool:
        return self.category == Category.OFFICIAL


class Cycle(BaseModel):
    """An ordered group of organists that rotates as a unit."""
    id: int
    church_id: int
    track: Track = Track.OFFICIAL
    number: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    order: int = 1
    active: bool = True
    members: list[Organist] = Field(default_factory=list)


class Service(BaseModel):
    """A recurring weekly service that needs organists."""
    id: int
    church_id: int
    weekday: int = Field(..., ge=0, le=6, description="0=Monday .. 6=Sunday")
    time: str = Field(..., pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    track: Track = Track.OFFICIAL
    cycle_id: Optional[int] = None
    monthly_occurrence: Optional[int] = Field(default=None, ge=1, le=5)
    active: bool = True


class Church(BaseModel):
    id: int
    name: str
    same_organist_both_roles: bool = False
    always_combine_weekday: Optional[int] = Field(default=None, ge=0, le=6)


class PlannedAssignment(BaseModel):
    """One role on one service date, before it is persisted."""
    service_id: int
    service_date: date
    role: Role
    organist_id: int
    organist_name: str
    origin_cycle_id: int
    slot_time: str


class UnfilledSlot(BaseModel):
    """A role the engine could not staff."""
    service_id: int
    service_date: date
    role: Role
