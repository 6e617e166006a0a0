# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain exceptions raised by the rotation engine and mapped to HTTP
status codes in the controllers.
"""

from typing import Any


class RotationError(Exception):
    """Base class for every rotation-engine failure."""


class ConfigurationError(RotationError):
    """The church has no usable cycles or members to rotate through."""


class ChurchNotFoundError(RotationError, KeyError):
    """Raised when the requested church does not exist."""

    def __init__(self, church_id: int) -> None:
        super().__init__(f"Church {church_id} not found")
        self.church_id = church_id

    def __str__(self) -> str:
        return self.args[0]


class UnfulfillableAssignmentError(RotationError):
    """The main role could not be staffed for one or more service dates."""

    def __init__(self, gaps: list[Any]) -> None:
        self.gaps = list(gaps)
        super().__init__(
            f"{len(self.gaps)} service date(s) have no eligible organist for the main role"
        )


class GenerationInProgressError(RotationError):
    """Another generation for the same church is still running."""

    def __init__(self, church_id: int) -> None:
        super().__init__(f"A rotation generation is already running for church {church_id}")
        self.church_id = church_id
