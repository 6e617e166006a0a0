# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Load a church's active cycles, split by track, with their
ordered membership.
"""

from typing import NamedTuple

from rodizio.core.exceptions import ConfigurationError
from rodizio.core.logging import get_logger
from rodizio.models.domain import Cycle, Track
from rodizio.repositories.cycle_repository import CycleRepository

logger = get_logger(__name__)


class TrackCycles(NamedTuple):
    official: list[Cycle]
    youth: list[Cycle]


class CycleLoader:
    """Reads cycles and members; drops cycles nobody can be drawn from."""

    def __init__(self, cycle_repo: CycleRepository) -> None:
        self._cycles = cycle_repo

    def load(self, church_id: int) -> TrackCycles:
        """Raises ConfigurationError if neither track has a member, or if an
        organist is an active member of both tracks."""
        official = self._load_track(church_id, Track.OFFICIAL)
        youth = self._load_track(church_id, Track.YOUTH)

        if not official and not youth:
            raise ConfigurationError(
                f"Church {church_id} has no active cycles with active members"
            )

        shared = {m.id for c in official for m in c.members} & {
            m.id for c in youth for m in c.members
        }
        if shared:
            raise ConfigurationError(
                f"Church {church_id}: organists {sorted(shared)} belong to both "
                "official and youth cycles"
            )

        logger.info(
            "Loaded cycles for church %d: official=%d, youth=%d",
            church_id, len(official), len(youth),
            extra={"church_id": church_id},
        )
        return TrackCycles(official, youth)

    def _load_track(self, church_id: int, track: Track) -> list[Cycle]:
        cycles = self._cycles.list_active(church_id, track)
        members = self._cycles.members_by_cycle([c.id for c in cycles])
        loaded: list[Cycle] = []
        for cycle in cycles:
            cycle_members = members.get(cycle.id, [])
            if not cycle_members:
                logger.debug(
                    "Dropping %s cycle '%s' (id=%d): no active members",
                    track.value, cycle.name, cycle.id,
                )
                continue
            loaded.append(cycle.model_copy(update={"members": cycle_members}))
        return loaded
