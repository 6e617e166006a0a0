# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Starting-position resolution for the official rotation cursor.

Turns the optional "start at cycle X / organist Y" hints into a
(cycle_index, item_index) seed. Never mutates cycles and never raises on
unmatched references; every fallback is logged.
"""

from typing import Any, Optional, Sequence

from rodizio.core.logging import get_logger
from rodizio.models.domain import Cycle, Organist
from rodizio.services.normalize import names_match
from rodizio.services.rotation import START, CursorSnapshot

logger = get_logger(__name__)


def _as_int(ref: Any) -> Optional[int]:
    if isinstance(ref, bool):
        return None
    if isinstance(ref, int):
        return ref
    if isinstance(ref, str) and ref.strip().isdigit():
        return int(ref.strip())
    return None


def _is_blank(ref: Any) -> bool:
    return ref is None or (isinstance(ref, str) and not ref.strip())


def find_cycle_index(cycles: Sequence[Cycle], ref: Any) -> Optional[int]:
    """Match by ordinal number, then by id, then by normalized name."""
    if _is_blank(ref):
        return None
    as_int = _as_int(ref)
    if as_int is not None:
        for idx, cycle in enumerate(cycles):
            if cycle.number == as_int:
                return idx
        for idx, cycle in enumerate(cycles):
            if cycle.id == as_int:
                return idx
    for idx, cycle in enumerate(cycles):
        if names_match(ref, cycle.name, allow_substring=False):
            return idx
    return None


def find_member_index(members: Sequence[Organist], name: str) -> Optional[int]:
    """Exact normalized match first, then substring match."""
    for allow_substring in (False, True):
        for idx, member in enumerate(members):
            if names_match(name, member.name, allow_substring=allow_substring):
                return idx
    return None


class PointerResolver:
    """Compute the official cursor seed from optional start references."""

    def __init__(
        self,
        official_cycles: Sequence[Cycle],
        youth_cycles: Sequence[Cycle] = (),
    ) -> None:
        self._official = list(official_cycles)
        self._youth = list(youth_cycles)

    def resolve(
        self,
        start_cycle_ref: Any = None,
        start_organist_ref: Any = None,
    ) -> CursorSnapshot:
        if not self._official:
            return START

        cycle_index = 0
        locked = False
        if not _is_blank(start_cycle_ref):
            found = find_cycle_index(self._official, start_cycle_ref)
            if found is None:
                logger.warning(
                    "Start cycle %r not found among %d official cycles; using cycle index 0",
                    start_cycle_ref, len(self._official),
                )
            else:
                cycle_index, locked = found, True
                logger.info(
                    "Start cycle locked: ref=%r -> '%s' (index %d)",
                    start_cycle_ref, self._official[found].name, found,
                )

        if _is_blank(start_organist_ref):
            return CursorSnapshot(cycle_index, 0)

        name = self._display_name(start_organist_ref)
        item_index = find_member_index(self._official[cycle_index].members, name)
        if item_index is not None:
            logger.info(
                "Start organist '%s' found in cycle '%s' at position %d",
                name, self._official[cycle_index].name, item_index,
            )
            return CursorSnapshot(cycle_index, item_index)

        if locked:
            logger.warning(
                "Start organist %r not in locked cycle '%s'; starting at its first member",
                start_organist_ref, self._official[cycle_index].name,
            )
            return CursorSnapshot(cycle_index, 0)

        for idx, cycle in enumerate(self._official):
            item_index = find_member_index(cycle.members, name)
            if item_index is not None:
                logger.info(
                    "Start organist '%s' found in cycle '%s'; switching start cycle from index %d to %d",
                    name, cycle.name, cycle_index, idx,
                )
                return CursorSnapshot(idx, item_index)

        logger.warning(
            "Start organist %r not found in any official cycle; starting at cycle index %d",
            start_organist_ref, cycle_index,
        )
        return CursorSnapshot(cycle_index, 0)

    def _display_name(self, ref: Any) -> str:
        """Resolve an id reference to a name so same-named duplicates still match."""
        as_int = _as_int(ref)
        if as_int is not None:
            for cycle in self._official + self._youth:
                for member in cycle.members:
                    if member.id == as_int:
                        return member.name
            logger.warning("Start organist id %d is not a member of any cycle", as_int)
        return str(ref)
