# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation cursor. Pure computation, no side effects.

One cursor per track walks the concatenation of the track's cycles in
cycle order and wraps from the last member of the last cycle back to the
first member of the first cycle.
"""

from typing import NamedTuple, Optional, Sequence

from rodizio.core.exceptions import ConfigurationError
from rodizio.models.domain import Cycle, Organist


class CursorSnapshot(NamedTuple):
    """Immutable (cycle_index, item_index) position."""
    cycle_index: int
    item_index: int


class Pick(NamedTuple):
    """An organist together with the cycle it was drawn from."""
    organist: Organist
    cycle: Cycle


START = CursorSnapshot(0, 0)


class RotationCursor:
    """Round-robin iterator over every member of a track's cycles."""

    def __init__(
        self,
        cycles: Sequence[Cycle],
        start: Optional[CursorSnapshot] = None,
    ) -> None:
        self._cycles = [c for c in cycles if c.members]
        self._cycle_index = 0
        self._item_index = 0
        self.restore(start or START)

    @property
    def cycles(self) -> list[Cycle]:
        return self._cycles

    def __len__(self) -> int:
        """Total number of members across all cycles (one full lap)."""
        return sum(len(c.members) for c in self._cycles)

    def __bool__(self) -> bool:
        return bool(self._cycles)

    # ── Iteration ──

    def peek(self) -> Pick:
        if not self._cycles:
            raise ConfigurationError("Rotation cursor has no members to rotate through")
        cycle = self._cycles[self._cycle_index]
        return Pick(cycle.members[self._item_index], cycle)

    def next(self) -> Pick:
        """Return the member under the cursor, then advance (rolling over)."""
        pick = self.peek()
        self._item_index += 1
        if self._item_index >= len(self._cycles[self._cycle_index].members):
            self._item_index = 0
            self._cycle_index = (self._cycle_index + 1) % len(self._cycles)
        return pick

    # ── Snapshots ──

    def save(self) -> CursorSnapshot:
        return CursorSnapshot(self._cycle_index, self._item_index)

    def restore(self, snapshot: CursorSnapshot) -> None:
        """Move to ``snapshot``; out-of-range positions are normalized."""
        if not self._cycles:
            self._cycle_index, self._item_index = 0, 0
            return
        cycle_index = snapshot.cycle_index % len(self._cycles)
        item_index = snapshot.item_index
        if item_index < 0 or item_index >= len(self._cycles[cycle_index].members):
            item_index = 0
        self._cycle_index, self._item_index = cycle_index, item_index
