# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: cycles and their ordered membership.
NO business rules here; filtering of empty cycles happens in the loader.
"""
from collections import defaultdict
from typing import Dict, List, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from rodizio.models.domain import Cycle, Organist, Track

CYCLE_COLS = "id, church_id, track, number, name, sort_order, active"

_ORDER_BY = {
    Track.OFFICIAL: "ORDER BY CASE WHEN number IS NULL THEN 1 ELSE 0 END, number, id",
    Track.YOUTH: "ORDER BY sort_order, id",
}


def _row_to_cycle(row) -> Cycle:
    return Cycle(
        id=row[0],
        church_id=row[1],
        track=Track(row[2]),
        number=row[3],
        name=row[4],
        order=row[5] if row[5] is not None else 1,
        active=bool(row[6]),
    )


class CycleRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def list_active(self, church_id: int, track: Track) -> List[Cycle]:
        """Active cycles of one track, in rotation order, without members."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"""
                    SELECT {CYCLE_COLS} FROM cycles
                    WHERE church_id = :church_id AND track = :track AND active = :active
                    {_ORDER_BY[track]}
                """),
                {"church_id": church_id, "track": track.value, "active": True},
            ).fetchall()
        return [_row_to_cycle(r) for r in rows]

    def members_by_cycle(self, cycle_ids: Sequence[int]) -> Dict[int, List[Organist]]:
        """Active organists per cycle, ordered by position."""
        if not cycle_ids:
            return {}
        stmt = text("""
            SELECT cm.cycle_id, o.id, o.name, o.category, o.active
            FROM cycle_members cm
            INNER JOIN organists o ON o.id = cm.organist_id
            WHERE cm.cycle_id IN :cycle_ids AND o.active = :active
            ORDER BY cm.cycle_id, cm.position
        """).bindparams(bindparam("cycle_ids", expanding=True))
        with self._engine.connect() as conn:
            rows = conn.execute(
                stmt, {"cycle_ids": list(cycle_ids), "active": True}
            ).fetchall()

        members: Dict[int, List[Organist]] = defaultdict(list)
        for row in rows:
            members[row[0]].append(
                Organist(id=row[1], name=row[2], category=row[3], active=bool(row[4]))
            )
        return dict(members)

