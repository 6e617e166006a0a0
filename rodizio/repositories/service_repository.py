# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository: recurring weekly services of a church."""
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine

from rodizio.models.domain import Service, Track


class ServiceRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def list_active(self, church_id: int) -> List[Service]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("""
                    SELECT id, church_id, weekday, time, track, cycle_id, monthly_occurrence, active
                    FROM services
                    WHERE church_id = :church_id AND active = :active
                    ORDER BY weekday, time, id
                """),
                {"church_id": church_id, "active": True},
            ).fetchall()
        return [
            Service(
                id=r[0],
                church_id=r[1],
                weekday=r[2],
                time=str(r[3])[:5],
                track=Track(r[4]),
                cycle_id=r[5],
                monthly_occurrence=r[6],
                active=bool(r[7]),
            )
            for r in rows
        ]
