# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository: church configuration lookups."""
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from rodizio.models.domain import Church


class ChurchRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def get(self, church_id: int) -> Optional[Church]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("""
                    SELECT id, name, same_organist_both_roles, always_combine_weekday
                    FROM churches WHERE id = :id
                """),
                {"id": church_id},
            ).fetchone()
        if row is None:
            return None
        return Church(
            id=row[0],
            name=row[1],
            same_organist_both_roles=bool(row[2]),
            always_combine_weekday=row[3],
        )
