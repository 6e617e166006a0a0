# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: generated assignments.

Rows are keyed by (service_id, service_date, role). Writing the same plan
twice leaves the table unchanged; a changed plan replaces the row in place.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

from rodizio.core.logging import get_logger
from rodizio.models.domain import PlannedAssignment

logger = get_logger(__name__)

ENRICHED_QUERY = """
    SELECT a.service_id, a.service_date, a.role, a.slot_time,
           a.organist_id, o.name, o.category,
           a.origin_cycle_id, c.name,
           s.weekday, s.time, s.track,
           a.church_id, a.created_at, a.updated_at
    FROM assignments a
    INNER JOIN organists o ON o.id = a.organist_id
    INNER JOIN services s ON s.id = a.service_id
    LEFT JOIN cycles c ON c.id = a.origin_cycle_id
"""

UPSERT_SQL = """
    INSERT INTO assignments
        (service_id, service_date, role, church_id, organist_id,
         origin_cycle_id, slot_time, created_at, updated_at)
    VALUES
        (:service_id, :service_date, :role, :church_id, :organist_id,
         :origin_cycle_id, :slot_time, :ts, :ts)
    ON CONFLICT (service_id, service_date, role) DO UPDATE SET
        church_id = excluded.church_id,
        organist_id = excluded.organist_id,
        origin_cycle_id = excluded.origin_cycle_id,
        slot_time = excluded.slot_time,
        updated_at = excluded.updated_at
    WHERE assignments.organist_id <> excluded.organist_id
       OR assignments.slot_time <> excluded.slot_time
       OR COALESCE(assignments.origin_cycle_id, -1) <> COALESCE(excluded.origin_cycle_id, -1)
"""


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "service_id": row[0],
        "service_date": _as_date(row[1]).isoformat(),
        "role": row[2],
        "slot_time": row[3],
        "organist_id": row[4],
        "organist_name": row[5],
        "organist_category": row[6],
        "origin_cycle_id": row[7],
        "origin_cycle_name": row[8],
        "weekday": row[9],
        "service_time": str(row[10])[:5],
        "track": row[11],
        "church_id": row[12],
        "created_at": row[13],
        "updated_at": row[14],
    }


def _range_clause(start: Optional[date], end: Optional[date], params: Dict[str, Any]) -> str:
    clause = ""
    if start is not None:
        clause += " AND a.service_date >= :start"
        params["start"] = start.isoformat()
    if end is not None:
        clause += " AND a.service_date < :end"
        params["end"] = end.isoformat()
    return clause


class AssignmentRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def upsert_many(self, church_id: int, assignments: Sequence[PlannedAssignment]) -> int:
        """Insert or replace every assignment in one transaction.

        Returns the number of rows inserted or changed.
        """
        if not assignments:
            return 0
        with self._engine.begin() as conn:
            written = self._upsert(conn, church_id, assignments)
        logger.info("Upserted %d assignments for church %d", written, church_id)
        return written

    def replace_from(
        self,
        church_id: int,
        from_date: date,
        assignments: Sequence[PlannedAssignment],
    ) -> Tuple[int, int]:
        """Delete the church's rows on or after from_date, then write the new plan."""
        with self._engine.begin() as conn:
            deleted = conn.execute(
                text("DELETE FROM assignments WHERE church_id = :church_id AND service_date >= :start"),
                {"church_id": church_id, "start": from_date.isoformat()},
            ).rowcount or 0
            written = self._upsert(conn, church_id, assignments) if assignments else 0
        logger.info(
            "Replaced assignments for church %d from %s: deleted=%d, written=%d",
            church_id, from_date.isoformat(), deleted, written,
        )
        return deleted, written

    def _upsert(self, conn, church_id: int, assignments: Sequence[PlannedAssignment]) -> int:
        ts = datetime.now(timezone.utc).isoformat()
        params = [
            {
                "service_id": a.service_id,
                "service_date": a.service_date.isoformat(),
                "role": a.role.value,
                "church_id": church_id,
                "organist_id": a.organist_id,
                "origin_cycle_id": a.origin_cycle_id,
                "slot_time": a.slot_time,
                "ts": ts,
            }
            for a in assignments
        ]
        stmt = text(UPSERT_SQL)
        # rows the change guard skips report a rowcount of 0
        return sum(conn.execute(stmt, p).rowcount or 0 for p in params)

    def delete_range(
        self,
        church_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        params: Dict[str, Any] = {"church_id": church_id}
        clause = _range_clause(start, end, params).replace("a.service_date", "service_date")
        with self._engine.begin() as conn:
            result = conn.execute(
                text(f"DELETE FROM assignments WHERE church_id = :church_id{clause}"),
                params,
            )
        return result.rowcount or 0

    # ── Read ───────────────────────────────────────────────────────────

    def list_enriched(
        self,
        church_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Persisted rows joined with organist, service and cycle display data."""
        params: Dict[str, Any] = {"church_id": church_id}
        where = " WHERE a.church_id = :church_id" + _range_clause(start, end, params)
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(
                    ENRICHED_QUERY + where
                    + " ORDER BY a.service_date, a.slot_time, a.service_id, a.role DESC"
                ),
                params,
            ).fetchall()
        return [_row_to_dict(r) for r in rows]
