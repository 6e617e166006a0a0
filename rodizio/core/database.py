# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""SQLAlchemy engine factory and schema bootstrap."""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from rodizio.core.config import settings
from rodizio.core.logging import get_logger

logger = get_logger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS churches (
        id INTEGER PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        same_organist_both_roles BOOLEAN NOT NULL DEFAULT FALSE,
        always_combine_weekday INTEGER NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organists (
        id INTEGER PRIMARY KEY,
        church_id INTEGER NOT NULL REFERENCES churches(id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        category VARCHAR(20) NOT NULL DEFAULT 'official',
        active BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cycles (
        id INTEGER PRIMARY KEY,
        church_id INTEGER NOT NULL REFERENCES churches(id) ON DELETE CASCADE,
        track VARCHAR(20) NOT NULL DEFAULT 'official',
        number INTEGER NULL,
        name VARCHAR(100) NOT NULL,
        sort_order INTEGER NOT NULL DEFAULT 1,
        active BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cycle_members (
        cycle_id INTEGER NOT NULL REFERENCES cycles(id) ON DELETE CASCADE,
        organist_id INTEGER NOT NULL REFERENCES organists(id) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        PRIMARY KEY (cycle_id, position)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS services (
        id INTEGER PRIMARY KEY,
        church_id INTEGER NOT NULL REFERENCES churches(id) ON DELETE CASCADE,
        weekday INTEGER NOT NULL,
        time VARCHAR(8) NOT NULL,
        track VARCHAR(20) NOT NULL DEFAULT 'official',
        cycle_id INTEGER NULL REFERENCES cycles(id) ON DELETE SET NULL,
        monthly_occurrence INTEGER NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assignments (
        service_id INTEGER NOT NULL REFERENCES services(id) ON DELETE CASCADE,
        service_date DATE NOT NULL,
        role VARCHAR(10) NOT NULL,
        church_id INTEGER NOT NULL REFERENCES churches(id) ON DELETE CASCADE,
        organist_id INTEGER NOT NULL REFERENCES organists(id),
        origin_cycle_id INTEGER NULL REFERENCES cycles(id) ON DELETE SET NULL,
        slot_time VARCHAR(8) NOT NULL,
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL,
        PRIMARY KEY (service_id, service_date, role)
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_cycles_official_number
        ON cycles (church_id, number) WHERE track = 'official' AND active
    """,
    "CREATE INDEX IF NOT EXISTS ix_assignments_church_date ON assignments (church_id, service_date)",
)


def build_engine(url: str | None = None) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    database_url = url or settings.DATABASE_URL
    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def init_schema(target: Engine) -> None:
    """Create every table the rotation engine reads or writes."""
    with target.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("Database schema ready (%d statements)", len(SCHEMA_STATEMENTS))


engine = build_engine()
