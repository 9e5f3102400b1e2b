"""
Database connection and session management.

Provides the pooled SQLAlchemy engine, the request-scoped session
dependency and a small ``run_query`` primitive for single parameterized
statements outside the ORM.
"""

import os
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from backend.src.utils.logging_config import get_logger


logger = get_logger("db")

# Look for .env in backend directory (parent of src)
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.environ.get(
    "CRM_DB_URL",
    "sqlite:///./planner_crm.db"
)

DB_POOL_SIZE = int(os.environ.get("CRM_DB_POOL_SIZE", "20"))


if DATABASE_URL.startswith("sqlite"):
    # SQLite doesn't support pool_size, max_overflow, or pool_recycle
    from sqlalchemy.pool import StaticPool
    engine = create_engine(
        DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
        echo=False,
        future=True
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=DB_POOL_SIZE,
        max_overflow=10,
        pool_timeout=2,        # Fail fast when the pool is exhausted
        pool_pre_ping=True,
        pool_recycle=1800,     # Drop idle connections after 30 minutes
        echo=False,
        future=True
    )


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes to get database session.

    Usage:
        @router.get("/events")
        async def list_events(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """
    Dependency returning the session factory.

    For long-lived handlers such as WebSockets, which open a short session
    per unit of work instead of holding one for the connection's lifetime.
    """
    return SessionLocal


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enforce foreign keys on SQLite connections."""
    if type(dbapi_conn).__module__.startswith("sqlite3"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def run_query(
    sql: str,
    params: Optional[Dict[str, Any]] = None,
    bind: Optional[Engine] = None,
) -> List[Dict[str, Any]]:
    """
    Execute a single parameterized statement on a pooled connection.

    The connection is checked out for the duration of the statement and
    returned to the pool afterwards, whether or not the statement fails.
    Statements that return no rows yield an empty list.

    Args:
        sql: SQL text with named ``:param`` placeholders
        params: Parameter values
        bind: Engine to use (defaults to the application engine)

    Returns:
        Rows as dictionaries keyed by column name
    """
    target = bind or engine
    with target.begin() as conn:
        result = conn.execute(text(sql), params or {})
        if not result.returns_rows:
            return []
        return [dict(row._mapping) for row in result]


def check_connection(bind: Optional[Engine] = None) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        run_query("SELECT 1 AS ok", bind=bind)
        return True
    except Exception as e:
        logger.error(f"Database connectivity check failed: {e}")
        return False


def init_db():
    """
    Initialize database tables.

    Only for initial setup or testing. Production uses Alembic migrations.
    """
    from backend.src.models import Base
    Base.metadata.create_all(bind=engine)


def dispose_engine():
    """Dispose of the engine and close all connections."""
    engine.dispose()
