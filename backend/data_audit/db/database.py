"""Database setup — SQLModel/SQLAlchemy engine over the directory store.

Design decisions:
- SQLModel chosen: combines Pydantic v2 + SQLAlchemy in one model class
- Engine is built from an explicit Settings object (no module-level engine),
  so the CLI, the API and tests each own their engine
- SQLite WAL mode for local runs; other dialects are left untouched
- Alembic for migrations: autogenerate from SQLModel table definitions
"""

from __future__ import annotations

import os

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from data_audit.config import Settings


def get_database_url(settings: Settings) -> str:
    """Get database URL, ensuring the data directory exists."""
    url = settings.database_url
    if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
        db_path = url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    return url


def set_sqlite_wal(dbapi_connection, connection_record):
    """Enable WAL mode so snapshot reads don't block remediation writes."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA busy_timeout=5000")    # 5s wait on lock
    cursor.close()


def create_db_engine(settings: Settings) -> Engine:
    """Create the engine for the configured store."""
    url = get_database_url(settings)
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},  # Shared by API threads
        )
        event.listen(engine, "connect", set_sqlite_wal)
        return engine
    return create_engine(url, echo=False, pool_pre_ping=True)


def create_db_and_tables(engine: Engine) -> None:
    """Create all tables defined by SQLModel metadata."""
    # Register every table on the metadata before create_all
    from data_audit.models import directory, remediation, snapshot  # noqa: F401

    SQLModel.metadata.create_all(engine)
