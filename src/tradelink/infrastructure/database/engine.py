"""Database engine setup for SQLite with WAL mode.

The relationship store defaults to ``{root}/.tradelink/tradelink.db``.
Any SQLAlchemy URL can be supplied instead (``[database] url``); the engine
only relies on unique constraints and plain Core statements.

SQLAlchemy Core (not ORM) is used: every service call is a short unit of
work with explicit statements, so identity maps buy nothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from tradelink.infrastructure.database.schema import metadata

DATA_DIRNAME = ".tradelink"
DB_FILENAME = "tradelink.db"


def create_db_engine(url: str) -> Engine:
    """Create an engine; SQLite connections get WAL mode and foreign keys."""
    engine = create_engine(url, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def default_database_url(root: Path) -> str:
    """SQLite URL for the database under *root*, creating the data dir."""
    data_dir = root / DATA_DIRNAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{data_dir / DB_FILENAME}"


def init_database(root: Path, *, url: str | None = None) -> Engine:
    """Create all tables and return the engine.

    Idempotent: safe to call on an existing database.
    """
    engine = create_db_engine(url or default_database_url(root))
    metadata.create_all(engine)
    return engine
