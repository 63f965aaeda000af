"""SQLite database engine and schema via SQLAlchemy Core."""

from tradelink.infrastructure.database.engine import create_db_engine, init_database
from tradelink.infrastructure.database.schema import (
    accounts,
    connections,
    contacts,
    follows,
    metadata,
)

__all__ = [
    "accounts",
    "connections",
    "contacts",
    "create_db_engine",
    "follows",
    "init_database",
    "metadata",
]
