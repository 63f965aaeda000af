"""Network: the unit-of-work boundary injected into every service.

The Network owns the database engine, the accepted-connection graph, and
the plugin manager. :meth:`transaction` opens one database transaction and
yields a :class:`NetworkTransaction` carrying a :class:`RelationshipStore`
and an :class:`AccountDirectory` bound to it:

- **DB**: native SQLAlchemy ``engine.begin()``, commit on success,
  rollback on any exception. Single-edge writes are therefore atomic.
- **Graph**: invalidated when the transaction ends (success or failure),
  lazily rebuilt from committed state on next access.
- **Errors**: driver-level failures escaping the block surface as
  :class:`StoreFailure` (or :class:`ConflictError` for constraint
  violations), never as raw SQLAlchemy exceptions.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import DBAPIError, IntegrityError

from tradelink.domain.errors import ConflictError, StoreFailure
from tradelink.infrastructure.database.engine import init_database
from tradelink.infrastructure.directory import AccountDirectory
from tradelink.infrastructure.graph.engine import ConnectionGraph
from tradelink.infrastructure.store import RelationshipStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from tradelink.config.settings import TradelinkSettings
    from tradelink.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


@dataclass
class NetworkTransaction:
    """Active unit of work: one connection, its store and directory."""

    conn: Connection
    store: RelationshipStore
    directory: AccountDirectory


class Network:
    """Repository encapsulating database, directory, and graph access.

    Constructed once at CLI startup from :class:`TradelinkSettings` and
    stored on the click context. Services receive it via
    :class:`BaseService`.
    """

    def __init__(self, settings: TradelinkSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root, url=settings.database.url)
        self._graph = ConnectionGraph(self._engine)
        self._plugins: PluginManager | None = None

    @property
    def root(self) -> Path:
        """The data root directory."""
        return self._settings.root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine."""
        return self._engine

    @property
    def graph(self) -> ConnectionGraph:
        """The accepted-connection graph (lazy-built)."""
        return self._graph

    @property
    def settings(self) -> TradelinkSettings:
        return self._settings

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None until :meth:`init_plugins`)."""
        return self._plugins

    def init_plugins(self) -> None:
        """Create the plugin manager and load entry-point plugins."""
        from tradelink.plugins.manager import PluginManager

        pm = PluginManager()
        if self._settings.plugins.enabled:
            pm.discover_and_load()
        self._plugins = pm

    def close(self) -> None:
        """Release pooled database connections."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[NetworkTransaction]:
        """Read-write unit of work.

        **Warning:** do not read ``network.graph`` inside the block; it
        reflects committed state only.

        Usage::

            with network.transaction() as txn:
                edge = txn.store.find_connection_between(a, b)
                ...
        """
        try:
            with self._engine.begin() as conn:
                yield NetworkTransaction(
                    conn=conn,
                    store=RelationshipStore(conn),
                    directory=AccountDirectory(conn),
                )
        except IntegrityError as exc:
            raise ConflictError("Record already exists") from exc
        except DBAPIError as exc:
            logger.warning("Transaction failed at the driver: %s", exc.orig)
            raise StoreFailure("Relationship store unavailable") from exc
        finally:
            self._graph.invalidate()

    @contextmanager
    def read(self) -> Iterator[NetworkTransaction]:
        """Read-only access; nothing is committed."""
        try:
            with self._engine.connect() as conn:
                yield NetworkTransaction(
                    conn=conn,
                    store=RelationshipStore(conn),
                    directory=AccountDirectory(conn),
                )
        except DBAPIError as exc:
            logger.warning("Read failed at the driver: %s", exc.orig)
            raise StoreFailure("Relationship store unavailable") from exc
