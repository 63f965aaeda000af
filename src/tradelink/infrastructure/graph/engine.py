"""ConnectionGraph: lazy-built NetworkX view of accepted connections.

Nodes are account reference strings (``"individual:42"``); an undirected
edge exists for every accepted connection. Pending and rejected edges are
not part of the graph. Rebuilt on first access after any write
transaction, never cached across processes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import networkx as nx
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError

from tradelink.domain.errors import StoreFailure
from tradelink.domain.lifecycle import EdgeStatus
from tradelink.infrastructure.database.schema import accounts, connections

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

type _Graph = nx.Graph


class ConnectionGraph:
    """Lazy-loading accepted-connection graph backed by the store."""

    def __init__(self, db: Engine) -> None:
        self._db = db
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access."""
        if self._graph is None:
            self._graph = self._build_from_db()
        return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        self._graph = None

    def _build_from_db(self) -> _Graph:
        """Load every account as a node and every accepted connection as an edge.

        Raises:
            StoreFailure: the database could not be read.
        """
        g: _Graph = nx.Graph()
        accepted = select(connections).where(connections.c.status == str(EdgeStatus.ACCEPTED))
        try:
            with self._db.connect() as conn:
                for row in conn.execute(select(accounts.c.id, accounts.c.kind)):
                    g.add_node(f"{row.kind}:{row.id}", kind=row.kind)
                for row in conn.execute(accepted):
                    g.add_edge(
                        f"{row.requester_kind}:{row.requester_id}",
                        f"{row.recipient_kind}:{row.recipient_id}",
                        connection_id=row.id,
                    )
        except DBAPIError as exc:
            logger.warning("Graph build failed at the driver: %s", exc.orig)
            raise StoreFailure("Relationship store unavailable") from exc
        return g
