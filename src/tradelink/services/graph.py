"""NetworkGraphService: degree of separation and mutual connections.

Both queries run on the lazy-built accepted-connection graph
(``self._network.graph.graph``), so they see committed state only.
"""

from __future__ import annotations

from typing import Any

import networkx as nx

from tradelink.domain.accounts import AccountKind, AccountRef, parse_account_ref
from tradelink.domain.errors import NotFoundError, RelationshipError
from tradelink.services.base import BaseService
from tradelink.services.result import ServiceError, ServiceResult, failure
from tradelink.services.telemetry import traced


class NetworkGraphService(BaseService):
    """Distance and overlap queries over accepted connections."""

    def _graph_with(self, *refs: AccountRef) -> nx.Graph:
        """The accepted-connection graph, checked to contain every ref in *refs*."""
        g = self._network.graph.graph
        for ref in refs:
            if str(ref) not in g:
                label = "Organization" if ref.kind is AccountKind.ORGANIZATION else "Account"
                raise NotFoundError(f"{label} not found: {ref}")
        return g

    @traced
    def degree(self, a: AccountRef, b: AccountRef) -> ServiceResult:
        """Hop distance between *a* and *b*; 0 for the same account."""
        op = "degree"
        try:
            g = self._graph_with(a, b)
        except RelationshipError as exc:
            return failure(op, exc)

        try:
            path = nx.shortest_path(g, str(a), str(b))
        except nx.NetworkXNoPath:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="NO_PATH",
                    message=f"{a} and {b} are not linked by accepted connections",
                ),
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "source": str(a),
                "target": str(b),
                "degree": len(path) - 1,
                "path": path,
            },
        )

    @traced
    def mutual(self, a: AccountRef, b: AccountRef) -> ServiceResult:
        """Accounts directly connected to both *a* and *b*."""
        op = "mutual"
        try:
            g = self._graph_with(a, b)
            shared = sorted(set(g.neighbors(str(a))) & set(g.neighbors(str(b))))
            refs = [parse_account_ref(node) for node in shared]
            with self._network.read() as txn:
                profiles = txn.directory.resolve_many(refs)
        except RelationshipError as exc:
            return failure(op, exc)

        items: list[dict[str, Any]] = [
            profiles[ref].summary() if ref in profiles else {"ref": str(ref)} for ref in refs
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"source": str(a), "target": str(b), "count": len(items), "items": items},
        )
