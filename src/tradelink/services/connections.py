"""ConnectionService: the connection-request lifecycle.

Pipeline for every write: VALIDATE -> DECIDE -> APPLY -> EFFECTS -> RESPOND.

- VALIDATE rejects malformed and self-targeting calls before any store
  access, then resolves accounts and checks the effective block.
- DECIDE is a pure :mod:`tradelink.domain.lifecycle` function over the
  pair's current edge.
- APPLY writes exactly one edge inside one transaction.
- EFFECTS (mutual follow, contact mirroring) run after commit through the
  :class:`EffectRunner`; their failures become warnings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradelink.domain.accounts import AccountRef, same_account
from tradelink.domain.errors import (
    BlockedError,
    ConflictError,
    NotFoundError,
    RelationshipError,
    ValidationError,
)
from tradelink.domain.lifecycle import (
    EdgeSnapshot,
    EdgeStatus,
    Transition,
    check_party,
    decide_accept,
    decide_reject,
    decide_send,
    relation_status,
)
from tradelink.services._helpers import now_iso
from tradelink.services.base import BaseService
from tradelink.services.effects import EffectRunner
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import traced

if TYPE_CHECKING:
    from tradelink.infrastructure.network import Network
    from tradelink.infrastructure.store import RelationshipStore

DIRECTIONS = ("sent", "received")


def _apply(
    store: RelationshipStore,
    existing: EdgeSnapshot | None,
    transition: Transition,
    now: str,
) -> EdgeSnapshot:
    """Write the edge change *transition* describes."""
    if transition.action == "create":
        return store.insert_connection(
            transition.requester, transition.recipient, transition.status, now
        )
    assert existing is not None
    if transition.action == "resend":
        return store.update_connection(
            existing.id,
            now,
            status=transition.status,
            requester=transition.requester,
            recipient=transition.recipient,
        )
    return store.update_connection(existing.id, now, status=transition.status)


class ConnectionService(BaseService):
    """Send, accept, reject, and remove connection requests."""

    def __init__(self, network: Network, *, effects: EffectRunner | None = None) -> None:
        super().__init__(network)
        self._effects = effects or EffectRunner(network)

    def _after_commit(
        self,
        edge: EdgeSnapshot,
        transition: Transition,
        warnings: list[str],
    ) -> dict[str, Any]:
        outcomes, effect_warnings = self._effects.run(edge, transition.effects)
        warnings.extend(effect_warnings)
        hook = (
            "post_connection_accept"
            if transition.status is EdgeStatus.ACCEPTED
            else "post_connection_request"
        )
        self._dispatch_event(
            hook,
            {
                "connection_id": edge.id,
                "requester": str(edge.requester),
                "recipient": str(edge.recipient),
            },
            warnings,
        )
        return outcomes

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @traced
    def send_request(self, requester: AccountRef, recipient: AccountRef) -> ServiceResult:
        """Ask *recipient* to connect.

        A pending request in the opposite direction is accepted instead of
        creating a second edge; a rejected edge is re-sent in the new
        direction.
        """
        op = "send_request"
        warnings: list[str] = []
        try:
            if same_account(requester, recipient):
                raise ValidationError("Cannot send a connection request to yourself")
            now = now_iso()
            with self._network.transaction() as txn:
                txn.directory.resolve(requester)
                txn.directory.resolve(recipient)
                if txn.store.is_blocked(requester, recipient):
                    raise BlockedError(
                        f"Cannot connect with {recipient}: account is blocked",
                        detail={"recipient": str(recipient)},
                    )
                existing = txn.store.find_connection_between(requester, recipient)
                transition = decide_send(existing, requester, recipient)
                edge = _apply(txn.store, existing, transition, now)
        except RelationshipError as exc:
            return failure(op, exc)

        outcomes = self._after_commit(edge, transition, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "action": transition.action,
                "connection": edge.to_dict(),
                "effects": outcomes,
            },
            warnings=warnings,
        )

    @traced
    def accept_request(self, edge_id: int, actor: AccountRef) -> ServiceResult:
        """Accept a pending request addressed to *actor*."""
        op = "accept_request"
        warnings: list[str] = []
        try:
            now = now_iso()
            with self._network.transaction() as txn:
                existing = self._require_edge(txn.store, edge_id)
                transition = decide_accept(existing, actor)
                if txn.store.is_blocked(existing.requester, existing.recipient):
                    raise BlockedError(
                        "Cannot accept a request between blocked accounts",
                        detail={"connection_id": edge_id},
                    )
                edge = _apply(txn.store, existing, transition, now)
        except RelationshipError as exc:
            return failure(op, exc)

        outcomes = self._after_commit(edge, transition, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"connection": edge.to_dict(), "effects": outcomes},
            warnings=warnings,
        )

    @traced
    def reject_request(self, edge_id: int, actor: AccountRef) -> ServiceResult:
        """Reject a pending request addressed to *actor*. No side effects."""
        op = "reject_request"
        try:
            now = now_iso()
            with self._network.transaction() as txn:
                existing = self._require_edge(txn.store, edge_id)
                transition = decide_reject(existing, actor)
                edge = _apply(txn.store, existing, transition, now)
        except RelationshipError as exc:
            return failure(op, exc)

        return ServiceResult(ok=True, op=op, data={"connection": edge.to_dict()})

    @traced
    def remove_connection(self, edge_id: int, actor: AccountRef) -> ServiceResult:
        """Delete the edge, whatever its status.

        Derived follows and contacts are left in place.
        """
        op = "remove_connection"
        warnings: list[str] = []
        try:
            with self._network.transaction() as txn:
                edge = self._require_edge(txn.store, edge_id)
                check_party(edge, actor, "remove")
                txn.store.delete_connection(edge_id)
        except RelationshipError as exc:
            return failure(op, exc)

        self._dispatch_event(
            "post_connection_remove",
            {
                "connection_id": edge.id,
                "account": str(actor),
                "other": str(edge.other(actor)),
            },
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"connection": edge.to_dict(), "removed": True},
            warnings=warnings,
        )

    def _set_following(
        self, op: str, edge_id: int, actor: AccountRef, value: bool
    ) -> ServiceResult:
        try:
            now = now_iso()
            with self._network.transaction() as txn:
                edge = self._require_edge(txn.store, edge_id)
                check_party(edge, actor, "update")
                if edge.status is not EdgeStatus.ACCEPTED:
                    raise ConflictError(
                        "Only accepted connections can be followed or unfollowed",
                        detail={"connection_id": edge_id},
                    )
                edge = txn.store.update_connection(edge_id, now, is_following=value)
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"connection": edge.to_dict()})

    @traced
    def follow_connection(self, edge_id: int, actor: AccountRef) -> ServiceResult:
        """Turn the connection's follow flag back on."""
        return self._set_following("follow_connection", edge_id, actor, True)

    @traced
    def unfollow_connection(self, edge_id: int, actor: AccountRef) -> ServiceResult:
        """Stay connected but stop following the connection."""
        return self._set_following("unfollow_connection", edge_id, actor, False)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def list_connections(
        self,
        account: AccountRef,
        *,
        status: EdgeStatus | None = None,
        direction: str | None = None,
    ) -> ServiceResult:
        """Edges touching *account*, newest first.

        Args:
            status: Only edges in this status.
            direction: ``"sent"`` (account is the requester) or
                ``"received"`` (account is the recipient).
        """
        op = "list_connections"
        try:
            if direction is not None and direction not in DIRECTIONS:
                raise ValidationError(
                    f"Invalid direction: {direction!r}. Expected one of {list(DIRECTIONS)}"
                )
            with self._network.read() as txn:
                txn.directory.resolve(account)
                edges = txn.store.connections_of(account, status=status)
                if direction == "sent":
                    edges = [e for e in edges if same_account(e.requester, account)]
                elif direction == "received":
                    edges = [e for e in edges if same_account(e.recipient, account)]

                hidden = txn.store.blocked_with(account)
                edges = [e for e in edges if e.other(account) not in hidden]
                profiles = txn.directory.resolve_many(e.other(account) for e in edges)
        except RelationshipError as exc:
            return failure(op, exc)

        items: list[dict[str, Any]] = []
        for edge in edges:
            other = edge.other(account)
            profile = profiles.get(other)
            item = edge.to_dict()
            item["direction"] = "sent" if same_account(edge.requester, account) else "received"
            item["account"] = profile.summary() if profile else {"ref": str(other)}
            items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={"account": str(account), "count": len(items), "items": items},
        )

    def pending_requests(self, account: AccountRef) -> ServiceResult:
        """Pending requests waiting for *account* to answer."""
        result = self.list_connections(account, status=EdgeStatus.PENDING, direction="received")
        return result.model_copy(update={"op": "pending_requests"})

    @traced
    def connection_status(self, viewer: AccountRef, other: AccountRef) -> ServiceResult:
        """Relationship of the pair as seen by *viewer*; ``blocked`` wins."""
        op = "connection_status"
        try:
            if same_account(viewer, other):
                raise ValidationError("Cannot query connection status with yourself")
            with self._network.read() as txn:
                txn.directory.resolve(other)
                blocked = txn.store.is_blocked(viewer, other)
                edge = txn.store.find_connection_between(viewer, other)
        except RelationshipError as exc:
            return failure(op, exc)

        data: dict[str, Any] = {
            "account": str(viewer),
            "other": str(other),
            "status": relation_status(edge, viewer, blocked=blocked),
        }
        if edge is not None and not blocked:
            data["connection_id"] = edge.id
        return ServiceResult(ok=True, op=op, data=data)

    @staticmethod
    def _require_edge(store: RelationshipStore, edge_id: int) -> EdgeSnapshot:
        edge = store.get_connection(edge_id)
        if edge is None:
            raise NotFoundError(f"Connection {edge_id} not found")
        return edge
