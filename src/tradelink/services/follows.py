"""Follow edges: the derived mutual follow and the explicit follow API.

:class:`FollowSynchronizer` is invoked by the effect runner once a
connection is accepted. It is monotonic: existing follows are upgraded
to ``accepted``, never downgraded, and accepted rows are left untouched.

:class:`FollowService` is the one-directional follow API. A follow on an
account whose policy is ``anyone`` is accepted immediately; otherwise it
waits for the followed account to accept it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradelink.domain.accounts import AccountRef, FollowPolicy, same_account
from tradelink.domain.errors import (
    BlockedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RelationshipError,
    SyncFailure,
    ValidationError,
)
from tradelink.domain.lifecycle import EdgeSnapshot, EdgeStatus, FollowSnapshot
from tradelink.services._helpers import now_iso
from tradelink.services.base import BaseService
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import traced

if TYPE_CHECKING:
    from tradelink.infrastructure.directory import AccountDirectory
    from tradelink.infrastructure.store import RelationshipStore


class FollowSynchronizer:
    """Derives the two accepted follow edges of an accepted connection."""

    def ensure_mutual_follow(
        self,
        store: RelationshipStore,
        edge: EdgeSnapshot,
        now: str,
    ) -> dict[str, int]:
        """Make ``requester -> recipient`` and ``recipient -> requester`` accepted.

        Returns ``{"created": n, "upgraded": m}``.
        """
        if edge.status is not EdgeStatus.ACCEPTED:
            raise SyncFailure(
                f"Connection {edge.id} is {edge.status}, not accepted",
                detail={"connection_id": edge.id},
            )

        created = upgraded = 0
        for follower, following in (
            (edge.requester, edge.recipient),
            (edge.recipient, edge.requester),
        ):
            existing = store.find_follow(follower, following)
            if existing is None:
                store.insert_follow(follower, following, EdgeStatus.ACCEPTED, now)
                created += 1
            elif existing.status is not EdgeStatus.ACCEPTED:
                store.set_follow_status(existing.id, EdgeStatus.ACCEPTED, now)
                upgraded += 1
        return {"created": created, "upgraded": upgraded}


def _follow_items(
    rows: list[FollowSnapshot],
    directory: AccountDirectory,
    *,
    side: str,
    hidden: set[AccountRef],
) -> list[dict[str, Any]]:
    refs = [getattr(f, side) for f in rows]
    profiles = directory.resolve_many(refs)
    items: list[dict[str, Any]] = []
    for follow in rows:
        ref = getattr(follow, side)
        if ref in hidden:
            continue
        profile = profiles.get(ref)
        item: dict[str, Any] = follow.to_dict()
        item["account"] = profile.summary() if profile else {"ref": str(ref)}
        items.append(item)
    return items


class FollowService(BaseService):
    """Explicit follow and unfollow between any two accounts."""

    @traced
    def follow(self, follower: AccountRef, target: AccountRef) -> ServiceResult:
        """Follow *target*; rejected follows are re-requested."""
        op = "follow"
        try:
            if same_account(follower, target):
                raise ValidationError("Cannot follow yourself")
            now = now_iso()
            with self._network.transaction() as txn:
                txn.directory.resolve(follower)
                profile = txn.directory.resolve(target)
                if txn.store.is_blocked(follower, target):
                    raise BlockedError(f"Cannot follow {target}: account is blocked")

                status = (
                    EdgeStatus.ACCEPTED
                    if profile.follow_policy is FollowPolicy.ANYONE
                    else EdgeStatus.PENDING
                )
                existing = txn.store.find_follow(follower, target)
                if existing is None:
                    follow = txn.store.insert_follow(follower, target, status, now)
                elif existing.status is EdgeStatus.ACCEPTED:
                    raise ConflictError(f"Already following {target}")
                elif existing.status is EdgeStatus.PENDING:
                    raise ConflictError(f"Follow request to {target} is already pending")
                else:
                    txn.store.set_follow_status(existing.id, status, now)
                    follow = txn.store.get_follow(existing.id) or existing
        except RelationshipError as exc:
            return failure(op, exc)

        return ServiceResult(ok=True, op=op, data={"follow": follow.to_dict()})

    @traced
    def unfollow(self, follower: AccountRef, target: AccountRef) -> ServiceResult:
        op = "unfollow"
        try:
            with self._network.transaction() as txn:
                existing = txn.store.find_follow(follower, target)
                if existing is None:
                    raise NotFoundError(f"{follower} does not follow {target}")
                txn.store.delete_follow(existing.id)
        except RelationshipError as exc:
            return failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={"follower": str(follower), "following": str(target), "removed": True},
        )

    def _respond(
        self, op: str, follow_id: int, actor: AccountRef, *, accept: bool
    ) -> ServiceResult:
        try:
            now = now_iso()
            with self._network.transaction() as txn:
                follow = txn.store.get_follow(follow_id)
                if follow is None:
                    raise NotFoundError(f"Follow request {follow_id} not found")
                if not same_account(follow.following, actor):
                    raise PermissionDeniedError("You can only answer follow requests sent to you")
                if follow.status is not EdgeStatus.PENDING:
                    raise ConflictError(
                        f"Follow request is {follow.status}, not pending",
                        detail={"follow_id": follow_id},
                    )
                if accept:
                    txn.store.set_follow_status(follow_id, EdgeStatus.ACCEPTED, now)
                    follow = txn.store.get_follow(follow_id) or follow
                else:
                    txn.store.delete_follow(follow_id)
        except RelationshipError as exc:
            return failure(op, exc)

        data: dict[str, Any] = {"follow": follow.to_dict()}
        if not accept:
            data["removed"] = True
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def accept_follow(self, follow_id: int, actor: AccountRef) -> ServiceResult:
        """Accept a pending follow. Only the followed account may accept."""
        return self._respond("accept_follow", follow_id, actor, accept=True)

    @traced
    def reject_follow(self, follow_id: int, actor: AccountRef) -> ServiceResult:
        """Reject a pending follow; the row is deleted."""
        return self._respond("reject_follow", follow_id, actor, accept=False)

    def _list(
        self,
        op: str,
        account: AccountRef,
        *,
        role: str,
        side: str,
        status: EdgeStatus,
    ) -> ServiceResult:
        try:
            with self._network.read() as txn:
                txn.directory.resolve(account)
                rows = txn.store.follows_of(account, role=role, status=status)
                hidden = txn.store.blocked_with(account)
                items = _follow_items(rows, txn.directory, side=side, hidden=hidden)
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"account": str(account), "count": len(items), "items": items},
        )

    @traced
    def followers(self, account: AccountRef) -> ServiceResult:
        """Accounts with an accepted follow on *account*."""
        return self._list(
            "followers", account, role="following", side="follower", status=EdgeStatus.ACCEPTED
        )

    @traced
    def following(self, account: AccountRef) -> ServiceResult:
        """Accounts *account* follows (accepted)."""
        return self._list(
            "following", account, role="follower", side="following", status=EdgeStatus.ACCEPTED
        )

    @traced
    def pending_follow_requests(self, account: AccountRef) -> ServiceResult:
        """Follow requests waiting for *account* to answer."""
        return self._list(
            "pending_follow_requests",
            account,
            role="following",
            side="follower",
            status=EdgeStatus.PENDING,
        )

    @traced
    def follow_counts(self, account: AccountRef) -> ServiceResult:
        op = "follow_counts"
        try:
            with self._network.read() as txn:
                txn.directory.resolve(account)
                followers = txn.store.count_follows(account, role="following")
                following = txn.store.count_follows(account, role="follower")
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"account": str(account), "followers": followers, "following": following},
        )

    @traced
    def follow_status(self, viewer: AccountRef, other: AccountRef) -> ServiceResult:
        """Follow relation of the pair as seen by *viewer*.

        ``status`` describes the ``viewer -> other`` follow (``none``,
        ``pending`` or ``accepted``); an effective block in either
        direction reports ``blocked`` and hides both flags.
        """
        op = "follow_status"
        try:
            if same_account(viewer, other):
                raise ValidationError("Cannot check follow status with yourself")
            with self._network.read() as txn:
                txn.directory.resolve(other)
                blocked = txn.store.is_blocked(viewer, other)
                outgoing = txn.store.find_follow(viewer, other)
                incoming = txn.store.find_follow(other, viewer)
        except RelationshipError as exc:
            return failure(op, exc)

        if blocked:
            status = "blocked"
        elif outgoing is None:
            status = "none"
        else:
            status = str(outgoing.status)
        data: dict[str, Any] = {
            "account": str(viewer),
            "other": str(other),
            "status": status,
            "following": not blocked
            and outgoing is not None
            and outgoing.status is EdgeStatus.ACCEPTED,
            "followed_by": not blocked
            and incoming is not None
            and incoming.status is EdgeStatus.ACCEPTED,
        }
        if outgoing is not None and not blocked:
            data["follow_id"] = outgoing.id
        return ServiceResult(ok=True, op=op, data=data)
