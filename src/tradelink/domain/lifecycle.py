"""Connection-request lifecycle: states, transitions, and pure decisions.

State machine:

- ``none`` (no edge) → ``pending``
- ``pending`` → ``accepted`` | ``rejected``
- ``rejected`` → ``pending`` (resend)
- any state → removed (hard delete, terminal)

``accepted`` is never reachable directly from ``rejected``.

The ``decide_*`` functions never touch storage. They take a snapshot of the
current edge (or ``None``) and return a :class:`Transition` describing the
write to perform plus the derived side effects to run after commit. The
service layer owns the writes and the effect execution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from tradelink.domain.accounts import AccountRef, same_account
from tradelink.domain.errors import ConflictError, PermissionDeniedError, ValidationError


class EdgeStatus(StrEnum):
    """Status shared by connection and follow edges."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Effect(StrEnum):
    """Derived side effects scheduled by a transition."""

    ENSURE_MUTUAL_FOLLOW = "ensure_mutual_follow"
    SYNC_CONTACTS = "sync_contacts"


CONNECTION_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["accepted", "rejected"],
    "rejected": ["pending"],
    "accepted": [],
}

ACCEPT_EFFECTS: tuple[Effect, ...] = (Effect.ENSURE_MUTUAL_FOLLOW, Effect.SYNC_CONTACTS)


def is_valid_transition(current: str, target: str) -> bool:
    """Check if a connection edge may move from *current* to *target*."""
    return target in CONNECTION_TRANSITIONS.get(current, [])


@dataclass(frozen=True)
class EdgeSnapshot:
    """Immutable view of a stored connection edge."""

    id: int
    requester: AccountRef
    recipient: AccountRef
    status: EdgeStatus
    is_following: bool = True
    created_at: str = ""
    updated_at: str = ""

    def involves(self, account: AccountRef) -> bool:
        return same_account(self.requester, account) or same_account(self.recipient, account)

    def other(self, account: AccountRef) -> AccountRef:
        """Return the endpoint that is not *account*."""
        return self.recipient if same_account(self.requester, account) else self.requester

    @property
    def is_individual_pair(self) -> bool:
        return self.requester.is_individual and self.recipient.is_individual

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "requester": str(self.requester),
            "recipient": str(self.recipient),
            "status": str(self.status),
            "is_following": self.is_following,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class FollowSnapshot:
    """Immutable view of a stored follow edge (one direction)."""

    id: int
    follower: AccountRef
    following: AccountRef
    status: EdgeStatus
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "follower": str(self.follower),
            "following": str(self.following),
            "status": str(self.status),
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Transition:
    """Outcome of a decision: the write to apply and effects to schedule."""

    action: Literal["create", "accept", "reject", "resend"]
    status: EdgeStatus
    requester: AccountRef
    recipient: AccountRef
    effects: tuple[Effect, ...] = field(default_factory=tuple)


def decide_send(
    existing: EdgeSnapshot | None,
    requester: AccountRef,
    recipient: AccountRef,
) -> Transition:
    """Decide what ``send_request(requester, recipient)`` does to the pair's edge.

    Raises:
        ValidationError: requester and recipient are the same account.
        ConflictError: a pending request in the same direction already
            exists, or the pair is already connected.
    """
    if same_account(requester, recipient):
        raise ValidationError("Cannot send a connection request to yourself")

    if existing is None:
        return Transition("create", EdgeStatus.PENDING, requester, recipient)

    if existing.status is EdgeStatus.ACCEPTED:
        raise ConflictError("Already connected", detail={"connection_id": existing.id})

    if existing.status is EdgeStatus.PENDING:
        if same_account(existing.requester, requester):
            raise ConflictError(
                "Connection already requested", detail={"connection_id": existing.id}
            )
        # The other side asked first: sending back counts as accepting.
        effects = ACCEPT_EFFECTS if existing.is_individual_pair else ()
        return Transition(
            "accept",
            EdgeStatus.ACCEPTED,
            existing.requester,
            existing.recipient,
            effects,
        )

    # rejected -> pending, direction follows the new sender
    return Transition("resend", EdgeStatus.PENDING, requester, recipient)


def _require_recipient(edge: EdgeSnapshot, actor: AccountRef, verb: str) -> None:
    if not same_account(edge.recipient, actor):
        raise PermissionDeniedError(f"You can only {verb} connection requests sent to you")


def decide_accept(edge: EdgeSnapshot, actor: AccountRef) -> Transition:
    """Decide ``accept_request``. Only the recipient may accept a pending edge."""
    _require_recipient(edge, actor, "accept")
    if edge.status is EdgeStatus.ACCEPTED:
        raise ConflictError(
            "Connection request already accepted", detail={"connection_id": edge.id}
        )
    if edge.status is EdgeStatus.REJECTED:
        raise ConflictError("Connection request was rejected", detail={"connection_id": edge.id})
    return Transition(
        "accept",
        EdgeStatus.ACCEPTED,
        edge.requester,
        edge.recipient,
        ACCEPT_EFFECTS,
    )


def decide_reject(edge: EdgeSnapshot, actor: AccountRef) -> Transition:
    """Decide ``reject_request``. Only pending edges can be rejected."""
    _require_recipient(edge, actor, "reject")
    if not is_valid_transition(str(edge.status), str(EdgeStatus.REJECTED)):
        raise ConflictError(
            f"Cannot reject a connection that is {edge.status}",
            detail={"connection_id": edge.id},
        )
    return Transition("reject", EdgeStatus.REJECTED, edge.requester, edge.recipient)


def check_party(edge: EdgeSnapshot, actor: AccountRef, action: str) -> None:
    """Raise PermissionDeniedError unless *actor* is an endpoint of *edge*."""
    if not edge.involves(actor):
        raise PermissionDeniedError(f"You can only {action} your own connections")


def relation_status(
    edge: EdgeSnapshot | None,
    viewer: AccountRef,
    *,
    blocked: bool,
) -> str:
    """Connection status of a pair as seen by *viewer*.

    ``blocked`` wins over any edge state. Pending edges are split into
    ``pending_sent`` and ``pending_received`` from the viewer's side.
    """
    if blocked:
        return "blocked"
    if edge is None:
        return "none"
    if edge.status is EdgeStatus.PENDING:
        return "pending_sent" if same_account(edge.requester, viewer) else "pending_received"
    return str(edge.status)
