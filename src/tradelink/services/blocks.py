"""BlockService: blocklists and the cascade that a block triggers.

A block is stored on the blocking account only, but read as a symmetric
OR: ``is_blocked(a, b)`` holds when either side listed the other. The
same effective check guards connection requests, acceptance, follows,
listings, and suggestions.

Blocking removes, in the same transaction as the list update, every
connection edge between the pair, the follows in both directions, and
both mirrored contacts. Unblocking restores nothing.
"""

from __future__ import annotations

from tradelink.domain.accounts import AccountRef, same_account
from tradelink.domain.errors import ConflictError, RelationshipError, ValidationError
from tradelink.services.base import BaseService
from tradelink.services.contacts import ContactSynchronizer
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import traced


class BlockService(BaseService):
    """Block, unblock, and block-status queries."""

    @traced
    def block(self, blocker: AccountRef, target: AccountRef) -> ServiceResult:
        op = "block"
        warnings: list[str] = []
        try:
            if same_account(blocker, target):
                raise ValidationError("Cannot block yourself")
            with self._network.transaction() as txn:
                txn.directory.resolve(blocker)
                txn.directory.resolve(target)
                current = txn.store.get_blocklist(blocker)
                if target in current:
                    raise ConflictError(f"{target} is already blocked")
                txn.store.set_blocklist(blocker, [*current, target])

                removed = {
                    "connections": txn.store.delete_connections_between(blocker, target),
                    "follows": txn.store.delete_follows_between(blocker, target),
                    "contacts": ContactSynchronizer.teardown_contacts_for_pair(
                        txn.store, blocker, target
                    ),
                }
        except RelationshipError as exc:
            return failure(op, exc)

        self._dispatch_event(
            "post_block",
            {"blocker": str(blocker), "blocked": str(target), "removed": removed},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"blocker": str(blocker), "blocked": str(target), "removed": removed},
            warnings=warnings,
        )

    @traced
    def unblock(self, blocker: AccountRef, target: AccountRef) -> ServiceResult:
        """Remove *target* from *blocker*'s list. A block by *target* still applies."""
        op = "unblock"
        warnings: list[str] = []
        try:
            with self._network.transaction() as txn:
                current = txn.store.get_blocklist(blocker)
                if target not in current:
                    raise ConflictError(f"{target} is not blocked")
                txn.store.set_blocklist(blocker, [r for r in current if r != target])
                still_blocked = txn.store.is_blocked(blocker, target)
        except RelationshipError as exc:
            return failure(op, exc)

        self._dispatch_event(
            "post_unblock",
            {"blocker": str(blocker), "unblocked": str(target)},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "blocker": str(blocker),
                "unblocked": str(target),
                "still_blocked": still_blocked,
            },
            warnings=warnings,
        )

    @traced
    def is_blocked(self, a: AccountRef, b: AccountRef) -> ServiceResult:
        """Effective block between *a* and *b* (either direction)."""
        op = "is_blocked"
        try:
            with self._network.read() as txn:
                blocked = txn.store.is_blocked(a, b)
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(
            ok=True, op=op, data={"account": str(a), "other": str(b), "blocked": blocked}
        )

    @traced
    def block_status(self, account: AccountRef, other: AccountRef) -> ServiceResult:
        """Both directions of the block relation plus the effective result."""
        op = "block_status"
        try:
            with self._network.read() as txn:
                txn.directory.resolve(other)
                outgoing = other in txn.store.get_blocklist(account)
                incoming = account in txn.store.get_blocklist(other)
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "account": str(account),
                "other": str(other),
                "blocked": outgoing or incoming,
                "blocks_other": outgoing,
                "blocked_by_other": incoming,
            },
        )

    @traced
    def blocked_accounts(self, account: AccountRef) -> ServiceResult:
        """Accounts on *account*'s own blocklist."""
        op = "blocked_accounts"
        try:
            with self._network.read() as txn:
                txn.directory.resolve(account)
                listed = txn.store.get_blocklist(account)
                profiles = txn.directory.resolve_many(listed)
        except RelationshipError as exc:
            return failure(op, exc)

        items = [
            profiles[ref].summary() if ref in profiles else {"ref": str(ref)} for ref in listed
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"account": str(account), "count": len(items), "items": items},
        )
