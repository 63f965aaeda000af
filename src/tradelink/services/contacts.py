"""Contact records mirroring individual-to-individual connections.

:class:`ContactSynchronizer` creates an address-book entry on each side of
an accepted connection between two individuals and tears both down when a
block fires or a mirrored contact is deleted. Creation is keyed by
``(owner, email)``: an existing contact is never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradelink.domain.accounts import AccountKind, AccountRef
from tradelink.domain.errors import NotFoundError, RelationshipError, ValidationError
from tradelink.services._helpers import normalize_email
from tradelink.services.base import BaseService
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import traced

if TYPE_CHECKING:
    from sqlalchemy.engine import RowMapping

    from tradelink.config.models import ContactsConfig
    from tradelink.domain.accounts import AccountProfile
    from tradelink.domain.lifecycle import EdgeSnapshot
    from tradelink.infrastructure.directory import AccountDirectory
    from tradelink.infrastructure.store import RelationshipStore


def contact_to_dict(row: RowMapping) -> dict[str, Any]:
    return {
        "id": row["id"],
        "owner_id": row["owner_id"],
        "first_name": row["first_name"],
        "last_name": row["last_name"],
        "email": row["email"],
        "phone": row["phone"],
        "avatar": row["avatar"],
        "contact_type": row["contact_type"],
        "status": row["status"],
        "platform_user_id": row["platform_user_id"],
        "is_platform_user": bool(row["is_platform_user"]),
    }


class ContactSynchronizer:
    """Mirrors accepted individual connections into each side's contacts."""

    def __init__(self, config: ContactsConfig) -> None:
        self._config = config

    def _names(self, profile: AccountProfile) -> tuple[str, str]:
        username = profile.username.strip()
        first = profile.first_name.strip() or username or self._config.first_name_placeholder
        last = profile.last_name.strip() or username or self._config.last_name_placeholder
        return first, last

    def sync_contacts_for_connection(
        self,
        store: RelationshipStore,
        directory: AccountDirectory,
        edge: EdgeSnapshot,
        now: str,
    ) -> dict[str, int]:
        """Create the missing mirrored contacts for *edge*.

        Returns ``{"created": n, "skipped": m}``. Pairs involving an
        organization are skipped entirely.
        """
        if not edge.is_individual_pair:
            return {"created": 0, "skipped": 0}

        created = skipped = 0
        for owner, counterpart in (
            (edge.requester, edge.recipient),
            (edge.recipient, edge.requester),
        ):
            profile = directory.resolve(counterpart)
            email = normalize_email(profile.email)
            if not email or store.find_contact(owner.id, email) is not None:
                skipped += 1
                continue

            first, last = self._names(profile)
            store.insert_contact(
                {
                    "owner_id": owner.id,
                    "first_name": first,
                    "last_name": last,
                    "email": email,
                    "phone": profile.phone,
                    "avatar": profile.avatar,
                    "platform_user_id": counterpart.id,
                    "is_platform_user": 1,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            created += 1
        return {"created": created, "skipped": skipped}

    @staticmethod
    def teardown_contacts_for_pair(store: RelationshipStore, a: AccountRef, b: AccountRef) -> int:
        """Delete a's platform contact for b and b's for a. Returns rows removed."""
        if not (a.is_individual and b.is_individual):
            return 0
        return store.delete_platform_contacts(a.id, b.id) + store.delete_platform_contacts(
            b.id, a.id
        )


class ContactService(BaseService):
    """Address-book reads and deletion for individual accounts."""

    @staticmethod
    def _require_individual(owner: AccountRef) -> None:
        if owner.kind is not AccountKind.INDIVIDUAL:
            raise ValidationError("Only individual accounts own contacts")

    @traced
    def list_contacts(self, owner: AccountRef) -> ServiceResult:
        op = "list_contacts"
        try:
            self._require_individual(owner)
            with self._network.read() as txn:
                txn.directory.resolve(owner)
                items = [contact_to_dict(r) for r in txn.store.contacts_of(owner.id)]
        except RelationshipError as exc:
            return failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"owner": str(owner), "count": len(items), "items": items},
        )

    @traced
    def delete_contact(self, owner: AccountRef, contact_id: int) -> ServiceResult:
        """Delete a contact.

        Deleting a contact that mirrors a platform user also removes the
        connection with that user and the counterpart's mirrored contact.
        """
        op = "delete_contact"
        warnings: list[str] = []
        try:
            self._require_individual(owner)
            with self._network.transaction() as txn:
                row = txn.store.get_contact(owner.id, contact_id)
                if row is None:
                    raise NotFoundError(f"Contact {contact_id} not found")
                contact = contact_to_dict(row)
                txn.store.delete_contact(contact_id)

                removed_connections = removed_contacts = 0
                removed_edge_id: int | None = None
                counterpart: AccountRef | None = None
                if contact["is_platform_user"] and contact["platform_user_id"]:
                    counterpart = AccountRef(AccountKind.INDIVIDUAL, contact["platform_user_id"])
                    edge = txn.store.find_connection_between(owner, counterpart)
                    if edge is not None:
                        removed_edge_id = edge.id
                        removed_connections = txn.store.delete_connection(edge.id)
                    removed_contacts = ContactSynchronizer.teardown_contacts_for_pair(
                        txn.store, owner, counterpart
                    )
        except RelationshipError as exc:
            return failure(op, exc)

        if removed_connections:
            self._dispatch_event(
                "post_connection_remove",
                {
                    "connection_id": removed_edge_id,
                    "account": str(owner),
                    "other": str(counterpart),
                },
                warnings,
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "contact": contact,
                "removed": {
                    "connections": removed_connections,
                    "contacts": removed_contacts,
                },
            },
            warnings=warnings,
        )

