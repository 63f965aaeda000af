"""RelationshipStore: persistence for connection/follow edges, contacts, blocklists.

The store is bound to one SQLAlchemy connection, i.e. to the transaction
that :meth:`Network.transaction` opened. Everything is expressed through
five primitives (:meth:`create`, :meth:`find_one`, :meth:`find_many`,
:meth:`update`, :meth:`delete`) whose criteria are limited to equality,
set membership, AND/OR and case-insensitive comparison. The typed accessors
below are compositions of those primitives.

Write-time failures are translated at this seam:

- uniqueness violations become :class:`ConflictError` (the statement is
  rolled back by the database, so no half-written edge is visible);
- connectivity/locking failures become :class:`StoreFailure`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, func, insert, or_, select, tuple_, update
from sqlalchemy.exc import DBAPIError, IntegrityError

from tradelink.domain.accounts import AccountKind, AccountRef, pair_key, parse_account_ref
from tradelink.domain.errors import ConflictError, NotFoundError, StoreFailure
from tradelink.domain.lifecycle import EdgeSnapshot, EdgeStatus, FollowSnapshot
from tradelink.infrastructure.database.schema import accounts, connections, contacts, follows

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Connection, Table
    from sqlalchemy.engine import RowMapping

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Predicate helpers
# ---------------------------------------------------------------------------


def endpoint_is(table: Table, role: str, ref: AccountRef) -> ColumnElement[bool]:
    """``{role}_id == ref.id AND {role}_kind == ref.kind``."""
    return and_(table.c[f"{role}_id"] == ref.id, table.c[f"{role}_kind"] == str(ref.kind))


def endpoint_in(table: Table, role: str, refs: Iterable[AccountRef]) -> ColumnElement[bool]:
    """Membership of the ``(id, kind)`` endpoint in *refs*."""
    pairs = [(r.id, str(r.kind)) for r in refs]
    return tuple_(table.c[f"{role}_id"], table.c[f"{role}_kind"]).in_(pairs)


def pair_between(
    table: Table,
    first_role: str,
    second_role: str,
    a: AccountRef,
    b: AccountRef,
) -> ColumnElement[bool]:
    """Rows linking *a* and *b* in either direction."""
    return or_(
        and_(endpoint_is(table, first_role, a), endpoint_is(table, second_role, b)),
        and_(endpoint_is(table, first_role, b), endpoint_is(table, second_role, a)),
    )


def matches_ci(column: Any, value: str) -> ColumnElement[bool]:
    """Case-insensitive equality on a text column."""
    return func.lower(func.trim(column)) == value.strip().lower()


def _ref(row: RowMapping, role: str) -> AccountRef:
    return AccountRef(AccountKind(row[f"{role}_kind"]), str(row[f"{role}_id"]))


def edge_from_row(row: RowMapping) -> EdgeSnapshot:
    return EdgeSnapshot(
        id=int(row["id"]),
        requester=_ref(row, "requester"),
        recipient=_ref(row, "recipient"),
        status=EdgeStatus(row["status"]),
        is_following=bool(row["is_following"]),
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


def follow_from_row(row: RowMapping) -> FollowSnapshot:
    return FollowSnapshot(
        id=int(row["id"]),
        follower=_ref(row, "follower"),
        following=_ref(row, "following"),
        status=EdgeStatus(row["status"]),
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


class RelationshipStore:
    """Edge, contact, and blocklist persistence over one DB connection."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    @property
    def conn(self) -> Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _execute(self, stmt: Any) -> Any:
        try:
            return self._conn.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError(
                "Record already exists", detail={"constraint": str(exc.orig)}
            ) from exc
        except DBAPIError as exc:
            logger.warning("Store operation failed: %s", exc.orig)
            raise StoreFailure("Relationship store unavailable") from exc

    def create(self, table: Table, values: dict[str, Any]) -> int:
        """Insert one row; returns its integer primary key."""
        result = self._execute(insert(table).values(**values))
        return int(result.inserted_primary_key[0])

    def find_one(self, table: Table, *criteria: ColumnElement[bool]) -> RowMapping | None:
        return self._execute(select(table).where(*criteria)).mappings().first()

    def find_many(
        self,
        table: Table,
        *criteria: ColumnElement[bool],
        order_by: Any | None = None,
        limit: int | None = None,
    ) -> list[RowMapping]:
        stmt = select(table).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._execute(stmt).mappings().all())

    def update(self, table: Table, values: dict[str, Any], *criteria: ColumnElement[bool]) -> int:
        return int(self._execute(update(table).where(*criteria).values(**values)).rowcount)

    def delete(self, table: Table, *criteria: ColumnElement[bool]) -> int:
        return int(self._execute(delete(table).where(*criteria)).rowcount)

    # ------------------------------------------------------------------
    # Connection edges
    # ------------------------------------------------------------------

    def get_connection(self, edge_id: int) -> EdgeSnapshot | None:
        row = self.find_one(connections, connections.c.id == edge_id)
        return edge_from_row(row) if row is not None else None

    def find_connection_between(self, a: AccountRef, b: AccountRef) -> EdgeSnapshot | None:
        """The single edge linking *a* and *b* in either direction, if any."""
        row = self.find_one(
            connections, pair_between(connections, "requester", "recipient", a, b)
        )
        return edge_from_row(row) if row is not None else None

    def insert_connection(
        self,
        requester: AccountRef,
        recipient: AccountRef,
        status: EdgeStatus,
        now: str,
    ) -> EdgeSnapshot:
        edge_id = self.create(
            connections,
            {
                "requester_id": requester.id,
                "requester_kind": str(requester.kind),
                "recipient_id": recipient.id,
                "recipient_kind": str(recipient.kind),
                "status": str(status),
                "is_following": 1,
                "pair_key": pair_key(requester, recipient),
                "created_at": now,
                "updated_at": now,
            },
        )
        return self._require_connection(edge_id)

    def update_connection(
        self,
        edge_id: int,
        now: str,
        *,
        status: EdgeStatus | None = None,
        requester: AccountRef | None = None,
        recipient: AccountRef | None = None,
        is_following: bool | None = None,
    ) -> EdgeSnapshot:
        values: dict[str, Any] = {"updated_at": now}
        if status is not None:
            values["status"] = str(status)
        if requester is not None:
            values["requester_id"] = requester.id
            values["requester_kind"] = str(requester.kind)
        if recipient is not None:
            values["recipient_id"] = recipient.id
            values["recipient_kind"] = str(recipient.kind)
        if is_following is not None:
            values["is_following"] = int(is_following)
        self.update(connections, values, connections.c.id == edge_id)
        return self._require_connection(edge_id)

    def delete_connection(self, edge_id: int) -> int:
        return self.delete(connections, connections.c.id == edge_id)

    def delete_connections_between(self, a: AccountRef, b: AccountRef) -> int:
        return self.delete(connections, pair_between(connections, "requester", "recipient", a, b))

    def connections_of(
        self,
        account: AccountRef,
        *,
        status: EdgeStatus | None = None,
    ) -> list[EdgeSnapshot]:
        """All edges touching *account*, most recently updated first."""
        criteria = [
            or_(
                endpoint_is(connections, "requester", account),
                endpoint_is(connections, "recipient", account),
            )
        ]
        if status is not None:
            criteria.append(connections.c.status == str(status))
        rows = self.find_many(
            connections, *criteria, order_by=connections.c.updated_at.desc()
        )
        return [edge_from_row(r) for r in rows]

    def accepted_neighbors(self, refs: Iterable[AccountRef]) -> set[AccountRef]:
        """Accounts with an accepted edge to any account in *refs*."""
        sources = set(refs)
        if not sources:
            return set()
        rows = self.find_many(
            connections,
            connections.c.status == str(EdgeStatus.ACCEPTED),
            or_(
                endpoint_in(connections, "requester", sources),
                endpoint_in(connections, "recipient", sources),
            ),
        )
        found: set[AccountRef] = set()
        for row in rows:
            edge = edge_from_row(row)
            if edge.requester in sources:
                found.add(edge.recipient)
            if edge.recipient in sources:
                found.add(edge.requester)
        return found

    def _require_connection(self, edge_id: int) -> EdgeSnapshot:
        edge = self.get_connection(edge_id)
        if edge is None:
            raise NotFoundError(f"Connection {edge_id} not found")
        return edge

    # ------------------------------------------------------------------
    # Follow edges
    # ------------------------------------------------------------------

    def get_follow(self, follow_id: int) -> FollowSnapshot | None:
        row = self.find_one(follows, follows.c.id == follow_id)
        return follow_from_row(row) if row is not None else None

    def find_follow(self, follower: AccountRef, following: AccountRef) -> FollowSnapshot | None:
        row = self.find_one(
            follows,
            endpoint_is(follows, "follower", follower),
            endpoint_is(follows, "following", following),
        )
        return follow_from_row(row) if row is not None else None

    def insert_follow(
        self,
        follower: AccountRef,
        following: AccountRef,
        status: EdgeStatus,
        now: str,
    ) -> FollowSnapshot:
        follow_id = self.create(
            follows,
            {
                "follower_id": follower.id,
                "follower_kind": str(follower.kind),
                "following_id": following.id,
                "following_kind": str(following.kind),
                "status": str(status),
                "created_at": now,
                "updated_at": now,
            },
        )
        follow = self.get_follow(follow_id)
        assert follow is not None
        return follow

    def set_follow_status(self, follow_id: int, status: EdgeStatus, now: str) -> int:
        return self.update(
            follows, {"status": str(status), "updated_at": now}, follows.c.id == follow_id
        )

    def delete_follow(self, follow_id: int) -> int:
        return self.delete(follows, follows.c.id == follow_id)

    def delete_follows_between(self, a: AccountRef, b: AccountRef) -> int:
        return self.delete(follows, pair_between(follows, "follower", "following", a, b))

    def follows_of(
        self,
        account: AccountRef,
        *,
        role: str,
        status: EdgeStatus | None = None,
    ) -> list[FollowSnapshot]:
        """Follow rows where *account* plays *role* (``follower`` or ``following``)."""
        criteria = [endpoint_is(follows, role, account)]
        if status is not None:
            criteria.append(follows.c.status == str(status))
        rows = self.find_many(follows, *criteria, order_by=follows.c.created_at.desc())
        return [follow_from_row(r) for r in rows]

    def count_follows(self, account: AccountRef, *, role: str) -> int:
        stmt = select(func.count(follows.c.id)).where(
            endpoint_is(follows, role, account),
            follows.c.status == str(EdgeStatus.ACCEPTED),
        )
        return int(self._execute(stmt).scalar_one() or 0)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def find_contact(self, owner_id: str, email: str) -> RowMapping | None:
        return self.find_one(contacts, contacts.c.owner_id == owner_id, contacts.c.email == email)

    def get_contact(self, owner_id: str, contact_id: int) -> RowMapping | None:
        return self.find_one(
            contacts, contacts.c.owner_id == owner_id, contacts.c.id == contact_id
        )

    def insert_contact(self, values: dict[str, Any]) -> int:
        return self.create(contacts, values)

    def delete_contact(self, contact_id: int) -> int:
        return self.delete(contacts, contacts.c.id == contact_id)

    def delete_platform_contacts(self, owner_id: str, platform_user_id: str) -> int:
        """Delete *owner_id*'s contacts that mirror platform user *platform_user_id*."""
        return self.delete(
            contacts,
            contacts.c.owner_id == owner_id,
            contacts.c.platform_user_id == platform_user_id,
            contacts.c.is_platform_user == 1,
        )

    def contacts_of(self, owner_id: str) -> list[RowMapping]:
        return self.find_many(
            contacts, contacts.c.owner_id == owner_id, order_by=contacts.c.last_name
        )

    # ------------------------------------------------------------------
    # Blocklists (stored on the blocking account's row)
    # ------------------------------------------------------------------

    def get_blocklist(self, account: AccountRef) -> list[AccountRef]:
        row = self._execute(
            select(accounts.c.blocked).where(
                accounts.c.id == account.id, accounts.c.kind == str(account.kind)
            )
        ).first()
        if row is None or not row.blocked:
            return []
        return [parse_account_ref(raw) for raw in json.loads(row.blocked)]

    def set_blocklist(self, account: AccountRef, blocked: list[AccountRef]) -> None:
        count = self.update(
            accounts,
            {"blocked": json.dumps([str(r) for r in blocked])},
            accounts.c.id == account.id,
            accounts.c.kind == str(account.kind),
        )
        if count == 0:
            raise NotFoundError(f"Account not found: {account}")

    def is_blocked(self, a: AccountRef, b: AccountRef) -> bool:
        """Effective block: *b* in a's list OR *a* in b's list."""
        return b in self.get_blocklist(a) or a in self.get_blocklist(b)

    def blocked_with(self, account: AccountRef) -> set[AccountRef]:
        """Accounts in an effective block with *account* (either direction)."""
        found = set(self.get_blocklist(account))
        rows = self._execute(
            select(accounts.c.id, accounts.c.kind, accounts.c.blocked).where(
                accounts.c.blocked.contains(str(account))
            )
        ).fetchall()
        for row in rows:
            listed = json.loads(row.blocked or "[]")
            if str(account) in listed:
                found.add(AccountRef(AccountKind(row.kind), str(row.id)))
        return found
