"""AccountDirectory: resolves account identity and profile fields.

In a deployment the directory fronts the external account service; the
engine only needs resolve-by-reference plus attribute lookups for
suggestion fallbacks. This implementation reads the ``accounts`` table on
the caller's connection so reads participate in the same transaction as
the edge writes they guard.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, tuple_
from sqlalchemy.exc import IntegrityError

from tradelink.domain.accounts import AccountKind, AccountProfile, AccountRef
from tradelink.domain.errors import ConflictError, NotFoundError, ValidationError
from tradelink.infrastructure.database.schema import accounts
from tradelink.infrastructure.store import matches_ci

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import RowMapping

_PROFILE_COLUMNS = (
    "id",
    "kind",
    "first_name",
    "last_name",
    "username",
    "email",
    "phone",
    "avatar",
    "locality",
    "trade",
    "business_type",
    "owner_id",
    "follow_policy",
)

MATCHABLE_ATTRIBUTES = frozenset({"locality", "trade", "business_type"})


def profile_from_row(row: RowMapping) -> AccountProfile:
    data: dict[str, Any] = {}
    for col in _PROFILE_COLUMNS:
        value = row[col]
        if value is None and col != "owner_id":
            continue
        data[col] = value
    return AccountProfile.model_validate(data)


class AccountDirectory:
    """Profile lookups over the ``accounts`` table."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def find(self, ref: AccountRef) -> AccountProfile | None:
        row = (
            self._conn.execute(
                select(accounts).where(accounts.c.id == ref.id, accounts.c.kind == str(ref.kind))
            )
            .mappings()
            .first()
        )
        return profile_from_row(row) if row is not None else None

    def resolve(self, ref: AccountRef) -> AccountProfile:
        """Return the profile for *ref*, or raise NotFoundError."""
        profile = self.find(ref)
        if profile is None:
            label = "Organization" if ref.is_organization else "Account"
            raise NotFoundError(f"{label} not found: {ref}")
        return profile

    def resolve_many(self, refs: Iterable[AccountRef]) -> dict[AccountRef, AccountProfile]:
        """Profiles for every known reference in *refs* (unknown ones omitted)."""
        wanted = {(r.id, str(r.kind)) for r in refs}
        if not wanted:
            return {}
        rows = (
            self._conn.execute(
                select(accounts).where(tuple_(accounts.c.id, accounts.c.kind).in_(list(wanted)))
            )
            .mappings()
            .all()
        )
        profiles = [profile_from_row(r) for r in rows]
        return {p.ref: p for p in profiles}

    def register(self, profile: AccountProfile, now: str) -> AccountProfile:
        """Add an account to the directory."""
        values = profile.model_dump(mode="json")
        try:
            self._conn.execute(insert(accounts).values(**values, created_at=now))
        except IntegrityError as exc:
            raise ConflictError(f"Account already exists: {profile.ref}") from exc
        return profile

    def owned_organizations(self, owner_id: str) -> list[AccountProfile]:
        rows = (
            self._conn.execute(
                select(accounts)
                .where(
                    accounts.c.kind == str(AccountKind.ORGANIZATION),
                    accounts.c.owner_id == owner_id,
                )
                .order_by(accounts.c.id)
            )
            .mappings()
            .all()
        )
        return [profile_from_row(r) for r in rows]

    def match_attribute(
        self,
        attribute: str,
        value: str,
        *,
        exclude: Iterable[AccountRef] = (),
        limit: int,
        kind: AccountKind | None = None,
    ) -> list[AccountProfile]:
        """Accounts whose *attribute* equals *value* case-insensitively.

        Raises:
            ValidationError: *attribute* is not a matchable profile field.
        """
        if attribute not in MATCHABLE_ATTRIBUTES:
            raise ValidationError(f"Cannot match on attribute: {attribute!r}")
        if not value.strip() or limit <= 0:
            return []

        stmt = select(accounts).where(matches_ci(accounts.c[attribute], value))
        excluded = [(r.id, str(r.kind)) for r in exclude]
        if excluded:
            stmt = stmt.where(~tuple_(accounts.c.id, accounts.c.kind).in_(excluded))
        if kind is not None:
            stmt = stmt.where(accounts.c.kind == str(kind))
        stmt = stmt.order_by(accounts.c.created_at, accounts.c.id).limit(limit)

        rows = self._conn.execute(stmt).mappings().all()
        return [profile_from_row(r) for r in rows]
