"""Account references, identifier validation, and directory profiles.

Two account kinds share every edge collection: individuals and the
organizations they run. An edge endpoint is always a ``(kind, id)`` pair,
never a bare id, so an individual and an organization with the same
opaque id are distinct accounts.

Textual form of a reference: ``"<kind>:<id>"`` (e.g. ``individual:42``,
``organization:acme``). A bare id is read as an individual.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel

from tradelink.domain.errors import ValidationError

ACCOUNT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


class AccountKind(StrEnum):
    """Variant tag for an account."""

    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"


class FollowPolicy(StrEnum):
    """Who may follow an account without approval."""

    ANYONE = "anyone"
    APPROVAL = "approval"


@dataclass(frozen=True, order=True)
class AccountRef:
    """Tagged reference to an account: ``Individual(id)`` or ``Organization(id)``."""

    kind: AccountKind
    id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"

    @property
    def is_individual(self) -> bool:
        return self.kind is AccountKind.INDIVIDUAL

    @property
    def is_organization(self) -> bool:
        return self.kind is AccountKind.ORGANIZATION

    @classmethod
    def individual(cls, account_id: str) -> AccountRef:
        return cls(AccountKind.INDIVIDUAL, validate_account_id(account_id))

    @classmethod
    def organization(cls, account_id: str) -> AccountRef:
        return cls(AccountKind.ORGANIZATION, validate_account_id(account_id))


def validate_account_id(account_id: str) -> str:
    """Return *account_id* stripped, or raise ValidationError if malformed."""
    value = (account_id or "").strip()
    if not ACCOUNT_ID_PATTERN.match(value):
        raise ValidationError(f"Malformed account id: {account_id!r}")
    return value


def parse_account_ref(
    raw: str, *, default_kind: AccountKind = AccountKind.INDIVIDUAL
) -> AccountRef:
    """Parse ``"kind:id"`` (or a bare id) into an :class:`AccountRef`.

    Raises:
        ValidationError: unknown kind or malformed id.
    """
    if not raw or not raw.strip():
        raise ValidationError("Account reference is required")

    kind_part, sep, id_part = raw.strip().partition(":")
    if not sep:
        return AccountRef(default_kind, validate_account_id(kind_part))

    try:
        kind = AccountKind(kind_part.lower())
    except ValueError:
        raise ValidationError(f"Unknown account kind: {kind_part!r}") from None
    return AccountRef(kind, validate_account_id(id_part))


def same_account(a: AccountRef, b: AccountRef) -> bool:
    """True when both references denote the same account (same id and kind)."""
    return a.kind == b.kind and a.id == b.id


def pair_key(a: AccountRef, b: AccountRef) -> str:
    """Direction-independent key for the unordered pair ``{a, b}``.

    ``pair_key(a, b) == pair_key(b, a)`` always holds, which is what the
    store's uniqueness constraint on connection edges relies on.
    """
    first, second = sorted((a, b))
    return f"{first}|{second}"


class AccountProfile(BaseModel):
    """Profile fields resolved from the account directory."""

    model_config = {"frozen": True}

    id: str
    kind: AccountKind
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    phone: str = ""
    avatar: str = ""
    locality: str = ""
    trade: str = ""
    business_type: str = ""
    owner_id: str | None = None
    follow_policy: FollowPolicy = FollowPolicy.ANYONE

    @property
    def ref(self) -> AccountRef:
        return AccountRef(self.kind, self.id)

    @property
    def display_name(self) -> str:
        """Business name for organizations, full name (or username) for individuals."""
        if self.kind is AccountKind.ORGANIZATION:
            return self.first_name or self.username or self.id
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username or self.id

    def summary(self) -> dict[str, str]:
        """Compact dict used in listings and suggestion items."""
        return {
            "id": self.id,
            "kind": str(self.kind),
            "ref": str(self.ref),
            "name": self.display_name,
            "username": self.username,
            "avatar": self.avatar,
            "locality": self.locality,
            "trade": self.trade,
        }
