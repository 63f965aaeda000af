"""AccountService: registers and shows directory accounts.

The directory normally fronts an external account service; these
operations let the CLI and tests populate it.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tradelink.domain.accounts import AccountKind, AccountProfile, AccountRef
from tradelink.domain.errors import RelationshipError, ValidationError
from tradelink.services._helpers import normalize_email, now_iso
from tradelink.services.base import BaseService
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import traced


class AccountService(BaseService):
    """Directory writes and profile reads."""

    @traced
    def register_account(self, ref: AccountRef, **fields: Any) -> ServiceResult:
        """Add *ref* to the directory with the given profile *fields*.

        Organizations may name an ``owner_id``; the owner must be a
        registered individual.
        """
        op = "register_account"
        try:
            if "email" in fields:
                fields["email"] = normalize_email(fields["email"])
            try:
                profile = AccountProfile(id=ref.id, kind=ref.kind, **fields)
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid account profile", detail={"errors": [e["msg"] for e in exc.errors()]}
                ) from exc

            with self._network.transaction() as txn:
                if profile.owner_id is not None:
                    if ref.kind is not AccountKind.ORGANIZATION:
                        raise ValidationError("Only organizations have an owner")
                    txn.directory.resolve(AccountRef(AccountKind.INDIVIDUAL, profile.owner_id))
                txn.directory.register(profile, now_iso())
        except RelationshipError as exc:
            return failure(op, exc)

        return ServiceResult(ok=True, op=op, data={"account": profile.model_dump(mode="json")})

    @traced
    def get_account(self, ref: AccountRef) -> ServiceResult:
        op = "get_account"
        try:
            with self._network.read() as txn:
                profile = txn.directory.resolve(ref)
                organizations = (
                    [str(p.ref) for p in txn.directory.owned_organizations(ref.id)]
                    if ref.kind is AccountKind.INDIVIDUAL
                    else []
                )
        except RelationshipError as exc:
            return failure(op, exc)

        account = profile.model_dump(mode="json")
        account["ref"] = str(profile.ref)
        account["name"] = profile.display_name
        if organizations:
            account["organizations"] = organizations
        return ServiceResult(ok=True, op=op, data={"account": account})
