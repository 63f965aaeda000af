"""Command group: directory accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from tradelink.commands._base import ACCOUNT, TradelinkGroup
from tradelink.domain.accounts import FollowPolicy
from tradelink.services.accounts import AccountService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext
    from tradelink.domain.accounts import AccountRef

_ACCOUNT_EXAMPLES = """\
  tradelink account add ann --first-name Ann --email ann@example.com --locality Leeds
  tradelink account add organization:acme --first-name "Acme Builders" --owner ann
  tradelink --as ann account show
  tradelink account show organization:acme"""


@click.group(cls=TradelinkGroup, examples=_ACCOUNT_EXAMPLES)
def account() -> None:
    """Register and inspect accounts."""


@account.command(
    examples="""\
  tradelink account add ann --first-name Ann --last-name Lee --email ann@example.com
  tradelink account add organization:acme --first-name "Acme Builders" \\
      --owner ann --trade roofing --business-type contractor
  tradelink account add bob --follow-policy approval"""
)
@click.argument("ref", type=ACCOUNT)
@click.option("--first-name", default=None, help="First name, or business name.")
@click.option("--last-name", default=None)
@click.option("--username", default=None)
@click.option("--email", default=None)
@click.option("--phone", default=None)
@click.option("--avatar", default=None)
@click.option("--locality", default=None, help="Town or region.")
@click.option("--trade", default=None, help="Trade or industry.")
@click.option("--business-type", default=None, help="Organization business type.")
@click.option("--owner", "owner_id", default=None, help="Owning individual (organizations).")
@click.option(
    "--follow-policy",
    type=click.Choice([p.value for p in FollowPolicy]),
    default=None,
    help="Who may follow without approval.",
)
@click.pass_obj
def add(app: AppContext, ref: AccountRef, **fields: Any) -> None:
    """Add an account to the directory."""
    profile = {k: v for k, v in fields.items() if v is not None}
    app.emit(AccountService(app.network).register_account(ref, **profile))


@account.command(
    examples="""\
  tradelink --as ann account show
  tradelink --json account show organization:acme"""
)
@click.argument("ref", type=ACCOUNT, required=False)
@click.pass_obj
def show(app: AppContext, ref: AccountRef | None) -> None:
    """Show an account profile (default: the acting account)."""
    app.emit(AccountService(app.network).get_account(ref or app.acting_as))
