"""Command group: blocklists."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.commands._base import ACCOUNT, TradelinkGroup
from tradelink.services.blocks import BlockService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext
    from tradelink.domain.accounts import AccountRef

_BLOCK_EXAMPLES = """\
  tradelink --as ann block add bob
  tradelink --as ann block list
  tradelink --as ann block status bob
  tradelink --as ann block remove bob"""


@click.group(cls=TradelinkGroup, examples=_BLOCK_EXAMPLES)
def block() -> None:
    """Block accounts and remove everything linking you."""


@block.command(examples="  tradelink --as ann block add bob")
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def add(app: AppContext, target: AccountRef) -> None:
    """Block TARGET; removes connections, follows, and mirrored contacts."""
    app.emit(BlockService(app.network).block(app.acting_as, target))


@block.command(examples="  tradelink --as ann block remove bob")
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def remove(app: AppContext, target: AccountRef) -> None:
    """Unblock TARGET. Nothing removed by the block is restored."""
    app.emit(BlockService(app.network).unblock(app.acting_as, target))


@block.command(examples="  tradelink --as ann block status bob")
@click.argument("other", type=ACCOUNT)
@click.pass_obj
def status(app: AppContext, other: AccountRef) -> None:
    """Block relation with OTHER in both directions."""
    app.emit(BlockService(app.network).block_status(app.acting_as, other))


@block.command("list", examples="  tradelink --as ann block list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """Accounts you have blocked."""
    app.emit(BlockService(app.network).blocked_accounts(app.acting_as))
