"""Command group: one-directional follows."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.commands._base import ACCOUNT, TradelinkGroup
from tradelink.services.follows import FollowService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext
    from tradelink.domain.accounts import AccountRef

_FOLLOW_EXAMPLES = """\
  tradelink --as ann follow add organization:acme
  tradelink --as ann follow status bob
  tradelink --as bob follow pending
  tradelink --as bob follow accept 3
  tradelink follow followers organization:acme"""


@click.group(cls=TradelinkGroup, examples=_FOLLOW_EXAMPLES)
def follow() -> None:
    """Follow accounts without connecting."""


@follow.command(examples="  tradelink --as ann follow add organization:acme")
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def add(app: AppContext, target: AccountRef) -> None:
    """Follow TARGET (pending if TARGET approves followers)."""
    app.emit(FollowService(app.network).follow(app.acting_as, target))


@follow.command(examples="  tradelink --as ann follow remove organization:acme")
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def remove(app: AppContext, target: AccountRef) -> None:
    """Stop following TARGET."""
    app.emit(FollowService(app.network).unfollow(app.acting_as, target))


@follow.command(examples="  tradelink --as bob follow accept 3")
@click.argument("follow_id", type=int)
@click.pass_obj
def accept(app: AppContext, follow_id: int) -> None:
    """Accept a pending follow request."""
    app.emit(FollowService(app.network).accept_follow(follow_id, app.acting_as))


@follow.command(examples="  tradelink --as bob follow reject 3")
@click.argument("follow_id", type=int)
@click.pass_obj
def reject(app: AppContext, follow_id: int) -> None:
    """Reject (delete) a pending follow request."""
    app.emit(FollowService(app.network).reject_follow(follow_id, app.acting_as))


@follow.command(
    examples="""\
  tradelink --as ann follow followers
  tradelink follow followers organization:acme"""
)
@click.argument("ref", type=ACCOUNT, required=False)
@click.pass_obj
def followers(app: AppContext, ref: AccountRef | None) -> None:
    """Accounts following REF (default: you)."""
    app.emit(FollowService(app.network).followers(ref or app.acting_as))


@follow.command(examples="  tradelink --as ann follow following")
@click.argument("ref", type=ACCOUNT, required=False)
@click.pass_obj
def following(app: AppContext, ref: AccountRef | None) -> None:
    """Accounts REF follows (default: you)."""
    app.emit(FollowService(app.network).following(ref or app.acting_as))


@follow.command(examples="  tradelink --as bob follow pending")
@click.pass_obj
def pending(app: AppContext) -> None:
    """Follow requests waiting for your answer."""
    app.emit(FollowService(app.network).pending_follow_requests(app.acting_as))


@follow.command(examples="  tradelink --as ann --json follow status bob")
@click.argument("other", type=ACCOUNT)
@click.pass_obj
def status(app: AppContext, other: AccountRef) -> None:
    """Whether you follow OTHER and OTHER follows you."""
    app.emit(FollowService(app.network).follow_status(app.acting_as, other))
