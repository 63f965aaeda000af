"""Command group: connection requests, acting as ``--as``."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.commands._base import ACCOUNT, TradelinkGroup
from tradelink.domain.lifecycle import EdgeStatus
from tradelink.services.connections import DIRECTIONS, ConnectionService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext
    from tradelink.domain.accounts import AccountRef

_CONNECT_EXAMPLES = """\
  tradelink --as ann connect request bob
  tradelink --as bob connect pending
  tradelink --as bob connect accept 1
  tradelink --as ann connect list --status accepted
  tradelink --as ann connect status bob
  tradelink --as ann connect remove 1"""


@click.group(cls=TradelinkGroup, examples=_CONNECT_EXAMPLES)
def connect() -> None:
    """Send and answer connection requests."""


@connect.command(
    examples="""\
  tradelink --as ann connect request bob
  tradelink --as ann connect request organization:acme"""
)
@click.argument("recipient", type=ACCOUNT)
@click.pass_obj
def request(app: AppContext, recipient: AccountRef) -> None:
    """Ask RECIPIENT to connect (accepts a crossed request)."""
    app.emit(ConnectionService(app.network).send_request(app.acting_as, recipient))


@connect.command(examples="  tradelink --as bob connect accept 1")
@click.argument("connection_id", type=int)
@click.pass_obj
def accept(app: AppContext, connection_id: int) -> None:
    """Accept a pending request sent to you."""
    app.emit(ConnectionService(app.network).accept_request(connection_id, app.acting_as))


@connect.command(examples="  tradelink --as bob connect reject 1")
@click.argument("connection_id", type=int)
@click.pass_obj
def reject(app: AppContext, connection_id: int) -> None:
    """Reject a pending request sent to you."""
    app.emit(ConnectionService(app.network).reject_request(connection_id, app.acting_as))


@connect.command(examples="  tradelink --as ann connect remove 1")
@click.argument("connection_id", type=int)
@click.pass_obj
def remove(app: AppContext, connection_id: int) -> None:
    """Delete one of your connections, whatever its status."""
    app.emit(ConnectionService(app.network).remove_connection(connection_id, app.acting_as))


@connect.command(examples="  tradelink --as ann connect follow 1")
@click.argument("connection_id", type=int)
@click.pass_obj
def follow(app: AppContext, connection_id: int) -> None:
    """Follow an accepted connection again."""
    app.emit(ConnectionService(app.network).follow_connection(connection_id, app.acting_as))


@connect.command(examples="  tradelink --as ann connect unfollow 1")
@click.argument("connection_id", type=int)
@click.pass_obj
def unfollow(app: AppContext, connection_id: int) -> None:
    """Stay connected without following."""
    app.emit(ConnectionService(app.network).unfollow_connection(connection_id, app.acting_as))


@connect.command(
    "list",
    examples="""\
  tradelink --as ann connect list
  tradelink --as ann connect list --status pending --direction sent
  tradelink --as ann -q connect list""",
)
@click.option("--status", type=click.Choice([s.value for s in EdgeStatus]), default=None)
@click.option("--direction", type=click.Choice(list(DIRECTIONS)), default=None)
@click.pass_obj
def list_cmd(app: AppContext, status: str | None, direction: str | None) -> None:
    """List your connections, newest first."""
    app.emit(
        ConnectionService(app.network).list_connections(
            app.acting_as,
            status=EdgeStatus(status) if status else None,
            direction=direction,
        )
    )


@connect.command(examples="  tradelink --as bob connect pending")
@click.pass_obj
def pending(app: AppContext) -> None:
    """Requests waiting for your answer."""
    app.emit(ConnectionService(app.network).pending_requests(app.acting_as))


@connect.command(examples="  tradelink --as ann connect status bob")
@click.argument("other", type=ACCOUNT)
@click.pass_obj
def status(app: AppContext, other: AccountRef) -> None:
    """Your relationship with OTHER (none, pending, accepted, blocked...)."""
    app.emit(ConnectionService(app.network).connection_status(app.acting_as, other))
