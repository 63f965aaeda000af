"""Command group: accepted-connection graph queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.commands._base import ACCOUNT, TradelinkGroup
from tradelink.services.graph import NetworkGraphService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext
    from tradelink.domain.accounts import AccountRef

_GRAPH_EXAMPLES = """\
  tradelink graph degree ann carol
  tradelink graph mutual ann organization:acme"""


@click.group(cls=TradelinkGroup, examples=_GRAPH_EXAMPLES)
def graph() -> None:
    """Degrees of separation and mutual connections."""


@graph.command(
    examples="""\
  tradelink graph degree ann carol
  tradelink --json graph degree ann organization:acme"""
)
@click.argument("source", type=ACCOUNT)
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def degree(app: AppContext, source: AccountRef, target: AccountRef) -> None:
    """Hops between SOURCE and TARGET over accepted connections."""
    app.emit(NetworkGraphService(app.network).degree(source, target))


@graph.command(examples="  tradelink graph mutual ann bob")
@click.argument("source", type=ACCOUNT)
@click.argument("target", type=ACCOUNT)
@click.pass_obj
def mutual(app: AppContext, source: AccountRef, target: AccountRef) -> None:
    """Connections SOURCE and TARGET share."""
    app.emit(NetworkGraphService(app.network).mutual(source, target))
