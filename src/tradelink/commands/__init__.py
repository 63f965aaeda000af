"""Subcommand modules for tradelink.

Provides register_commands(), which uses deferred imports to keep
``tradelink --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from tradelink.commands.account import account
    from tradelink.commands.block import block
    from tradelink.commands.connect import connect
    from tradelink.commands.contact import contact
    from tradelink.commands.follow import follow
    from tradelink.commands.graph import graph

    cli.add_command(account)
    cli.add_command(connect)
    cli.add_command(follow)
    cli.add_command(block)
    cli.add_command(contact)
    cli.add_command(graph)

    # --- Standalone commands ---
    from tradelink.commands.suggest import suggest

    cli.add_command(suggest)
