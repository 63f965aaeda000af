"""Standalone command: connection suggestions."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

import click

from tradelink.commands._base import TradelinkCommand
from tradelink.services.suggestions import SuggestionService

if TYPE_CHECKING:
    from tradelink.commands._context import AppContext


@click.command(
    cls=TradelinkCommand,
    examples="""\
  tradelink --as ann suggest
  tradelink --as organization:acme suggest --limit 5
  tradelink --as ann --json suggest --seed 7""",
)
@click.option("--limit", type=int, default=None, help="Maximum suggestions.")
@click.option("--seed", type=int, default=None, help="Seed the shuffle for repeatable output.")
@click.pass_obj
def suggest(app: AppContext, limit: int | None, seed: int | None) -> None:
    """Accounts you may know, from your network and your profile."""
    rng = random.Random(seed) if seed is not None else None
    app.emit(SuggestionService(app.network, rng=rng).get_suggestions(app.acting_as, limit=limit))
