"""Custom Click base classes with --examples support, plus shared param types.

``TradelinkCommand`` and ``TradelinkGroup`` accept an ``examples``
parameter. When ``--examples`` is passed, the command prints usage
examples and exits, which keeps ``--help`` concise.
"""

from __future__ import annotations

from typing import Any

import click

from tradelink.domain.accounts import AccountRef, parse_account_ref
from tradelink.domain.errors import ValidationError


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TradelinkCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class TradelinkGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    ``command_class = TradelinkCommand`` lets every subcommand take
    ``examples=`` without an explicit ``cls=``.
    """

    command_class = TradelinkCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class AccountRefType(click.ParamType):
    """``kind:id`` account reference; a bare id means an individual."""

    name = "account"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, AccountRef):
            return value
        try:
            return parse_account_ref(str(value))
        except ValidationError as exc:
            self.fail(exc.message, param, ctx)


ACCOUNT = AccountRefType()
