"""Root CLI group for tradelink with global flags and command registration."""

from __future__ import annotations

import click

from tradelink import __version__
from tradelink.commands import register_commands
from tradelink.commands._context import AppContext
from tradelink.config.settings import TradelinkSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="tradelink")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (ids only).")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--as",
    "acting_as",
    default=None,
    metavar="ACCOUNT",
    help="Acting account (kind:id). Also read from TRADELINK_ACTING_AS.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    acting_as: str | None,
) -> None:
    """tradelink: connections, follows, blocks, and suggestions."""
    ctx.ensure_object(dict)
    settings = TradelinkSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        acting_as=acting_as,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
