"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Provides lazy Network initialization, the acting
account, and centralized result emission (stdout/stderr routing and
exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tradelink.domain.accounts import parse_account_ref
from tradelink.domain.errors import ValidationError
from tradelink.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from tradelink.config.settings import TradelinkSettings
    from tradelink.domain.accounts import AccountRef
    from tradelink.infrastructure.network import Network
    from tradelink.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The network is created on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: TradelinkSettings) -> None:
        self.settings = settings
        self._network: Network | None = None

        from tradelink.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from tradelink.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def network(self) -> Network:
        """The network instance (created lazily on first access)."""
        if self._network is None:
            from tradelink.infrastructure.network import Network

            self._network = Network(self.settings)
            self._network.init_plugins()
        return self._network

    @property
    def acting_as(self) -> AccountRef:
        """The caller's account, from ``--as`` or ``TRADELINK_ACTING_AS``."""
        raw = self.settings.acting_as
        if not raw:
            raise click.UsageError(
                "No acting account: pass --as ACCOUNT or set TRADELINK_ACTING_AS"
            )
        try:
            return parse_account_ref(raw)
        except ValidationError as exc:
            raise click.BadParameter(exc.message, param_hint="--as") from exc

    def close(self) -> None:
        if self._network is not None:
            self._network.close()
            self._network = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
