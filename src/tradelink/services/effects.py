"""EffectRunner: executes derived side effects after a transition commits.

Acceptance is not transactional across the connection edge and its
derived follows and contacts. Each effect runs in its own transaction,
after the edge write has committed, and is retried up to
``sync.max_attempts`` times. A final failure is logged as a
:class:`SyncFailure` and reported as a warning; the accepted edge stands.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import structlog

from tradelink.domain.errors import SyncFailure
from tradelink.domain.lifecycle import EdgeSnapshot, Effect
from tradelink.services._helpers import now_iso
from tradelink.services.contacts import ContactSynchronizer
from tradelink.services.follows import FollowSynchronizer
from tradelink.services.telemetry import Span, trace_span

if TYPE_CHECKING:
    from tradelink.infrastructure.network import Network, NetworkTransaction

type EffectHandler = Callable[[NetworkTransaction, EdgeSnapshot, str], dict[str, int]]

log = structlog.get_logger("tradelink.sync")


class EffectRunner:
    """Runs the effects a transition scheduled, after commit."""

    def __init__(
        self,
        network: Network,
        *,
        handlers: dict[Effect, EffectHandler] | None = None,
    ) -> None:
        self._network = network
        settings = network.settings
        follows = FollowSynchronizer()
        contacts = ContactSynchronizer(settings.contacts)
        self._handlers: dict[Effect, EffectHandler] = {
            Effect.ENSURE_MUTUAL_FOLLOW: lambda txn, edge, now: follows.ensure_mutual_follow(
                txn.store, edge, now
            ),
            Effect.SYNC_CONTACTS: lambda txn, edge, now: contacts.sync_contacts_for_connection(
                txn.store, txn.directory, edge, now
            ),
        }
        if handlers:
            self._handlers.update(handlers)
        self._enabled = {
            Effect.ENSURE_MUTUAL_FOLLOW: settings.sync.follows_enabled,
            Effect.SYNC_CONTACTS: settings.sync.contacts_enabled,
        }
        self._max_attempts = settings.sync.max_attempts

    def run(
        self, edge: EdgeSnapshot, effects: Iterable[Effect]
    ) -> tuple[dict[str, Any], list[str]]:
        """Execute *effects* for the committed *edge*.

        Returns ``(outcomes, warnings)``: per-effect counts for effects that
        succeeded, and one warning per effect that ultimately failed.
        """
        outcomes: dict[str, Any] = {}
        warnings: list[str] = []
        for effect in effects:
            if not self._enabled.get(effect, True):
                log.debug("sync.skipped", effect=str(effect), connection_id=edge.id)
                continue
            with trace_span(f"effect.{effect}") as span:
                try:
                    outcomes[str(effect)] = self._run_one(effect, edge, span)
                except SyncFailure as failure:
                    warnings.append(failure.message)
                if span:
                    span.ok = str(effect) in outcomes
        return outcomes, warnings

    def _run_one(self, effect: Effect, edge: EdgeSnapshot, span: Span | None) -> dict[str, int]:
        handler = self._handlers[effect]
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            if span:
                span.attempts = attempt
            try:
                with self._network.transaction() as txn:
                    return handler(txn, edge, now_iso())
            except Exception as exc:
                last_error = exc
                log.debug(
                    "sync.retry",
                    effect=str(effect),
                    connection_id=edge.id,
                    attempt=attempt,
                    error=str(exc),
                )

        failure = SyncFailure(
            f"{effect} failed for connection {edge.id}",
            detail={"connection_id": edge.id, "effect": str(effect)},
        )
        log.warning(
            "sync.failed",
            effect=str(effect),
            connection_id=edge.id,
            attempts=self._max_attempts,
            error=str(last_error),
        )
        raise failure from last_error
