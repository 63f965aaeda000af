"""SuggestionService: tiered "people you may know" candidates.

Tiers run sequentially, each capped to the remaining budget before it
queries, and stop once the budget is full:

1. degree 2: accepted connections of direct connections
2. degree 3: accepted connections of the degree-2 accounts found above
3. same locality (case-insensitive)
4. same trade (case-insensitive)
5. same business type (organizations only)

``seen`` starts with the account itself, its owner when the account is an
organization, its direct connections, and every account it is in an
effective block with. Each candidate joins ``seen`` when added, so no
account is suggested twice. The final list is shuffled, then truncated.

A failing tier yields nothing and adds a warning; the call still succeeds.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from tradelink.domain.accounts import AccountKind, AccountRef
from tradelink.domain.errors import RelationshipError
from tradelink.services._helpers import clamp
from tradelink.services.base import BaseService
from tradelink.services.result import ServiceResult, failure
from tradelink.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from tradelink.infrastructure.network import Network

logger = logging.getLogger(__name__)

REASON_DEGREE_2 = "connection of connection"
REASON_DEGREE_3 = "connection of connection of connection"
REASON_LOCALITY = "same location"
REASON_TRADE = "same industry"
REASON_BUSINESS_TYPE = "same business role"

type _TierQuery = Callable[[int], list[AccountRef]]


class SuggestionService(BaseService):
    """Read-only suggestion engine over the store and the directory."""

    def __init__(self, network: Network, *, rng: random.Random | None = None) -> None:
        super().__init__(network)
        self._rng = rng or random.Random()

    @traced
    def get_suggestions(self, account: AccountRef, *, limit: int | None = None) -> ServiceResult:
        """Up to *limit* accounts *account* may want to connect with.

        Args:
            account: The active profile (an individual, or the organization
                it currently represents).
            limit: Maximum suggestions; defaults to
                ``suggestions.default_limit`` and is clamped to
                ``[1, suggestions.max_limit]``.
        """
        op = "get_suggestions"
        config = self._network.settings.suggestions
        limit = clamp(config.default_limit if limit is None else limit, 1, config.max_limit)
        warnings: list[str] = []
        results: list[tuple[AccountRef, str, int | None]] = []

        try:
            with self._network.read() as txn:
                profile = txn.directory.resolve(account)
                store, directory = txn.store, txn.directory

                seen: set[AccountRef] = {account}
                if account.is_organization and profile.owner_id:
                    seen.add(AccountRef(AccountKind.INDIVIDUAL, profile.owner_id))
                direct = store.accepted_neighbors([account])
                seen |= direct
                seen |= store.blocked_with(account)

                def run(name: str, reason: str, degree: int | None, query: _TierQuery) -> None:
                    budget = limit - len(results)
                    if budget <= 0:
                        return
                    with trace_span(f"tier.{name}") as span:
                        try:
                            found = query(budget)
                        except Exception as exc:
                            logger.warning("Suggestion tier %s failed: %s", name, exc)
                            warnings.append(f"Suggestion tier {name} failed")
                            found = []
                        added = 0
                        for ref in found[:budget]:
                            if ref in seen:
                                continue
                            seen.add(ref)
                            results.append((ref, reason, degree))
                            added += 1
                        if span:
                            span.candidates = added

                def neighbors_of(sources: set[AccountRef]) -> _TierQuery:
                    def query(budget: int) -> list[AccountRef]:
                        return sorted(store.accepted_neighbors(sources) - seen)[:budget]

                    return query

                def attribute(
                    name: str, value: str, kind: AccountKind | None = None
                ) -> _TierQuery:
                    def query(budget: int) -> list[AccountRef]:
                        matches = directory.match_attribute(
                            name, value, exclude=seen, limit=budget, kind=kind
                        )
                        return [p.ref for p in matches]

                    return query

                run("degree_2", REASON_DEGREE_2, 2, neighbors_of(direct))
                degree_2 = {ref for ref, _, degree in results if degree == 2}
                run("degree_3", REASON_DEGREE_3, 3, neighbors_of(degree_2))
                if profile.locality.strip():
                    run("locality", REASON_LOCALITY, None, attribute("locality", profile.locality))
                if profile.trade.strip():
                    run("trade", REASON_TRADE, None, attribute("trade", profile.trade))
                if account.is_organization and profile.business_type.strip():
                    run(
                        "business_type",
                        REASON_BUSINESS_TYPE,
                        None,
                        attribute(
                            "business_type", profile.business_type, AccountKind.ORGANIZATION
                        ),
                    )

                profiles = directory.resolve_many(ref for ref, _, _ in results)
        except RelationshipError as exc:
            return failure(op, exc, warnings)

        if config.shuffle:
            self._rng.shuffle(results)
        results = results[:limit]

        items: list[dict[str, Any]] = []
        for ref, reason, degree in results:
            candidate = profiles.get(ref)
            item: dict[str, Any] = candidate.summary() if candidate else {"ref": str(ref)}
            item["reason"] = reason
            if degree is not None:
                item["degree"] = degree
            items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={"account": str(account), "limit": limit, "count": len(items), "items": items},
            warnings=warnings,
        )
