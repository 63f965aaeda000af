"""Pluggy hook specifications for tradelink relationship events.

Hooks are called synchronously after the triggering transaction commits.
Account arguments are reference strings (``"individual:42"``).
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("tradelink")
hookimpl = pluggy.HookimplMarker("tradelink")


class TradelinkHookSpec:
    """Hook specifications for the tradelink plugin system."""

    @hookspec
    def post_connection_request(
        self,
        connection_id: int,
        requester: str,
        recipient: str,
    ) -> None:
        """Called after a request is created or re-sent."""

    @hookspec
    def post_connection_accept(
        self,
        connection_id: int,
        requester: str,
        recipient: str,
    ) -> None:
        """Called after a connection becomes accepted (explicitly or by a crossed request)."""

    @hookspec
    def post_connection_remove(
        self,
        connection_id: int | None,
        account: str,
        other: str,
    ) -> None:
        """Called after a connection edge is deleted by one of its endpoints."""

    @hookspec
    def post_block(
        self,
        blocker: str,
        blocked: str,
        removed: dict[str, Any],
    ) -> None:
        """Called after a block and its cascade commit."""

    @hookspec
    def post_unblock(self, blocker: str, unblocked: str) -> None:
        """Called after an account is removed from a blocklist."""
