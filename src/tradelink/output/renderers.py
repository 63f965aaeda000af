"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO); the caller
extracts the text via ``get_output(console)``. Renderers are dispatched by
``result.op`` in :func:`render_result`. Unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from tradelink.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from tradelink.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: one id per line for lists."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(ident for ident in (_extract_id(i) for i in items) if ident)

    connection = result.data.get("connection")
    if isinstance(connection, dict):
        return str(connection.get("id", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    """Edge items carry a numeric ``id``; account summaries carry ``ref``."""
    if not isinstance(item, dict):
        return ""
    if "status" in item and item.get("id") is not None:
        return str(item["id"])
    for key in ("ref", "id"):
        val = item.get(key)
        if val is not None:
            return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="tl.ok"), Text(f"  {result.op}", style="tl.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="tl.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="tl.id")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k + v)


def _account_label(account: dict[str, Any]) -> str:
    name = account.get("name") or ""
    ref = account.get("ref") or ""
    return f"{name} ({ref})" if name else str(ref)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block including the telemetry span tree."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


_SPAN_OUTCOME = ("ok", "candidates", "attempts")


def _render_telemetry_tree(console: Console, span: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    outcome = [f"{k}={span[k]}" for k in _SPAN_OUTCOME if k in span]
    if outcome:
        line += "  (" + ", ".join(outcome) + ")"
    console.print(line)

    for child in span.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _account_table(items: list[dict[str, Any]], *, extra: list[str] | None = None) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Account", style="tl.id", no_wrap=True)
    table.add_column("Name", style="tl.name")
    table.add_column("Locality")
    table.add_column("Trade")
    for col in extra or []:
        table.add_column(col.replace("_", " ").title(), style="tl.reason")
    for item in items:
        row = [
            str(item.get("ref", "")),
            str(item.get("name", "")),
            str(item.get("locality", "")),
            str(item.get("trade", "")),
        ]
        row.extend(str(item.get(col, "")) for col in extra or [])
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="tl.error"),
        Text(f"  {result.op}{code}", style="tl.op"),
        Text(": "),
        Text(msg),
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Connection renderers ──────────────────────────────────────────────


def _render_connection(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single connection write."""
    _status_line(console, result)
    if "action" in result.data:
        _field(console, "action", result.data["action"])
    edge = result.data.get("connection", {})
    for key in ("id", "requester", "recipient", "status", "is_following"):
        if key in edge:
            _field(console, key, edge[key])
    effects = result.data.get("effects")
    if effects:
        for name, counts in effects.items():
            _field(console, name, counts)


def _render_connection_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tl.id", no_wrap=True, justify="right")
    table.add_column("Account")
    table.add_column("Direction")
    table.add_column("Status")
    table.add_column("Following")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in items:
        status = str(item.get("status", ""))
        row: list[Any] = [
            str(item.get("id", "")),
            _account_label(item.get("account", {})),
            str(item.get("direction", "")),
            Text(status, style=style_for_status(status)),
            "yes" if item.get("is_following") else "no",
        ]
        if verbose:
            row.append(str(item.get("updated_at", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} connections")


def _render_relation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Pairwise status ops: connection, follow and block relations."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Follow renderers ──────────────────────────────────────────────────


def _render_follow(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    follow = result.data.get("follow")
    if isinstance(follow, dict):
        for key in ("id", "follower", "following", "status"):
            _field(console, key, follow.get(key, ""))
    for key in ("follower", "following", "removed"):
        if key in result.data and not isinstance(result.data[key], dict):
            _field(console, key, result.data[key])


def _render_follow_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tl.id", no_wrap=True, justify="right")
    table.add_column("Account")
    table.add_column("Status")
    for item in items:
        status = str(item.get("status", ""))
        table.add_row(
            str(item.get("id", "")),
            _account_label(item.get("account", {})),
            Text(status, style=style_for_status(status)),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} accounts")


# ── Account, block, and contact renderers ─────────────────────────────


def _render_account(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    account = result.data.get("account", {})
    for key, value in account.items():
        if value not in ("", None):
            _field(console, key, value)


def _render_account_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    console.print(_account_table(items))
    console.print(f"\n{result.data.get('count', len(items))} accounts")


def _render_block(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("blocker", "blocked", "unblocked", "still_blocked"):
        if key in result.data:
            _field(console, key, result.data[key])
    for key, count in result.data.get("removed", {}).items():
        _field(console, f"removed {key}", count)


def _render_contact_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="tl.id", no_wrap=True, justify="right")
    table.add_column("Name", style="tl.name")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("Platform")
    for item in items:
        platform = item.get("platform_user_id") if item.get("is_platform_user") else ""
        table.add_row(
            str(item.get("id", "")),
            f"{item.get('first_name', '')} {item.get('last_name', '')}".strip(),
            str(item.get("email", "")),
            str(item.get("phone", "") or ""),
            str(platform or ""),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} contacts")


# ── Suggestions and graph ─────────────────────────────────────────────


def _render_suggestions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No suggestions.")
        return
    console.print(_account_table(items, extra=["reason"]))
    console.print(f"\n{result.data.get('count', len(items))} suggestions")


def _render_degree(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the shortest path as a chain."""
    path = result.data.get("path", [])
    console.print(" → ".join(f"[tl.id]{node}[/tl.id]" for node in path))
    console.print(f"\nDegree: {result.data.get('degree', 0)}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Accounts
    "register_account": _render_account,
    "get_account": _render_account,
    # Connections
    "send_request": _render_connection,
    "accept_request": _render_connection,
    "reject_request": _render_connection,
    "remove_connection": _render_connection,
    "follow_connection": _render_connection,
    "unfollow_connection": _render_connection,
    "list_connections": _render_connection_table,
    "pending_requests": _render_connection_table,
    "connection_status": _render_relation,
    # Follows
    "follow": _render_follow,
    "unfollow": _render_follow,
    "accept_follow": _render_follow,
    "reject_follow": _render_follow,
    "followers": _render_follow_table,
    "following": _render_follow_table,
    "pending_follow_requests": _render_follow_table,
    "follow_status": _render_relation,
    # Blocks
    "block": _render_block,
    "unblock": _render_block,
    "is_blocked": _render_relation,
    "block_status": _render_relation,
    "blocked_accounts": _render_account_table,
    # Contacts
    "list_contacts": _render_contact_table,
    # Suggestions and graph
    "get_suggestions": _render_suggestions,
    "degree": _render_degree,
    "mutual": _render_account_table,
}
