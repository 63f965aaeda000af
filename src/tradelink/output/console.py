"""Rich Console factory and theme for tradelink output.

Consoles render to a StringIO buffer so renderers keep a plain
``-> str`` contract. In non-TTY environments (tests, pipes) Rich drops
color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TRADELINK_THEME = Theme(
    {
        "tl.ok": "bold green",
        "tl.error": "bold red",
        "tl.warning": "bold yellow",
        "tl.op": "bold cyan",
        "tl.key": "dim",
        "tl.id": "bold blue",
        "tl.name": "bold",
        "tl.reason": "magenta",
        "tl.status.pending": "yellow",
        "tl.status.accepted": "green",
        "tl.status.rejected": "dim",
        "tl.status.blocked": "bold red",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "pending": "tl.status.pending",
    "pending_sent": "tl.status.pending",
    "pending_received": "tl.status.pending",
    "accepted": "tl.status.accepted",
    "rejected": "tl.status.rejected",
    "blocked": "tl.status.blocked",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=TRADELINK_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Rich style name for an edge or relationship status."""
    return _STATUS_STYLES.get(status, "")
