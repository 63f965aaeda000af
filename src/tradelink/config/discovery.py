"""Locate ``tradelink.toml``.

``TRADELINK_CONFIG`` names the file outright; otherwise the nearest
``tradelink.toml`` in the start directory or one of its ancestors is used.
An explicit ``--config`` path never reaches this module.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "tradelink.toml"
CONFIG_ENV_VAR = "TRADELINK_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file for *start* (default: cwd), or None.

    A ``TRADELINK_CONFIG`` that does not name a file yields None rather
    than falling back to the directory search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    return next(
        (d / CONFIG_FILENAME for d in (here, *here.parents) if (d / CONFIG_FILENAME).is_file()),
        None,
    )
