"""Extension layer: plugin system via pluggy.

INVARIANT: Plugin failures are warnings, never errors.
"""

from tradelink.plugins.hookspecs import hookimpl
from tradelink.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
