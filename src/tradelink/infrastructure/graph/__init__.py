"""Accepted-connection graph built with NetworkX."""

from tradelink.infrastructure.graph.engine import ConnectionGraph

__all__ = ["ConnectionGraph"]
