"""tradelink: relationship graph engine for a social/business network."""

__version__ = "0.4.0"
