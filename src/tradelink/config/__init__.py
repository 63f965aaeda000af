"""Configuration: pydantic settings, TOML discovery, structlog setup."""
