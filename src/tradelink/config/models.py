"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, tradelink.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str | None = None  # None -> {root}/.tradelink/tradelink.db


class SuggestionsConfig(BaseModel):
    """[suggestions] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)
    shuffle: bool = True


class SyncConfig(BaseModel):
    """[sync] section. Derived effects run after a connection is accepted."""

    model_config = {"frozen": True}

    follows_enabled: bool = True
    contacts_enabled: bool = True
    max_attempts: int = Field(default=2, ge=1)


class ContactsConfig(BaseModel):
    """[contacts] section."""

    model_config = {"frozen": True}

    first_name_placeholder: str = "Unknown"
    last_name_placeholder: str = "User"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
