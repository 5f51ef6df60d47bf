"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, grantgraph.toml only contains
overrides. A fresh store needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the settings root.
    path: str = ".grantgraph/grants.db"
    echo: bool = False


class AccessConfig(BaseModel):
    """[access] section."""

    model_config = {"frozen": True}

    request_cache: bool = True
    thread_safe_cache: bool = False


class GrantConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)
