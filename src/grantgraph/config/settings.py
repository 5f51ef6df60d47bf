"""GrantSettings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``GRANTGRAPH_*`` prefix, ``__`` between section and key
  3. TOML file: ``grantgraph.toml`` from :func:`find_config`
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from grantgraph.config.discovery import find_config, read_toml
from grantgraph.config.models import AccessConfig, StoreConfig

# Config file for the GrantSettings currently being constructed.
_toml_path: ContextVar[Path | None] = ContextVar("_toml_path", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Feeds the sections of one ``grantgraph.toml`` into settings validation."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = read_toml(toml_path) if toml_path else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


class GrantSettings(BaseSettings):
    """Settings for one grantctl invocation.

    Attributes:
        root: Directory relative store paths resolve against (parent of
            ``grantgraph.toml``, or CWD if no config found).
        config_path: The TOML file in effect, or None.
        actor_id: Node id requests act as (``--as``); None means the
            system root user.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "GRANTGRAPH_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    actor_id: str | None = None

    store: StoreConfig = Field(default_factory=StoreConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)

    @property
    def db_path(self) -> Path:
        """Absolute path of the SQLite database."""
        path = Path(self.store.path)
        return path if path.is_absolute() else self.root / path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _toml_path.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> GrantSettings:
        """Build settings for a CLI run.

        An explicit *config_path* must exist. Otherwise the config is
        discovered from *root* (or the CWD), and *root* defaults to the
        directory holding it.

        Raises:
            click.ClickException: Explicit config missing, or invalid TOML.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
        else:
            toml_path = find_config(root)

        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        token = _toml_path.set(toml_path)
        try:
            return cls(root=root, config_path=toml_path, **cli_flags)
        finally:
            _toml_path.reset(token)
