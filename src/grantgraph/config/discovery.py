"""Locating and reading ``grantgraph.toml``.

Lookup order: the ``GRANTGRAPH_CONFIG`` environment variable, then a
walk up from the working directory to the filesystem root, the way git
finds ``.git/``. The directory holding the file becomes the root that
relative store paths resolve against.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

from grantgraph.config.models import GrantConfig

CONFIG_FILENAME = "grantgraph.toml"
CONFIG_ENV_VAR = "GRANTGRAPH_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file in effect for *start* (default: cwd), or None.

    A ``GRANTGRAPH_CONFIG`` pointing at a missing file yields None rather
    than falling back to the walk-up.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; malformed TOML becomes a ClickException naming the file."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> GrantConfig:
    """Validated config sections from *path* (discovered from *cwd* if None).

    No file at all means every section at its defaults.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return GrantConfig()
    return GrantConfig.model_validate(read_toml(path))
