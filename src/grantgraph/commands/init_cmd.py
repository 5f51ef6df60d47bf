"""Command: store initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from grantgraph.commands._base import GrantCommand

if TYPE_CHECKING:
    from grantgraph.commands._context import AppContext

_INIT_EXAMPLES = """\
  grantctl init
  grantctl init /srv/grants
  grantctl init . --store-path data/grants.db"""


@click.command("init", cls=GrantCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--store-path", default=None, help="Database path, relative to PATH.")
@click.pass_obj
def init_cmd(app: AppContext, path: str, store_path: str | None) -> None:
    """Initialize a grant store with its system root user."""
    from grantgraph.services.init import InitService

    app.emit(InitService.init_store(Path(path), store_path=store_path))
