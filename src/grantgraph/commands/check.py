"""Command: permission-graph integrity checking."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from grantgraph.commands._base import GrantCommand

if TYPE_CHECKING:
    from grantgraph.commands._context import AppContext


@click.command(
    cls=GrantCommand,
    examples="""\
  grantctl check
  grantctl --json check""",
)
@click.pass_obj
def check(app: AppContext) -> None:
    """Report ownership cycles, dangling references, and inert grants."""
    from grantgraph.services.check import CheckService

    app.emit(CheckService(app.store).check(app.actor))
