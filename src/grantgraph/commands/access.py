"""Command group: authorization checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from grantgraph.commands._base import KIND_CHOICE, LEVEL_CHOICE, GrantGroup
from grantgraph.services.access import AccessService

if TYPE_CHECKING:
    from grantgraph.commands._context import AppContext

_ACCESS_EXAMPLES = """\
  grantctl --as usr_abc... access check col_def... write
  grantctl --as usr_abc... access level col_def...
  grantctl --as usr_abc... access require col_def... manage
  grantctl --as usr_abc... access readable --kind collection"""


@click.group(cls=GrantGroup, examples=_ACCESS_EXAMPLES)
@click.pass_obj
def access(app: AppContext) -> None:
    """Ask what the acting user may do."""


@access.command(
    examples="""\
  grantctl --as usr_abc... access check col_def... read
  grantctl --as usr_abc... -q access check col_def... manage"""
)
@click.argument("target_id")
@click.argument("level", type=LEVEL_CHOICE, default="read")
@click.pass_obj
def check(app: AppContext, target_id: str, level: str) -> None:
    """Allow or deny LEVEL access to TARGET_ID."""
    app.emit(AccessService(app.store).authorize(app.actor, target_id, level.lower()))


@access.command(
    examples="""\
  grantctl --as usr_abc... access level col_def..."""
)
@click.argument("target_id")
@click.pass_obj
def level(app: AppContext, target_id: str) -> None:
    """Show the strongest level held on TARGET_ID."""
    app.emit(AccessService(app.store).effective_level(app.actor, target_id))


@access.command(
    examples="""\
  grantctl --as usr_abc... access require col_def... write"""
)
@click.argument("target_id")
@click.argument("level", type=LEVEL_CHOICE, default="read")
@click.pass_obj
def require(app: AppContext, target_id: str, level: str) -> None:
    """Fail with NOT_FOUND or FORBIDDEN unless LEVEL is held on TARGET_ID."""
    app.emit(AccessService(app.store).require(app.actor, target_id, level.lower()))


@access.command(
    examples="""\
  grantctl --as usr_abc... access readable
  grantctl --as usr_abc... access readable --kind specimen --level write"""
)
@click.option("--kind", type=KIND_CHOICE, default=None, help="Only nodes of this kind.")
@click.option("--level", type=LEVEL_CHOICE, default="read", help="Minimum level.")
@click.pass_obj
def readable(app: AppContext, kind: str | None, level: str) -> None:
    """List nodes the acting user holds at least --level on."""
    app.emit(
        AccessService(app.store).list_readable(
            app.actor, kind=kind.lower() if kind else None, level=level.lower()
        )
    )
