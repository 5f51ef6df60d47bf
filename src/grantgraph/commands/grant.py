"""Command group: explicit permission links."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from grantgraph.commands._base import LEVEL_CHOICE, GrantGroup
from grantgraph.services.grants import GrantService

if TYPE_CHECKING:
    from grantgraph.commands._context import AppContext

_GRANT_EXAMPLES = """\
  grantctl grant create usr_abc... read col_def...
  grantctl grant create grp_abc... manage usr_def... --expires 2030-01-01T00:00:00Z
  grantctl grant show lnk_abc...
  grantctl grant list col_def...
  grantctl grant links --subject grp_abc... --level write
  grantctl grant delete lnk_abc..."""


@click.group(cls=GrantGroup, examples=_GRANT_EXAMPLES)
@click.pass_obj
def grant(app: AppContext) -> None:
    """Create, inspect, and revoke permission links."""


@grant.command(
    examples="""\
  grantctl grant create usr_abc... read col_def...
  grantctl --as usr_owner... grant create grp_abc... write col_def..."""
)
@click.argument("subject_id")
@click.argument("level", type=LEVEL_CHOICE)
@click.argument("target_id")
@click.option("--expires", "expires_at", default=None, help="Expiry as an ISO 8601 time.")
@click.pass_obj
def create(
    app: AppContext,
    subject_id: str,
    level: str,
    target_id: str,
    expires_at: str | None,
) -> None:
    """Grant SUBJECT_ID LEVEL access to TARGET_ID."""
    app.emit(
        GrantService(app.store).create_grant(
            app.actor, subject_id, target_id, level.lower(), expires_at=expires_at
        )
    )


@grant.command(
    examples="""\
  grantctl grant delete lnk_abc..."""
)
@click.argument("edge_id")
@click.pass_obj
def delete(app: AppContext, edge_id: str) -> None:
    """Revoke a permission link."""
    app.emit(GrantService(app.store).delete_grant(app.actor, edge_id))


@grant.command(
    examples="""\
  grantctl grant show lnk_abc..."""
)
@click.argument("edge_id")
@click.pass_obj
def show(app: AppContext, edge_id: str) -> None:
    """Show one permission link (managers of its target only)."""
    app.emit(GrantService(app.store).read_grant(app.actor, edge_id))


@grant.command(
    "list",
    examples="""\
  grantctl grant list col_abc...
  grantctl -q grant list col_abc..."""
)
@click.argument("target_id")
@click.pass_obj
def list_cmd(app: AppContext, target_id: str) -> None:
    """List permission links pointing directly at TARGET_ID."""
    app.emit(GrantService(app.store).list_grants(app.actor, target_id))


@grant.command(
    examples="""\
  grantctl grant links
  grantctl grant links --target col_abc...
  grantctl grant links --subject usr_abc... --level manage"""
)
@click.option("--target", "target_id", default=None, help="Only links onto this node.")
@click.option("--subject", "subject_id", default=None, help="Only links held by this node.")
@click.option("--level", type=LEVEL_CHOICE, default=None, help="Only links at this level.")
@click.pass_obj
def links(
    app: AppContext,
    target_id: str | None,
    subject_id: str | None,
    level: str | None,
) -> None:
    """List permission links the acting user manages, with optional filters."""
    app.emit(
        GrantService(app.store).list_links(
            app.actor,
            target_id=target_id,
            subject_id=subject_id,
            level=level.lower() if level else None,
        )
    )
