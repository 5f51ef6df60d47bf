"""Command group: users, groups, and resources in the ownership forest."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from grantgraph.commands._base import KIND_CHOICE, GrantGroup
from grantgraph.services.nodes import NodeService

if TYPE_CHECKING:
    from grantgraph.commands._context import AppContext

_NODE_EXAMPLES = """\
  grantctl node create user --name alice
  grantctl --as usr_abc... node create group --name lab
  grantctl node show grp_abc...
  grantctl node reown col_abc... grp_def...
  grantctl node trash col_abc... --at 2030-01-01T00:00:00
  grantctl node untrash col_abc...
  grantctl node destroy col_abc..."""


@click.group(cls=GrantGroup, examples=_NODE_EXAMPLES)
@click.pass_obj
def node(app: AppContext) -> None:
    """Create and manage users, groups, and resources."""


@node.command(
    examples="""\
  grantctl node create user --name alice
  grantctl node create user --name ops --admin
  grantctl --as usr_abc... node create collection --name scans --owner grp_def..."""
)
@click.argument("kind", type=KIND_CHOICE)
@click.option("--name", default="", help="Display name.")
@click.option("--owner", "owner_id", default=None, help="Owner node id (default: acting user).")
@click.option("--admin", "is_admin", is_flag=True, help="Create an admin user.")
@click.pass_obj
def create(app: AppContext, kind: str, name: str, owner_id: str | None, is_admin: bool) -> None:
    """Create a node owned by the acting user (or --owner)."""
    app.emit(
        NodeService(app.store).create_node(
            app.actor, kind.lower(), name=name, owner_id=owner_id, is_admin=is_admin
        )
    )


@node.command(
    examples="""\
  grantctl node show col_abc...
  grantctl --as usr_abc... --json node show col_abc..."""
)
@click.argument("node_id")
@click.pass_obj
def show(app: AppContext, node_id: str) -> None:
    """Show a node and the acting user's access level on it."""
    app.emit(NodeService(app.store).show_node(app.actor, node_id))


@node.command(
    examples="""\
  grantctl node reown col_abc... grp_def..."""
)
@click.argument("node_id")
@click.argument("new_owner_id")
@click.pass_obj
def reown(app: AppContext, node_id: str, new_owner_id: str) -> None:
    """Move a node under a new owner."""
    app.emit(NodeService(app.store).reown(app.actor, node_id, new_owner_id))


@node.command(
    examples="""\
  grantctl node trash col_abc...
  grantctl node trash col_abc... --at 2030-01-01T00:00:00Z"""
)
@click.argument("node_id")
@click.option("--at", "trash_at", default=None, help="Schedule trashing at an ISO 8601 time.")
@click.pass_obj
def trash(app: AppContext, node_id: str, trash_at: str | None) -> None:
    """Trash a node, hiding it and everything it grants."""
    app.emit(NodeService(app.store).trash(app.actor, node_id, trash_at=trash_at))


@node.command(
    examples="""\
  grantctl node untrash col_abc..."""
)
@click.argument("node_id")
@click.pass_obj
def untrash(app: AppContext, node_id: str) -> None:
    """Restore a trashed node."""
    app.emit(NodeService(app.store).untrash(app.actor, node_id))


@node.command(
    examples="""\
  grantctl node destroy col_abc..."""
)
@click.argument("node_id")
@click.pass_obj
def destroy(app: AppContext, node_id: str) -> None:
    """Delete a node and every permission link touching it."""
    app.emit(NodeService(app.store).destroy(app.actor, node_id))
