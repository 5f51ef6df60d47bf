"""Subcommand modules for grantctl.

Provides register_commands(), which imports command modules lazily so
``grantctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root group."""
    # --- Groups ---
    from grantgraph.commands.access import access
    from grantgraph.commands.grant import grant
    from grantgraph.commands.node import node

    cli.add_command(node)
    cli.add_command(grant)
    cli.add_command(access)

    # --- Standalone commands ---
    from grantgraph.commands.check import check
    from grantgraph.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
    cli.add_command(check)
