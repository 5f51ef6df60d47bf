"""Root CLI group for grantctl with global flags and command registration."""

from __future__ import annotations

import click

from grantgraph import __version__
from grantgraph.commands import register_commands
from grantgraph.commands._context import AppContext
from grantgraph.config.settings import GrantSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="grantctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--as", "actor_id", default=None, help="Act as this user node id.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    actor_id: str | None,
) -> None:
    """grantctl: permission graph control for a multi-tenant object store."""
    ctx.ensure_object(dict)
    flags: dict[str, object] = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    if actor_id is not None:
        flags["actor_id"] = actor_id
    settings = GrantSettings.from_cli(config_path=config_path, **flags)
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
