"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Opens the store lazily, resolves the acting user,
and centralizes result emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from grantgraph.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from grantgraph.config.settings import GrantSettings
    from grantgraph.domain.actors import Actor
    from grantgraph.infrastructure.store import GraphStore
    from grantgraph.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: GrantSettings) -> None:
        self.settings = settings
        self._store: GraphStore | None = None
        self._actor: Actor | None = None

        from grantgraph.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from grantgraph.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> GraphStore:
        """The grant store (opened lazily on first access)."""
        if self._store is None:
            from grantgraph.infrastructure.store import GraphStore

            self._store = GraphStore(self.settings)
        return self._store

    @property
    def actor(self) -> Actor:
        """The user requests act as: ``--as``, or the system root user."""
        if self._actor is None:
            from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind, kind_of

            actor_id = self.settings.actor_id or SYSTEM_ROOT_ID
            if kind_of(actor_id) is not NodeKind.USER:
                msg = f"--as expects a user id (usr_...), got {actor_id!r}"
                raise click.UsageError(msg)
            actor = self.store.load_actor(actor_id)
            if actor is None:
                msg = f"Unknown user {actor_id!r}; --as must name an existing user node"
                raise click.UsageError(msg)
            self._actor = actor
        return self._actor

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
