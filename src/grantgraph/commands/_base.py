"""Click base classes and shared parameter types for grantctl commands.

Every command and group takes an ``examples`` string. When present, an
eager ``--examples`` flag prints it and exits, which keeps ``--help``
down to the option reference.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click

from grantgraph.domain.ids import NodeKind
from grantgraph.domain.levels import Level


class _ExamplesMixin:
    """Adds the ``--examples`` flag to a Command or Group."""

    params: list[click.Parameter]

    def _init_examples(self, examples: str | None) -> None:
        self.examples = textwrap.dedent(examples).strip("\n") if examples else None
        if self.examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class GrantCommand(_ExamplesMixin, click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class GrantGroup(_ExamplesMixin, click.Group):
    """Group with ``--examples`` whose subcommands default to :class:`GrantCommand`."""

    command_class = GrantCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


LEVEL_CHOICE = click.Choice([level.label for level in Level], case_sensitive=False)
KIND_CHOICE = click.Choice([kind.value for kind in NodeKind], case_sensitive=False)
