"""Rich/JSON output dispatch.

The CLI renders ServiceResult for humans (Rich tables and colors), for
scripts (``--quiet``: ids only), or for machines (``--json``). This
module picks the mode; :mod:`grantgraph.output.renderers` does the
drawing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from grantgraph.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from grantgraph.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output mode flags taken from the global CLI options."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display in the requested mode."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
