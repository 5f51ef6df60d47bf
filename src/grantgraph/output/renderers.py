"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from grantgraph.output.console import create_console, get_output, style_for_level

if TYPE_CHECKING:
    from rich.console import Console

    from grantgraph.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if isinstance(item, dict) and "id" in item)
    if "allowed" in result.data:
        return "allow" if result.data["allowed"] else "deny"
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="gg.ok"), Text(f"  {result.op}", style="gg.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="gg.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="gg.id")
    elif key in ("level", "access"):
        v = Text(str(value), style=style_for_level(value))
    elif key == "name":
        v = Text(str(value), style="gg.name")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _level_text(level: str | None) -> Text:
    return Text(level or "-", style=style_for_level(level))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    parts = [Text("ERROR", style="gg.error"), Text(f"  {result.op}", style="gg.op")]
    if err is not None:
        parts.append(Text(f"  [{err.code}]", style="dim"))
    console.print(*parts, Text(f": {msg}"), sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Node renderers ────────────────────────────────────────────────────


def _render_node(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/show/reown/trash/untrash results for one node."""
    _status_line(console, result)
    d = result.data
    for key in ("id", "kind", "name", "owner_id", "access"):
        if d.get(key) not in (None, ""):
            _field(console, key, d[key])
    if d.get("is_admin"):
        _field(console, "admin", "yes")
    if d.get("is_trashed"):
        _field(console, "trashed", "yes")
    elif d.get("trash_at"):
        _field(console, "trash_at", d["trash_at"])
    if verbose:
        _field(console, "created", d.get("created", ""))
        _field(console, "modified", d.get("modified", ""))
        _render_meta(console, result)


def _render_destroy(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "id", result.data.get("id", ""))
    _field(console, "edges_removed", result.data.get("edges_removed", 0))
    if verbose:
        _render_meta(console, result)


def _render_node_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_readable results as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="gg.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Name", style="gg.name")
    table.add_column("Owner", no_wrap=True)
    if verbose:
        table.add_column("Modified", style="dim")

    for item in items:
        row = [
            str(item.get("id", "")),
            str(item.get("kind", "")),
            str(item.get("name", "")),
            str(item.get("owner_id") or "-"),
        ]
        if verbose:
            row.append(str(item.get("modified", "")))
        table.add_row(*row)

    console.print(table)
    level = result.data.get("level", "read")
    console.print(f"\n{result.data.get('count', len(items))} nodes with {level} access")
    if verbose:
        _render_meta(console, result)


# ── Grant renderers ───────────────────────────────────────────────────


def _render_edge(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/show/delete results for one permission link."""
    _status_line(console, result)
    d = result.data
    for key in ("id", "subject_id", "target_id", "level", "expires_at"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    if d.get("is_trashed"):
        _field(console, "trashed", "yes")
    if verbose:
        _field(console, "created", d.get("created", ""))
        _render_meta(console, result)


def _render_edge_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_grants or list_links results as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="gg.id", no_wrap=True)
    table.add_column("Subject", no_wrap=True)
    table.add_column("Level")
    table.add_column("Target", no_wrap=True)
    table.add_column("Expires")
    if verbose:
        table.add_column("Created", style="dim")

    for item in items:
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("subject_id", "")),
            _level_text(item.get("level")),
            str(item.get("target_id", "")),
            str(item.get("expires_at") or "-"),
        ]
        if verbose:
            row.append(str(item.get("created", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} links")
    if verbose:
        _render_meta(console, result)


# ── Access renderers ──────────────────────────────────────────────────


def _render_decision(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render authorize/require results as a one-line allow/deny."""
    d = result.data
    if d.get("allowed"):
        verdict = Text("ALLOW", style="gg.allow")
    else:
        verdict = Text("DENY", style="gg.deny")
    console.print(
        verdict,
        Text(f"  {d.get('actor_id', '')}", style="gg.id"),
        Text(" -> "),
        _level_text(d.get("level")),
        Text(" -> "),
        Text(str(d.get("target_id", "")), style="gg.id"),
        sep="",
    )
    if verbose:
        _render_meta(console, result)


def _render_effective(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "actor_id", d.get("actor_id", ""))
    _field(console, "target_id", d.get("target_id", ""))
    _field(console, "level", d.get("level") or "none")
    if verbose:
        _render_meta(console, result)


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render integrity findings grouped by severity."""
    d = result.data
    issues = d.get("issues", [])
    if not issues:
        console.print(Text("OK", style="gg.ok"), Text("  no integrity issues"), sep="")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Subject", style="gg.id", no_wrap=True)
    table.add_column("Message")
    for issue in issues:
        severity = str(issue.get("severity", ""))
        style = "gg.error" if severity == "error" else "gg.warning"
        table.add_row(
            Text(severity, style=style),
            str(issue.get("category", "")),
            str(issue.get("edge_id") or issue.get("node_id") or "-"),
            str(issue.get("message", "")),
        )
    console.print(table)
    console.print(
        f"\n{d.get('error_count', 0)} errors, {d.get('warning_count', 0)} warnings"
    )
    if verbose:
        _render_meta(console, result)


# ── Init renderer ─────────────────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("db_path", "config_path", "root_id"):
        if result.data.get(key):
            _field(console, key, result.data[key])


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Nodes
    "create_node": _render_node,
    "show_node": _render_node,
    "reown": _render_node,
    "trash": _render_node,
    "untrash": _render_node,
    "destroy": _render_destroy,
    # Grants
    "create_grant": _render_edge,
    "read_grant": _render_edge,
    "delete_grant": _render_edge,
    "list_grants": _render_edge_table,
    "list_links": _render_edge_table,
    # Access
    "authorize": _render_decision,
    "require": _render_decision,
    "effective_level": _render_effective,
    "list_readable": _render_node_table,
    # Maintenance
    "check": _render_check,
    "init": _render_init,
}
