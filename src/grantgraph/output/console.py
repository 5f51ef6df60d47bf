"""Rich Console factory and theme for grantctl output.

Consoles render into a StringIO buffer so renderers keep the
``format_result() -> str`` contract. Rich drops color codes on its own
when there is no terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

GRANT_THEME = Theme(
    {
        "gg.ok": "bold green",
        "gg.error": "bold red",
        "gg.warning": "bold yellow",
        "gg.op": "bold cyan",
        "gg.key": "dim",
        "gg.id": "bold blue",
        "gg.name": "bold",
        "gg.allow": "bold green",
        "gg.deny": "bold red",
        "gg.level.read": "cyan",
        "gg.level.write": "yellow",
        "gg.level.manage": "magenta",
    }
)

_LEVEL_STYLES: dict[str, str] = {
    "read": "gg.level.read",
    "write": "gg.level.write",
    "manage": "gg.level.manage",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=GRANT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_level(level: str | None) -> str:
    return _LEVEL_STYLES.get(level or "", "dim")
