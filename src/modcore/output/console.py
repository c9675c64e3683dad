"""Rich Console factory, theme, and table rendering for modcore output.

Consoles render to a StringIO buffer so every renderer returns a plain
string. In non-TTY environments (tests, pipes) Rich disables color codes.
"""

from __future__ import annotations

from io import StringIO
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

MODCORE_THEME = Theme(
    {
        "modcore.title": "bold cyan",
        "modcore.key": "bold",
        "modcore.dim": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=MODCORE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def render_table(title: str, rows: list[dict[str, Any]], *, no_color: bool = False) -> str:
    """Render *rows* (dicts sharing the same keys) as a titled table."""
    console = create_console(no_color=no_color)
    if not rows:
        console.print(f"[modcore.title]{title}[/]: [modcore.dim]none[/]")
        return get_output(console)

    table = Table(title=title, title_style="modcore.title", title_justify="left")
    for column in rows[0]:
        table.add_column(column, style="modcore.key" if column == "name" else None)
    for row in rows:
        table.add_row(*(str(value) for value in row.values()))
    console.print(table)
    return get_output(console)
