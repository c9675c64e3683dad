"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Centralizes table/JSON emission.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from modcore.output.console import render_table

if TYPE_CHECKING:
    from modcore.config.settings import ModcoreSettings


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: ModcoreSettings) -> None:
        self.settings = settings

        from modcore.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    def emit(self, title: str, rows: list[dict[str, Any]]) -> None:
        """Print *rows* as JSON (``--json``) or as a table titled *title*."""
        if self.settings.json_output:
            click.echo(json.dumps(rows, indent=2, default=str))
            return
        click.echo(render_table(title, rows), nl=False)
