"""Command: list the extensions a core built from the current settings installs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from modcore.bootstrap import SOURCE_BUILTIN, plan_extensions
from modcore.plugins.builtins.autosubscribe import EXTENSION_NAME as AUTOSUBSCRIBE

if TYPE_CHECKING:
    from modcore.commands._context import AppContext


@click.command()
@click.pass_obj
def extensions(app: AppContext) -> None:
    """List extensions in install order."""
    rows = [{"name": AUTOSUBSCRIBE, "source": SOURCE_BUILTIN}]
    rows.extend(
        {"name": item.name, "source": item.source} for item in plan_extensions(app.settings)
    )
    app.emit("Extensions", rows)
