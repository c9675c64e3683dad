"""Subcommand modules for modcore.

Provides register_commands() which uses deferred imports to keep
``modcore --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from modcore.commands.extensions import extensions
    from modcore.commands.hooks import hooks

    cli.add_command(extensions)
    cli.add_command(hooks)
