"""Extension layer — built-in extensions and discovery via pluggy.

Discovery: entry_points (pip-installed) in the ``modcore.extensions`` group,
plus single-file plugins from a local directory.
INVARIANT: Discovery failures are warnings, never errors.
"""

from modcore.plugins.manager import PluginManager

__all__ = ["PluginManager"]
