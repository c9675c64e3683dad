"""Plugin discovery and extension collection.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery (``extensions.local_dir`` in settings).
Each plugin contributes extensions through the ``modcore_extensions`` hook.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pluggy

from modcore.plugins.hookspecs import ModcoreHookSpec

if TYPE_CHECKING:
    from types import ModuleType

    from modcore.kernel.types import Extension

PROJECT_NAME = "modcore"
ENTRY_POINT_GROUP = "modcore.extensions"
LOCAL_MODULE_PREFIX = "modcore_local_plugin_"

logger = logging.getLogger(__name__)


class PluginManager:
    """Finds plugins and collects the extensions they contribute."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ModcoreHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly, e.g. from an embedding application."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_extensions(self) -> list[Extension]:
        """Call every plugin's ``modcore_extensions`` and flatten the results.

        Each implementation is called on its own so one broken plugin cannot
        hide the others. A plugin that raises, returns a non-list, or returns
        items without a string ``name`` and a callable ``install`` is skipped
        with a warning.
        """
        extensions: list[Extension] = []
        for impl in self.hook.modcore_extensions.get_hookimpls():
            try:
                result = impl.function()
            except Exception:
                logger.warning(
                    "Failed to collect extensions from plugin %s", impl.plugin_name, exc_info=True
                )
                continue
            extensions.extend(self._accepted(impl.plugin_name, result))
        return extensions

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _accepted(plugin_name: str, result: object) -> list[Extension]:
        if result is None:
            return []
        if not isinstance(result, (list, tuple)):
            logger.warning("Plugin %s returned non-list extensions", plugin_name)
            return []

        accepted: list[Extension] = []
        for extension in result:
            name = getattr(extension, "name", None)
            if isinstance(name, str) and name and callable(getattr(extension, "install", None)):
                accepted.append(extension)
            else:
                logger.warning(
                    "Skipping malformed extension %r from plugin %s", extension, plugin_name
                )
        return accepted

    def _discover_local(self, local_dir: Path) -> None:
        """Load every ``*.py`` in *local_dir* (``_``-prefixed files skipped).

        Classes defined in a file that implement ``modcore_extensions`` are
        instantiated and registered under the file's module name. Errors are
        logged as warnings but never raised.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"{LOCAL_MODULE_PREFIX}{py_file.stem}"
            module = self._load_file(module_name, py_file)
            if module is None:
                continue

            for _attr_name, cls in inspect.getmembers(module, inspect.isclass):
                if cls.__module__ == module_name and self._has_hook_impls(cls):
                    self._register_class(cls, module_name)

    @staticmethod
    def _load_file(module_name: str, py_file: Path) -> ModuleType | None:
        spec = importlib.util.spec_from_file_location(module_name, py_file)
        if spec is None or spec.loader is None:
            logger.warning("Could not create module spec for %s", py_file)
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
            sys.modules.pop(module_name, None)
            return None
        return module

    def _instantiate_entry_point_classes(self) -> None:
        # Entry points may name a class; its hookimpls would be called unbound.
        for plugin in list(self._pm.get_plugins()):
            if inspect.isclass(plugin) and self._has_hook_impls(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._register_class(plugin, name)

    def _register_class(self, cls: type, name: str) -> None:
        try:
            self.register_plugin(cls(), name=name)
        except Exception:
            logger.warning("Failed to instantiate plugin class %s", cls.__name__, exc_info=True)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether *cls* implements ``modcore_extensions`` with ``@hookimpl``."""
        method = getattr(cls, "modcore_extensions", None)
        return callable(method) and getattr(method, f"{PROJECT_NAME}_impl", None) is not None
