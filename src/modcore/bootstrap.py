"""Wire settings, discovered extensions and built-ins into a ready-to-init Core."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from modcore.config.settings import ModcoreSettings
from modcore.kernel.core import Core
from modcore.plugins.builtins.lifecycle_logger import LifecycleLogger
from modcore.plugins.manager import PluginManager

if TYPE_CHECKING:
    from modcore.kernel.host import Host
    from modcore.kernel.types import Extension, Scheduler

logger = logging.getLogger(__name__)

SOURCE_BUILTIN = "builtin"
SOURCE_DISCOVERED = "discovered"


@dataclass(frozen=True)
class PlannedExtension:
    """An extension ``build_core`` is going to ``use()``, and where it came from."""

    extension: Extension
    source: str

    @property
    def name(self) -> str:
        return self.extension.name


def plan_extensions(
    settings: ModcoreSettings,
    *,
    plugin_manager: PluginManager | None = None,
) -> list[PlannedExtension]:
    """Resolve the extensions a core built from *settings* would install.

    Order: discovered extensions in plugin registration order, then
    ``lifecycle-logger`` when enabled. Names in ``extensions.disabled`` are
    dropped. The always-on ``module-autosubscribe`` is not part of the plan;
    every ``Core`` queues it itself.
    """
    disabled = set(settings.extensions.disabled)
    planned: list[PlannedExtension] = []

    if settings.extensions.discover:
        pm = plugin_manager or PluginManager()
        if not pm.is_loaded:
            pm.discover_and_load(local_dir=settings.extensions.local_dir)
        planned.extend(
            PlannedExtension(extension, SOURCE_DISCOVERED) for extension in pm.collect_extensions()
        )

    if settings.lifecycle_log.enabled:
        planned.append(
            PlannedExtension(
                LifecycleLogger(log_messages=settings.lifecycle_log.log_messages),
                SOURCE_BUILTIN,
            )
        )

    result: list[PlannedExtension] = []
    seen: set[str] = set()
    for item in planned:
        if item.name in disabled:
            logger.debug("Extension %s disabled by settings", item.name)
            continue
        if item.name in seen:
            logger.warning("Skipping duplicate extension %s (%s)", item.name, item.source)
            continue
        seen.add(item.name)
        result.append(item)
    return result


def build_core(
    settings: ModcoreSettings | None = None,
    *,
    host: Host | None = None,
    scheduler: Scheduler | None = None,
    plugin_manager: PluginManager | None = None,
) -> Core:
    """Create a Core with every planned extension queued. ``init()`` is left to the caller."""
    settings = settings or ModcoreSettings.from_cli()
    core = Core(host=host, scheduler=scheduler)
    planned = plan_extensions(settings, plugin_manager=plugin_manager)
    core.use([item.extension for item in planned if item.name not in core.extensions])
    logger.debug("Built core with extensions: %s", ", ".join(core.extensions))
    return core
