"""Built-in extension: structured log events for module lifecycle and messaging.

Opt-in via ``[lifecycle_log] enabled = true``. Plugins log only after
``next`` returned, so failed adds, inits and publishes are not reported.
Destroy is the exception: its slot is freed even when ``destroy`` raises.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from modcore.kernel.pipeline import HookType

if TYPE_CHECKING:
    from modcore.kernel.core import Core
    from modcore.kernel.types import Message, Module, Plugin

EXTENSION_NAME = "lifecycle-logger"


class LifecycleLogger:
    """Extension logging add / start / stop / publish through structlog."""

    name = EXTENSION_NAME

    def __init__(self, *, log_messages: bool = True) -> None:
        self._log_messages = log_messages
        self._log = structlog.get_logger("modcore.lifecycle")

    def install(self, core: Core) -> dict[str, Plugin]:
        plugins: dict[str, Plugin] = {
            HookType.MODULE_ADD: self._on_module_add,
            HookType.MODULE_INIT: self._on_module_init,
            HookType.MODULE_DESTROY: self._on_module_destroy,
        }
        if self._log_messages:
            plugins[HookType.MESSAGE_PUBLISH] = self._on_message_publish
        return plugins

    def _on_module_add(
        self, next_: Callable[..., Any], core: Core, module_id: str, *args: Any
    ) -> Any:
        result = next_()
        self._log.info("module added", module_id=module_id)
        return result

    def _on_module_init(self, next_: Callable[..., Any], module: Module, *args: Any) -> Any:
        result = next_()
        sandbox = module.sandbox
        self._log.info(
            "module started", module_id=sandbox.module_id, instance_id=sandbox.instance_id
        )
        return result

    def _on_module_destroy(self, next_: Callable[..., Any], module: Module) -> Any:
        sandbox = module.sandbox
        try:
            return next_()
        finally:
            self._log.info(
                "module destroyed", module_id=sandbox.module_id, instance_id=sandbox.instance_id
            )

    def _on_message_publish(
        self, next_: Callable[..., Any], core: Core, message: Message
    ) -> Any:
        result = next_()
        self._log.debug("message published", message_type=message.get("type"))
        return result
