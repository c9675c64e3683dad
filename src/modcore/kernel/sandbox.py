"""Sandbox — the per-instance facade a module talks to.

A sandbox is bound to exactly one ``(core, module_id, instance_id)`` triple
for the lifetime of its module instance. Calls made through it re-enter the
core through dedicated hooks, so policy plugins can tell module-initiated
calls apart from host-initiated ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from modcore.kernel.pipeline import HookType

if TYPE_CHECKING:
    from modcore.kernel.core import Core
    from modcore.kernel.types import Message, Unsubscribe


class Sandbox:
    """Connects one module instance to the outside world."""

    def __init__(self, core: Core, module_id: str, instance_id: str) -> None:
        self._extensions_only_core = core
        self._module_id = module_id
        self._instance_id = instance_id
        # Populated by the module-autosubscribe extension.
        self.unsubscribers: dict[str, Unsubscribe] = {}
        self._start_module = core.create_hook(
            HookType.SANDBOX_START_MODULE, core.start_module, self
        )
        self._stop_module = core.create_hook(HookType.SANDBOX_STOP_MODULE, core.stop_module, self)
        self._publish_async = core.create_hook(HookType.SANDBOX_PUBLISH, core.publish_async, self)

    def __repr__(self) -> str:
        return f"Sandbox(module_id={self._module_id!r}, instance_id={self._instance_id!r})"

    @property
    def module_id(self) -> str:
        return self._module_id

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def extensions_only_core(self) -> Core:
        """The owning core. Reserved for extensions; modules must not use it."""
        return self._extensions_only_core

    def start_module(
        self,
        module_id: str,
        *,
        instance_id: str | None = None,
        props: Any = None,
    ) -> None:
        """Start an instance of *module_id* and initialize it."""
        self._start_module(module_id, instance_id=instance_id, props=props)

    def stop_module(self, module_id: str, instance_id: str | None = None) -> None:
        """Stop a running instance of *module_id*."""
        self._stop_module(module_id, instance_id)

    def publish_async(self, message: Message) -> None:
        """Publish *message* on the core's bus."""
        self._publish_async(message)
