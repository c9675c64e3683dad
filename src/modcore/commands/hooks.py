"""Command: list the standard hooks and the operation each one wraps."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from modcore.kernel.pipeline import HookType

if TYPE_CHECKING:
    from modcore.commands._context import AppContext

# hook -> (plugin context, wrapped operation)
HOOK_TARGETS: dict[HookType, tuple[str, str]] = {
    HookType.CORE_INIT: ("core", "init(on_init) callback"),
    HookType.MODULE_ADD: ("core", "Core.add_module"),
    HookType.MODULE_START: ("core", "Core.start_module"),
    HookType.MODULE_STOP: ("core", "Core.stop_module"),
    HookType.MODULE_INIT: ("module", "Module.init"),
    HookType.MODULE_DESTROY: ("module", "Module.destroy"),
    HookType.MODULE_SUBSCRIBE: ("module", "Module.module_will_subscribe"),
    HookType.MODULE_RECEIVE_MESSAGE: ("module", "Module.module_did_receive_message"),
    HookType.MODULE_RECEIVE_PROPS: ("module", "Module.module_did_receive_props"),
    HookType.MESSAGE_SUBSCRIBE: ("core", "Core.on_message"),
    HookType.MESSAGE_PUBLISH: ("core", "Core.publish_async"),
    HookType.SANDBOX_START_MODULE: ("sandbox", "Sandbox.start_module"),
    HookType.SANDBOX_STOP_MODULE: ("sandbox", "Sandbox.stop_module"),
    HookType.SANDBOX_PUBLISH: ("sandbox", "Sandbox.publish_async"),
}


@click.command()
@click.pass_obj
def hooks(app: AppContext) -> None:
    """List standard hook types."""
    rows = [
        {"name": str(hook_type), "context": context, "wraps": target}
        for hook_type, (context, target) in HOOK_TARGETS.items()
    ]
    app.emit("Hooks", rows)
