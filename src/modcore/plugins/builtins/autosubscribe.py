"""Built-in extension: subscribe modules to the topics they ask for.

After a module's ``init`` ran, its ``module_will_subscribe()`` result is
subscribed to ``module_did_receive_message``. Before its ``destroy`` runs,
every one of those subscriptions is removed, so ``destroy`` never races with
pending inbound messages.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from modcore.kernel.guard import require_callable
from modcore.kernel.pipeline import HookType

if TYPE_CHECKING:
    from modcore.kernel.core import Core
    from modcore.kernel.types import Module, Plugin

EXTENSION_NAME = "module-autosubscribe"


def _subscribe(module: Module) -> None:
    sandbox = module.sandbox
    core = sandbox.extensions_only_core

    will_subscribe = getattr(module, "module_will_subscribe", None)
    if not callable(will_subscribe):
        return
    message_types = core.create_hook(HookType.MODULE_SUBSCRIBE, will_subscribe, module)()
    if not message_types:
        return

    require_callable(
        getattr(module, "module_did_receive_message", None),
        f'"{sandbox.module_id}" must implement module_did_receive_message in order to subscribe',
    )
    receive = core.create_hook(
        HookType.MODULE_RECEIVE_MESSAGE, module.module_did_receive_message, module
    )
    try:
        for message_type in dict.fromkeys(message_types):
            sandbox.unsubscribers[message_type] = core.on_message(message_type, receive)
    except BaseException:
        _unsubscribe(module)
        raise


def _unsubscribe(module: Module) -> None:
    unsubscribers = module.sandbox.unsubscribers
    while unsubscribers:
        _message_type, unsubscribe = unsubscribers.popitem()
        unsubscribe()


def _on_module_init(next_: Callable[..., Any], module: Module, *args: Any, **kwargs: Any) -> Any:
    result = next_()
    _subscribe(module)
    return result


def _on_module_destroy(next_: Callable[..., Any], module: Module, *args: Any, **kwargs: Any) -> Any:
    _unsubscribe(module)
    return next_()


class ModuleAutosubscribe:
    """Extension wiring :func:`_subscribe` / :func:`_unsubscribe` around init/destroy."""

    name = EXTENSION_NAME

    def install(self, core: Core) -> dict[str, Plugin]:
        return {
            HookType.MODULE_INIT: _on_module_init,
            HookType.MODULE_DESTROY: _on_module_destroy,
        }
