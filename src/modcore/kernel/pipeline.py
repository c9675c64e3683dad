"""Hook pipeline — onion-style plugin chains keyed by hook type.

Given plugins ``P1..Pn`` registered on a hook, one invocation runs::

    P1(next=lambda: P2(next=lambda: ... Pn(next=lambda: method(*args)) ...))

``P1`` runs first and decides, by calling ``next`` or not, whether the rest
of the chain and the wrapped method execute. Exceptions propagate through
every enclosing ``next()`` and abort the remainder of the chain.

INVARIANT: Plugin order for a hook equals registration order and never
changes once the pipeline is sealed.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from modcore.errors import LifecycleError
from modcore.kernel.guard import require_callable, require_non_empty_string
from modcore.kernel.types import Plugin

logger = logging.getLogger(__name__)


class HookType(StrEnum):
    """Hooks wired by the core itself."""

    CORE_INIT = "on_core_init"
    MODULE_ADD = "on_module_add"
    MODULE_START = "on_module_start"
    MODULE_STOP = "on_module_stop"
    MODULE_INIT = "on_module_init"
    MODULE_DESTROY = "on_module_destroy"
    MODULE_SUBSCRIBE = "on_module_subscribe"
    MODULE_RECEIVE_MESSAGE = "on_module_receive_message"
    MODULE_RECEIVE_PROPS = "on_module_receive_props"
    MESSAGE_SUBSCRIBE = "on_message_subscribe"
    MESSAGE_PUBLISH = "on_message_publish"
    SANDBOX_START_MODULE = "on_sandbox_start_module"
    SANDBOX_STOP_MODULE = "on_sandbox_stop_module"
    SANDBOX_PUBLISH = "on_sandbox_publish"


class HookedCallable:
    """A method wrapped into the pipeline under one hook type.

    Calling it is equivalent to ``pipeline.run(hook_type, method, context, ...)``.
    """

    def __init__(
        self,
        pipeline: HookPipeline,
        hook_type: str,
        method: Callable[..., Any],
        context: Any,
    ) -> None:
        # update_wrapper copies the method's __dict__, so our fields go last.
        functools.update_wrapper(self, method)
        self._pipeline = pipeline
        self.hook_type = hook_type
        self.context = context

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._pipeline.run(self.hook_type, self.__wrapped__, self.context, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<HookedCallable {self.hook_type} -> {self.__wrapped__!r}>"


class HookPipeline:
    """Registry of plugin chains and the composition algorithm that runs them."""

    def __init__(self) -> None:
        self._plugins: dict[str, list[Plugin]] = {}
        self._sealed = False

    @property
    def is_sealed(self) -> bool:
        """Whether the install phase is over."""
        return self._sealed

    def seal(self) -> None:
        """End the install phase; later ``add_plugin`` calls fail."""
        self._sealed = True

    def add_plugin(self, hook_type: str, plugin: Plugin) -> None:
        """Append *plugin* to the chain of *hook_type*."""
        require_non_empty_string(hook_type, "add_plugin(): hook type must be a non empty string")
        require_callable(plugin, f'add_plugin(): "{hook_type}" plugin must be callable')
        if self._sealed:
            msg = f'add_plugin(): "{hook_type}" plugins must be added before init'
            raise LifecycleError(msg)

        self._plugins.setdefault(hook_type, []).append(plugin)
        logger.debug("Added plugin %r on hook %s", plugin, hook_type)

    def plugins(self, hook_type: str) -> tuple[Plugin, ...]:
        """Return the chain registered for *hook_type* in execution order."""
        return tuple(self._plugins.get(hook_type, ()))

    def hook_types(self) -> list[str]:
        """Return every hook type that has at least one plugin."""
        return list(self._plugins)

    def create_hook(
        self,
        hook_type: str,
        method: Callable[..., Any],
        context: Any = None,
    ) -> HookedCallable:
        """Wrap *method* so each call runs through the *hook_type* chain."""
        require_non_empty_string(hook_type, "create_hook(): type must be a non empty string")
        require_callable(method, f'create_hook(): "{hook_type}" method must be callable')
        return HookedCallable(self, hook_type, method, context)

    def run(
        self,
        hook_type: str,
        method: Callable[..., Any],
        context: Any,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Invoke *method* once through the chain registered for *hook_type*.

        Each plugin is called as ``plugin(next, context, *args, **kwargs)``.
        ``next()`` forwards the arguments the plugin received;
        ``next(*new_args, **new_kwargs)`` forwards replacements instead.
        """
        plugins = self._plugins.get(hook_type)
        if not plugins:
            return method(*args, **kwargs)

        chain = tuple(plugins)

        def call(index: int, call_args: tuple[Any, ...], call_kwargs: dict[str, Any]) -> Any:
            if index == len(chain):
                return method(*call_args, **call_kwargs)

            def next_(*new_args: Any, **new_kwargs: Any) -> Any:
                if new_args or new_kwargs:
                    return call(index + 1, new_args, new_kwargs)
                return call(index + 1, call_args, call_kwargs)

            return chain[index](next_, context, *call_args, **call_kwargs)

        return call(0, args, kwargs)
