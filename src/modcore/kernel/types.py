"""Structural contracts shared by the kernel, extensions and modules."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from modcore.kernel.core import Core
    from modcore.kernel.sandbox import Sandbox

Message: TypeAlias = Mapping[str, Any]
"""A message is any mapping carrying a non-empty string ``"type"`` key."""

MessageHandler: TypeAlias = Callable[[Message], Any]
Unsubscribe: TypeAlias = Callable[[], None]
Scheduler: TypeAlias = Callable[..., Any]
"""``scheduler(callback, *args)`` runs ``callback(*args)`` on a later tick."""

Plugin: TypeAlias = Callable[..., Any]
"""``plugin(next, context, *args, **kwargs) -> result``."""

ModuleFactory: TypeAlias = Callable[["Sandbox"], "Module"]


@runtime_checkable
class Module(Protocol):
    """Capability set every module instance must expose.

    Optional capabilities, looked up with ``getattr``:

    - ``module_will_subscribe() -> list[str]``
    - ``module_did_receive_message(message)``
    - ``module_did_receive_props(props)``
    """

    sandbox: Sandbox

    def init(self, props: Any = None) -> None: ...

    def destroy(self) -> None: ...


@runtime_checkable
class Extension(Protocol):
    """A named bundle of plugins, installed once before ``Core.init()``."""

    name: str

    def install(self, core: Core) -> Mapping[str, Plugin] | None: ...
