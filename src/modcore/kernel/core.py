"""Core — module registry, lifecycle state machine, and extension host.

Per ``(module_id, instance_id)``::

    unregistered --add_module--> registered --start_module--> running
    running --stop_module--> registered

Registration, start and stop run synchronously inside the caller's stack,
including their whole hook chains; only message delivery and the
``on_core_init`` callback are deferred.

INVARIANT: A faulty module never becomes running and never leaves a slot
behind. Factory and ``init`` faults roll back; ``destroy`` faults still free
the slot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from modcore.errors import ExtensionFaultError, LifecycleError, ModuleFaultError
from modcore.kernel.guard import (
    require,
    require_callable,
    require_non_empty_string,
    require_not,
)
from modcore.kernel.host import READY_EVENT, EventHost, Host
from modcore.kernel.message_bus import MessageBus, loop_scheduler
from modcore.kernel.pipeline import HookedCallable, HookPipeline, HookType
from modcore.kernel.sandbox import Sandbox
from modcore.kernel.types import (
    Extension,
    Message,
    MessageHandler,
    Module,
    ModuleFactory,
    Plugin,
    Scheduler,
    Unsubscribe,
)
from modcore.plugins.builtins.autosubscribe import ModuleAutosubscribe

logger = logging.getLogger(__name__)


@dataclass
class ModuleInstance:
    """A running module together with the sandbox it was built with."""

    module: Module
    sandbox: Sandbox


@dataclass
class ModuleDescriptor:
    """Registration record of one module id. Only ``instances`` ever changes."""

    module_id: str
    factory: ModuleFactory
    instances: dict[str, ModuleInstance] = field(default_factory=dict)


def _noop() -> None:
    return None


class Core:
    """Mediator between modules.

    Parameters:
        pipeline: Hook pipeline shared by the core, its sandboxes and extensions.
        bus: Message bus used by ``on_message`` / ``publish_async``.
        host: Environment collaborator consulted by ``init()``.
        scheduler: ``scheduler(callback, *args)`` for deferred work. Also
            used for the default bus. Defaults to the running asyncio loop.
    """

    sandbox_class: type[Sandbox] = Sandbox

    def __init__(
        self,
        pipeline: HookPipeline | None = None,
        bus: MessageBus | None = None,
        *,
        host: Host | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._scheduler: Scheduler = scheduler or loop_scheduler
        self._pipeline = pipeline or HookPipeline()
        self._bus = bus or MessageBus(self._scheduler)
        self._host: Host = host or EventHost()
        self._extensions: dict[str, Extension] = {}
        self._modules: dict[str, ModuleDescriptor] = {}
        self._is_initialized = False
        self._is_ready = False
        self._on_init: HookedCallable | None = None
        self._detach_ready: Unsubscribe | None = None
        self.use([ModuleAutosubscribe()])

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        from modcore import __version__

        return __version__

    @property
    def extensions(self) -> list[str]:
        """Names of installed (or queued) extensions, in install order."""
        return list(self._extensions)

    @property
    def modules(self) -> list[str]:
        """Ids of every added module."""
        return list(self._modules)

    @property
    def running_modules(self) -> dict[str, list[str]]:
        """Module id -> ids of its currently running instances."""
        return {
            module_id: list(descriptor.instances)
            for module_id, descriptor in self._modules.items()
        }

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def is_ready(self) -> bool:
        """Whether the ``on_core_init`` callback has run."""
        return self._is_ready

    @property
    def pipeline(self) -> HookPipeline:
        return self._pipeline

    @property
    def bus(self) -> MessageBus:
        return self._bus

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def use(self, extensions: Iterable[Extension]) -> None:
        """Queue *extensions* for installation at ``init()``.

        The whole batch is validated before any extension is queued.
        """
        if self._is_initialized:
            raise LifecycleError("use(): extensions must be installed before init")
        require(
            isinstance(extensions, Iterable) and not isinstance(extensions, (str, bytes, Mapping)),
            "use(): extensions must be passed as an iterable",
        )

        batch: dict[str, Extension] = {}
        for extension in extensions:
            name = getattr(extension, "name", None)
            require_non_empty_string(name, "use(): extension name must be a non empty string")
            require_callable(
                getattr(extension, "install", None),
                f'use(): "{name}" install must be callable',
            )
            require_not(
                name in self._extensions or name in batch,
                f'use(): "{name}" has already been used',
            )
            batch[name] = extension

        self._extensions.update(batch)

    def create_hook(
        self,
        hook_type: str,
        method: Callable[..., Any],
        context: Any = None,
    ) -> HookedCallable:
        """Wrap *method* into the pipeline under *hook_type*."""
        return self._pipeline.create_hook(hook_type, method, context)

    def init(self, on_init: Callable[[], Any] | None = None) -> None:
        """Install extensions, then run *on_init* once the host is ready."""
        if self._is_initialized:
            raise LifecycleError("init(): core has already been initialized")
        if on_init is not None:
            require_callable(on_init, "init(): on_init must be callable")

        self._on_init = self.create_hook(HookType.CORE_INIT, on_init or _noop, self)
        self._install_extensions()
        self._pipeline.seal()
        self._is_initialized = True

        if self._host.is_ready():
            self._scheduler(self._on_host_ready)
        else:
            self._detach_ready = self._host.attach(READY_EVENT, self._on_host_ready)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_module(self, module_id: str, factory: ModuleFactory) -> None:
        """Register *factory* under *module_id*."""
        self._pipeline.run(HookType.MODULE_ADD, self._add_module, self, module_id, factory)

    def start_module(
        self,
        module_id: str,
        *,
        instance_id: str | None = None,
        props: Any = None,
    ) -> None:
        """Start an instance of *module_id*, or hand new props to a running one."""
        self._pipeline.run(
            HookType.MODULE_START,
            self._start_module,
            self,
            module_id,
            instance_id=instance_id,
            props=props,
        )

    def stop_module(self, module_id: str, instance_id: str | None = None) -> None:
        """Stop a running instance. Unknown or stopped instances are a logged no-op."""
        self._pipeline.run(HookType.MODULE_STOP, self._stop_module, self, module_id, instance_id)

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def on_message(self, message_type: str, handler: MessageHandler) -> Unsubscribe:
        """Subscribe *handler* to messages of *message_type*."""
        return self._pipeline.run(
            HookType.MESSAGE_SUBSCRIBE, self._bus.on_message, self, message_type, handler
        )

    def publish_async(self, message: Message) -> None:
        """Deliver *message* to its subscribers on a later loop tick."""
        self._pipeline.run(HookType.MESSAGE_PUBLISH, self._bus.publish_async, self, message)

    async def drain(self) -> None:
        """Wait until every scheduled message delivery has run.

        Requires the default loop scheduler; see :meth:`MessageBus.drain`.
        """
        await self._bus.drain()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _add_module(self, module_id: str, factory: ModuleFactory) -> None:
        require_non_empty_string(module_id, "add_module(): id must be a non empty string")
        require_not(module_id in self._modules, f'add_module(): "{module_id}" has already been added')
        require_callable(factory, f'add_module(): "{module_id}" factory must be callable')

        self._modules[module_id] = ModuleDescriptor(module_id=module_id, factory=factory)
        logger.debug("Added module %s", module_id)

    def _start_module(
        self,
        module_id: str,
        *,
        instance_id: str | None = None,
        props: Any = None,
    ) -> None:
        if not self._is_initialized:
            raise LifecycleError("start_module(): core must be initialized first")
        descriptor = self._modules.get(module_id)
        if descriptor is None:
            raise LifecycleError(f'start_module(): "{module_id}" not found')

        instance_id = module_id if instance_id is None else instance_id
        require_non_empty_string(
            instance_id, f'start_module(): "{module_id}" instance id must be a non empty string'
        )

        running = descriptor.instances.get(instance_id)
        if running is not None:
            self._receive_props(descriptor, instance_id, running, props)
            return

        instance = self._create_instance(descriptor, instance_id)
        if instance is None:
            return

        descriptor.instances[instance_id] = instance
        try:
            self._pipeline.run(HookType.MODULE_INIT, instance.module.init, instance.module, props)
        except Exception:
            if descriptor.instances.get(instance_id) is instance:
                del descriptor.instances[instance_id]
            logger.error(
                "start_module(): %s", ModuleFaultError(module_id, instance_id, "init"), exc_info=True
            )
            return

        logger.debug("Started module %s (instance %s)", module_id, instance_id)

    def _receive_props(
        self,
        descriptor: ModuleDescriptor,
        instance_id: str,
        running: ModuleInstance,
        props: Any,
    ) -> None:
        receive = getattr(running.module, "module_did_receive_props", None)
        if not callable(receive):
            logger.debug(
                "start_module(): %s instance %s is already running",
                descriptor.module_id,
                instance_id,
            )
            return

        try:
            self._pipeline.run(HookType.MODULE_RECEIVE_PROPS, receive, running.module, props)
        except Exception:
            logger.error(
                "start_module(): %s",
                ModuleFaultError(descriptor.module_id, instance_id, "receive_props"),
                exc_info=True,
            )

    def _create_instance(
        self, descriptor: ModuleDescriptor, instance_id: str
    ) -> ModuleInstance | None:
        module_id = descriptor.module_id
        sandbox = self.sandbox_class(self, module_id, instance_id)
        try:
            module = descriptor.factory(sandbox)
            require(
                getattr(module, "sandbox", None) is sandbox,
                f'start_module(): "{module_id}" must keep the sandbox passed to its factory',
            )
            require_callable(
                getattr(module, "init", None), f'start_module(): "{module_id}" must implement init'
            )
            require_callable(
                getattr(module, "destroy", None),
                f'start_module(): "{module_id}" must implement destroy',
            )
        except Exception:
            logger.error(
                "start_module(): %s",
                ModuleFaultError(module_id, instance_id, "create"),
                exc_info=True,
            )
            return None

        return ModuleInstance(module=module, sandbox=sandbox)

    def _stop_module(self, module_id: str, instance_id: str | None = None) -> None:
        descriptor = self._modules.get(module_id)
        if descriptor is None:
            logger.warning('stop_module(): "%s" not found', module_id)
            return

        instance_id = module_id if instance_id is None else instance_id
        instance = descriptor.instances.get(instance_id)
        if instance is None:
            logger.warning(
                'stop_module(): "%s" instance "%s" is not running', module_id, instance_id
            )
            return

        try:
            self._pipeline.run(HookType.MODULE_DESTROY, instance.module.destroy, instance.module)
        except Exception:
            logger.error(
                "stop_module(): %s",
                ModuleFaultError(module_id, instance_id, "destroy"),
                exc_info=True,
            )
        finally:
            if descriptor.instances.get(instance_id) is instance:
                del descriptor.instances[instance_id]

        logger.debug("Stopped module %s (instance %s)", module_id, instance_id)

    def _install_extensions(self) -> None:
        # Nothing reaches the pipeline until every extension installed cleanly.
        staged: list[tuple[str, Plugin]] = []
        for extension in self._extensions.values():
            staged.extend(self._install(extension))
        for hook_type, plugin in staged:
            self._pipeline.add_plugin(hook_type, plugin)

    def _install(self, extension: Extension) -> list[tuple[str, Plugin]]:
        try:
            plugins = extension.install(self)
        except Exception as exc:
            raise ExtensionFaultError(extension.name, f"install failed: {exc}") from exc

        if plugins is None:
            plugins = {}
        if not isinstance(plugins, Mapping):
            raise ExtensionFaultError(
                extension.name, "install must return a mapping of hook type to plugin"
            )

        for hook_type, plugin in plugins.items():
            require_non_empty_string(
                hook_type, f'install(): "{extension.name}" hook type must be a non empty string'
            )
            require_callable(
                plugin, f'install(): "{extension.name}" plugin for "{hook_type}" must be callable'
            )
        logger.debug("Installed extension %s (%d plugins)", extension.name, len(plugins))
        return list(plugins.items())

    def _on_host_ready(self) -> None:
        if self._detach_ready is not None:
            self._detach_ready()
            self._detach_ready = None
        assert self._on_init is not None
        self._on_init()
        self._is_ready = True
