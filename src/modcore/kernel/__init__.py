"""Orchestration kernel — hook pipeline, message bus, sandbox, and registry."""

from modcore.kernel.core import Core, ModuleDescriptor, ModuleInstance
from modcore.kernel.host import EventHost, Host
from modcore.kernel.message_bus import MessageBus, loop_scheduler
from modcore.kernel.pipeline import HookedCallable, HookPipeline, HookType
from modcore.kernel.sandbox import Sandbox

__all__ = [
    "Core",
    "EventHost",
    "HookPipeline",
    "HookType",
    "HookedCallable",
    "Host",
    "MessageBus",
    "ModuleDescriptor",
    "ModuleInstance",
    "Sandbox",
    "loop_scheduler",
]
