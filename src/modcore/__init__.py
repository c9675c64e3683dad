"""modcore — an in-process module runtime.

Modules are registered with a :class:`~modcore.kernel.core.Core`, started
and stopped as isolated instances, talk to each other over an asynchronous
topic bus, and are extended through a hook pipeline that wraps every
lifecycle-sensitive operation.
"""

from __future__ import annotations

__version__ = "0.1.0"

from modcore.errors import (
    ArgumentError,
    ExtensionFaultError,
    LifecycleError,
    MessageDeliveryError,
    ModcoreError,
    ModuleFaultError,
)
from modcore.kernel.core import Core
from modcore.kernel.host import EventHost
from modcore.kernel.pipeline import HookPipeline, HookType
from modcore.kernel.sandbox import Sandbox

__all__ = [
    "ArgumentError",
    "Core",
    "EventHost",
    "ExtensionFaultError",
    "HookPipeline",
    "HookType",
    "LifecycleError",
    "MessageDeliveryError",
    "ModcoreError",
    "ModuleFaultError",
    "Sandbox",
    "__version__",
]
