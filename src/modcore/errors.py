"""Error hierarchy for modcore.

Policy:
- Caller misuse (``ArgumentError``, ``LifecycleError``) is raised immediately.
- Module faults (``ModuleFaultError``) are logged at the registry boundary
  and rolled back; they never reach the host.
- Handler faults (``MessageDeliveryError``) are logged per handler; the
  publisher never sees them.
- Extension faults propagate and abort the operation in progress.
"""

from __future__ import annotations


class ModcoreError(Exception):
    """Base class for all modcore errors."""


class ArgumentError(ModcoreError, ValueError):
    """An argument failed validation (bad id, non-callable, duplicate, ...)."""


class LifecycleError(ModcoreError):
    """An operation was attempted in the wrong lifecycle phase."""


class ModuleFaultError(ModcoreError):
    """A module factory, ``init`` or ``destroy`` raised.

    Attributes:
        module_id: Registered id of the faulty module.
        instance_id: Instance the fault happened in.
        phase: One of ``"create"``, ``"init"``, ``"receive_props"``, ``"destroy"``.
    """

    def __init__(self, module_id: str, instance_id: str, phase: str) -> None:
        self.module_id = module_id
        self.instance_id = instance_id
        self.phase = phase
        super().__init__(f'"{module_id}" instance "{instance_id}" failed during {phase}')


class ExtensionFaultError(ModcoreError):
    """An extension could not be installed."""

    def __init__(self, extension_name: str, reason: str) -> None:
        self.extension_name = extension_name
        super().__init__(f'extension "{extension_name}": {reason}')


class MessageDeliveryError(ModcoreError):
    """A message handler raised while receiving a message."""

    def __init__(self, message_type: str) -> None:
        self.message_type = message_type
        super().__init__(f'receive "{message_type}" message failed')
