"""Host environment collaborator.

The core never probes its environment directly; it asks an injected
:class:`Host` whether it is ready and, if not, attaches to the host's
``"ready"`` event.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from modcore.kernel.guard import require_callable, require_non_empty_string
from modcore.kernel.types import Unsubscribe

logger = logging.getLogger(__name__)

READY_EVENT = "ready"


@runtime_checkable
class Host(Protocol):
    """What the core needs from the environment it runs in."""

    def is_ready(self) -> bool: ...

    def attach(self, event_type: str, handler: Callable[[], Any]) -> Unsubscribe: ...


class EventHost:
    """In-process host with a readiness flag and named event listeners.

    Listeners fire synchronously, in attach order, on :meth:`emit`.
    """

    def __init__(self, *, ready: bool = True) -> None:
        self._ready = ready
        self._listeners: dict[str, list[Callable[[], Any]]] = {}

    def is_ready(self) -> bool:
        return self._ready

    def attach(self, event_type: str, handler: Callable[[], Any]) -> Unsubscribe:
        require_non_empty_string(event_type, "attach(): event type must be a non empty string")
        require_callable(handler, f'attach(): "{event_type}" handler must be callable')
        self._listeners.setdefault(event_type, []).append(handler)

        def detach() -> None:
            listeners = self._listeners.get(event_type, [])
            if handler in listeners:
                listeners.remove(handler)

        return detach

    def emit(self, event_type: str) -> None:
        """Call every listener currently attached to *event_type*."""
        for handler in list(self._listeners.get(event_type, ())):
            handler()

    def mark_ready(self) -> None:
        """Flip the readiness flag and fire ``"ready"`` listeners once."""
        if self._ready:
            return
        self._ready = True
        logger.debug("Host is ready")
        self.emit(READY_EVENT)
