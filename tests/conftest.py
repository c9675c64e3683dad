"""Shared pytest fixtures and test helpers for modcore tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from modcore.kernel.core import Core
from modcore.kernel.host import EventHost
from modcore.kernel.sandbox import Sandbox


class ManualScheduler:
    """Scheduler that queues callbacks until :meth:`run_pending` is called.

    Stands in for the event loop so tests can observe what happens before
    and after a "tick" deterministically.
    """

    def __init__(self) -> None:
        self.queue: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def __call__(self, callback: Callable[..., Any], *args: Any) -> None:
        self.queue.append((callback, args))

    def run_pending(self) -> int:
        """Run everything queued so far, including callbacks queued while running."""
        ran = 0
        while self.queue:
            callback, args = self.queue.pop(0)
            callback(*args)
            ran += 1
        return ran


class RecordingModule:
    """Module recording every lifecycle call it receives."""

    def __init__(
        self,
        sandbox: Sandbox,
        *,
        topics: list[str] | None = None,
        fail_init: bool = False,
        fail_destroy: bool = False,
    ) -> None:
        self.sandbox = sandbox
        self.topics = topics
        self.fail_init = fail_init
        self.fail_destroy = fail_destroy
        self.init_calls: list[Any] = []
        self.destroy_calls = 0
        self.received: list[Any] = []

    def init(self, props: Any = None) -> None:
        self.init_calls.append(props)
        if self.fail_init:
            msg = "init exploded"
            raise RuntimeError(msg)

    def destroy(self) -> None:
        self.destroy_calls += 1
        if self.fail_destroy:
            msg = "destroy exploded"
            raise RuntimeError(msg)

    def module_will_subscribe(self) -> list[str] | None:
        return self.topics

    def module_did_receive_message(self, message: Any) -> None:
        self.received.append(message)


class PropsModule(RecordingModule):
    """Module that also accepts new props while running."""

    def __init__(self, sandbox: Sandbox, **kwargs: Any) -> None:
        super().__init__(sandbox, **kwargs)
        self.props_calls: list[Any] = []

    def module_did_receive_props(self, props: Any) -> None:
        self.props_calls.append(props)


def module_factory(
    cls: type[RecordingModule] = RecordingModule, **kwargs: Any
) -> tuple[Callable[[Sandbox], RecordingModule], list[RecordingModule]]:
    """Return a factory building *cls* instances, and the list it appends them to."""
    created: list[RecordingModule] = []

    def factory(sandbox: Sandbox) -> RecordingModule:
        module = cls(sandbox, **kwargs)
        created.append(module)
        return module

    return factory, created


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def host() -> EventHost:
    return EventHost()


@pytest.fixture
def core(scheduler: ManualScheduler, host: EventHost) -> Core:
    """A core that has not been initialized yet."""
    return Core(scheduler=scheduler, host=host)


@pytest.fixture
def ready_core(core: Core, scheduler: ManualScheduler) -> Core:
    """An initialized core whose ``on_core_init`` callback already ran."""
    core.init()
    scheduler.run_pending()
    return core
