"""Tests for the lifecycle-logger extension."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest

from modcore.config.logging import configure_logging
from modcore.kernel.core import Core
from modcore.kernel.pipeline import HookType
from modcore.plugins.builtins.lifecycle_logger import LifecycleLogger
from tests.conftest import ManualScheduler, module_factory


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    modcore = logging.getLogger("modcore")
    modcore_level = modcore.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    modcore.setLevel(modcore_level)


def _events(captured: str) -> list[dict]:
    return [json.loads(line) for line in captured.strip().splitlines() if line.startswith("{")]


class TestLifecycleLogger:
    def test_install_covers_lifecycle_hooks(self, core: Core):
        plugins = LifecycleLogger().install(core)
        assert set(plugins) == {
            HookType.MODULE_ADD,
            HookType.MODULE_INIT,
            HookType.MODULE_DESTROY,
            HookType.MESSAGE_PUBLISH,
        }

    def test_message_logging_can_be_disabled(self, core: Core):
        plugins = LifecycleLogger(log_messages=False).install(core)
        assert HookType.MESSAGE_PUBLISH not in plugins

    def test_logs_module_lifecycle(
        self,
        core: Core,
        scheduler: ManualScheduler,
        capfd: pytest.CaptureFixture[str],
    ):
        configure_logging(verbose=True, log_json=True)
        core.use([LifecycleLogger()])
        core.init()
        scheduler.run_pending()

        core.add_module("m", module_factory()[0])
        core.start_module("m", instance_id="x")
        core.publish_async({"type": "ping"})
        core.stop_module("m", "x")

        events = _events(capfd.readouterr().err)
        by_event = {e["event"]: e for e in events if e.get("logger") == "modcore.lifecycle"}
        assert by_event["module added"]["module_id"] == "m"
        assert by_event["module started"]["instance_id"] == "x"
        assert by_event["message published"]["message_type"] == "ping"
        assert by_event["module destroyed"]["module_id"] == "m"

    def test_failed_init_is_not_logged_as_started(
        self,
        core: Core,
        scheduler: ManualScheduler,
        capfd: pytest.CaptureFixture[str],
    ):
        configure_logging(verbose=True, log_json=True)
        core.use([LifecycleLogger()])
        core.init()
        core.add_module("m", module_factory(fail_init=True)[0])

        core.start_module("m")

        events = _events(capfd.readouterr().err)
        assert "module started" not in {e["event"] for e in events}
