"""Tests for HookPipeline — onion composition, ordering, and failures."""

from __future__ import annotations

from typing import Any

import pytest

from modcore.errors import ArgumentError, LifecycleError
from modcore.kernel.pipeline import HookedCallable, HookPipeline, HookType


def _recording_plugin(name: str, calls: list[str]):
    def plugin(next_, context, *args, **kwargs):
        calls.append(f"{name}:before")
        result = next_()
        calls.append(f"{name}:after")
        return result

    return plugin


class TestAddPlugin:
    def test_rejects_empty_hook_type(self):
        pipeline = HookPipeline()
        with pytest.raises(ArgumentError, match="hook type"):
            pipeline.add_plugin("", lambda next_, ctx: next_())

    def test_rejects_non_callable_plugin(self):
        pipeline = HookPipeline()
        with pytest.raises(ArgumentError, match="must be callable"):
            pipeline.add_plugin("on_thing", "not a function")  # type: ignore[arg-type]

    def test_plugins_listed_in_registration_order(self):
        pipeline = HookPipeline()
        first = lambda next_, ctx: next_()  # noqa: E731
        second = lambda next_, ctx: next_()  # noqa: E731
        pipeline.add_plugin("on_thing", first)
        pipeline.add_plugin("on_thing", second)
        assert pipeline.plugins("on_thing") == (first, second)
        assert pipeline.hook_types() == ["on_thing"]

    def test_sealed_pipeline_rejects_plugins(self):
        pipeline = HookPipeline()
        pipeline.seal()
        assert pipeline.is_sealed is True
        with pytest.raises(LifecycleError, match="before init"):
            pipeline.add_plugin("on_thing", lambda next_, ctx: next_())


class TestRun:
    def test_no_plugins_calls_method_directly(self):
        pipeline = HookPipeline()
        assert pipeline.run("on_sum", lambda a, b: a + b, None, 2, 3) == 5

    def test_plugins_run_in_registration_order_around_method(self):
        pipeline = HookPipeline()
        calls: list[str] = []
        for name in ("p1", "p2", "p3"):
            pipeline.add_plugin("on_op", _recording_plugin(name, calls))

        def method() -> str:
            calls.append("method")
            return "done"

        assert pipeline.run("on_op", method, None) == "done"
        assert calls == [
            "p1:before",
            "p2:before",
            "p3:before",
            "method",
            "p3:after",
            "p2:after",
            "p1:after",
        ]

    def test_each_plugin_runs_exactly_once_per_call(self):
        pipeline = HookPipeline()
        counts = {"a": 0, "b": 0}

        def counting(name: str):
            def plugin(next_, context):
                counts[name] += 1
                return next_()

            return plugin

        pipeline.add_plugin("on_op", counting("a"))
        pipeline.add_plugin("on_op", counting("b"))
        pipeline.run("on_op", lambda: None, None)
        assert counts == {"a": 1, "b": 1}

    def test_plugin_not_calling_next_vetoes_method(self):
        pipeline = HookPipeline()
        calls: list[str] = []
        pipeline.add_plugin("on_op", lambda next_, ctx: "vetoed")
        pipeline.add_plugin("on_op", _recording_plugin("later", calls))

        result = pipeline.run("on_op", lambda: calls.append("method"), None)

        assert result == "vetoed"
        assert calls == []

    def test_plugin_receives_explicit_context_and_args(self):
        pipeline = HookPipeline()
        seen: list[Any] = []
        context = object()

        def plugin(next_, ctx, *args, **kwargs):
            seen.append((ctx, args, kwargs))
            return next_()

        pipeline.add_plugin("on_op", plugin)
        pipeline.run("on_op", lambda x, *, flag: x, context, 1, flag=True)
        assert seen == [(context, (1,), {"flag": True})]

    def test_plugin_can_replace_arguments(self):
        pipeline = HookPipeline()
        seen: list[int] = []

        def doubler(next_, ctx, value):
            return next_(value * 2)

        def observer(next_, ctx, value):
            seen.append(value)
            return next_()

        pipeline.add_plugin("on_op", doubler)
        pipeline.add_plugin("on_op", observer)

        assert pipeline.run("on_op", lambda value: value + 1, None, 5) == 11
        assert seen == [10]

    def test_plugin_can_transform_result(self):
        pipeline = HookPipeline()
        pipeline.add_plugin("on_op", lambda next_, ctx: next_().upper())
        assert pipeline.run("on_op", lambda: "quiet", None) == "QUIET"

    def test_plugin_exception_aborts_rest_of_chain(self):
        pipeline = HookPipeline()
        calls: list[str] = []

        def failing(next_, ctx):
            msg = "plugin exploded"
            raise RuntimeError(msg)

        pipeline.add_plugin("on_op", _recording_plugin("outer", calls))
        pipeline.add_plugin("on_op", failing)
        pipeline.add_plugin("on_op", _recording_plugin("inner", calls))

        with pytest.raises(RuntimeError, match="plugin exploded"):
            pipeline.run("on_op", lambda: calls.append("method"), None)
        assert calls == ["outer:before"]

    def test_method_exception_propagates_through_plugins(self):
        pipeline = HookPipeline()
        calls: list[str] = []
        pipeline.add_plugin("on_op", _recording_plugin("outer", calls))

        def method() -> None:
            msg = "method exploded"
            raise ValueError(msg)

        with pytest.raises(ValueError, match="method exploded"):
            pipeline.run("on_op", method, None)
        assert calls == ["outer:before"]

    def test_plugin_can_swallow_downstream_failure(self):
        pipeline = HookPipeline()

        def guard(next_, ctx):
            try:
                return next_()
            except ValueError:
                return "recovered"

        def method() -> None:
            raise ValueError

        pipeline.add_plugin("on_op", guard)
        assert pipeline.run("on_op", method, None) == "recovered"


class TestCreateHook:
    def test_returns_hooked_callable_with_metadata(self):
        pipeline = HookPipeline()

        def greet(name: str) -> str:
            """Say hello."""
            return f"hello {name}"

        hooked = pipeline.create_hook(HookType.MODULE_ADD, greet, "ctx")
        assert isinstance(hooked, HookedCallable)
        assert hooked.hook_type == HookType.MODULE_ADD
        assert hooked.context == "ctx"
        assert hooked.__wrapped__ is greet
        assert hooked.__name__ == "greet"
        assert hooked.__doc__ == "Say hello."
        assert hooked("world") == "hello world"

    def test_plugins_added_after_creation_apply(self):
        pipeline = HookPipeline()
        hooked = pipeline.create_hook("on_op", lambda: 1)
        pipeline.add_plugin("on_op", lambda next_, ctx: next_() + 1)
        assert hooked() == 2

    def test_wrapping_a_hooked_callable_keeps_outer_hook_type(self):
        pipeline = HookPipeline()
        inner = pipeline.create_hook("on_inner", lambda: "x")
        outer = pipeline.create_hook("on_outer", inner)
        assert outer.hook_type == "on_outer"
        assert outer() == "x"

    def test_rejects_bad_arguments(self):
        pipeline = HookPipeline()
        with pytest.raises(ArgumentError, match="type must be a non empty string"):
            pipeline.create_hook("", lambda: None)
        with pytest.raises(ArgumentError, match="method must be callable"):
            pipeline.create_hook("on_op", None)  # type: ignore[arg-type]
