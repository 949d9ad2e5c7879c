"""Tests for private extension state and shared state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import pytest

from wefy.exceptions import InvalidModifierError, StateMutationError, ValidationError
from wefy.extensions.state import ExtensionContext, SharedState, StateStore, freeze, thaw
from wefy.extensions.types import StateChange


def _context(
    initial: Mapping[str, Any] | None = None,
    on_state_change: Any = None,
    shared: SharedState | None = None,
) -> ExtensionContext:
    store = StateStore("ext", initial, on_state_change=on_state_change)
    return ExtensionContext("ext", store, shared or SharedState())


class TestFreeze:
    def test_nested_values_become_read_only(self) -> None:
        frozen = freeze({"a": {"b": [1, {"c": 2}]}, "s": {1, 2}})
        with pytest.raises(TypeError):
            frozen["a"] = 1  # type: ignore[index]
        assert frozen["a"]["b"][0] == 1
        assert dict(frozen["a"]["b"][1]) == {"c": 2}
        assert frozen["s"] == frozenset({1, 2})

    def test_thaw_round_trip(self) -> None:
        data = {"a": [1, 2], "b": {"c": "d"}}
        assert thaw(freeze(data)) == data


class TestSetState:
    def test_initial_state_snapshot(self) -> None:
        ctx = _context({"count": 0})
        assert dict(ctx.extension_state) == {"count": 0}

    def test_missing_initial_state_is_empty(self) -> None:
        assert dict(_context().extension_state) == {}

    def test_reducer_returning_new_mapping(self) -> None:
        ctx = _context({"count": 1})
        new = ctx.set_state(lambda s: {**s, "count": s["count"] + 1})
        assert new["count"] == 2
        assert ctx.extension_state["count"] == 2

    def test_reducer_mutating_draft(self) -> None:
        ctx = _context({"items": [1]})

        def add(draft: dict[str, Any]) -> None:
            draft["items"].append(2)

        ctx.set_state(add)
        assert ctx.extension_state["items"] == (1, 2)

    def test_previous_snapshots_never_mutated(self) -> None:
        ctx = _context({"items": [1], "meta": {"v": 1}})
        snapshots = [ctx.extension_state]

        def grow(draft: dict[str, Any]) -> None:
            draft["items"].append(len(draft["items"]) + 1)
            draft["meta"]["v"] += 1

        for _ in range(3):
            ctx.set_state(grow)
            snapshots.append(ctx.extension_state)

        assert [s["items"] for s in snapshots] == [(1,), (1, 2), (1, 2, 3), (1, 2, 3, 4)]
        assert [s["meta"]["v"] for s in snapshots] == [1, 2, 3, 4]

    def test_snapshot_is_read_only(self) -> None:
        ctx = _context({"a": 1})
        with pytest.raises(TypeError):
            ctx.extension_state["a"] = 2  # type: ignore[index]

    def test_non_callable_reducer(self) -> None:
        ctx = _context()
        with pytest.raises(InvalidModifierError) as exc_info:
            ctx.set_state({"a": 1})  # type: ignore[arg-type]
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.extension_name == "ext"

    def test_failing_reducer_keeps_state(self) -> None:
        ctx = _context({"a": 1})

        def boom(draft: dict[str, Any]) -> None:
            draft["a"] = 99
            raise RuntimeError("nope")

        with pytest.raises(StateMutationError) as exc_info:
            ctx.set_state(boom)
        assert exc_info.value.extension_name == "ext"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert ctx.extension_state["a"] == 1

    def test_non_mapping_result(self) -> None:
        ctx = _context()
        with pytest.raises(StateMutationError):
            ctx.set_state(lambda s: [1, 2])  # type: ignore[arg-type, return-value]


class TestOnStateChange:
    def test_sync_callback_receives_change(self) -> None:
        seen: list[StateChange] = []
        ctx = _context({"n": 0}, on_state_change=lambda change, c: seen.append(change))
        ctx.set_state(lambda s: {"n": 1})
        assert len(seen) == 1
        assert seen[0].previous_state["n"] == 0
        assert seen[0].new_state["n"] == 1

    def test_failing_callback_keeps_committed_state(self) -> None:
        def fail(change: StateChange, ctx: ExtensionContext) -> None:
            raise ValueError("listener broke")

        ctx = _context({"n": 0}, on_state_change=fail)
        with pytest.raises(StateMutationError):
            ctx.set_state(lambda s: {"n": 1})
        assert ctx.extension_state["n"] == 1

    def test_async_callback_without_loop_runs_to_completion(self) -> None:
        seen: list[int] = []

        async def listener(change: StateChange, ctx: ExtensionContext) -> None:
            seen.append(change.new_state["n"])

        ctx = _context({"n": 0}, on_state_change=listener)
        ctx.set_state(lambda s: {"n": 5})
        assert seen == [5]

    async def test_async_callback_scheduled_on_running_loop(self) -> None:
        seen: list[int] = []

        async def listener(change: StateChange, ctx: ExtensionContext) -> None:
            seen.append(change.new_state["n"])

        ctx = _context({"n": 0}, on_state_change=listener)
        ctx.set_state(lambda s: {"n": 7})
        assert seen == []
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert seen == [7]

    async def test_scheduled_callback_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        async def listener(change: StateChange, ctx: ExtensionContext) -> None:
            raise ValueError("listener broke")

        ctx = _context({"n": 0}, on_state_change=listener)
        with caplog.at_level(logging.ERROR, logger="wefy.extensions.state"):
            ctx.set_state(lambda s: {"n": 3})
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        assert ctx.extension_state["n"] == 3
        assert "on_state_change of 'ext' failed: listener broke" in caplog.text


class TestSharedState:
    def test_set_get_clear(self) -> None:
        shared = SharedState()
        shared.set("token", "abc")
        assert shared.get("token") == "abc"
        assert "token" in shared
        assert len(shared) == 1
        shared.clear()
        assert shared.get("token") is None

    @pytest.mark.parametrize("key", ["", None, 3])
    def test_invalid_keys(self, key: Any) -> None:
        shared = SharedState()
        with pytest.raises(ValidationError):
            shared.set(key, 1)
        with pytest.raises(ValidationError):
            shared.get(key)

    def test_view_is_snapshot(self) -> None:
        shared = SharedState()
        shared.set("a", 1)
        view = shared.view()
        shared.set("a", 2)
        assert view["a"] == 1

    def test_context_facade(self) -> None:
        shared = SharedState()
        a = ExtensionContext("a", StateStore("a"), shared)
        b = ExtensionContext("b", StateStore("b"), shared)
        a.set_shared_state("trace", "t-1")
        assert b.get_shared_state("trace") == "t-1"
        assert dict(b.shared_state) == {"trace": "t-1"}
        assert b.name == "b"
