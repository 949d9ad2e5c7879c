"""Tests for entry-point extension discovery."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

from wefy.extensions.base import Extension
from wefy.extensions.discovery import available_extensions, discover_extensions
from wefy.models import ExtensionsConfig

TRACING = Extension("tracing")


def _make_tracing() -> Extension:
    return Extension("factory_made")


class FakeEntryPoint:
    def __init__(self, name: str, target: Any, value: str = "pkg.mod:attr") -> None:
        self.name = name
        self.value = value
        self._target = target

    def load(self) -> Any:
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


def _discover(eps: list[FakeEntryPoint], config: ExtensionsConfig | None = None) -> list[Extension]:
    with patch("wefy.extensions.discovery._entry_points", return_value=eps):
        return discover_extensions(config)


class TestDiscoverExtensions:
    def test_loads_objects_and_factories(self) -> None:
        loaded = _discover([FakeEntryPoint("tracing", TRACING), FakeEntryPoint("made", _make_tracing)])
        assert [ext.name for ext in loaded] == ["tracing", "factory_made"]
        assert loaded[0] is TRACING

    def test_respects_disabled(self) -> None:
        loaded = _discover(
            [FakeEntryPoint("tracing", TRACING), FakeEntryPoint("made", _make_tracing)],
            ExtensionsConfig(disabled=["tracing"]),
        )
        assert [ext.name for ext in loaded] == ["factory_made"]

    def test_respects_enabled_allowlist(self) -> None:
        loaded = _discover(
            [FakeEntryPoint("tracing", TRACING), FakeEntryPoint("made", _make_tracing)],
            ExtensionsConfig(enabled=["made"]),
        )
        assert [ext.name for ext in loaded] == ["factory_made"]

    def test_broken_entry_points_skipped(self) -> None:
        loaded = _discover(
            [
                FakeEntryPoint("broken", ImportError("missing dependency")),
                FakeEntryPoint("wrong_type", lambda: "not an extension"),
                FakeEntryPoint("tracing", TRACING),
            ]
        )
        assert [ext.name for ext in loaded] == ["tracing"]


class TestAvailableExtensions:
    def test_lists_without_loading(self) -> None:
        eps = [FakeEntryPoint("broken", ImportError("never loaded"), value="pkg.broken:ext")]
        with patch("wefy.extensions.discovery._entry_points", return_value=eps):
            assert available_extensions() == [{"name": "broken", "value": "pkg.broken:ext"}]
