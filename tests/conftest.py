"""Shared test fixtures for wefy.

Provides isolated config environments, output-state management and
factories for clients backed by :class:`httpx.MockTransport`.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from wefy.client import Client, HttpxTransport
from wefy.extensions.base import Extension
from wefy.output import OutputManager, reset_output, set_output

BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test, the cached references go stale once the test finishes.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a no-colour, quiet OutputManager."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME into tmp_path, clears WEFY_* variables and
    changes the working directory to tmp_path so project config lookups
    never see a real ``wefy.json``.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr("wefy.config._is_xdg_platform", lambda: True)
    for var in ("WEFY_BASE_URL", "WEFY_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Mock HTTP
# ---------------------------------------------------------------------------


Handler = Callable[[httpx.Request], httpx.Response]


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=data)


def mock_transport(handler: Handler) -> HttpxTransport:
    """An HttpxTransport whose AsyncClient sends through *handler*."""
    return HttpxTransport(transport=httpx.MockTransport(handler))


@pytest.fixture
def make_client() -> Callable[..., Client]:
    """Factory for clients wired to a mock handler.

    Usage::

        client = make_client(handler, [ext_a, ext_b], headers={"Accept": "text/html"})
    """

    def _make(
        handler: Handler,
        extensions: list[Extension] | tuple[Extension, ...] = (),
        **config: Any,
    ) -> Client:
        return Client({"base_url": BASE_URL, **config}, extensions, transport=mock_transport(handler))

    return _make


@pytest.fixture
def echo_handler() -> Handler:
    """Handler that echoes method, URL, headers and body back as JSON."""

    def _handler(request: httpx.Request) -> httpx.Response:
        body = request.content.decode("utf-8") if request.content else None
        return json_response(
            {
                "method": request.method,
                "url": str(request.url),
                "headers": [[k.decode(), v.decode()] for k, v in request.headers.raw],
                "body": json.loads(body) if body and body.startswith(("{", "[")) else body,
            }
        )

    return _handler
