"""End-to-end CLI tests through Typer's CliRunner."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from wefy import __version__
from wefy.app import app
from wefy.client import HttpxTransport
from wefy.config import load_user_config, save_user_config
from wefy.models import ClientConfig

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_wefy_logger() -> None:
    """Drop handlers that `--log` installs on the `wefy` logger."""
    logger = logging.getLogger("wefy")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def serve(monkeypatch: pytest.MonkeyPatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], list[httpx.Request]]:
    """Route ``wefy request`` through a mock handler; returns the list of seen requests."""

    def _serve(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def make(config: ClientConfig) -> HttpxTransport:
            return HttpxTransport(transport=httpx.MockTransport(recording))

        monkeypatch.setattr("wefy.commands.request._make_transport", make)
        monkeypatch.setattr("wefy.commands.request.discover_extensions", lambda config: [])
        return seen

    return _serve


class FakeEntryPoint:
    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value


class TestRoot:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output


class TestHeadersMerge:
    def test_json_output(self) -> None:
        result = runner.invoke(
            app,
            [
                "--json",
                "headers",
                "merge",
                "-b", "Accept: text/html",
                "-b", "Cookie: a=1",
                "-i", "Accept: application/json;q=0.9",
                "-i", "Cookie: a=2; b=3",
            ],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            ["Accept", "text/html, application/json;q=0.9"],
            ["Cookie", "a=2; b=3"],
        ]

    def test_plain_output(self) -> None:
        result = runner.invoke(
            app,
            ["--plain", "headers", "merge", "-b", "X-Trace: 1", "-i", "Authorization: Bearer t"],
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == ["X-Trace: 1", "Authorization: Bearer t"]

    def test_strategy_flag(self) -> None:
        result = runner.invoke(
            app,
            ["--plain", "headers", "merge", "-b", "Set-Cookie: a=1", "-i", "Set-Cookie: b=2", "--strategy"],
        )
        assert result.exit_code == 0, result.output
        assert "Set-Cookie: multi_value" in result.output
        assert "Set-Cookie: a=1" in result.stdout
        assert "Set-Cookie: b=2" in result.stdout


class TestConfigCommands:
    def test_set_and_show(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "base_url", "https://api.example.com"])
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["config", "set", "headers.Accept", "application/json"])
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["config", "set", "extensions.disabled", '["noisy"]'])
        assert result.exit_code == 0, result.output

        assert load_user_config() == {
            "base_url": "https://api.example.com",
            "headers": {"Accept": "application/json"},
            "extensions": {"disabled": ["noisy"]},
        }

        result = runner.invoke(app, ["--json", "-q", "config", "show"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["base_url"] == "https://api.example.com"

    def test_show_resolved(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_user_config({"base_url": "https://user.example.com"})
        monkeypatch.setenv("WEFY_TIMEOUT", "7")

        result = runner.invoke(app, ["--json", "-q", "config", "show", "--resolved"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["base_url"] == "https://user.example.com"
        assert data["timeout"] == 7.0

    def test_show_resolved_without_base_url(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--resolved"])
        assert result.exit_code == 1
        assert "No base URL configured" in result.output

    def test_set_unknown_key(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "colour", "blue"])
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_invalid_value(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "base_url", "ftp://nowhere"])
        assert result.exit_code == 2
        assert load_user_config() == {}

    def test_set_bad_timeout(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "timeout", "soon"])
        assert result.exit_code == 2

    def test_reset(self, isolated_config: Path) -> None:
        save_user_config({"base_url": "https://api.example.com"})
        result = runner.invoke(app, ["config", "reset", "--force"])
        assert result.exit_code == 0, result.output
        assert load_user_config() == {}

    def test_reset_declined(self, isolated_config: Path) -> None:
        save_user_config({"base_url": "https://api.example.com"})
        result = runner.invoke(app, ["config", "reset"], input="n\n")
        assert result.exit_code == 0
        assert load_user_config() == {"base_url": "https://api.example.com"}


class TestExtensionsList:
    def test_lists_entry_points(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_user_config({"extensions": {"disabled": ["noisy"]}})
        monkeypatch.setattr(
            "wefy.extensions.discovery._entry_points",
            lambda: [FakeEntryPoint("tracing", "pkg.tracing:ext"), FakeEntryPoint("noisy", "pkg.noisy:ext")],
        )

        result = runner.invoke(app, ["--json", "extensions", "list"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"name": "tracing", "target": "pkg.tracing:ext", "status": "enabled"},
            {"name": "noisy", "target": "pkg.noisy:ext", "status": "disabled"},
        ]

    def test_none_registered(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("wefy.extensions.discovery._entry_points", lambda: [])
        result = runner.invoke(app, ["extensions", "list"])
        assert result.exit_code == 0
        assert "No extensions registered" in result.output


class TestRequestCommand:
    def test_get_prints_body(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        seen = serve(lambda r: httpx.Response(200, json={"users": ["ada"]}))

        result = runner.invoke(
            app,
            [
                "--json", "-q", "request", "get", "/users",
                "--base-url", "https://api.example.com",
                "-p", "page=2", "-p", "tag=a", "-p", "tag=b",
                "-H", "X-Trace: 42",
            ],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"users": ["ada"]}
        assert str(seen[0].url) == "https://api.example.com/users?page=2&tag=a&tag=b"
        assert seen[0].headers["x-trace"] == "42"

    def test_json_body_and_bearer(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        seen = serve(lambda r: httpx.Response(201, json={"id": 7}))
        save_user_config({"base_url": "https://api.example.com"})

        result = runner.invoke(
            app,
            ["--json", "-q", "request", "POST", "/users", "-d", '{"name": "ada"}', "--bearer", "value:tok"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(seen[0].content) == {"name": "ada"}
        assert seen[0].headers["content-type"] == "application/json"
        assert seen[0].headers["authorization"] == "Bearer tok"

    def test_error_status(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        serve(lambda r: httpx.Response(404, json={"detail": "missing"}))

        result = runner.invoke(
            app,
            ["--plain", "request", "GET", "/users/9", "--base-url", "https://api.example.com"],
        )

        assert result.exit_code == 4
        assert "HTTP 404" in result.output
        assert "missing" in result.output

    def test_transport_failure(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        serve(refuse)
        result = runner.invoke(app, ["request", "GET", "/", "--base-url", "https://api.example.com"])

        assert result.exit_code == 6
        assert "connection refused" in result.output

    def test_unsupported_method(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["request", "FETCH", "/", "--base-url", "https://api.example.com"])
        assert result.exit_code == 2
        assert "Unsupported method" in result.output

    def test_missing_base_url(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        serve(lambda r: httpx.Response(200))
        result = runner.invoke(app, ["request", "GET", "/"])
        assert result.exit_code == 1
        assert "No base URL configured" in result.output

    def test_bad_param(self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]) -> None:
        serve(lambda r: httpx.Response(200))
        result = runner.invoke(
            app, ["request", "GET", "/", "--base-url", "https://api.example.com", "-p", "novalue"]
        )
        assert result.exit_code == 2

    def test_log_flag_adds_request_logger(
        self, isolated_config: Path, serve: Callable[..., list[httpx.Request]]
    ) -> None:
        serve(lambda r: httpx.Response(204))
        result = runner.invoke(
            app,
            ["--no-color", "request", "DELETE", "/items/1", "--base-url", "https://api.example.com", "--log"],
        )
        assert result.exit_code == 0, result.output
        assert "DELETE /items/1 ok" in result.output
