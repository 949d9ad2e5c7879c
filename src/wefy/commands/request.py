"""Request command -- send one call through the full extension lifecycle.

Example::

    wefy request GET /users -p page=2 -H "Accept: application/json"
    wefy request POST /users --data '{"name": "ada"}' --bearer env:API_TOKEN
    wefy --json request GET https://httpbin.org/get --log

The decoded body goes to stdout. Status, timing and (with ``--log``) the
extension log records go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import typer

from wefy.client import Client, HttpxTransport
from wefy.exceptions import RequestError, WefyError
from wefy.extensions.base import Extension
from wefy.extensions.builtin import bearer_auth, request_logger
from wefy.extensions.discovery import discover_extensions
from wefy.headers import parse_header_lines
from wefy.models import HTTP_METHODS, ClientConfig, ResponseSummary
from wefy.output import get_output


def _make_transport(config: ClientConfig) -> HttpxTransport:
    return HttpxTransport(verify_ssl=config.verify_ssl, follow_redirects=config.follow_redirects)


def _parse_params(pairs: list[str]) -> dict[str, Any]:
    """``key=value`` strings to a params dict; repeated keys become lists."""
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--param")
        if key in params:
            existing = params[key]
            params[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            params[key] = value
    return params


def _body_kwargs(data: Optional[str]) -> dict[str, Any]:
    """JSON-looking bodies are sent as JSON, anything else as raw text."""
    if data is None:
        return {}
    try:
        return {"json_body": json.loads(data)}
    except json.JSONDecodeError:
        return {"body": data}


async def _send(
    config: ClientConfig,
    extensions: list[Extension],
    method: str,
    endpoint: str,
    params: dict[str, Any],
    headers: dict[str, str],
    body: dict[str, Any],
    timeout: Optional[float],
) -> ResponseSummary:
    async with _make_transport(config) as transport:
        async with Client(config, extensions, transport=transport) as client:
            return await client.request(
                method, endpoint, params=params, headers=headers, timeout=timeout, **body
            )


def request_command(
    method: str = typer.Argument(help="HTTP method (GET, POST, ...)."),
    endpoint: str = typer.Argument(help="Path joined to the base URL, or an absolute URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as key=value. Repeatable."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body. Valid JSON is sent as JSON."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0.001, help="Timeout in seconds."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the configured base URL."
    ),
    bearer: Optional[str] = typer.Option(
        None, "--bearer", help="Bearer token source (env:VAR, file:PATH, value:TOKEN or prompt)."
    ),
    log: bool = typer.Option(False, "--log", help="Log each call to stderr."),
) -> None:
    """Send a request and print the decoded response body."""
    from wefy.config import resolve_config

    output = get_output()
    method = method.upper()
    if method not in HTTP_METHODS:
        output.error(f"Unsupported method '{method}'. Use one of: {', '.join(HTTP_METHODS)}")
        raise typer.Exit(code=2)

    try:
        config = resolve_config(cli_base_url=base_url)
        extensions = discover_extensions(config.extensions)
        if bearer:
            extensions.append(bearer_auth(bearer))
        if log or output.is_verbose:
            output.install_log_handler(logging.DEBUG if output.is_verbose else logging.INFO)
            extensions.append(request_logger())

        result = asyncio.run(
            _send(
                config,
                extensions,
                method,
                endpoint,
                _parse_params(param or []),
                dict(parse_header_lines(header or [])),
                _body_kwargs(data),
                timeout,
            )
        )
    except RequestError as exc:
        output.error(exc.message)
        if exc.data is not None:
            output.format_response(exc.data)
        raise typer.Exit(code=exc.exit_code) from None
    except WefyError as exc:
        output.error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    output.info(f"{result.status} {result.url} ({result.duration * 1000:.0f} ms)")
    output.format_response(result.data)
