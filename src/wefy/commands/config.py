"""Config commands -- view and modify the user configuration.

``wefy config`` reads and writes the JSON file at
:func:`~wefy.config.config_path`. Values set here sit at the bottom of the
precedence chain; see :func:`~wefy.config.resolve_config`.
"""

from __future__ import annotations

import json
from typing import Any

import pydantic
import typer

from wefy.output import get_output

config_app = typer.Typer(no_args_is_help=True)

_SETTABLE = ("base_url", "timeout", "verify_ssl", "follow_redirects")
_BOOL_TRUE = ("true", "1", "yes", "on")


def _coerce(key: str, value: str) -> Any:
    """Coerce a CLI string for *key*; ``headers.X`` and ``extensions.*`` keys take strings or JSON."""
    if key == "timeout":
        try:
            return float(value)
        except ValueError:
            raise typer.BadParameter(f"Expected a number for timeout, got '{value}'") from None
    if key in ("verify_ssl", "follow_redirects"):
        return value.lower() in _BOOL_TRUE
    if key.startswith("extensions."):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


@config_app.command("show")
def config_show(
    resolved: bool = typer.Option(
        False, "--resolved", help="Show the effective config after env and project overrides."
    ),
) -> None:
    """Show the user configuration (or the resolved one)."""
    from wefy.config import config_path, load_user_config, resolve_config
    from wefy.exceptions import ConfigError

    output = get_output()
    output.info(f"Config file: {config_path()}")
    try:
        data = resolve_config().model_dump(mode="json") if resolved else load_user_config()
    except ConfigError as exc:
        output.error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None
    output.format_response(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key: base_url, timeout, verify_ssl, follow_redirects, "
        "headers.<Name>, extensions.enabled, extensions.disabled or extensions.config."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Example::

        wefy config set base_url https://api.example.com
        wefy config set headers.Accept application/json
        wefy config set extensions.disabled '["noisy"]'
    """
    from wefy.config import load_user_config, save_user_config
    from wefy.exceptions import ConfigError
    from wefy.models import ClientConfig, ExtensionsConfig

    output = get_output()
    try:
        data = load_user_config()
    except ConfigError as exc:
        output.error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    section, _, field = key.partition(".")
    coerced = _coerce(key, value)
    if key in _SETTABLE:
        data[key] = coerced
    elif section == "headers" and field:
        data.setdefault("headers", {})[field] = coerced
    elif section == "extensions" and field in ExtensionsConfig.model_fields:
        data.setdefault("extensions", {})[field] = coerced
    else:
        output.error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    try:
        # base_url may legitimately still be missing in a partial file
        ClientConfig.model_validate({"base_url": "http://placeholder", **data})
    except pydantic.ValidationError as exc:
        output.error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_user_config(data)
    output.success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete the user configuration file."""
    from wefy.config import reset_user_config

    output = get_output()
    if not force and not typer.confirm("Reset all config to defaults?"):
        output.info("Cancelled.")
        raise typer.Exit()

    if reset_user_config():
        output.success("Configuration reset to defaults.")
    else:
        output.info("No configuration file to reset.")
