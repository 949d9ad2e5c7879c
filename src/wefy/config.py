"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for wefy:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.wefy/`` on macOS and Windows. See :func:`get_config_dir`.
* **User config** -- a single JSON file holding (a possibly partial)
  :class:`~wefy.models.ClientConfig`. See :func:`load_user_config`
  and :func:`save_user_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config and user config into the
  effective :class:`~wefy.models.ClientConfig`.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files or interactive prompts.

All file writes go through :func:`_atomic_write` (temp file, then rename).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

import pydantic

from wefy.exceptions import ConfigError
from wefy.models import ClientConfig

_APP_NAME = "wefy"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "wefy.json"

ENV_BASE_URL = "WEFY_BASE_URL"
ENV_TIMEOUT = "WEFY_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/wefy/`` (default ``~/.config/wefy/``).
    On macOS/Windows: ``~/.wefy/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_json_object(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


# --- User config ---


def load_user_config() -> dict[str, Any]:
    """Load the raw user config.

    The file may be partial (e.g. only ``timeout``), so it is returned
    unvalidated. Missing file means ``{}``.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = config_path()
    if not path.is_file():
        return {}
    return _read_json_object(path, "user config")


def save_user_config(data: dict[str, Any]) -> None:
    """Persist a raw user config mapping atomically."""
    _atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


def reset_user_config() -> bool:
    """Delete the user config file. Returns ``True`` if one existed."""
    path = config_path()
    if not path.is_file():
        return False
    path.unlink()
    return True


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./wefy.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json_object(path, "project config")


# --- Precedence resolution ---


def _layer(target: dict[str, Any], overlay: dict[str, Any]) -> None:
    """Apply *overlay* onto *target*; ``headers`` and ``extensions`` merge one level deep."""
    for key, value in overlay.items():
        if key in ("headers", "extensions") and isinstance(value, dict):
            merged = dict(target.get(key) or {})
            merged.update(value)
            target[key] = merged
        else:
            target[key] = value


def _validate(data: dict[str, Any], source: str) -> ClientConfig:
    if not data.get("base_url"):
        raise ConfigError(
            f"No base URL configured ({source}). "
            f"Pass --base-url, set {ENV_BASE_URL} or run 'wefy config set base_url URL'"
        )
    try:
        return ClientConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid configuration ({source}): {exc}") from exc


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> ClientConfig:
    """Resolve the effective client config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``)
        2. Environment variables (``WEFY_BASE_URL``, ``WEFY_TIMEOUT``)
        3. Project config (``./wefy.json``)
        4. User config (``~/.config/wefy/config.json``)
        5. Defaults

    Raises:
        ConfigError: If no base URL is configured anywhere, a file is
            invalid, or ``WEFY_TIMEOUT`` is not a number.
    """
    data: dict[str, Any] = {}
    _layer(data, load_user_config())

    project = load_project_config()
    if project is not None:
        _layer(data, project)

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        data["base_url"] = env_base_url
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            data["timeout"] = float(env_timeout)
        except ValueError:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number, got '{env_timeout}'") from None

    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_timeout is not None:
        data["timeout"] = cli_timeout

    return _validate(data, "resolved config")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"value:literal"`` -- the literal text after the prefix
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source.startswith("value:"):
        return source[6:]

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")
