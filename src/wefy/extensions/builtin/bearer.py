"""Bearer token authentication extension.

:func:`bearer_auth` builds an extension that sets
``Authorization: Bearer <token>`` on every call's options in
``before_request``. A header already present on the call wins, so one
call can still authenticate differently.

The token can be given directly, as a credential source descriptor
(``env:VAR``, ``file:path``, ``value:literal`` or ``prompt``; see
:func:`wefy.config.resolve_credential`) or as a zero-argument callable
returning the token for each call. Sources are re-read on every call,
except ``prompt``, which asks once and reuses the answer.
"""

from __future__ import annotations

from typing import Callable, Union

from wefy.config import resolve_credential
from wefy.extensions.base import Extension, HookName
from wefy.extensions.state import ExtensionContext
from wefy.extensions.types import BeforeRequestEvent

_SOURCE_PREFIXES = ("env:", "file:", "value:")
_PROMPT = "prompt"

TokenSource = Union[str, Callable[[], str]]


def _resolve(token: TokenSource) -> str:
    if callable(token):
        return token()
    if token == _PROMPT or token.startswith(_SOURCE_PREFIXES):
        return resolve_credential(token)
    return token


def bearer_auth(token: TokenSource, priority: int = 100, name: str = "bearer_auth") -> Extension:
    """Create a bearer-auth extension.

    Args:
        token: Token, credential source descriptor or token factory.
        priority: Scheduling priority. Defaults high so later
            ``before_request`` handlers see the header.
        name: Extension name.

    Returns:
        The :class:`Extension`.

    Raises:
        ConfigError: (at call time) if a source descriptor can't be resolved.
    """
    prompted: dict[str, str] = {}

    def current_token() -> str:
        if token != _PROMPT:
            return _resolve(token)
        if _PROMPT not in prompted:
            prompted[_PROMPT] = _resolve(token)
        return prompted[_PROMPT]

    def before_request(event: BeforeRequestEvent, context: ExtensionContext) -> None:
        headers = event.config.headers
        if any(key.lower() == "authorization" for key in headers):
            return
        headers["Authorization"] = f"Bearer {current_token()}"

    return Extension(
        name=name,
        priority=priority,
        hooks={HookName.BEFORE_REQUEST: before_request},
    )
