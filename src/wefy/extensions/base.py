"""Extension descriptors and the closed set of hook names.

An :class:`Extension` is an immutable bundle of lifecycle handlers plus
scheduling metadata. Handlers are looked up in the ``hooks`` mapping by
:class:`HookName`, so dispatch never relies on attribute access and an
unknown hook name is rejected when the extension is built.

Example:
    Minimal extension that stamps a header on every call::

        def add_trace_header(event, ctx):
            event.config.headers["X-Trace"] = ctx.get_shared_state("trace_id") or "none"

        tracing = Extension(
            name="tracing",
            priority=50,
            hooks={HookName.BEFORE_REQUEST: add_trace_header},
        )
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Optional

from wefy.exceptions import ValidationError

HookFn = Callable[..., Any]
"""A hook handler. May return ``None`` or an awaitable."""


class HookName(str, enum.Enum):
    """Every lifecycle point an extension can hook into.

    See :mod:`wefy.extensions.types` for the payload each hook receives.
    """

    INIT = "init"
    BEFORE_REQUEST = "before_request"
    ON_REQUEST = "on_request"
    BEFORE_RESPONSE = "before_response"
    ON_RESPONSE = "on_response"
    AFTER_SUCCESS = "after_success"
    ON_ERROR = "on_error"
    AFTER_REQUEST = "after_request"
    ON_STATE_CHANGE = "on_state_change"


def _coerce_hooks(name: str, hooks: Mapping[Any, HookFn]) -> Mapping[HookName, HookFn]:
    resolved: dict[HookName, HookFn] = {}
    for key, handler in hooks.items():
        try:
            hook = HookName(key)
        except ValueError:
            raise ValidationError(
                f"Unknown hook '{key}' on extension '{name}'", extension_name=name
            ) from None
        if not callable(handler):
            raise ValidationError(
                f"Handler for hook '{hook.value}' on extension '{name}' is not callable",
                extension_name=name,
            )
        resolved[hook] = handler
    return MappingProxyType(resolved)


@dataclass(frozen=True)
class Extension:
    """A named, priority-ordered bundle of lifecycle hooks plus initial state.

    Attributes:
        name: Unique identifier. Registering two extensions with the same
            name is an error.
        hooks: Handlers keyed by :class:`HookName` (or its string value).
        priority: Higher runs earlier within a phase. Defaults to ``0``.
        critical: When ``True``, a failing handler aborts the rest of the
            phase.
        initial_state: Seed for the extension's private state.
    """

    name: str
    hooks: Mapping[HookName, HookFn] = field(default_factory=dict)
    priority: int = 0
    critical: bool = False
    initial_state: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Extension must have a non-empty name")
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise ValidationError(
                f"Priority of extension '{self.name}' must be an integer",
                extension_name=self.name,
            )
        if not isinstance(self.initial_state, Mapping):
            raise ValidationError(
                f"Initial state of extension '{self.name}' must be a mapping",
                extension_name=self.name,
            )
        object.__setattr__(self, "hooks", _coerce_hooks(self.name, self.hooks or {}))

    def handler(self, hook: HookName) -> Optional[HookFn]:
        """Return the handler registered for *hook*, or ``None``."""
        return self.hooks.get(hook)


def merge_extensions(
    base: Iterable[Extension], additional: Iterable[Extension]
) -> list[Extension]:
    """Union two extension lists; later entries replace earlier ones by name.

    A replaced extension keeps the position of the one it replaces.
    """
    merged: dict[str, Extension] = {}
    for ext in base:
        merged[ext.name] = ext
    for ext in additional:
        merged[ext.name] = ext
    return list(merged.values())
