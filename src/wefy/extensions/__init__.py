"""Extension system for wefy -- descriptors, registry, state and hook scheduling.

Key classes:

* :class:`Extension` -- immutable bundle of hook handlers, priority and
  initial state.
* :class:`ExtensionRegistry` -- validates and owns a client's extensions.
* :class:`HookScheduler` -- runs one hook across all extensions in
  priority order and aggregates failures.
* :class:`ExtensionContext` -- what a handler sees of its own state and of
  the shared state.

Third-party packages publish extensions under the ``wefy.extensions``
entry-point group; see :func:`discover_extensions`.
"""

from wefy.extensions.base import Extension, HookFn, HookName, merge_extensions
from wefy.extensions.discovery import ENTRY_POINT_GROUP, discover_extensions
from wefy.extensions.registry import ExtensionRegistry
from wefy.extensions.scheduler import HookFailure, HookScheduler
from wefy.extensions.state import ExtensionContext, SharedState, StateStore
from wefy.extensions.types import (
    AfterRequestEvent,
    BeforeRequestEvent,
    BeforeResponseEvent,
    ErrorMeta,
    RequestEvent,
    ResponseEvent,
    StateChange,
    SuccessEvent,
)

__all__ = [
    "Extension",
    "HookFn",
    "HookName",
    "merge_extensions",
    "ENTRY_POINT_GROUP",
    "discover_extensions",
    "ExtensionRegistry",
    "HookFailure",
    "HookScheduler",
    "ExtensionContext",
    "SharedState",
    "StateStore",
    "AfterRequestEvent",
    "BeforeRequestEvent",
    "BeforeResponseEvent",
    "ErrorMeta",
    "RequestEvent",
    "ResponseEvent",
    "StateChange",
    "SuccessEvent",
]
