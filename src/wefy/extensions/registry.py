"""Extension registry -- validation, storage and per-extension contexts.

:class:`ExtensionRegistry` is the single owner of a client's extensions.
It is created explicitly and handed to the
:class:`~wefy.extensions.scheduler.HookScheduler` and the request
pipeline; there is no module-level registry.

Storage order is registration order. Priority ordering is the
scheduler's concern.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Optional

from wefy.exceptions import DuplicateExtensionError, ValidationError
from wefy.extensions.base import Extension, HookName, merge_extensions
from wefy.extensions.state import ExtensionContext, SharedState, StateStore

logger = logging.getLogger(__name__)


class ExtensionRegistry:
    """Validates and stores :class:`~wefy.extensions.base.Extension` descriptors.

    Every registered extension gets a :class:`StateStore` seeded from its
    ``initial_state`` and an :class:`ExtensionContext` bound to that store
    and to the registry's :class:`SharedState`.

    Args:
        extensions: Extensions to register immediately.
        shared_state: Shared store to use. A fresh one is created when
            omitted.

    Example::

        registry = ExtensionRegistry([auth, logging_ext])
        registry.has("auth")            # True
        registry.context("auth").extension_state
    """

    def __init__(
        self,
        extensions: Iterable[Extension] = (),
        shared_state: Optional[SharedState] = None,
    ) -> None:
        self._extensions: dict[str, Extension] = {}
        self._contexts: dict[str, ExtensionContext] = {}
        self._shared = shared_state if shared_state is not None else SharedState()
        extensions = list(extensions)
        if extensions:
            self.register(extensions)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, extensions: Iterable[Extension]) -> None:
        """Validate and register a batch of extensions.

        The whole batch is validated before anything is stored, so a bad
        batch leaves the registry unchanged.

        Raises:
            ValidationError: If an entry is not an :class:`Extension` or
                has an empty name.
            DuplicateExtensionError: If a name repeats within the batch or
                is already registered.
        """
        batch = list(extensions)
        seen: set[str] = set()
        for ext in batch:
            if not isinstance(ext, Extension):
                raise ValidationError(
                    f"Expected an Extension, got {type(ext).__name__}"
                )
            if not ext.name or not ext.name.strip():
                raise ValidationError("Extension must have a non-empty name")
            if ext.name in seen or ext.name in self._extensions:
                raise DuplicateExtensionError(ext.name)
            seen.add(ext.name)

        for ext in batch:
            store = StateStore(
                ext.name,
                ext.initial_state,
                on_state_change=ext.handler(HookName.ON_STATE_CHANGE),
            )
            self._extensions[ext.name] = ext
            self._contexts[ext.name] = ExtensionContext(ext.name, store, self._shared)
            logger.debug(
                "Registered extension '%s' (priority=%d, critical=%s)",
                ext.name,
                ext.priority,
                ext.critical,
            )

    def extend(self, extensions: Iterable[Extension]) -> ExtensionRegistry:
        """Return a new registry holding these extensions plus *extensions*.

        Later entries replace earlier ones with the same name. The new
        registry starts with fresh private and shared state.
        """
        return ExtensionRegistry(merge_extensions(self._extensions.values(), extensions))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def has(self, name: str) -> bool:
        return name in self._extensions

    def get(self, name: str) -> Optional[Extension]:
        return self._extensions.get(name)

    def context(self, name: str) -> Optional[ExtensionContext]:
        """Return the context of extension *name*, or ``None``.

        Raises:
            ValidationError: If *name* is empty or not a string.
        """
        if not isinstance(name, str) or not name:
            raise ValidationError("Extension name must be a non-empty string")
        return self._contexts.get(name)

    def all_extensions(self) -> list[Extension]:
        """All extensions in registration order."""
        return list(self._extensions.values())

    # ------------------------------------------------------------------
    # Shared state
    # ------------------------------------------------------------------

    @property
    def shared_state(self) -> SharedState:
        return self._shared

    def clear_shared_state(self) -> None:
        self._shared.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._extensions

    def __iter__(self) -> Iterator[Extension]:
        return iter(list(self._extensions.values()))

    def __len__(self) -> int:
        return len(self._extensions)
