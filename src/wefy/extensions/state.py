"""Private per-extension state and the shared key/value store.

Each registered extension owns a :class:`StateStore` whose current value
is an immutable snapshot: mappings are frozen into read-only
:class:`~types.MappingProxyType` views, lists into tuples and sets into
frozensets. :meth:`StateStore.set_state` never touches the existing
snapshot. It hands the reducer a mutable deep copy (a *draft*), freezes
whatever comes back and swaps the reference.

:class:`SharedState` is one plain mapping per registry, visible to every
extension. Writes are last-writer-wins with no locking; concurrent calls
on the same client may interleave their writes.

:class:`ExtensionContext` is the facade an extension sees as the last
argument of every hook.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Optional

from wefy.exceptions import InvalidModifierError, StateMutationError, ValidationError
from wefy.extensions.types import StateChange

logger = logging.getLogger(__name__)

StateReducer = Callable[[dict[str, Any]], Optional[Mapping[str, Any]]]
"""Receives a mutable draft; returns a new mapping or ``None`` to keep the draft."""

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def freeze(value: Any) -> Any:
    """Return a deeply read-only copy of *value*."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Return a deeply mutable copy of a frozen value."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    if isinstance(value, frozenset):
        return {thaw(item) for item in value}
    return value


def _check_key(key: Any) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError("Shared state key must be a non-empty string")


class SharedState:
    """Process-wide key/value store shared by every extension of a registry."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        _check_key(key)
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        _check_key(key)
        self._values[key] = value

    def delete(self, key: str) -> None:
        _check_key(key)
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()

    def view(self) -> Mapping[str, Any]:
        """Return a read-only snapshot of the current entries."""
        return MappingProxyType(dict(self._values))

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


class StateStore:
    """Holds one extension's private state snapshot.

    Args:
        extension_name: Owner, used to tag errors.
        initial_state: Seed state; frozen on construction. ``None`` means
            an empty mapping.
        on_state_change: The owner's ``on_state_change`` hook, if any.
    """

    def __init__(
        self,
        extension_name: str,
        initial_state: Optional[Mapping[str, Any]] = None,
        on_state_change: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._name = extension_name
        self._state: Mapping[str, Any] = freeze(initial_state) if initial_state else _EMPTY
        self._on_state_change = on_state_change
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> Mapping[str, Any]:
        return self._state

    def set_state(self, reducer: StateReducer, context: ExtensionContext) -> Mapping[str, Any]:
        """Apply *reducer* and commit the result as the new snapshot.

        The reducer receives a mutable draft of the current state. It may
        mutate the draft and return ``None``, or return a new mapping.
        Either way the previous snapshot is left untouched.

        After the commit the owner's ``on_state_change`` hook is called
        with a :class:`~wefy.extensions.types.StateChange`. An awaitable
        returned by the hook is scheduled on the running event loop, or
        run to completion when no loop is running.

        Args:
            reducer: ``draft -> new_state | None``.
            context: The owner's context, forwarded to ``on_state_change``.

        Returns:
            The committed snapshot.

        Raises:
            InvalidModifierError: If *reducer* is not callable.
            StateMutationError: If the reducer or a synchronous
                ``on_state_change`` fails. A failing reducer leaves the
                stored snapshot unchanged. An awaitable returned by
                ``on_state_change`` is not awaited here when a loop is
                running: it may finish after later handlers of the same
                phase, and its failure is logged rather than raised.
        """
        if not callable(reducer):
            raise InvalidModifierError(
                "State modifier must be callable", extension_name=self._name
            )

        previous = self._state
        draft = thaw(previous)
        try:
            result = reducer(draft)
        except Exception as exc:
            raise StateMutationError(str(exc), self._name) from exc
        if result is None:
            result = draft
        if not isinstance(result, Mapping):
            raise StateMutationError(
                f"reducer returned {type(result).__name__}, expected a mapping", self._name
            )

        self._state = freeze(result)
        if self._on_state_change is not None:
            self._notify(StateChange(previous_state=previous, new_state=self._state), context)
        return self._state

    def _notify(self, change: StateChange, context: ExtensionContext) -> None:
        try:
            outcome = self._on_state_change(change, context)  # type: ignore[misc]
        except Exception as exc:
            raise StateMutationError(str(exc), self._name) from exc
        if not inspect.isawaitable(outcome):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(_settle(outcome))
            except Exception as exc:
                raise StateMutationError(str(exc), self._name) from exc
            return

        task = loop.create_task(_settle(outcome))
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("on_state_change of '%s' failed: %s", self._name, exc)


async def _settle(awaitable: Any) -> Any:
    return await awaitable


class ExtensionContext:
    """What an extension sees of its own state and of the shared state.

    Passed as the last argument to every hook of the owning extension.
    """

    def __init__(self, name: str, store: StateStore, shared: SharedState) -> None:
        self._name = name
        self._store = store
        self._shared = shared

    @property
    def name(self) -> str:
        return self._name

    @property
    def extension_state(self) -> Mapping[str, Any]:
        """The current immutable snapshot of this extension's private state."""
        return self._store.state

    @property
    def shared_state(self) -> Mapping[str, Any]:
        """A read-only snapshot of the shared state."""
        return self._shared.view()

    def set_state(self, reducer: StateReducer) -> Mapping[str, Any]:
        """Replace the private state; see :meth:`StateStore.set_state`."""
        return self._store.set_state(reducer, self)

    def get_shared_state(self, key: str) -> Any:
        return self._shared.get(key)

    def set_shared_state(self, key: str, value: Any) -> None:
        self._shared.set(key, value)

    def __repr__(self) -> str:
        return f"ExtensionContext(name={self._name!r})"
