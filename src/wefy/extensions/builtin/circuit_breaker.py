"""Circuit breaker extension.

Counts consecutive failed calls in the extension's private state. Once
``failure_threshold`` is reached the circuit *opens*: every call fails in
``before_request`` with :class:`CircuitOpenError` until ``reset_timeout``
seconds have passed. The next call after that is let through (half-open);
its outcome closes the circuit again or re-opens it.

The extension is critical, so an open circuit aborts the remaining
``before_request`` handlers and the call never reaches the transport.

State shape::

    {"failures": 0, "opened_at": None, "rejected": False}
"""

from __future__ import annotations

import time
from typing import Any, Callable

from wefy.exceptions import WefyError
from wefy.exit_codes import EXIT_REQUEST_FAILURE
from wefy.extensions.base import Extension, HookName
from wefy.extensions.state import ExtensionContext
from wefy.extensions.types import AfterRequestEvent, BeforeRequestEvent


class CircuitOpenError(WefyError):
    """Raised while the circuit is open."""

    kind = "circuit_open"
    exit_code = EXIT_REQUEST_FAILURE

    def __init__(self, retry_in: float):
        super().__init__(f"Circuit open; retry in {retry_in:.1f}s")
        self.retry_in = retry_in


def circuit_breaker(
    failure_threshold: int = 5,
    reset_timeout: float = 30.0,
    priority: int = 1000,
    name: str = "circuit_breaker",
    clock: Callable[[], float] = time.monotonic,
) -> Extension:
    """Create a circuit-breaker extension.

    Args:
        failure_threshold: Consecutive failures that open the circuit.
        reset_timeout: Seconds the circuit stays open.
        priority: Scheduling priority. Defaults high so it runs first.
        name: Extension name.
        clock: Monotonic time source, injectable for tests.

    Raises:
        ValueError: If *failure_threshold* < 1 or *reset_timeout* < 0.
    """
    if failure_threshold < 1:
        raise ValueError("failure_threshold must be at least 1")
    if reset_timeout < 0:
        raise ValueError("reset_timeout must not be negative")

    def before_request(event: BeforeRequestEvent, context: ExtensionContext) -> None:
        opened_at = context.extension_state.get("opened_at")
        if opened_at is None:
            return
        remaining = reset_timeout - (clock() - opened_at)
        if remaining > 0:
            context.set_state(lambda state: {**state, "rejected": True})
            raise CircuitOpenError(remaining)

    def after_request(event: AfterRequestEvent, context: ExtensionContext) -> None:
        def update(state: dict[str, Any]) -> dict[str, Any]:
            if state.get("rejected"):
                # calls refused by the open circuit do not count
                return {**state, "rejected": False}
            if event.success:
                return {"failures": 0, "opened_at": None, "rejected": False}
            failures = state.get("failures", 0) + 1
            opened_at = clock() if failures >= failure_threshold else None
            return {"failures": failures, "opened_at": opened_at, "rejected": False}

        context.set_state(update)

    return Extension(
        name=name,
        priority=priority,
        critical=True,
        hooks={
            HookName.BEFORE_REQUEST: before_request,
            HookName.AFTER_REQUEST: after_request,
        },
        initial_state={"failures": 0, "opened_at": None, "rejected": False},
    )
