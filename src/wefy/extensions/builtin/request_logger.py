"""Request logging extension.

Logs one line per finished call from ``after_request`` and keeps running
counters in the extension's private state::

    {"calls": 12, "failures": 1, "last_status": 200}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from wefy.extensions.base import Extension, HookName
from wefy.extensions.state import ExtensionContext
from wefy.extensions.types import AfterRequestEvent, ErrorMeta, SuccessEvent


def request_logger(
    logger: Optional[logging.Logger] = None,
    priority: int = -100,
    name: str = "request_logger",
) -> Extension:
    """Create a request-logging extension.

    Args:
        logger: Target logger. Defaults to ``logging.getLogger("wefy.requests")``.
        priority: Scheduling priority. Defaults low so it runs after the
            other ``after_request`` handlers.
        name: Extension name.
    """
    log = logger or logging.getLogger("wefy.requests")

    def after_success(event: SuccessEvent, context: ExtensionContext) -> None:
        status = event.response.status_code

        def record(state: dict[str, Any]) -> None:
            state["last_status"] = status

        context.set_state(record)

    def on_error(error: BaseException, context: ExtensionContext, meta: Optional[ErrorMeta] = None) -> None:
        if meta is not None and meta.hook is not None:
            log.warning("Extension '%s' failed in %s: %s", context.name, meta.hook, error)

    def after_request(event: AfterRequestEvent, context: ExtensionContext) -> None:
        def count(state: dict[str, Any]) -> None:
            state["calls"] = state.get("calls", 0) + 1
            if not event.success:
                state["failures"] = state.get("failures", 0) + 1

        context.set_state(count)
        level = logging.INFO if event.success else logging.WARNING
        log.log(
            level,
            "%s %s %s in %.3fs",
            event.method,
            event.endpoint,
            "ok" if event.success else "failed",
            event.duration,
        )

    return Extension(
        name=name,
        priority=priority,
        hooks={
            HookName.AFTER_SUCCESS: after_success,
            HookName.ON_ERROR: on_error,
            HookName.AFTER_REQUEST: after_request,
        },
        initial_state={"calls": 0, "failures": 0, "last_status": None},
    )
