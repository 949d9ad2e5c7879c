"""Hook scheduler -- runs one hook across every extension, in priority order.

:meth:`HookScheduler.execute` is the only place handlers are invoked. For
a given hook it:

1. orders extensions by descending ``priority`` (stable, so equal
   priorities keep registration order);
2. awaits each handler in turn -- handler *n+1* never starts before
   handler *n* settles;
3. records every failure as a :class:`HookFailure` instead of raising
   immediately, and lets the failing extension observe it through its own
   ``on_error`` hook;
4. aborts the rest of the phase when a *critical* extension fails;
5. raises one :class:`~wefy.exceptions.HookExecutionError` listing all
   failures once the phase is over.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from wefy.exceptions import (
    AlreadyInitializedError,
    HookExecutionError,
    NotInitializedError,
    RequestAbortedError,
    ValidationError,
)
from wefy.extensions.base import Extension, HookFn, HookName
from wefy.extensions.registry import ExtensionRegistry
from wefy.extensions.state import ExtensionContext, freeze
from wefy.extensions.types import ErrorMeta
from wefy.signals import AbortSignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookFailure:
    """One extension's failure during one hook phase."""

    extension_name: str
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


class HookScheduler:
    """Executes hooks across the extensions of an :class:`ExtensionRegistry`.

    The scheduler must be initialised exactly once with
    :meth:`initialize`, which runs the ``init`` hook. Every other hook
    requires prior initialisation.

    Args:
        registry: The registry whose extensions and contexts are used.
    """

    def __init__(self, registry: ExtensionRegistry) -> None:
        self._registry = registry
        self._initialized = False

    @property
    def registry(self) -> ExtensionRegistry:
        return self._registry

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self, config: Optional[Mapping[str, Any]] = None) -> None:
        """Run the ``init`` hook on every extension.

        Each handler receives a read-only copy of *config*. If any handler
        fails the scheduler stays uninitialised and the aggregate error is
        raised.

        Raises:
            AlreadyInitializedError: On a second call after success.
            HookExecutionError: If any ``init`` handler failed.
        """
        if self._initialized:
            raise AlreadyInitializedError("Extensions have already been initialized")
        await self.execute(HookName.INIT, freeze(dict(config or {})))
        self._initialized = True
        logger.debug("Initialized %d extension(s)", len(self._registry))

    def execution_order(self) -> list[Extension]:
        """Extensions sorted by descending priority, ties in registration order."""
        return sorted(self._registry.all_extensions(), key=lambda ext: -ext.priority)

    async def execute(
        self,
        hook: Union[HookName, str],
        *args: Any,
        meta: Optional[ErrorMeta] = None,
    ) -> None:
        """Invoke *hook* on every extension that declares it.

        Handlers are called as ``handler(*args, context)``, except ``init``
        (``handler(config, context)``) and ``on_error``
        (``handler(error, context, *rest)``).

        Args:
            hook: The hook to run.
            *args: Payload passed ahead of the context.
            meta: Call metadata forwarded to ``on_error`` handlers of
                extensions that fail during this phase.

        Raises:
            ValidationError: If *hook* is not a known hook name.
            NotInitializedError: If called before :meth:`initialize`
                (except for ``init``).
            HookExecutionError: If one or more handlers failed.
        """
        try:
            hook = HookName(hook)
        except ValueError:
            raise ValidationError(f"Unknown hook: {hook}") from None

        if not self._initialized and hook is not HookName.INIT:
            raise NotInitializedError(
                "Extensions must be initialized before executing hooks"
            )

        failures: list[HookFailure] = []
        signal = AbortSignal()

        for ext in self.execution_order():
            if signal.aborted:
                logger.debug("Skipping '%s' for %s: phase aborted", ext.name, hook.value)
                continue

            handler = ext.handler(hook)
            if handler is None:
                continue
            context = self._registry.context(ext.name)
            if context is None:
                continue

            if hook is HookName.INIT:
                call_args: tuple[Any, ...] = (args[0] if args else None, context)
            elif hook is HookName.ON_ERROR:
                call_args = (args[0] if args else None, context, *args[1:])
            else:
                call_args = (*args, context)

            try:
                await self._invoke(handler, call_args, signal)
            except Exception as exc:
                failures.append(HookFailure(ext.name, exc))
                logger.warning("Extension '%s' failed in %s: %s", ext.name, hook.value, exc)
                if hook is not HookName.ON_ERROR:
                    await self._report(ext, context, exc, hook, meta)
                if ext.critical:
                    logger.warning(
                        "Critical extension '%s' failed; aborting remaining %s handlers",
                        ext.name,
                        hook.value,
                    )
                    signal.abort(exc)

        if failures:
            raise HookExecutionError(hook.value, failures)

    async def _invoke(self, handler: HookFn, args: tuple[Any, ...], signal: AbortSignal) -> Any:
        """Call *handler* and, if it suspends, race it against *signal*."""
        result = handler(*args)
        if not inspect.isawaitable(result):
            return result

        work = asyncio.ensure_future(result)
        aborted = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({work, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for future in (work, aborted):
                if not future.done():
                    future.cancel()
        if work in done:
            return work.result()
        raise RequestAbortedError("Hook execution aborted")

    async def _report(
        self,
        ext: Extension,
        context: ExtensionContext,
        error: Exception,
        hook: HookName,
        meta: Optional[ErrorMeta],
    ) -> None:
        """Let a failing extension observe its own failure. Never raises."""
        on_error = ext.handler(HookName.ON_ERROR)
        if on_error is None:
            return
        error_meta = (
            dataclasses.replace(meta, hook=hook.value) if meta else ErrorMeta(hook=hook.value)
        )
        try:
            result = on_error(error, context, error_meta)
            if inspect.isawaitable(result):
                await result
        except Exception as handler_error:
            logger.error("Error in on_error handler for '%s': %s", ext.name, handler_error)
