"""Cooperative abort signals for calls and hook phases.

An :class:`AbortSignal` is a one-shot flag built on :class:`asyncio.Event`.
Awaiting :meth:`AbortSignal.wait` lets a coroutine race pending work
against the signal. :func:`combine_signals` derives a signal that fires as
soon as any of its sources fires, which is how a call merges its own
timeout signal with a caller-supplied one.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional


class AbortSignal:
    """One-shot abort flag.

    Attributes:
        reason: Whatever was passed to :meth:`abort` (``None`` until then).
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._followers: list[AbortSignal] = []
        self._sources: list[AbortSignal] = []
        self.reason: Any = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: Any = None) -> None:
        """Fire the signal. Later calls are no-ops."""
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        for follower in list(self._followers):
            follower.abort(reason)

    async def wait(self) -> Any:
        """Block until the signal fires and return its reason."""
        await self._event.wait()
        return self.reason

    def release(self) -> None:
        """Stop following the signals this one was combined from."""
        for source in self._sources:
            if self in source._followers:
                source._followers.remove(self)
        self._sources.clear()


def combine_signals(*signals: Optional[AbortSignal]) -> AbortSignal:
    """Return a signal that fires when any non-``None`` source fires.

    If a source has already fired, the combined signal starts aborted with
    that source's reason.
    """
    combined = AbortSignal()
    for signal in signals:
        if signal is None:
            continue
        if signal.aborted:
            combined.abort(signal.reason)
            combined.release()
            return combined
        signal._followers.append(combined)
        combined._sources.append(signal)
    return combined
