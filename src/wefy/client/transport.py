"""Transport collaborator -- puts a finalized request on the wire.

The pipeline only depends on the :class:`Transport` protocol. The default
:class:`HttpxTransport` wraps :class:`httpx.AsyncClient` and races each
send against the call's :class:`~wefy.signals.AbortSignal`, so a fired
signal cancels the in-flight request.

Failure mapping:

* signal fired with a :class:`~wefy.exceptions.WefyError` reason -- that
  error (the pipeline uses :class:`~wefy.exceptions.RequestTimeoutError`)
* signal fired otherwise -- :class:`~wefy.exceptions.RequestAbortedError`
* :class:`httpx.TimeoutException` -- :class:`~wefy.exceptions.RequestTimeoutError`
* any other :class:`httpx.HTTPError` -- :class:`~wefy.exceptions.TransportError`
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from wefy.exceptions import (
    RequestAbortedError,
    RequestTimeoutError,
    TransportError,
    WefyError,
)
from wefy.models import Request
from wefy.signals import AbortSignal

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Sends one request. Must honour *signal* and reject distinguishably on abort."""

    async def send(self, request: Request, signal: AbortSignal) -> httpx.Response: ...


class HttpxTransport:
    """:class:`Transport` backed by :class:`httpx.AsyncClient`.

    Args:
        client: An existing client to send through. When omitted one is
            created lazily and closed by :meth:`aclose`.
        verify_ssl: Passed to the created client.
        follow_redirects: Passed to the created client.
        transport: Optional low-level httpx transport for the created
            client (e.g. :class:`httpx.MockTransport` in tests).

    A transport that created its own client cannot be reused once
    :meth:`aclose` has run.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        verify_ssl: bool = True,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._verify_ssl = verify_ssl
        self._follow_redirects = follow_redirects
        self._transport = transport
        self._closed = False

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._closed:
            raise TransportError("Transport is closed")
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self._verify_ssl,
                follow_redirects=self._follow_redirects,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if not self._owns_client:
            return
        self._closed = True
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def send(self, request: Request, signal: AbortSignal) -> httpx.Response:
        """Send *request*, cancelling it if *signal* fires first.

        Raises:
            RequestTimeoutError: On timeout.
            RequestAbortedError: If the signal fired for another reason.
            TransportError: On any other network failure.
        """
        if signal.aborted:
            raise _abort_error(signal)

        client = self._ensure_client()
        http_request = client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.body,
            timeout=request.timeout,
        )

        work = asyncio.ensure_future(client.send(http_request))
        aborted = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({work, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for future in (work, aborted):
                if not future.done():
                    future.cancel()

        if work not in done:
            logger.debug("Aborted %s %s", request.method, request.url)
            raise _abort_error(signal)

        try:
            return work.result()
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(request.timeout) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {exc}") from exc


def _abort_error(signal: AbortSignal) -> WefyError:
    if isinstance(signal.reason, WefyError):
        return signal.reason
    return RequestAbortedError("Request aborted")
