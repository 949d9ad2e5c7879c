"""Request pipeline -- one call, wrapped in the extension lifecycle.

:class:`RequestPipeline` drives every call through these phases, in order:

1. ``before_request`` -- extensions see (and may mutate) a copy of the
   call options.
2. The URL is built and client headers are merged with call headers via
   :func:`~wefy.headers.merge_headers`; the frozen
   :class:`~wefy.models.Request` is created.
3. ``on_request`` -- extensions observe the finalized request.
4. ``send`` -- the :class:`~wefy.client.transport.Transport` call, bounded
   by the call timeout and any caller-supplied abort signal.
5. ``before_response`` -- raw response, before decoding.
6. ``decode`` -- :class:`~wefy.client.codec.BodyCodec`; a non-2xx status
   raises :class:`~wefy.exceptions.RequestError` here.
7. ``on_response`` then ``after_success``.
8. ``after_request`` -- always, with ``success`` set accordingly.

A failure anywhere in phases 1-7 skips the rest of them, runs
``on_error``, then ``after_request(success=False)``, and re-raises the
original error. Cancelling the calling task takes the same route, with
``on_error`` seeing a :class:`~wefy.exceptions.RequestAbortedError`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Optional, Union

import httpx

from wefy.client.codec import BodyCodec
from wefy.client.transport import Transport
from wefy.exceptions import (
    HookExecutionError,
    NotInitializedError,
    ParseError,
    RequestAbortedError,
    RequestError,
    RequestTimeoutError,
    TransportError,
    WefyError,
)
from wefy.extensions.base import HookName
from wefy.extensions.scheduler import HookScheduler
from wefy.extensions.types import (
    AfterRequestEvent,
    BeforeRequestEvent,
    BeforeResponseEvent,
    ErrorMeta,
    RequestEvent,
    ResponseEvent,
    SuccessEvent,
)
from wefy.headers import merge_headers
from wefy.models import ClientConfig, Request, RequestOptions, ResponseSummary
from wefy.signals import AbortSignal, combine_signals
from wefy.urls import build_url

logger = logging.getLogger(__name__)


class RequestPipeline:
    """Runs single calls through the extension lifecycle.

    Pipelines hold no per-call state, so concurrent :meth:`run` calls on
    one pipeline are independent. They do share the registry's shared
    state and per-extension stores.

    Args:
        config: Client configuration (base URL, default timeout, headers).
        scheduler: An initialised :class:`HookScheduler`.
        transport: Sends the finalized request.
        codec: Decodes response bodies. Defaults to :class:`BodyCodec`.
    """

    def __init__(
        self,
        config: ClientConfig,
        scheduler: HookScheduler,
        transport: Transport,
        codec: Optional[BodyCodec] = None,
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._transport = transport
        self._codec = codec or BodyCodec()

    async def run(
        self,
        method: str,
        endpoint: str,
        options: Optional[RequestOptions] = None,
        signal: Optional[AbortSignal] = None,
        raw: bool = False,
    ) -> Union[ResponseSummary, httpx.Response]:
        """Execute one call.

        Args:
            method: HTTP method.
            endpoint: Path relative to the base URL, or an absolute URL.
            options: Call options. Copied; the caller's object is never
                mutated.
            signal: Optional caller-supplied abort signal.
            raw: Skip decoding and the status check and return the
                :class:`httpx.Response` itself.

        Returns:
            A :class:`ResponseSummary`, or the raw response when *raw*.

        Raises:
            NotInitializedError: If the scheduler was never initialised.
            HookExecutionError: If an extension hook failed.
            RequestTimeoutError: If the transport did not answer in time.
            RequestAbortedError: If *signal* fired during the send.
            TransportError: On network failures.
            ParseError: If the body did not decode.
            RequestError: On a non-2xx status.
        """
        if not self._scheduler.is_initialized:
            raise NotInitializedError("Client extensions have not been initialized")

        method = method.upper()
        options = options.model_copy(deep=True) if options else RequestOptions()
        meta = ErrorMeta(method=method, endpoint=endpoint, config=options)
        started = time.perf_counter()

        def elapsed() -> float:
            return time.perf_counter() - started

        try:
            await self._scheduler.execute(
                HookName.BEFORE_REQUEST,
                BeforeRequestEvent(method=method, endpoint=endpoint, config=options),
                meta=meta,
            )

            request = self._build_request(method, endpoint, options)
            await self._scheduler.execute(
                HookName.ON_REQUEST,
                RequestEvent(
                    url=request.url,
                    method=request.method,
                    headers=httpx.Headers(request.headers),
                    body=request.body,
                ),
                meta=meta,
            )

            response = await self._send(request, signal)
            await self._scheduler.execute(
                HookName.BEFORE_RESPONSE,
                BeforeResponseEvent(response=response, duration=elapsed()),
                meta=meta,
            )

            data = None if raw else self._decode(request, response)
            await self._scheduler.execute(
                HookName.ON_RESPONSE,
                ResponseEvent(response=response, data=data),
                meta=meta,
            )

            duration = elapsed()
            await self._scheduler.execute(
                HookName.AFTER_SUCCESS,
                SuccessEvent(data=data, response=response, duration=duration),
                meta=meta,
            )
        except asyncio.CancelledError:
            # the caller was cancelled; finish the lifecycle before propagating
            await self._fail(RequestAbortedError("Request cancelled"), meta, elapsed())
            raise
        except Exception as exc:
            await self._fail(exc, meta, elapsed())
            raise

        await self._scheduler.execute(
            HookName.AFTER_REQUEST,
            AfterRequestEvent(
                method=method,
                endpoint=endpoint,
                config=options,
                duration=elapsed(),
                success=True,
            ),
        )

        if raw:
            return response
        return ResponseSummary(
            status=response.status_code,
            headers=response.headers,
            duration=duration,
            data=data,
            url=request.url,
        )

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    def _build_request(self, method: str, endpoint: str, options: RequestOptions) -> Request:
        """Finalize URL, headers and body from the (possibly mutated) options."""
        url = build_url(self._config.base_url, endpoint, options.params)
        headers = merge_headers(self._config.headers, options.headers)

        body: Optional[bytes] = None
        if options.data is not None:
            body = str(httpx.QueryParams(options.data)).encode("ascii")
            if "content-type" not in headers:
                headers["Content-Type"] = "application/x-www-form-urlencoded"
        elif options.json_body is not None:
            body = json.dumps(options.json_body).encode("utf-8")
            if "content-type" not in headers:
                headers["Content-Type"] = "application/json"
        elif options.body is not None:
            body = options.body if isinstance(options.body, bytes) else str(options.body).encode("utf-8")

        return Request(
            method=method,
            url=str(url),
            headers=headers,
            body=body,
            timeout=options.timeout or self._config.timeout,
        )

    async def _send(self, request: Request, caller_signal: Optional[AbortSignal]) -> httpx.Response:
        """Send through the transport under the call timeout and abort signals."""
        call_signal = AbortSignal()
        signal = combine_signals(call_signal, caller_signal)
        loop = asyncio.get_running_loop()
        timer = loop.call_later(
            request.timeout, call_signal.abort, RequestTimeoutError(request.timeout)
        )
        logger.debug("%s %s (timeout %ss)", request.method, request.url, request.timeout)
        try:
            return await self._transport.send(request, signal)
        except WefyError:
            raise
        except Exception as exc:
            raise TransportError(f"Request failed: {exc}") from exc
        finally:
            timer.cancel()
            signal.release()

    def _decode(self, request: Request, response: httpx.Response) -> Any:
        try:
            data = self._codec.decode(response)
        except WefyError:
            raise
        except Exception as exc:
            raise ParseError(response.headers.get("content-type", ""), str(exc)) from exc

        if not response.is_success:
            raise RequestError(
                status=response.status_code,
                reason=response.reason_phrase,
                data=data,
                method=request.method,
                url=request.url,
            )
        return data

    async def _fail(self, error: Exception, meta: ErrorMeta, duration: float) -> None:
        """Run ``on_error`` and ``after_request`` for a failed call. Never raises."""
        logger.debug("%s %s failed: %s", meta.method, meta.endpoint, error)
        try:
            await self._scheduler.execute(HookName.ON_ERROR, error, meta)
        except HookExecutionError as hook_error:
            logger.error("on_error hooks failed for %s %s: %s", meta.method, meta.endpoint, hook_error)

        try:
            await self._scheduler.execute(
                HookName.AFTER_REQUEST,
                AfterRequestEvent(
                    method=meta.method or "",
                    endpoint=meta.endpoint or "",
                    config=meta.config,
                    duration=duration,
                    success=False,
                ),
            )
        except HookExecutionError as hook_error:
            logger.error(
                "after_request hooks failed for %s %s: %s", meta.method, meta.endpoint, hook_error
            )
