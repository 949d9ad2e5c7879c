"""User-facing asynchronous client.

:class:`Client` ties the pieces together: an
:class:`~wefy.extensions.registry.ExtensionRegistry` holding the
extensions, a :class:`~wefy.extensions.scheduler.HookScheduler` running
their hooks, a :class:`~wefy.client.transport.Transport` and a
:class:`~wefy.client.pipeline.RequestPipeline` that drives each call.

Verb helpers (:meth:`Client.get`, :meth:`Client.post`, ...) return the
decoded body. :meth:`Client.request` returns the full
:class:`~wefy.models.ResponseSummary`, and the :attr:`Client.raw`
namespace returns the undecoded :class:`httpx.Response`.

Example::

    async with Client.create("https://api.example.com", [bearer_auth("s3cret")]) as api:
        users = await api.get("/users", params={"page": 2})
        created = await api.post("/users", {"name": "ada"})
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Optional, Union

import httpx
import pydantic

from wefy.client.codec import BodyCodec
from wefy.client.pipeline import RequestPipeline
from wefy.client.transport import HttpxTransport, Transport
from wefy.exceptions import ValidationError
from wefy.extensions.base import Extension
from wefy.extensions.registry import ExtensionRegistry
from wefy.extensions.scheduler import HookScheduler
from wefy.extensions.state import SharedState
from wefy.models import ClientConfig, RequestOptions, ResponseSummary
from wefy.signals import AbortSignal


def _coerce_config(config: Union[ClientConfig, str, dict[str, Any]]) -> ClientConfig:
    if isinstance(config, ClientConfig):
        return config
    if isinstance(config, str):
        config = {"base_url": config}
    try:
        return ClientConfig.model_validate(config)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid client configuration: {exc}") from exc


def _body_options(body: Any) -> dict[str, Any]:
    """Route a positional body to the matching :class:`RequestOptions` field."""
    if body is None:
        return {}
    if isinstance(body, (str, bytes)):
        return {"body": body}
    return {"json_body": body}


class _Verbs:
    """HTTP verb helpers over :meth:`Client.request`."""

    _raw = False

    def __init__(self, client: Client) -> None:
        self._client = client

    async def _call(self, method: str, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        kwargs.update(_body_options(body))
        result = await self._client.request(method, endpoint, raw=self._raw, **kwargs)
        return result if self._raw else result.data

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self._call("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        """Send a POST. A ``str``/``bytes`` *body* is sent as-is, anything else as JSON."""
        return await self._call("POST", endpoint, body, **kwargs)

    async def put(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self._call("PUT", endpoint, body, **kwargs)

    async def patch(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self._call("PATCH", endpoint, body, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self._call("DELETE", endpoint, **kwargs)

    async def head(self, endpoint: str, **kwargs: Any) -> Any:
        return await self._call("HEAD", endpoint, **kwargs)

    async def options(self, endpoint: str, **kwargs: Any) -> Any:
        return await self._call("OPTIONS", endpoint, **kwargs)


class RawVerbs(_Verbs):
    """Same helpers as :class:`Client`, returning :class:`httpx.Response` objects.

    Raw calls skip body decoding and the status check, so a 404 is
    returned rather than raised.
    """

    _raw = True


class Client(_Verbs):
    """Asynchronous HTTP client with lifecycle extensions.

    Extensions are initialised (their ``init`` hooks run) when the client
    is entered as an async context manager, or lazily on the first call.

    Args:
        config: A :class:`ClientConfig`, a mapping of its fields, or just
            the base URL.
        extensions: Extensions to register.
        transport: Custom transport. Defaults to an :class:`HttpxTransport`
            owned (and closed) by this client.
        codec: Custom body codec.

    Raises:
        ValidationError: If the configuration is invalid.
        DuplicateExtensionError: If two extensions share a name.
    """

    def __init__(
        self,
        config: Union[ClientConfig, str, dict[str, Any]],
        extensions: Iterable[Extension] = (),
        transport: Optional[Transport] = None,
        codec: Optional[BodyCodec] = None,
    ) -> None:
        super().__init__(self)
        self._config = _coerce_config(config)
        self._registry = ExtensionRegistry(extensions)
        self._scheduler = HookScheduler(self._registry)
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            verify_ssl=self._config.verify_ssl,
            follow_redirects=self._config.follow_redirects,
        )
        self._pipeline = RequestPipeline(self._config, self._scheduler, self._transport, codec)
        self._codec = codec
        self._start_lock: Optional[asyncio.Lock] = None
        self.raw = RawVerbs(self)

    @classmethod
    def create(
        cls,
        config: Union[ClientConfig, str, dict[str, Any]],
        extensions: Iterable[Extension] = (),
        **kwargs: Any,
    ) -> Client:
        """Alternate constructor mirroring ``Client(config, extensions)``."""
        return cls(config, extensions, **kwargs)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> Client:
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Run every extension's ``init`` hook. Idempotent.

        Raises:
            HookExecutionError: If an ``init`` handler failed. The client
                stays unstarted and a later call retries.
        """
        if self._scheduler.is_initialized:
            return
        if self._start_lock is None:
            self._start_lock = asyncio.Lock()
        async with self._start_lock:
            if not self._scheduler.is_initialized:
                await self._scheduler.initialize(self._config.extensions.config)

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[Union[str, bytes]] = None,
        data: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
        signal: Optional[AbortSignal] = None,
        raw: bool = False,
    ) -> Union[ResponseSummary, httpx.Response]:
        """Send one request through the extension lifecycle.

        Args:
            method: HTTP method.
            endpoint: Path joined to ``base_url``, or an absolute URL.
            params: Query parameters. ``None`` values are dropped.
            headers: Call headers, merged over the client headers.
            json_body: JSON-serialisable body.
            body: Raw string or bytes body.
            data: Form-encoded body.
            timeout: Seconds; defaults to the client timeout.
            signal: Abort signal; firing it cancels the call.
            raw: Return the undecoded :class:`httpx.Response`.

        Returns:
            A :class:`ResponseSummary`, or :class:`httpx.Response` when *raw*.

        Raises:
            WefyError: Any error of the taxonomy in :mod:`wefy.exceptions`.
        """
        try:
            options = RequestOptions(
                params=params or {},
                headers=headers or {},
                timeout=timeout,
                body=body,
                json_body=json_body,
                data=data,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid request options: {exc}") from exc

        await self.start()
        return await self._pipeline.run(method, endpoint, options, signal=signal, raw=raw)

    # ------------------------------------------------------------------ #
    # Derivation
    # ------------------------------------------------------------------ #

    def extend(self, extensions: Iterable[Extension]) -> Client:
        """Return a new client with *extensions* added.

        Later extensions replace earlier ones with the same name. The new
        client shares this client's transport but has fresh extension
        state and must be started separately. The transport stays owned
        by this client: once this client is closed, requests through the
        new one raise :class:`~wefy.exceptions.TransportError`.
        """
        client = Client(
            self._config,
            transport=self._transport,
            codec=self._codec,
        )
        client._replace_registry(self._registry.extend(extensions))
        return client

    def derive(self, **overrides: Any) -> Client:
        """Return a client whose config is this one's with *overrides* applied.

        ``headers`` are merged over the current client headers rather than
        replacing them. Extensions are carried over with fresh state.

        Example::

            admin = api.derive(base_url="https://api.example.com/admin", timeout=30)
        """
        merged = self._config.model_dump()
        extra_headers = overrides.pop("headers", None) or {}
        merged.update(overrides)
        merged["headers"] = {**self._config.headers, **extra_headers}
        client = Client(
            _coerce_config(merged),
            transport=None if self._owns_transport else self._transport,
            codec=self._codec,
        )
        client._replace_registry(self._registry.extend(()))
        return client

    def _replace_registry(self, registry: ExtensionRegistry) -> None:
        self._registry = registry
        self._scheduler = HookScheduler(registry)
        self._pipeline = RequestPipeline(self._config, self._scheduler, self._transport, self._codec)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def registry(self) -> ExtensionRegistry:
        return self._registry

    @property
    def scheduler(self) -> HookScheduler:
        return self._scheduler

    @property
    def shared_state(self) -> SharedState:
        return self._registry.shared_state

    def clear_shared_state(self) -> None:
        self._registry.clear_shared_state()
