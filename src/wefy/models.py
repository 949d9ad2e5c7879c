"""Canonical Pydantic models shared across all wefy modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory and validated on load:
    :class:`ExtensionsConfig` and :class:`ClientConfig`.

**Per-call models** -- built by the request pipeline for every call:
    :class:`RequestOptions` (mutable call intent, handed to
    ``before_request`` hooks), :class:`Request` (the frozen, finalized
    request) and :class:`ResponseSummary` (the frozen call result).

All models use Pydantic v2. The per-call ``Request`` and
``ResponseSummary`` are frozen and allow :mod:`httpx` types as fields.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
"""Methods the client exposes helpers for."""


# --- Configuration ---


class ExtensionsConfig(BaseModel):
    """Extension discovery lists and the config passed to ``init`` hooks.

    When ``enabled`` is non-empty only those entry points are loaded;
    otherwise every discovered entry point not in ``disabled`` is loaded.
    """

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(
        default_factory=dict, description="Mapping handed to every init hook"
    )


class ClientConfig(BaseModel):
    """Client-wide settings persisted at ``~/.config/wefy/config.json``.

    Stored (possibly partial) in the user config and validated by
    :func:`~wefy.config.resolve_config`, which applies the precedence chain.

    Example::

        ClientConfig(
            base_url="https://api.example.com/v1",
            timeout=10,
            headers={"Accept": "application/json"},
        )
    """

    base_url: str = Field(description="Base URL every relative endpoint is joined to")
    timeout: float = Field(default=5.0, gt=0, description="Default request timeout in seconds")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Client-level headers merged into every call"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    extensions: ExtensionsConfig = Field(default_factory=ExtensionsConfig)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("base_url is required")
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid base URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("Only absolute http and https base URLs are supported")
        return value


# --- Per-call models ---


class RequestOptions(BaseModel):
    """Per-call intent.

    A fresh copy is built for every call and passed to ``before_request``
    hooks, which may mutate it. The URL and headers are finalized from
    this object only after ``before_request`` has run.
    """

    params: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = Field(default=None, gt=0)
    body: Optional[Any] = Field(default=None, description="Raw str or bytes body")
    json_body: Optional[Any] = Field(default=None, description="JSON-serialisable body")
    data: Optional[dict[str, Any]] = Field(default=None, description="Form-encoded body")


class Request(BaseModel):
    """The finalized request handed to the transport. Immutable."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str
    url: str
    headers: httpx.Headers
    body: Optional[bytes] = None
    timeout: float


class ResponseSummary(BaseModel):
    """The outcome of a successful call. Immutable."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int
    headers: httpx.Headers
    duration: float
    data: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
