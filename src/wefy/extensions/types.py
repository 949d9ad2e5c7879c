"""Payload types handed to extension hooks.

Each hook receives exactly one of these frozen dataclasses as its first
argument (``on_error`` receives the exception first and an
:class:`ErrorMeta` third). The extension's
:class:`~wefy.extensions.state.ExtensionContext` is always the last
argument.

=================== ============================== ===========================
Hook                Payload                        Fired
=================== ============================== ===========================
``init``            ``Mapping`` (client config)    once, at client start-up
``before_request``  :class:`BeforeRequestEvent`    before URL/headers are final
``on_request``      :class:`RequestEvent`          finalized wire request
``before_response`` :class:`BeforeResponseEvent`   raw response, before decode
``on_response``     :class:`ResponseEvent`         decoded body available
``after_success``   :class:`SuccessEvent`          call succeeded
``on_error``        exception + :class:`ErrorMeta` call or hook failed
``after_request``   :class:`AfterRequestEvent`     always, last
``on_state_change`` :class:`StateChange`           private state replaced
=================== ============================== ===========================
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import httpx

if TYPE_CHECKING:
    from wefy.models import RequestOptions


@dataclass(frozen=True)
class BeforeRequestEvent:
    """Call intent. ``config`` is a per-call copy handlers may mutate."""

    method: str
    endpoint: str
    config: RequestOptions


@dataclass(frozen=True)
class RequestEvent:
    """The finalized request as it will be sent."""

    url: str
    method: str
    headers: httpx.Headers
    body: Any = None


@dataclass(frozen=True)
class BeforeResponseEvent:
    response: httpx.Response
    duration: float


@dataclass(frozen=True)
class ResponseEvent:
    response: httpx.Response
    data: Any


@dataclass(frozen=True)
class SuccessEvent:
    data: Any
    response: httpx.Response
    duration: float


@dataclass(frozen=True)
class ErrorMeta:
    """Where an error happened.

    The pipeline fills ``method``, ``endpoint`` and ``config``; the
    scheduler fills ``hook`` when a handler of that hook failed.
    """

    method: Optional[str] = None
    endpoint: Optional[str] = None
    config: Optional[RequestOptions] = None
    hook: Optional[str] = None


@dataclass(frozen=True)
class AfterRequestEvent:
    method: str
    endpoint: str
    config: Optional[RequestOptions]
    duration: float
    success: bool


@dataclass(frozen=True)
class StateChange:
    previous_state: Mapping[str, Any]
    new_state: Mapping[str, Any]
