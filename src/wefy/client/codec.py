"""Response body decoding driven by the declared content type.

:class:`BodyCodec` turns an :class:`httpx.Response` into Python data:

* no body, ``204 No Content`` or a ``HEAD`` request -- ``None``
* ``application/json`` or any ``+json`` type -- the parsed JSON value
* ``text/*``, XML and form-urlencoded bodies -- ``str``
* anything else -- raw ``bytes``

A body that does not parse as its declared type raises
:class:`~wefy.exceptions.ParseError`.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from wefy.exceptions import ParseError

_TEXT_TYPES = ("application/xml", "application/x-www-form-urlencoded", "application/javascript")


class BodyCodec:
    """Selects a decoding strategy from the response ``Content-Type``."""

    def decode(self, response: httpx.Response) -> Any:
        """Decode *response*'s body.

        Args:
            response: A fully read response.

        Returns:
            ``None``, a JSON value, ``str`` or ``bytes`` (see module docs).

        Raises:
            ParseError: If the body cannot be decoded for its content type.
        """
        if response.status_code == 204 or not response.content:
            return None
        try:
            if response.request.method == "HEAD":
                return None
        except RuntimeError:
            # response built without a request
            pass

        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";", 1)[0].strip().lower()

        if media_type == "application/json" or media_type.endswith("+json"):
            try:
                return response.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ParseError(media_type, str(exc)) from exc

        if media_type.startswith("text/") or media_type.endswith("+xml") or media_type in _TEXT_TYPES:
            try:
                return response.text
            except (LookupError, UnicodeDecodeError) as exc:
                raise ParseError(media_type, str(exc)) from exc

        return response.content
