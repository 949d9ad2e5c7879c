"""URL construction for request endpoints.

:func:`build_url` joins a client base URL with a call endpoint and layers
query parameters on top. Absolute endpoints (``http://`` or ``https://``)
bypass the base entirely.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from wefy.exceptions import ValidationError


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(
    base_url: str,
    endpoint: str = "",
    params: Optional[dict[str, Any]] = None,
) -> httpx.URL:
    """Build the final request URL.

    Path segments are joined with exactly one slash. A query string
    embedded in *endpoint* is kept; keys in *params* replace same-named
    keys from it. ``None`` values are dropped and list or tuple values
    produce one entry per item.

    Args:
        base_url: The client base URL (scheme and host required).
        endpoint: A path relative to the base, or an absolute URL.
        params: Query parameters to apply.

    Returns:
        The resolved :class:`httpx.URL`.

    Raises:
        ValidationError: If the URL cannot be constructed.
    """
    is_absolute = endpoint.startswith(("http://", "https://"))
    try:
        if is_absolute:
            url = httpx.URL(endpoint)
        else:
            if not base_url or not base_url.strip():
                raise ValidationError("Base URL must be a non-empty string")
            base = httpx.URL(base_url)
            raw_path, _, endpoint_query = endpoint.partition("?")
            path = base.path
            if raw_path:
                if path.endswith("/") and raw_path.startswith("/"):
                    path += raw_path[1:]
                elif not path.endswith("/") and not raw_path.startswith("/"):
                    path += "/" + raw_path
                else:
                    path += raw_path
            query = httpx.QueryParams(base.query.decode("ascii"))
            if endpoint_query:
                for key, value in httpx.QueryParams(endpoint_query).multi_items():
                    if key and value:
                        query = query.add(key, value)
            url = base.copy_with(path=path, params=query)
    except httpx.InvalidURL as exc:
        raise ValidationError(f"Failed to construct URL: {exc}") from exc

    if not params:
        return url

    query = url.params
    for key, value in params.items():
        if not key:
            continue
        query = query.remove(key)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if item is not None:
                    query = query.add(key, _render(item))
        else:
            query = query.add(key, _render(value))
    return url.copy_with(params=query)
