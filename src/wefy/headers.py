"""Header reconciliation for client-level and call-level header sets.

:func:`merge_headers` combines two independently authored header
collections into one :class:`httpx.Headers`. When both sides define the
same header (compared case-insensitively) the outcome depends on the
header family:

* **override** -- the incoming value replaces the base value.
* **multi_value** -- both values are kept as separate entries, base first.
* **merge** -- both values are folded into one, using a combinator that
  understands the header's grammar: ``Cookie`` pairs, quality-weighted
  ``Accept*`` lists, or plain comma-separated lists.

The function is pure: it never reads or writes module state, and the same
inputs always produce the same output.

Example::

    >>> merge_headers({"Accept": "text/html;q=0.5"}, {"Accept": "application/json;q=0.9"})
    Headers({'accept': 'application/json;q=0.9, text/html;q=0.5'})
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from typing import Optional, Union

import httpx


class HeaderStrategy(str, enum.Enum):
    """How to combine a header that both sides define."""

    OVERRIDE = "override"
    MULTI_VALUE = "multi_value"
    MERGE = "merge"


HeaderSet = Union[httpx.Headers, Mapping[str, str], Iterable[tuple[str, str]]]

_STRATEGIES: dict[str, HeaderStrategy] = {
    "authorization": HeaderStrategy.OVERRIDE,
    "proxy-authorization": HeaderStrategy.OVERRIDE,
    "content-type": HeaderStrategy.OVERRIDE,
    "content-length": HeaderStrategy.OVERRIDE,
    "host": HeaderStrategy.OVERRIDE,
    "user-agent": HeaderStrategy.OVERRIDE,
    "set-cookie": HeaderStrategy.MULTI_VALUE,
    "www-authenticate": HeaderStrategy.MULTI_VALUE,
    "proxy-authenticate": HeaderStrategy.MULTI_VALUE,
    "cookie": HeaderStrategy.MERGE,
    "cache-control": HeaderStrategy.MERGE,
    "pragma": HeaderStrategy.MERGE,
    "vary": HeaderStrategy.MERGE,
    "if-match": HeaderStrategy.MERGE,
    "if-none-match": HeaderStrategy.MERGE,
    "te": HeaderStrategy.MERGE,
    "via": HeaderStrategy.MERGE,
}


def resolve_strategy(
    name: str, strategies: Optional[Mapping[str, HeaderStrategy]] = None
) -> HeaderStrategy:
    """Return the merge strategy for header *name*.

    Caller-supplied *strategies* take precedence over the built-in table.
    Any header starting with ``accept`` merges; unclassified headers
    override.

    Args:
        name: Header name in any casing.
        strategies: Optional overrides keyed by header name (any casing).

    Returns:
        The resolved :class:`HeaderStrategy`.
    """
    lowered = name.lower()
    if strategies:
        for key, strategy in strategies.items():
            if key.lower() == lowered:
                return HeaderStrategy(strategy)
    if lowered in _STRATEGIES:
        return _STRATEGIES[lowered]
    if lowered.startswith("accept"):
        return HeaderStrategy.MERGE
    return HeaderStrategy.OVERRIDE


def merge_headers(
    base: Optional[HeaderSet],
    incoming: Optional[HeaderSet],
    strategies: Optional[Mapping[str, HeaderStrategy]] = None,
) -> httpx.Headers:
    """Merge *incoming* headers on top of *base* headers.

    Names present on one side only are copied unchanged. Names present on
    both sides are combined with :func:`resolve_strategy`. The output keeps
    the casing of whichever side defines a header, preferring the incoming
    casing when both do. Base names come first, in first-seen order,
    followed by names that only *incoming* defines.

    Args:
        base: Lower-precedence headers (e.g. client defaults).
        incoming: Higher-precedence headers (e.g. per-call headers).
        strategies: Optional per-name strategy overrides.

    Returns:
        A new UTF-8 encoded :class:`httpx.Headers`; neither input is modified.
    """
    base_groups = _group(header_items(base))
    incoming_groups = _group(header_items(incoming))

    merged: list[tuple[str, str]] = []
    for lowered, (name, values) in base_groups.items():
        if lowered not in incoming_groups:
            merged.extend((name, value) for value in values)
            continue

        incoming_name, incoming_values = incoming_groups[lowered]
        strategy = resolve_strategy(lowered, strategies)
        if strategy is HeaderStrategy.OVERRIDE:
            merged.extend((incoming_name, value) for value in incoming_values)
        elif strategy is HeaderStrategy.MULTI_VALUE:
            merged.extend((incoming_name, value) for value in values + incoming_values)
        else:
            value = _combine(lowered, values, incoming_values)
            if value:
                merged.append((incoming_name, value))

    for lowered, (name, values) in incoming_groups.items():
        if lowered not in base_groups:
            merged.extend((name, value) for value in values)

    return httpx.Headers(merged, encoding="utf-8")


def parse_header_lines(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Parse ``Name: value`` strings into ``(name, value)`` pairs.

    Lines without a colon or with an empty name are ignored.

    Args:
        lines: Header lines, e.g. from repeated ``-H`` CLI options.

    Returns:
        The parsed pairs in input order.
    """
    pairs: list[tuple[str, str]] = []
    for line in lines:
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name:
            continue
        pairs.append((name, value.strip()))
    return pairs


# --- Header set normalisation ---


def header_items(headers: Optional[HeaderSet]) -> list[tuple[str, str]]:
    """Flatten any supported header set into ``(name, value)`` pairs, keeping casing."""
    if headers is None:
        return []
    if isinstance(headers, httpx.Headers):
        encoding = headers.encoding
        return [(k.decode(encoding), v.decode(encoding)) for k, v in headers.raw]
    if isinstance(headers, Mapping):
        return [(str(k), str(v)) for k, v in headers.items()]
    return [(str(k), str(v)) for k, v in headers]


def _group(items: list[tuple[str, str]]) -> dict[str, tuple[str, list[str]]]:
    """Group pairs by lower-cased name, keeping the first-seen casing."""
    groups: dict[str, tuple[str, list[str]]] = {}
    for name, value in items:
        lowered = name.lower()
        if lowered in groups:
            groups[lowered][1].append(value)
        else:
            groups[lowered] = (name, [value])
    return groups


# --- Combinators ---


def _combine(lowered: str, base: list[str], incoming: list[str]) -> str:
    if lowered == "cookie":
        return _merge_cookies(base, incoming)
    if lowered.startswith("accept"):
        return _merge_accept(base, incoming)
    return _merge_list(base, incoming)


def _parse_cookies(values: list[str]) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        for part in value.split(";"):
            key, sep, val = part.partition("=")
            key = key.strip()
            if not sep or not key:
                continue
            pairs[key] = val.strip()
    return pairs


def _merge_cookies(base: list[str], incoming: list[str]) -> str:
    cookies = _parse_cookies(base)
    cookies.update(_parse_cookies(incoming))
    return "; ".join(f"{key}={value}" for key, value in cookies.items())


def _split_list(values: list[str]) -> list[str]:
    items: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item:
                items.append(item)
    return items


def _quality(item: str) -> float:
    """Return the ``q`` weight of an Accept-family item (1.0 if absent or invalid).

    Weights outside ``[0, 1]`` and non-finite values count as invalid.
    """
    for param in item.split(";")[1:]:
        key, sep, value = param.partition("=")
        if sep and key.strip().lower() == "q":
            try:
                weight = float(value.strip())
            except ValueError:
                return 1.0
            if not math.isfinite(weight) or not 0.0 <= weight <= 1.0:
                return 1.0
            return weight
    return 1.0


def _merge_accept(base: list[str], incoming: list[str]) -> str:
    entries: dict[str, str] = {}
    for item in _split_list(base) + _split_list(incoming):
        media = item.split(";", 1)[0].strip().lower()
        entries[media] = item
    ranked = sorted(entries.values(), key=_quality, reverse=True)
    return ", ".join(ranked)


def _merge_list(base: list[str], incoming: list[str]) -> str:
    seen: dict[str, str] = {}
    for item in _split_list(base) + _split_list(incoming):
        seen.setdefault(item.lower(), item)
    return ", ".join(seen.values())
