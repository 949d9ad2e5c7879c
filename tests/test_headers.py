"""Tests for header reconciliation."""

from __future__ import annotations

import httpx
import pytest

from wefy.headers import (
    HeaderStrategy,
    header_items,
    merge_headers,
    parse_header_lines,
    resolve_strategy,
)


def _items(headers: httpx.Headers) -> list[tuple[str, str]]:
    return header_items(headers)


# ---------------------------------------------------------------------------
# Strategy resolution
# ---------------------------------------------------------------------------


class TestResolveStrategy:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Authorization", HeaderStrategy.OVERRIDE),
            ("content-type", HeaderStrategy.OVERRIDE),
            ("X-Request-Id", HeaderStrategy.OVERRIDE),
            ("Set-Cookie", HeaderStrategy.MULTI_VALUE),
            ("WWW-Authenticate", HeaderStrategy.MULTI_VALUE),
            ("Cookie", HeaderStrategy.MERGE),
            ("Accept", HeaderStrategy.MERGE),
            ("Accept-Language", HeaderStrategy.MERGE),
            ("Cache-Control", HeaderStrategy.MERGE),
        ],
    )
    def test_table(self, name: str, expected: HeaderStrategy) -> None:
        assert resolve_strategy(name) is expected

    def test_caller_override_wins(self) -> None:
        strategies = {"X-Tags": HeaderStrategy.MERGE, "accept": HeaderStrategy.OVERRIDE}
        assert resolve_strategy("x-tags", strategies) is HeaderStrategy.MERGE
        assert resolve_strategy("Accept", strategies) is HeaderStrategy.OVERRIDE


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


class TestOverride:
    def test_authorization_replaced(self) -> None:
        merged = merge_headers({"Authorization": "A"}, {"Authorization": "B"})
        assert _items(merged) == [("Authorization", "B")]

    def test_incoming_casing_preferred(self) -> None:
        merged = merge_headers({"x-token": "1"}, {"X-Token": "2"})
        assert _items(merged) == [("X-Token", "2")]

    def test_one_sided_headers_copied(self) -> None:
        merged = merge_headers({"X-Base": "1"}, {"X-Call": "2"})
        assert _items(merged) == [("X-Base", "1"), ("X-Call", "2")]


class TestMultiValue:
    def test_set_cookie_keeps_both_entries(self) -> None:
        merged = merge_headers({"Set-Cookie": "a=1"}, {"Set-Cookie": "b=2"})
        assert merged.get_list("set-cookie") == ["a=1", "b=2"]


class TestMerge:
    def test_accept_sorted_by_quality(self) -> None:
        merged = merge_headers({"Accept": "text/html;q=0.5"}, {"Accept": "application/json;q=0.9"})
        assert merged["Accept"] == "application/json;q=0.9, text/html;q=0.5"

    def test_accept_incoming_wins_for_same_media_type(self) -> None:
        merged = merge_headers(
            {"Accept": "text/html;q=0.9, application/xml"},
            {"Accept": "TEXT/HTML;q=0.1"},
        )
        assert merged["Accept"] == "application/xml, TEXT/HTML;q=0.1"

    def test_accept_invalid_quality_counts_as_one(self) -> None:
        merged = merge_headers({"Accept": "text/plain;q=abc"}, {"Accept": "text/html;q=0.5"})
        assert merged["Accept"] == "text/plain;q=abc, text/html;q=0.5"

    @pytest.mark.parametrize("weight", ["nan", "inf", "-inf", "2", "-1", "1_0"])
    def test_accept_out_of_range_quality_counts_as_one(self, weight: str) -> None:
        merged = merge_headers({"Accept": f"text/plain;q={weight}"}, {"Accept": "text/html;q=0.5"})
        assert merged["Accept"] == f"text/plain;q={weight}, text/html;q=0.5"

    def test_cookie_union_incoming_wins(self) -> None:
        merged = merge_headers({"Cookie": "a=1"}, {"Cookie": "a=2; b=3"})
        assert merged["Cookie"] == "a=2; b=3"

    def test_cookie_drops_malformed_pairs(self) -> None:
        merged = merge_headers({"Cookie": "a=1; junk; =x"}, {"Cookie": "b=2"})
        assert merged["Cookie"] == "a=1; b=2"

    def test_cookie_all_malformed_omits_header(self) -> None:
        merged = merge_headers({"Cookie": "junk"}, {"Cookie": "=x"})
        assert "cookie" not in merged

    def test_list_dedupes_case_insensitively(self) -> None:
        merged = merge_headers(
            {"Cache-Control": "no-cache, max-age=0"}, {"Cache-Control": "No-Cache, private"}
        )
        assert merged["Cache-Control"] == "no-cache, max-age=0, private"


class TestProperties:
    @pytest.mark.parametrize(
        "a, b",
        [
            ({"Authorization": "A"}, {"Authorization": "B"}),
            ({"Accept": "text/html;q=0.5"}, {"Accept": "application/json;q=0.9"}),
            ({"Cookie": "a=1"}, {"Cookie": "a=2; b=3"}),
            ({"Vary": "Accept"}, {"Vary": "Origin, accept"}),
        ],
    )
    def test_idempotent(self, a: dict[str, str], b: dict[str, str]) -> None:
        once = merge_headers(a, b)
        twice = merge_headers(once, b)
        assert _items(twice) == _items(once)

    def test_inputs_not_modified(self) -> None:
        base = {"Accept": "text/html"}
        incoming = httpx.Headers({"Accept": "application/json"})
        merge_headers(base, incoming)
        assert base == {"Accept": "text/html"}
        assert incoming["accept"] == "application/json"

    def test_accepts_pairs_and_none(self) -> None:
        merged = merge_headers([("X-A", "1"), ("X-A", "2")], None)
        assert merged.get_list("x-a") == ["1", "2"]
        assert _items(merge_headers(None, None)) == []

    def test_non_ascii_values(self) -> None:
        merged = merge_headers({"X-Name": "café"}, {"X-Other": "1"})
        assert merged["X-Name"] == "café"
        assert _items(merged) == [("X-Name", "café"), ("X-Other", "1")]

    def test_base_order_first(self) -> None:
        merged = merge_headers({"B": "1", "A": "1"}, {"C": "1", "A": "2"})
        assert [name for name, _ in _items(merged)] == ["B", "A", "C"]


class TestParseHeaderLines:
    def test_parses_and_skips_invalid(self) -> None:
        lines = ["Accept: application/json", "bad line", ": empty", "X-Url: http://a:1/"]
        assert parse_header_lines(lines) == [
            ("Accept", "application/json"),
            ("X-Url", "http://a:1/"),
        ]
