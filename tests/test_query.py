"""Tests for query-string building."""

from __future__ import annotations

from datetime import UTC, date, datetime

from huntress_client.query import ListParams, build_query, merge_query


class TestBuildQuery:
    def test_omits_empty_values(self) -> None:
        assert build_query({"a": None, "b": "", "c": [], "d": "x"}) == [("d", "x")]

    def test_formats_scalars(self) -> None:
        assert build_query(
            [
                ("active", True),
                ("deleted", False),
                ("limit", 10),
                ("since", date(2024, 1, 2)),
                ("at", datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)),
            ]
        ) == [
            ("active", "true"),
            ("deleted", "false"),
            ("limit", "10"),
            ("since", "2024-01-02"),
            ("at", "2024-01-02T03:04:05+00:00"),
        ]

    def test_sequences_repeat_keys(self) -> None:
        assert build_query({"tags": ["a", None, "b"]}) == [("tags", "a"), ("tags", "b")]

    def test_none_is_empty(self) -> None:
        assert build_query(None) == []


class TestMergeQuery:
    def test_overrides_replace_every_base_value(self) -> None:
        base = [("tags", "a"), ("tags", "b"), ("page", "1")]
        assert merge_query(base, [("tags", "c")]) == [("page", "1"), ("tags", "c")]


class TestListParams:
    def test_empty_params(self) -> None:
        assert ListParams().to_query() == []

    def test_all_params(self) -> None:
        assert ListParams(page=2, per_page=50, sort_by="name", sort_desc=True).to_query() == [
            ("page", "2"),
            ("per_page", "50"),
            ("sort_by", "name"),
            ("sort_desc", "true"),
        ]
