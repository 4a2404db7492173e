"""Tests for pagination metadata."""

from __future__ import annotations

from huntress_client.pagination import Pagination, extract_pagination, has_pagination_headers


class TestExtractPagination:
    def test_defaults_without_headers(self) -> None:
        assert extract_pagination(None) == Pagination(
            page=1, per_page=20, total_pages=1, total_items=0
        )
        assert extract_pagination({}) == Pagination()

    def test_reads_headers_case_insensitively(self) -> None:
        pagination = extract_pagination(
            {"x-page": "3", "x-per-page": "25", "x-total-pages": "5", "x-total-items": "110"}
        )
        assert pagination == Pagination(page=3, per_page=25, total_pages=5, total_items=110)

    def test_total_count_alias(self) -> None:
        assert extract_pagination({"X-Total-Count": "9"}).total_items == 9

    def test_garbage_values_fall_back(self) -> None:
        pagination = extract_pagination({"X-Page": "abc", "X-Per-Page": "0", "X-Total-Pages": "-2"})
        assert pagination == Pagination()

    def test_has_pagination_headers(self) -> None:
        assert has_pagination_headers({"X-Page": "1"})
        assert not has_pagination_headers({"Content-Type": "application/json"})
        assert not has_pagination_headers(None)


class TestPaginationNavigation:
    def test_middle_page(self) -> None:
        pagination = Pagination(page=2, total_pages=3)
        assert pagination.has_next and pagination.has_previous
        assert (pagination.previous_page, pagination.next_page) == (1, 3)
        assert not pagination.is_first_page and not pagination.is_last_page

    def test_single_page(self) -> None:
        pagination = Pagination()
        assert not pagination.has_next and not pagination.has_previous
        assert pagination.next_page == 1
        assert pagination.is_first_page and pagination.is_last_page

    def test_from_body_mapping(self) -> None:
        pagination = Pagination.from_mapping(
            {"current_page": 2, "items_per_page": 10, "total_pages": 4, "total_count": 31}
        )
        assert pagination == Pagination(page=2, per_page=10, total_pages=4, total_items=31)
