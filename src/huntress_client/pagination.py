"""Pagination metadata extracted from list responses.

Usage example:
    from huntress_client.pagination import extract_pagination

    pagination = extract_pagination(response.headers)
    if pagination.has_next:
        next_page = pagination.next_page
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Self

from requests.structures import CaseInsensitiveDict

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 20
DEFAULT_TOTAL_PAGES = 1
DEFAULT_TOTAL_ITEMS = 0


@dataclass(frozen=True)
class Pagination:
    """Page position of a list response. Informational only."""

    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE
    total_pages: int = DEFAULT_TOTAL_PAGES
    total_items: int = DEFAULT_TOTAL_ITEMS

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def next_page(self) -> int:
        return self.page + 1 if self.has_next else self.page

    @property
    def previous_page(self) -> int:
        return self.page - 1 if self.has_previous else self.page

    @property
    def is_first_page(self) -> bool:
        return self.page == 1

    @property
    def is_last_page(self) -> bool:
        return self.page >= self.total_pages

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> Self:
        """Build from a body envelope such as ``{"page": 2, "total_pages": 5}``."""
        return cls(
            page=_parse_count(data.get("page", data.get("current_page")), DEFAULT_PAGE, 1),
            per_page=_parse_count(
                data.get("per_page", data.get("items_per_page")), DEFAULT_PER_PAGE, 1
            ),
            total_pages=_parse_count(data.get("total_pages"), DEFAULT_TOTAL_PAGES, 1),
            total_items=_parse_count(
                data.get("total_items", data.get("total_count")), DEFAULT_TOTAL_ITEMS, 0
            ),
        )


def _parse_count(value: object, default: int, minimum: int) -> int:
    """Parse a header/body count, falling back to default when unusable."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            return default
        parsed = int(text)
    if parsed < minimum:
        return default
    return parsed


def has_pagination_headers(headers: Mapping[str, str] | None) -> bool:
    """Check whether any pagination header is present."""
    if not headers:
        return False
    lookup = CaseInsensitiveDict(headers)
    return any(
        name in lookup
        for name in ("X-Page", "X-Per-Page", "X-Total-Pages", "X-Total-Count", "X-Total-Items")
    )


def extract_pagination(headers: Mapping[str, str] | None) -> Pagination:
    """Read pagination headers; missing or unparseable values use defaults.

    Never raises: a response without pagination headers is a single page.
    """
    if not headers:
        return Pagination()
    lookup = CaseInsensitiveDict(headers)
    total_items = lookup.get("X-Total-Count")
    if total_items is None:
        total_items = lookup.get("X-Total-Items")
    return Pagination(
        page=_parse_count(lookup.get("X-Page"), DEFAULT_PAGE, 1),
        per_page=_parse_count(lookup.get("X-Per-Page"), DEFAULT_PER_PAGE, 1),
        total_pages=_parse_count(lookup.get("X-Total-Pages"), DEFAULT_TOTAL_PAGES, 1),
        total_items=_parse_count(total_items, DEFAULT_TOTAL_ITEMS, 0),
    )
