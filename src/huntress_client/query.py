"""Explicit query-string building.

Usage example:
    from huntress_client.query import ListParams, build_query

    query = build_query(
        [
            ("organization_id", org_id),
            ("status", ["open", "resolved"]),
            ("created_after", None),
        ]
    )
    query += ListParams(page=2, per_page=50).to_query()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime

type QueryValue = str | int | float | bool | date | datetime | None
type QueryInput = Mapping[str, QueryValue | Iterable[QueryValue]] | Iterable[
    tuple[str, QueryValue | Iterable[QueryValue]]
]
type QueryPairs = list[tuple[str, str]]


def _format_value(value: QueryValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value)
    return text or None


def build_query(params: QueryInput | None) -> QueryPairs:
    """Flatten params into ordered ``(key, value)`` pairs.

    Empty values (None, "", empty sequences) are omitted and sequences expand
    into repeated keys for array parameters.
    """
    if params is None:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    pairs: QueryPairs = []
    for key, raw in items:
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
            values: Iterable[QueryValue] = [raw]  # type: ignore[list-item]
        else:
            values = raw
        for value in values:
            text = _format_value(value)
            if text is not None:
                pairs.append((key, text))
    return pairs


def merge_query(base: QueryPairs, overrides: QueryPairs) -> QueryPairs:
    """Combine pairs; keys present in overrides replace every base value."""
    override_keys = {key for key, _ in overrides}
    merged = [(key, value) for key, value in base if key not in override_keys]
    merged.extend(overrides)
    return merged


@dataclass(frozen=True)
class ListParams:
    """Common list parameters for paginated endpoints."""

    page: int | None = None
    per_page: int | None = None
    sort_by: str | None = None
    sort_desc: bool = False

    def to_query(self) -> QueryPairs:
        return build_query(
            [
                ("page", self.page),
                ("per_page", self.per_page),
                ("sort_by", self.sort_by),
                ("sort_desc", True if self.sort_desc else None),
            ]
        )
