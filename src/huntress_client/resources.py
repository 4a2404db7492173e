"""Resource groups for the Huntress API.

Payloads are passed through as plain JSON objects; only the envelope shape
(object, list, or list wrapped in an object) is checked.

Usage example:
    from huntress_client.query import ListParams

    page = client.organizations.list(ListParams(page=1, per_page=50))
    for organization in page.items:
        print(organization["name"])
    if page.pagination.has_next:
        page = client.organizations.list(ListParams(page=page.pagination.next_page))
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import quote

from .context import CallContext
from .exceptions import InvalidResourceIdError, ResponseDecodeError
from .infrastructure.http import ApiResponse, RequestOptions
from .pagination import Pagination, has_pagination_headers
from .protocols import Requester
from .query import ListParams, QueryInput, QueryPairs, build_query

type JsonObject = dict[str, Any]

_OBJECT_BODY = dict[str, Any]
_LIST_BODY = list[dict[str, Any]] | dict[str, Any]


def _empty_items() -> list[JsonObject]:
    return []


@dataclass(frozen=True)
class Page:
    """One page of a list endpoint."""

    items: list[JsonObject] = field(default_factory=_empty_items)
    pagination: Pagination = field(default_factory=Pagination)

    def __len__(self) -> int:
        return len(self.items)


def _list_query(params: ListParams | None, filters: QueryInput | None) -> QueryPairs:
    query = params.to_query() if params is not None else []
    return query + build_query(filters)


def _page_from_response(response: ApiResponse[Any], key: str) -> Page:
    """Build a page from a bare list or an object envelope keyed by ``key``.

    Header pagination wins; a body ``pagination`` object is used only when the
    response carries no pagination headers.
    """
    data = response.data
    pagination = response.pagination
    if data is None:
        return Page(items=[], pagination=pagination)
    if isinstance(data, list):
        return Page(items=data, pagination=pagination)

    items = data.get(key, data.get("data"))
    if not isinstance(items, list):
        raise ResponseDecodeError(
            f"list of {key}", f"missing '{key}' array", status_code=response.status_code
        )
    body_pagination = data.get("pagination")
    if isinstance(body_pagination, Mapping) and not has_pagination_headers(response.headers):
        pagination = Pagination.from_mapping(body_pagination)
    return Page(items=[item for item in items if isinstance(item, dict)], pagination=pagination)


class _Resource:
    """Shared plumbing for one API resource group."""

    name = ""
    path = ""

    def __init__(self, requester: Requester) -> None:
        self._requester = requester

    def _segment(self, resource_id: str | int, resource: str | None = None) -> str:
        text = str(resource_id).strip()
        if not text:
            raise InvalidResourceIdError(resource or self.name)
        return quote(text, safe="")

    def _item_path(self, resource_id: str | int, suffix: str = "") -> str:
        return f"{self.path}/{self._segment(resource_id)}{suffix}"

    def _get_object(
        self, path: str, ctx: CallContext | None, query: QueryPairs | None = None
    ) -> JsonObject:
        response = self._requester.do(
            "GET",
            path,
            response_type=_OBJECT_BODY,
            options=RequestOptions(query=query) if query else None,
            ctx=ctx,
        )
        return response.data or {}

    def _send_object(
        self, method: str, path: str, body: object, ctx: CallContext | None
    ) -> JsonObject:
        response = self._requester.do(method, path, body=body, response_type=_OBJECT_BODY, ctx=ctx)
        return response.data or {}

    def _list(
        self,
        path: str,
        params: ListParams | None,
        filters: QueryInput | None,
        ctx: CallContext | None,
        key: str | None = None,
    ) -> Page:
        response = self._requester.do(
            "GET",
            path,
            response_type=_LIST_BODY,
            options=RequestOptions(query=_list_query(params, filters)),
            ctx=ctx,
        )
        return _page_from_response(response, key or self.name)

    def _delete(self, path: str, ctx: CallContext | None) -> None:
        self._requester.do("DELETE", path, ctx=ctx)


class AccountResource(_Resource):
    """The authenticated account and its users.

    Account users are listed under ``/account/users`` but created, updated and
    removed through the top-level ``/users`` collection.
    """

    name = "account"
    path = "/account"
    users_path = "/users"

    def get(self, *, ctx: CallContext | None = None) -> JsonObject:
        """Return the account the credentials belong to."""
        return self._get_object(self.path, ctx)

    def update(self, body: Mapping[str, Any], *, ctx: CallContext | None = None) -> JsonObject:
        return self._send_object("PATCH", self.path, dict(body), ctx)

    def stats(self, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(f"{self.path}/stats", ctx)

    def list_users(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        return self._list(f"{self.path}/users", params, filters, ctx, key="users")

    def add_user(self, body: Mapping[str, Any], *, ctx: CallContext | None = None) -> JsonObject:
        """Create a user, e.g. ``{"email": ..., "first_name": ..., "roles": [...]}``."""
        return self._send_object("POST", self.users_path, dict(body), ctx)

    def update_user(
        self, user_id: str | int, body: Mapping[str, Any], *, ctx: CallContext | None = None
    ) -> JsonObject:
        path = f"{self.users_path}/{self._segment(user_id, 'user')}"
        return self._send_object("PATCH", path, dict(body), ctx)

    def remove_user(self, user_id: str | int, *, ctx: CallContext | None = None) -> None:
        self._delete(f"{self.users_path}/{self._segment(user_id, 'user')}", ctx)


class OrganizationsResource(_Resource):
    name = "organizations"
    path = "/organizations"

    def list(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        """List organizations; ``filters`` takes keys such as status, search and tags."""
        return self._list(self.path, params, filters, ctx)

    def get(self, organization_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(organization_id), ctx)

    def create(self, body: Mapping[str, Any], *, ctx: CallContext | None = None) -> JsonObject:
        return self._send_object("POST", self.path, dict(body), ctx)

    def update(
        self,
        organization_id: str | int,
        body: Mapping[str, Any],
        *,
        ctx: CallContext | None = None,
    ) -> JsonObject:
        return self._send_object("PATCH", self._item_path(organization_id), dict(body), ctx)

    def delete(self, organization_id: str | int, *, ctx: CallContext | None = None) -> None:
        self._delete(self._item_path(organization_id), ctx)

    def list_users(
        self,
        organization_id: str | int,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        return self._list(
            self._item_path(organization_id, "/users"), params, filters, ctx, key="users"
        )

    def add_user(
        self,
        organization_id: str | int,
        body: Mapping[str, Any],
        *,
        ctx: CallContext | None = None,
    ) -> JsonObject:
        return self._send_object(
            "POST", self._item_path(organization_id, "/users"), dict(body), ctx
        )

    def remove_user(
        self, organization_id: str | int, user_id: str | int, *, ctx: CallContext | None = None
    ) -> None:
        suffix = f"/users/{self._segment(user_id, 'user')}"
        self._delete(self._item_path(organization_id, suffix), ctx)


class AgentsResource(_Resource):
    name = "agents"
    path = "/agents"

    def list(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        """List agents; ``filters`` takes keys such as organization_id, platform and status."""
        return self._list(self.path, params, filters, ctx)

    def get(self, agent_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(agent_id), ctx)

    def stats(self, agent_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(agent_id, "/stats"), ctx)

    def update(
        self, agent_id: str | int, body: Mapping[str, Any], *, ctx: CallContext | None = None
    ) -> JsonObject:
        return self._send_object("PATCH", self._item_path(agent_id), dict(body), ctx)

    def delete(self, agent_id: str | int, *, ctx: CallContext | None = None) -> None:
        self._delete(self._item_path(agent_id), ctx)


class IncidentsResource(_Resource):
    name = "incidents"
    path = "/incidents"

    def list(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        return self._list(self.path, params, filters, ctx)

    def get(self, incident_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(incident_id), ctx)

    def update_status(
        self, incident_id: str | int, status: str, *, ctx: CallContext | None = None
    ) -> JsonObject:
        return self._send_object(
            "PATCH", self._item_path(incident_id, "/status"), {"status": status}, ctx
        )

    def assign(
        self, incident_id: str | int, user_id: str | int, *, ctx: CallContext | None = None
    ) -> JsonObject:
        """Assign the incident to a user and return the updated incident."""
        return self._send_object(
            "POST", self._item_path(incident_id, "/assign"), {"user_id": str(user_id)}, ctx
        )


class ReportsResource(_Resource):
    name = "reports"
    path = "/reports"

    def list(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        """List reports; ``filters`` takes keys such as type, status and created_after."""
        return self._list(self.path, params, filters, ctx)

    def get(self, report_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(report_id), ctx)

    def generate(self, body: Mapping[str, Any], *, ctx: CallContext | None = None) -> JsonObject:
        """Request a new report, e.g. ``{"type": "summary", "format": "pdf"}``."""
        return self._send_object("POST", self.path, dict(body), ctx)

    def download(
        self,
        report_id: str | int,
        *,
        file_format: str | None = None,
        ctx: CallContext | None = None,
    ) -> bytes:
        """Return the raw report file, optionally in ``file_format`` (e.g. "pdf" or "csv")."""
        response = self._requester.do(
            "GET",
            self._item_path(report_id, "/download"),
            options=RequestOptions(query=build_query({"format": file_format})),
            ctx=ctx,
        )
        return response.content

    def summary(
        self, *, filters: QueryInput | None = None, ctx: CallContext | None = None
    ) -> JsonObject:
        return self._get_object(f"{self.path}/summary", ctx, build_query(filters))

    def detailed(
        self, *, filters: QueryInput | None = None, ctx: CallContext | None = None
    ) -> JsonObject:
        return self._get_object(f"{self.path}/detailed", ctx, build_query(filters))


class AuditLogsResource(_Resource):
    name = "audit_logs"
    path = "/audit-logs"

    def list(
        self,
        params: ListParams | None = None,
        *,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        actor: str | None = None,
        action: str | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        """List audit log entries; times are sent as ISO 8601, unset filters are omitted."""
        filters: QueryPairs = build_query(
            [
                ("start_time", start_time),
                ("end_time", end_time),
                ("actor", actor),
                ("action", action),
                ("resource_type", resource_type),
                ("resource_id", resource_id),
            ]
        )
        return self._list(self.path, params, filters, ctx)

    def get(self, entry_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(entry_id), ctx)

    def search(
        self,
        filters: QueryInput,
        params: ListParams | None = None,
        *,
        ctx: CallContext | None = None,
    ) -> Page:
        return self._list(f"{self.path}/search", params, filters, ctx)


class BillingResource(_Resource):
    name = "invoices"
    path = "/billing/invoices"

    def summary(self, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object("/billing/summary", ctx)

    def list_invoices(
        self,
        params: ListParams | None = None,
        *,
        filters: QueryInput | None = None,
        ctx: CallContext | None = None,
    ) -> Page:
        return self._list(self.path, params, filters, ctx)

    def get_invoice(self, invoice_id: str | int, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object(self._item_path(invoice_id), ctx)

    def usage(self, *, ctx: CallContext | None = None) -> JsonObject:
        return self._get_object("/billing/usage", ctx)
