"""Client facade and composition of the request pipeline.

Usage example:
    from huntress_client.client import build_client
    from huntress_client.config import ClientConfig
    from huntress_client.context import CallContext

    with build_client(ClientConfig.from_env()) as client:
        account = client.account.get(ctx=CallContext(deadline_seconds=10))
        page = client.incidents.list(filters={"status": "open"})
"""

from __future__ import annotations

from typing import Self

from .config import ClientConfig
from .infrastructure.cache import CachingExecutor, MemoryCache
from .infrastructure.http import RequestExecutor, RequestsTransport
from .infrastructure.resilience import RateLimiter
from .protocols import Logger, Transport
from .resources import (
    AccountResource,
    AgentsResource,
    AuditLogsResource,
    BillingResource,
    IncidentsResource,
    OrganizationsResource,
    ReportsResource,
)


class HuntressClient:
    """Entry point grouping every resource over one shared request pipeline.

    Safe to share between threads: all resources use the same rate limiter.
    """

    def __init__(self, requester: RequestExecutor | CachingExecutor) -> None:
        self.requester = requester
        self.account = AccountResource(requester)
        self.organizations = OrganizationsResource(requester)
        self.agents = AgentsResource(requester)
        self.incidents = IncidentsResource(requester)
        self.reports = ReportsResource(requester)
        self.billing = BillingResource(requester)
        self.audit_logs = AuditLogsResource(requester)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.requester.close()


def build_client(
    config: ClientConfig,
    *,
    transport: Transport | None = None,
    logger: Logger | None = None,
) -> HuntressClient:
    """Wire transport, rate limiter, retries and the optional cache from config."""
    executor = RequestExecutor(
        transport=transport or RequestsTransport(),
        credentials=config.credentials,
        base_url=config.base_url,
        user_agent=config.user_agent,
        timeout_seconds=config.timeout_seconds,
        retry_policy=config.retry_policy(),
        rate_limiter=RateLimiter(
            requests_per_minute=config.requests_per_minute,
            burst=config.rate_limit_burst,
        ),
        logger=logger,
    )
    if config.cache_ttl_seconds > 0:
        return HuntressClient(
            CachingExecutor(executor, MemoryCache(ttl_seconds=config.cache_ttl_seconds))
        )
    return HuntressClient(executor)
