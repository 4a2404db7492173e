"""Huntress API client.

Usage example:
    from huntress_client import CallContext, ClientConfig, build_client

    with build_client(ClientConfig.from_env()) as client:
        page = client.agents.list(ctx=CallContext(deadline_seconds=30))
"""

from __future__ import annotations

from ._version import __version__
from .client import HuntressClient, build_client
from .config import ClientConfig
from .context import CallContext
from .exceptions import (
    APIError,
    ClientClosedError,
    DeadlineExceeded,
    HuntressError,
    RateLimitError,
    RequestCancelled,
    RequestCancelledError,
    ResponseDecodeError,
    TransportError,
)
from .pagination import Pagination
from .query import ListParams
from .resources import Page

__all__ = [
    "APIError",
    "CallContext",
    "ClientClosedError",
    "ClientConfig",
    "DeadlineExceeded",
    "HuntressClient",
    "HuntressError",
    "ListParams",
    "Page",
    "Pagination",
    "RateLimitError",
    "RequestCancelled",
    "RequestCancelledError",
    "ResponseDecodeError",
    "TransportError",
    "__version__",
]
