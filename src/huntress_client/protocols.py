"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces the request pipeline depends on,
enabling isolated unit testing with fake implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import requests

    from .context import CallContext
    from .infrastructure.cache import CachedResponse
    from .infrastructure.http import ApiResponse, RequestOptions


@runtime_checkable
class Response(Protocol):
    """The part of an HTTP response the pipeline reads."""

    status_code: int

    @property
    def headers(self) -> Mapping[str, str]:
        """Response headers (case-insensitive lookup expected)."""
        ...

    @property
    def content(self) -> bytes:
        """Full response body."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Abstract HTTP transport performing exactly one round trip per call."""

    def send(self, request: requests.PreparedRequest, *, timeout: float) -> Response:
        """Send a prepared request and return the raw response.

        Raises:
            requests.RequestException: On network-level failures.
        """
        ...

    def close(self) -> None:
        """Release pooled connections."""
        ...


@runtime_checkable
class Logger(Protocol):
    """Logging hook accepted by the pipeline; `logging.Logger` satisfies it."""

    def debug(self, msg: str, *args: object) -> None: ...

    def info(self, msg: str, *args: object) -> None: ...

    def warning(self, msg: str, *args: object) -> None: ...

    def error(self, msg: str, *args: object) -> None: ...


@runtime_checkable
class RateLimiter(Protocol):
    """Abstract rate limiter for outbound requests."""

    def wait(self, ctx: CallContext) -> None:
        """Block until a request is allowed or the context ends."""
        ...

    def allow(self) -> bool:
        """Consume a token if one is available right now."""
        ...


@runtime_checkable
class Cache(Protocol):
    """Abstract cache for GET responses."""

    def get(self, key: str) -> CachedResponse | None:
        """Retrieve a live cached response by key, or None."""
        ...

    def set(self, key: str, value: CachedResponse) -> None:
        """Store a response under key."""
        ...

    def has(self, key: str) -> bool:
        """Check if a live entry exists for key."""
        ...


@runtime_checkable
class Requester(Protocol):
    """Anything that can execute API calls (the executor or a decorator of it)."""

    def do[T](
        self,
        method: str,
        path: str,
        *,
        body: object = None,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        """Execute one logical API call."""
        ...
