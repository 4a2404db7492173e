"""GET response caching as a decorator around the request executor.

Usage example:
    from huntress_client.infrastructure.cache import CachingExecutor, MemoryCache

    cached = CachingExecutor(executor, MemoryCache(ttl_seconds=60))
    first = cached.get("/account", response_type=dict[str, object])
    again = cached.get("/account", response_type=dict[str, object])  # no HTTP call
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import override

from ..context import CallContext
from ..pagination import extract_pagination
from ..protocols import Cache, Requester
from .http import ApiResponse, HttpVerbsMixin, RequestExecutor, RequestOptions, decode_body


@dataclass(frozen=True)
class CachedResponse:
    """Raw parts of a successful GET response."""

    status_code: int
    headers: Mapping[str, str]
    content: bytes


class MemoryCache(Cache):
    """Thread-safe in-memory cache with a fixed time-to-live.

    Expired entries are dropped on read; the oldest entry is evicted when full.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 256,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, CachedResponse]] = {}

    @override
    def get(self, key: str) -> CachedResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    @override
    def set(self, key: str, value: CachedResponse) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
                del self._entries[oldest]
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    @override
    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class CachingExecutor(HttpVerbsMixin, Requester):
    """Cache-aside decorator: GETs are served from cache before any rate-limit wait.

    Only successful GET responses are stored, after they decode cleanly.
    Other methods pass straight through to the wrapped executor.
    """

    def __init__(self, executor: RequestExecutor, cache: Cache) -> None:
        self.executor = executor
        self.cache = cache

    def cache_key(self, path: str, options: RequestOptions | None = None) -> str:
        return f"GET:{self.executor.resolve_url(path, options)}"

    def close(self) -> None:
        self.executor.close()

    @override
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
        if method.upper() != "GET":
            return self.executor.do(
                method, path, body=body, response_type=response_type, options=options, ctx=ctx
            )

        key = self.cache_key(path, options)
        cached = self.cache.get(key)
        if cached is not None:
            return ApiResponse(
                status_code=cached.status_code,
                headers=cached.headers,
                data=decode_body(cached.content, response_type, status_code=cached.status_code),
                pagination=extract_pagination(cached.headers),
                request_id=cached.headers.get("X-Request-Id"),
                attempts=0,
                content=cached.content,
            )

        response = self.executor.do(
            method, path, body=body, response_type=response_type, options=options, ctx=ctx
        )
        self.cache.set(
            key,
            CachedResponse(
                status_code=response.status_code,
                headers=response.headers,
                content=response.content,
            ),
        )
        return response

