"""Concrete infrastructure implementations and shared helpers."""

from .cache import CachedResponse, CachingExecutor, MemoryCache
from .http import (
    DEFAULT_BASE_URL,
    ApiResponse,
    Credentials,
    RequestExecutor,
    RequestOptions,
    RequestsTransport,
    build_api_error,
)
from .resilience import RateLimiter, RequestAttempt, Retrier, RetryPolicy, parse_retry_after

__all__ = [
    "DEFAULT_BASE_URL",
    "ApiResponse",
    "CachedResponse",
    "CachingExecutor",
    "Credentials",
    "MemoryCache",
    "RateLimiter",
    "RequestAttempt",
    "RequestExecutor",
    "RequestOptions",
    "RequestsTransport",
    "Retrier",
    "RetryPolicy",
    "build_api_error",
    "parse_retry_after",
]
