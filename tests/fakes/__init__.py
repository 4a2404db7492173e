"""Exports for test fakes."""

from .cache import InMemoryCache
from .http import FakeResponse, FakeTransport, json_response
from .recording import RecordingLogger
from .resilience import FakeRateLimiter

__all__ = [
    "FakeRateLimiter",
    "FakeResponse",
    "FakeTransport",
    "InMemoryCache",
    "RecordingLogger",
    "json_response",
]
