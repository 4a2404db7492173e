"""Pytest fixtures shared by all tests.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from tests.fakes import FakeRateLimiter, FakeTransport
from tests.support.errors import NetworkIsolationError

_HUNTRESS_ENV_VARS = (
    "HUNTRESS_API_KEY",
    "HUNTRESS_API_SECRET",
    "HUNTRESS_BASE_URL",
    "HUNTRESS_USER_AGENT",
    "HUNTRESS_TIMEOUT_SECONDS",
    "HUNTRESS_MAX_RETRIES",
    "HUNTRESS_RETRY_BASE_DELAY_SECONDS",
    "HUNTRESS_RETRY_MAX_DELAY_SECONDS",
    "HUNTRESS_RETRY_STATUSES",
    "HUNTRESS_REQUESTS_PER_MINUTE",
    "HUNTRESS_RATE_LIMIT_BURST",
    "HUNTRESS_CACHE_TTL_SECONDS",
)


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Block all network access in tests.

    This fixture runs automatically for all tests and prevents any real
    network connections. Tests that need HTTP should use FakeTransport.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


@pytest.fixture(autouse=True)
def clean_huntress_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove HUNTRESS_* variables before each test and restore them afterwards.

    Setting first makes monkeypatch record the original state, so values a
    test loads from a .env file are removed again on teardown.
    """
    for name in _HUNTRESS_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Provide an empty scripted transport."""
    return FakeTransport()


@pytest.fixture
def fake_rate_limiter() -> FakeRateLimiter:
    """Provide a rate limiter that never blocks."""
    return FakeRateLimiter()
