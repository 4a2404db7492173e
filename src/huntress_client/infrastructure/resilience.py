"""Resilience utilities for the request pipeline.

Usage example:
    from huntress_client.context import CallContext
    from huntress_client.infrastructure.resilience import RateLimiter, Retrier, RetryPolicy

    rate_limiter = RateLimiter(requests_per_minute=60, burst=1)
    retrier = Retrier(RetryPolicy(max_retries=3))

    ctx = CallContext(deadline_seconds=10)
    rate_limiter.wait(ctx)
    response = retrier.do(ctx, lambda: session.get(url, timeout=5))
"""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import override

import requests

from ..context import CallContext
from ..exceptions import EmptyResponseError
from ..observability.logging import NullLogger
from ..protocols import Logger, Response
from ..protocols import RateLimiter as RateLimiterProtocol

DEFAULT_REQUESTS_PER_MINUTE = 60
DEFAULT_RETRY_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


class RateLimiter(RateLimiterProtocol):
    """Token-bucket rate limiter shared by every caller of one client.

    Tokens refill continuously at ``requests_per_minute / 60`` per second up to
    ``burst``. The bucket state is guarded by a single lock, so concurrent
    callers never double-spend a token.
    """

    def __init__(
        self,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        burst: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if requests_per_minute <= 0:
            requests_per_minute = DEFAULT_REQUESTS_PER_MINUTE
        self.requests_per_minute = requests_per_minute
        self.capacity = max(1, burst)
        self.refill_rate = requests_per_minute / 60.0
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(self.capacity)
        self._last_refill = clock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_rate)
        self._last_refill = now

    def _try_acquire(self) -> float:
        """Take a token and return 0, or return the seconds until one is due."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self.refill_rate

    @property
    def tokens(self) -> float:
        with self._lock:
            self._refill(self._clock())
            return self._tokens

    @override
    def allow(self) -> bool:
        return self._try_acquire() == 0.0

    @override
    def wait(self, ctx: CallContext) -> None:
        """Block until a token is granted.

        Raises:
            RequestCancelledError: If the context ends first; no token is consumed.
        """
        while True:
            ctx.raise_if_done()
            delay = self._try_acquire()
            if delay == 0.0:
                return
            ctx.sleep(delay)


def parse_retry_after(headers: Mapping[str, str] | None) -> int | None:
    """Parse Retry-After header into seconds, if available."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        dt = parsedate_to_datetime(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        delta = (dt - datetime.now(UTC)).total_seconds()
        return max(0, int(delta))
    except (AttributeError, OverflowError, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy for transient failures.

    ``max_retries`` counts the tries after the first, so 3 means up to 4 calls.
    """

    max_retries: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    jitter_ratio: float = 0.25
    retry_statuses: frozenset[int] = DEFAULT_RETRY_STATUSES
    retry_exceptions: tuple[type[Exception], ...] = (
        requests.ConnectionError,
        requests.Timeout,
        requests.exceptions.ChunkedEncodingError,
    )

    def compute_backoff(
        self,
        attempt: int,
        retry_after: int | None = None,
        rng: random.Random | None = None,
    ) -> float:
        """Compute the delay before retry number ``attempt + 1``.

        Exponential in ``attempt``, capped at ``max_delay_seconds``, scaled down by
        a random factor in ``[1 - jitter_ratio, 1]``. A Retry-After hint raises the
        delay to at least that many seconds, still within the cap.
        """
        base = min(self.max_delay_seconds, self.base_delay_seconds * (2**attempt))
        if self.jitter_ratio > 0:
            source = rng or random
            base *= 1.0 - source.uniform(0.0, min(1.0, self.jitter_ratio))
        if retry_after is not None:
            base = max(base, float(retry_after))
        return float(min(self.max_delay_seconds, base))

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses


def _empty_delays() -> list[float]:
    return []


@dataclass
class RequestAttempt:
    """Progress of one logical call through the retrier."""

    attempts: int = 0
    backoff_seconds: float = 0.0
    last_status: int | None = None
    last_error: BaseException | None = None
    delays: list[float] = field(default_factory=_empty_delays)


class Retrier:
    """Re-invokes a single-round-trip function on transient failures.

    - Exceptions listed in ``policy.retry_exceptions`` (and a transport that
      returns nothing) are transport failures and are retried.
    - Responses with a status in ``policy.retry_statuses`` are closed and retried.
    - Anything else returns (or raises) immediately.
    - The context is checked before each attempt and during each backoff sleep.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        logger: Logger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._logger = logger or NullLogger()
        self._rng = rng
        self._retryable_errors = (*self.policy.retry_exceptions, EmptyResponseError)

    def do(
        self,
        ctx: CallContext,
        attempt: Callable[[], Response | None],
        state: RequestAttempt | None = None,
    ) -> Response:
        """Run ``attempt`` until it yields a final response or the budget is spent.

        Returns:
            The first non-retryable response, or the last response once retries
            are exhausted. The caller owns (and must close) the returned response.

        Raises:
            RequestCancelledError: If the context ends before or between attempts.
            Exception: The last transport error once retries are exhausted, or any
                non-retryable error raised by ``attempt``.
        """
        state = state or RequestAttempt()
        while True:
            ctx.raise_if_done()
            retry_after: int | None = None
            state.attempts += 1
            try:
                response = attempt()
                if response is None:
                    raise EmptyResponseError()
            except self._retryable_errors as exc:
                state.last_error = exc
                state.last_status = None
                if state.attempts > self.policy.max_retries:
                    raise
                reason = f"{type(exc).__name__}: {exc}"
            else:
                state.last_error = None
                state.last_status = response.status_code
                if not self.policy.is_retryable_status(response.status_code):
                    return response
                if state.attempts > self.policy.max_retries:
                    return response
                retry_after = parse_retry_after(response.headers)
                response.close()
                reason = f"status {response.status_code}"

            delay = self.policy.compute_backoff(state.attempts - 1, retry_after, self._rng)
            self._logger.warning(
                "Retrying after %s (attempt %d of %d, backoff %.3fs)",
                reason,
                state.attempts,
                self.policy.max_retries + 1,
                delay,
            )
            state.delays.append(delay)
            state.backoff_seconds += delay
            ctx.sleep(delay)
