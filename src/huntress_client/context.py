"""Per-call cancellation and deadlines.

Usage example:
    from huntress_client.context import CallContext

    ctx = CallContext(deadline_seconds=5.0)
    client.organizations.list(ctx=ctx)

    # From another thread:
    ctx.cancel()
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError

from .exceptions import DeadlineExceeded, RequestCancelled, RequestCancelledError

# Upper bound on how long a blocked wait goes without re-checking cancellation.
_POLL_SECONDS = 0.05


class CallContext:
    """Cancellation token with an optional deadline.

    All blocking points in the client (rate limiter waits, retry backoff and
    in-flight attempts) wait through this object, so a cancelled or expired
    context unblocks them promptly.
    """

    def __init__(
        self,
        deadline_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        _parent: CallContext | None = None,
    ) -> None:
        self._clock = clock
        self._cancelled = threading.Event()
        self._parent = _parent
        self.deadline: float | None = None
        if deadline_seconds is not None:
            self.deadline = clock() + max(0.0, deadline_seconds)
        if _parent is not None and _parent.deadline is not None:
            if self.deadline is None or _parent.deadline < self.deadline:
                self.deadline = _parent.deadline

    @classmethod
    def background(cls) -> CallContext:
        """Return a context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> CallContext:
        """Return a child context bounded by both this deadline and `seconds`."""
        return CallContext(seconds, clock=self._clock, _parent=self)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def error(self) -> RequestCancelledError | None:
        """Return the cancellation error if the context is done, else None."""
        if self.cancelled:
            return RequestCancelled()
        remaining = self.remaining()
        if remaining is not None and remaining <= 0.0:
            return DeadlineExceeded()
        return None

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    def sleep(self, seconds: float) -> None:
        """Sleep up to `seconds`, raising as soon as the context is done."""
        end = self._clock() + max(0.0, seconds)
        while True:
            self.raise_if_done()
            now = self._clock()
            if now >= end:
                return
            step = min(end - now, _POLL_SECONDS)
            remaining = self.remaining()
            if remaining is not None:
                step = min(step, remaining)
            self._cancelled.wait(step)

    def wait_for[ResultT](self, future: Future[ResultT]) -> ResultT:
        """Wait for a future's result, raising as soon as the context is done.

        The future keeps running when the context ends first; the caller owns
        whatever it eventually produces.
        """
        while True:
            self.raise_if_done()
            step = _POLL_SECONDS
            remaining = self.remaining()
            if remaining is not None:
                step = min(step, remaining)
            try:
                return future.result(timeout=step)
            except FutureTimeoutError:
                continue
