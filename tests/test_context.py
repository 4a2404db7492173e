"""Tests for call contexts (cancellation and deadlines)."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future

import pytest

from huntress_client.context import CallContext
from huntress_client.exceptions import DeadlineExceeded, RequestCancelled, is_cancelled


class TestCallContext:
    def test_background_never_ends(self) -> None:
        ctx = CallContext.background()
        assert ctx.remaining() is None
        assert ctx.error() is None
        ctx.raise_if_done()

    def test_cancel(self) -> None:
        ctx = CallContext()
        ctx.cancel()
        assert ctx.cancelled
        assert isinstance(ctx.error(), RequestCancelled)

    def test_deadline(self) -> None:
        now = [0.0]
        ctx = CallContext(deadline_seconds=1.0, clock=lambda: now[0])
        assert ctx.remaining() == 1.0
        now[0] = 1.5
        assert ctx.remaining() == 0.0
        with pytest.raises(DeadlineExceeded):
            ctx.raise_if_done()

    def test_cancellation_takes_priority_over_deadline(self) -> None:
        ctx = CallContext(deadline_seconds=0.0)
        ctx.cancel()
        assert isinstance(ctx.error(), RequestCancelled)

    def test_child_inherits_parent_deadline_and_cancel(self) -> None:
        now = [0.0]
        parent = CallContext(deadline_seconds=2.0, clock=lambda: now[0])
        child = parent.with_timeout(10.0)
        assert child.deadline == parent.deadline

        tighter = parent.with_timeout(0.5)
        assert tighter.remaining() == 0.5

        parent.cancel()
        assert child.cancelled
        assert tighter.cancelled

    def test_child_cancel_does_not_reach_parent(self) -> None:
        parent = CallContext()
        child = parent.with_timeout(5.0)
        child.cancel()
        assert not parent.cancelled

    def test_sleep_wakes_on_cancel(self) -> None:
        ctx = CallContext()
        threading.Timer(0.05, ctx.cancel).start()
        start = time.monotonic()
        with pytest.raises(RequestCancelled):
            ctx.sleep(5.0)
        assert time.monotonic() - start < 1.0

    def test_sleep_completes_when_live(self) -> None:
        ctx = CallContext()
        start = time.monotonic()
        ctx.sleep(0.02)
        assert time.monotonic() - start >= 0.02

    def test_wait_for_returns_result(self) -> None:
        future: Future[int] = Future()
        threading.Timer(0.02, future.set_result, args=(42,)).start()
        assert CallContext().wait_for(future) == 42

    def test_wait_for_propagates_errors(self) -> None:
        future: Future[int] = Future()
        future.set_exception(ValueError("boom"))
        with pytest.raises(ValueError):
            CallContext().wait_for(future)

    def test_wait_for_stops_at_deadline(self) -> None:
        future: Future[int] = Future()
        with pytest.raises(DeadlineExceeded) as exc_info:
            CallContext(deadline_seconds=0.01).wait_for(future)
        assert is_cancelled(exc_info.value)
        assert not future.done()
