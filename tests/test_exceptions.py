"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest

from huntress_client.exceptions import (
    APIError,
    ConfigError,
    DeadlineExceeded,
    HuntressError,
    RateLimitError,
    RequestCancelled,
    TransportError,
    code_for_status,
    is_api_error,
    is_cancelled,
    is_rate_limit_error,
)


class TestAPIError:
    def test_code_derived_from_status(self) -> None:
        assert APIError(status_code=403, message="nope").code == "FORBIDDEN"
        assert code_for_status(418) == "HTTP_418"

    def test_body_code_wins(self) -> None:
        error = APIError(status_code=400, message="bad", code="INVALID_FIELD")
        assert str(error) == "[400] INVALID_FIELD: bad"

    @pytest.mark.parametrize(
        ("status", "attribute"),
        [
            (401, "is_unauthorized"),
            (403, "is_forbidden"),
            (404, "is_not_found"),
            (429, "is_rate_limited"),
            (503, "is_server_error"),
        ],
    )
    def test_status_helpers(self, status: int, attribute: str) -> None:
        error = APIError(status_code=status, message="x")
        assert getattr(error, attribute) is True

    def test_rate_limit_error(self) -> None:
        error = RateLimitError(message="slow down")
        assert error.status_code == 429
        assert error.retry_after == 60
        assert error.code == "TOO_MANY_REQUESTS"
        assert is_rate_limit_error(error)
        assert is_api_error(error)


class TestClassification:
    def test_cancellation_helpers(self) -> None:
        assert is_cancelled(RequestCancelled())
        assert is_cancelled(DeadlineExceeded())
        assert not is_cancelled(TransportError("down"))

    def test_everything_is_a_huntress_error(self) -> None:
        for error in (
            TransportError("down"),
            APIError(status_code=500, message="x"),
            RequestCancelled(),
            ConfigError("bad"),
        ):
            assert isinstance(error, HuntressError)

    def test_config_errors_are_value_errors(self) -> None:
        assert isinstance(ConfigError("bad"), ValueError)
        assert not is_api_error(ConfigError("bad"))
