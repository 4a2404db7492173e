"""Custom exceptions for the Huntress API client.

Every failure a caller can see is one of these types, so callers can decide
what to do next by type or by status code rather than by parsing messages.
"""

from __future__ import annotations

from collections.abc import Mapping

_STATUS_CODES: Mapping[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT",
}


def code_for_status(status_code: int) -> str:
    """Return the vendor-style error code used when a body carries none."""
    return _STATUS_CODES.get(status_code, f"HTTP_{status_code}")


class HuntressError(Exception):
    """Base exception for all client errors."""

    pass


class TransportError(HuntressError):
    """Raised when no HTTP response was received (DNS, connect, TLS, timeout).

    Transport failures are retried by the retry policy; this is raised only
    once the retry budget is spent or the failure is not retryable.
    """

    def __init__(self, message: str, *, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(message)


class EmptyResponseError(TransportError):
    """Raised when a transport returned neither a response nor an error."""

    def __init__(self) -> None:
        super().__init__("Transport returned no response and no error.")


class RequestEncodeError(HuntressError):
    """Raised when a request body cannot be serialised to JSON."""

    def __init__(self, body_type: str) -> None:
        self.body_type = body_type
        super().__init__(f"Request body of type {body_type} is not JSON serialisable.")


class APIError(HuntressError):
    """Normalised error for every non-2xx response.

    Built once from the vendor error envelope ``{code, message, details, request_id}``
    or, when the body is not such an envelope, from the status and raw body text.
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: str | None = None,
        details: object = None,
        request_id: str | None = None,
        raw_body: bytes = b"",
        attempts: int = 1,
    ) -> None:
        self.status_code = status_code
        self.code = code or code_for_status(status_code)
        self.message = message
        self.details = details
        self.request_id = request_id
        self.raw_body = raw_body
        self.attempts = attempts
        super().__init__(self._format())

    def _format(self) -> str:
        text = f"[{self.status_code}] {self.code}: {self.message}"
        if self.request_id:
            text += f" (request_id={self.request_id})"
        return text

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class RateLimitError(APIError):
    """Raised when the API still answers 429 Too Many Requests after retries.

    ``retry_after`` is the server's Retry-After hint in seconds (60 if absent).
    """

    def __init__(
        self,
        *,
        message: str,
        retry_after: int = 60,
        code: str | None = None,
        details: object = None,
        request_id: str | None = None,
        raw_body: bytes = b"",
        attempts: int = 1,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(
            status_code=429,
            message=message,
            code=code,
            details=details,
            request_id=request_id,
            raw_body=raw_body,
            attempts=attempts,
        )


class ResponseDecodeError(HuntressError):
    """Raised when a 2xx body does not match the expected response shape.

    This is a contract mismatch between client and server, not a remote failure,
    and is never retried.
    """

    def __init__(self, target: str, reason: str, *, status_code: int) -> None:
        self.target = target
        self.status_code = status_code
        super().__init__(f"Could not decode {status_code} response as {target}: {reason}")


class RequestCancelledError(HuntressError):
    """Base for cancellation outcomes; always takes priority over retries."""

    pass


class RequestCancelled(RequestCancelledError):
    """Raised when the call context was cancelled explicitly."""

    def __init__(self) -> None:
        super().__init__("Request cancelled.")


class DeadlineExceeded(RequestCancelledError):
    """Raised when the call context deadline passed."""

    def __init__(self) -> None:
        super().__init__("Request deadline exceeded.")


class InvalidResourceIdError(HuntressError, ValueError):
    """Raised when a resource identifier is empty."""

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} id must not be empty.")


class ClientClosedError(HuntressError):
    """Raised when a call is made on a client that has been closed."""

    def __init__(self) -> None:
        super().__init__("Client is closed; build a new client to send requests.")


class ConfigError(HuntressError, ValueError):
    """Base for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ConfigError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {reason}")


class ConfigFileValidationError(ConfigError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Config file {path} is invalid: {reason}")


def is_cancelled(error: BaseException) -> bool:
    """Check if an exception is a cancellation or deadline outcome."""
    return isinstance(error, RequestCancelledError)


def is_api_error(error: BaseException) -> bool:
    """Check if an exception is a normalised API error."""
    return isinstance(error, APIError)


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if an exception indicates the API rate limit was hit."""
    return isinstance(error, APIError) and error.status_code == 429
