"""HTTP request pipeline for the Huntress API.

Usage example:
    import requests

    from huntress_client.context import CallContext
    from huntress_client.infrastructure.http import Credentials, RequestExecutor, RequestsTransport
    from huntress_client.infrastructure.resilience import RateLimiter, RetryPolicy

    executor = RequestExecutor(
        transport=RequestsTransport(requests.Session()),
        credentials=Credentials(api_key="key", api_secret="secret"),
        rate_limiter=RateLimiter(requests_per_minute=60),
        retry_policy=RetryPolicy(max_retries=3),
    )
    response = executor.get("/organizations", response_type=list[dict[str, object]])
    print(response.data, response.pagination)
"""

from __future__ import annotations

import base64
import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Self, override
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import requests
from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from requests.structures import CaseInsensitiveDict

from .._version import __version__
from ..context import CallContext
from ..exceptions import (
    APIError,
    ClientClosedError,
    RateLimitError,
    RequestEncodeError,
    ResponseDecodeError,
    TransportError,
)
from ..observability.logging import NullLogger
from ..pagination import Pagination, extract_pagination
from ..protocols import Logger, RateLimiter, Requester, Response, Transport
from ..query import QueryInput, QueryPairs, build_query, merge_query
from .resilience import RateLimiter as RateLimiterImpl
from .resilience import RequestAttempt, Retrier, RetryPolicy, parse_retry_after

DEFAULT_BASE_URL = "https://api.huntress.io/v1"
DEFAULT_USER_AGENT = f"huntress-client-python/{__version__}"
DEFAULT_TIMEOUT_SECONDS = 30.0
_MAX_ERROR_BODY_CHARS = 300


@dataclass(frozen=True)
class Credentials:
    """API key pair used for HTTP Basic authentication."""

    api_key: str
    api_secret: str = field(repr=False)

    def authorization_header(self) -> str:
        token = base64.b64encode(f"{self.api_key}:{self.api_secret}".encode()).decode("ascii")
        return f"Basic {token}"


@dataclass(frozen=True)
class RequestOptions:
    """Per-call headers and query parameters; these win over client defaults."""

    headers: Mapping[str, str] = field(default_factory=dict)
    query: QueryInput | None = None


@dataclass(frozen=True)
class ApiResponse[T]:
    """Decoded response of a successful call."""

    status_code: int
    headers: Mapping[str, str]
    data: T | None
    pagination: Pagination
    request_id: str | None
    attempts: int
    content: bytes = b""


class RequestsTransport(Transport):
    """Requests-backed transport; one `send` is one HTTP round trip."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    @override
    def send(self, request: requests.PreparedRequest, *, timeout: float) -> Response:
        return self._session.send(request, timeout=timeout)

    @override
    def close(self) -> None:
        self._session.close()


_JSON_OBJECT: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


def _parse_json_object(content: bytes) -> dict[str, Any] | None:
    try:
        return _JSON_OBJECT.validate_json(content)
    except ValidationError:
        return None


def _scalar_text(value: object) -> str | None:
    """Return a scalar envelope field as text; objects, lists and blanks give None."""
    if value is None or isinstance(value, (Mapping, list)):
        return None
    text = str(value).strip()
    return text or None


def _response_excerpt(content: bytes) -> str:
    """Return a compact body excerpt for error messages."""
    text = content.decode("utf-8", errors="replace")
    text = " ".join(text.split())
    if len(text) > _MAX_ERROR_BODY_CHARS:
        text = text[:_MAX_ERROR_BODY_CHARS] + "..."
    return text


def build_api_error(
    status_code: int,
    headers: Mapping[str, str],
    content: bytes,
    *,
    attempts: int = 1,
) -> APIError:
    """Normalise a non-2xx response into an `APIError` (or `RateLimitError`).

    The vendor envelope is used when the body is a JSON object, read field by
    field so one oddly typed field never discards the rest; a nested
    ``{"error": {...}}`` object fills fields missing at the top level. Otherwise
    the message is synthesised from the status and body text. The ``X-Request-Id``
    header, when present, takes precedence over a body ``request_id``.
    """
    lookup = CaseInsensitiveDict(headers)
    code: str | None = None
    details: object = None
    request_id: str | None = None
    message: str | None = None
    payload = _parse_json_object(content)
    if payload is None:
        excerpt = _response_excerpt(content)
        message = f"HTTP {status_code}: {excerpt}" if excerpt else f"HTTP {status_code}"
    else:
        error = payload.get("error")
        nested: Mapping[str, Any] = error if isinstance(error, Mapping) else {}
        code = _scalar_text(payload.get("code")) or _scalar_text(nested.get("code"))
        details = payload["details"] if "details" in payload else nested.get("details")
        request_id = _scalar_text(payload.get("request_id")) or _scalar_text(
            nested.get("request_id")
        )
        message = (
            _scalar_text(payload.get("message"))
            or _scalar_text(nested.get("message"))
            or _scalar_text(error)
            or f"HTTP {status_code}"
        )

    header_request_id = lookup.get("X-Request-Id")
    if header_request_id:
        request_id = header_request_id

    if status_code == 429:
        retry_after = parse_retry_after(lookup)
        return RateLimitError(
            message=message,
            retry_after=60 if retry_after is None else retry_after,
            code=code,
            details=details,
            request_id=request_id,
            raw_body=content,
            attempts=attempts,
        )
    return APIError(
        status_code=status_code,
        message=message,
        code=code,
        details=details,
        request_id=request_id,
        raw_body=content,
        attempts=attempts,
    )


def decode_body[T](content: bytes, response_type: type[T] | None, *, status_code: int) -> T | None:
    """Decode a success body into ``response_type``.

    Raises:
        ResponseDecodeError: If the body does not match the expected shape.
    """
    if response_type is None or not content.strip():
        return None
    try:
        return TypeAdapter(response_type).validate_json(content)
    except ValidationError as exc:
        target = getattr(response_type, "__name__", str(response_type))
        reason = str(exc.errors()[0].get("msg", "invalid payload"))
        raise ResponseDecodeError(target, reason, status_code=status_code) from exc


def encode_body(body: object) -> bytes:
    """Serialise a request body (dict, list, dataclass or pydantic model) to JSON."""
    try:
        return TypeAdapter(type(body)).dump_json(body, by_alias=True)
    except (PydanticSchemaGenerationError, ValueError) as exc:
        raise RequestEncodeError(type(body).__name__) from exc


def _close_abandoned(future: Future[Response]) -> None:
    """Close the response of an attempt whose caller already gave up."""
    if future.cancelled() or future.exception() is not None:
        return
    response = future.result()
    if response is not None:
        response.close()


class HttpVerbsMixin:
    """Convenience verbs over `do`, shared by the executor and its decorators."""

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
        raise NotImplementedError

    def get[T](
        self,
        path: str,
        *,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        return self.do("GET", path, response_type=response_type, options=options, ctx=ctx)

    def post[T](
        self,
        path: str,
        body: object = None,
        *,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        return self.do(
            "POST", path, body=body, response_type=response_type, options=options, ctx=ctx
        )

    def put[T](
        self,
        path: str,
        body: object = None,
        *,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        return self.do(
            "PUT", path, body=body, response_type=response_type, options=options, ctx=ctx
        )

    def patch[T](
        self,
        path: str,
        body: object = None,
        *,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        return self.do(
            "PATCH", path, body=body, response_type=response_type, options=options, ctx=ctx
        )

    def delete[T](
        self,
        path: str,
        *,
        response_type: type[T] | None = None,
        options: RequestOptions | None = None,
        ctx: CallContext | None = None,
    ) -> ApiResponse[T]:
        return self.do("DELETE", path, response_type=response_type, options=options, ctx=ctx)


class RequestExecutor(HttpVerbsMixin, Requester):
    """Single choke point for every API call.

    Each call: build request → Basic auth → rate-limit token → retried round
    trips → error normalisation → decode. Each attempt runs on a worker thread
    so a blocking transport cannot hold a caller past its context; an attempt
    abandoned that way has its response closed when it completes.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        credentials: Credentials | None = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        logger: Logger | None = None,
        max_workers: int = 8,
    ) -> None:
        self.transport = transport
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = rate_limiter or RateLimiterImpl()
        self._logger = logger or NullLogger()
        self._retrier = Retrier(self.retry_policy, logger=self._logger)
        self._workers = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="huntress-http"
        )
        self._closed = threading.Event()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop the worker pool and release transport connections."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._workers.shutdown(wait=False, cancel_futures=True)
        self.transport.close()

    def resolve_url(self, path: str, options: RequestOptions | None = None) -> str:
        """Return the absolute request URL including the merged query string."""
        if path.startswith(("http://", "https://")):
            url = path
        else:
            url = f"{self.base_url}/{path.lstrip('/')}"
        scheme, netloc, url_path, raw_query, fragment = urlsplit(url)
        query: QueryPairs = parse_qsl(raw_query, keep_blank_values=True)
        if options is not None:
            query = merge_query(query, build_query(options.query))
        prepared = requests.Request("GET", urlunsplit((scheme, netloc, url_path, "", fragment)))
        prepared.params = query
        return prepared.prepare().url or url

    def _build_request(
        self, method: str, path: str, body: object, options: RequestOptions | None
    ) -> requests.PreparedRequest:
        headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        data: bytes | None = None
        if body is not None:
            data = encode_body(body)
            headers["Content-Type"] = "application/json"
        if self.credentials is not None:
            headers["Authorization"] = self.credentials.authorization_header()
        request_headers = CaseInsensitiveDict(headers)
        if options is not None:
            request_headers.update(options.headers)
        request = requests.Request(
            method=method.upper(),
            url=self.resolve_url(path, options),
            headers=dict(request_headers),
            data=data,
        )
        return request.prepare()

    def _attempt_timeout(self, ctx: CallContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout_seconds
        return max(0.001, min(self.timeout_seconds, remaining))

    def _send(self, ctx: CallContext, request: requests.PreparedRequest) -> Response:
        try:
            future = self._workers.submit(
                self.transport.send, request, timeout=self._attempt_timeout(ctx)
            )
        except RuntimeError as exc:
            raise ClientClosedError() from exc
        try:
            return ctx.wait_for(future)
        except BaseException:
            future.cancel()
            future.add_done_callback(_close_abandoned)
            raise

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
        """Execute one API call.

        Raises:
            RequestCancelledError: If the context is cancelled or its deadline passes.
            TransportError: If no response was received after all retries.
            APIError: For any non-2xx final response (`RateLimitError` for 429).
            ResponseDecodeError: If a 2xx body does not match ``response_type``.
            ClientClosedError: If `close` has already been called.
        """
        if self._closed.is_set():
            raise ClientClosedError()
        ctx = ctx or CallContext.background()
        request = self._build_request(method, path, body, options)
        ctx.raise_if_done()
        self.rate_limiter.wait(ctx)

        state = RequestAttempt()
        try:
            response = self._retrier.do(ctx, lambda: self._send(ctx, request), state)
        except self.retry_policy.retry_exceptions as exc:
            raise TransportError(
                f"{request.method} {request.url} failed after {state.attempts} attempt(s): {exc}",
                attempts=state.attempts,
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(
                f"{request.method} {request.url} failed: {exc}", attempts=state.attempts
            ) from exc
        except TransportError as exc:
            exc.attempts = state.attempts
            raise

        try:
            status_code = response.status_code
            headers = CaseInsensitiveDict(response.headers)
            content = response.content
        finally:
            response.close()

        self._logger.debug(
            "%s %s -> %d (%d attempt(s))", request.method, request.url, status_code, state.attempts
        )
        if status_code < 200 or status_code >= 300:
            raise build_api_error(status_code, headers, content, attempts=state.attempts)

        return ApiResponse(
            status_code=status_code,
            headers=headers,
            data=decode_body(content, response_type, status_code=status_code),
            pagination=extract_pagination(headers),
            request_id=headers.get("X-Request-Id"),
            attempts=state.attempts,
            content=content,
        )

