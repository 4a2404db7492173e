"""Centralised, injectable configuration for the Huntress API client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import ClientConfigFile
from .exceptions import ConfigError
from .infrastructure.http import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    Credentials,
)
from .infrastructure.resilience import (
    DEFAULT_REQUESTS_PER_MINUTE,
    DEFAULT_RETRY_STATUSES,
    RetryPolicy,
)


class PositiveIntegerEnvVarError(ConfigError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeIntegerEnvVarError(ConfigError):
    """Raised when an environment variable must be zero or a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class NonNegativeNumberEnvVarError(ConfigError):
    """Raised when an environment variable must be a non-negative number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative number.")


class StatusListEnvVarError(ConfigError):
    """Raised when an environment variable must be a list of HTTP status codes."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a comma-separated list of HTTP status codes.")


def _default_retry_statuses() -> frozenset[int]:
    return DEFAULT_RETRY_STATUSES


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration for one client instance.

    Load from environment with `ClientConfig.from_env()` or construct directly for testing.
    """

    # Credentials
    api_key: str = ""
    api_secret: str = field(default="", repr=False)

    # Transport
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Retries
    max_retries: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 30.0
    retry_statuses: frozenset[int] = field(default_factory=_default_retry_statuses)

    # Rate limiting (Huntress allows 60 requests per minute)
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE
    rate_limit_burst: int = 1

    # GET response cache; 0 disables it
    cache_ttl_seconds: float = 0.0

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            ClientConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            api_key=os.getenv("HUNTRESS_API_KEY", "").strip(),
            api_secret=os.getenv("HUNTRESS_API_SECRET", "").strip(),
            base_url=os.getenv("HUNTRESS_BASE_URL", "").strip().rstrip("/") or DEFAULT_BASE_URL,
            user_agent=os.getenv("HUNTRESS_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            timeout_seconds=_parse_seconds(
                os.getenv("HUNTRESS_TIMEOUT_SECONDS", ""),
                default=DEFAULT_TIMEOUT_SECONDS,
                env_name="HUNTRESS_TIMEOUT_SECONDS",
            ),
            max_retries=_parse_non_negative_int(
                os.getenv("HUNTRESS_MAX_RETRIES", ""),
                default=3,
                env_name="HUNTRESS_MAX_RETRIES",
            ),
            retry_base_delay_seconds=_parse_seconds(
                os.getenv("HUNTRESS_RETRY_BASE_DELAY_SECONDS", ""),
                default=0.5,
                env_name="HUNTRESS_RETRY_BASE_DELAY_SECONDS",
            ),
            retry_max_delay_seconds=_parse_seconds(
                os.getenv("HUNTRESS_RETRY_MAX_DELAY_SECONDS", ""),
                default=30.0,
                env_name="HUNTRESS_RETRY_MAX_DELAY_SECONDS",
            ),
            retry_statuses=_parse_statuses(
                os.getenv("HUNTRESS_RETRY_STATUSES", ""),
                env_name="HUNTRESS_RETRY_STATUSES",
            ),
            requests_per_minute=_parse_positive_int(
                os.getenv("HUNTRESS_REQUESTS_PER_MINUTE", ""),
                default=DEFAULT_REQUESTS_PER_MINUTE,
                env_name="HUNTRESS_REQUESTS_PER_MINUTE",
            ),
            rate_limit_burst=_parse_positive_int(
                os.getenv("HUNTRESS_RATE_LIMIT_BURST", ""),
                default=1,
                env_name="HUNTRESS_RATE_LIMIT_BURST",
            ),
            cache_ttl_seconds=_parse_seconds(
                os.getenv("HUNTRESS_CACHE_TTL_SECONDS", ""),
                default=0.0,
                env_name="HUNTRESS_CACHE_TTL_SECONDS",
            ),
        )

    def with_overrides(
        self,
        *,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        requests_per_minute: int | None = None,
        cache_ttl_seconds: float | None = None,
    ) -> Self:
        """Return a new config with command-line option values overriding env and file values."""
        return replace(
            self,
            api_key=self.api_key if api_key is None else api_key.strip(),
            api_secret=self.api_secret if api_secret is None else api_secret.strip(),
            base_url=self.base_url if base_url is None else base_url.strip().rstrip("/"),
            timeout_seconds=self.timeout_seconds
            if timeout_seconds is None
            else timeout_seconds,
            max_retries=self.max_retries if max_retries is None else max_retries,
            requests_per_minute=self.requests_per_minute
            if requests_per_minute is None
            else requests_per_minute,
            cache_ttl_seconds=self.cache_ttl_seconds
            if cache_ttl_seconds is None
            else cache_ttl_seconds,
        )

    def with_file_overrides(self, file_config: ClientConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            base_url=self.base_url if file_config.base_url is None else file_config.base_url,
            user_agent=self.user_agent
            if file_config.user_agent is None
            else file_config.user_agent,
            timeout_seconds=self.timeout_seconds
            if file_config.timeout_seconds is None
            else file_config.timeout_seconds,
            max_retries=self.max_retries
            if file_config.max_retries is None
            else file_config.max_retries,
            retry_base_delay_seconds=self.retry_base_delay_seconds
            if file_config.retry_base_delay_seconds is None
            else file_config.retry_base_delay_seconds,
            retry_max_delay_seconds=self.retry_max_delay_seconds
            if file_config.retry_max_delay_seconds is None
            else file_config.retry_max_delay_seconds,
            retry_statuses=self.retry_statuses
            if file_config.retry_statuses is None
            else file_config.retry_statuses,
            requests_per_minute=self.requests_per_minute
            if file_config.requests_per_minute is None
            else file_config.requests_per_minute,
            rate_limit_burst=self.rate_limit_burst
            if file_config.rate_limit_burst is None
            else file_config.rate_limit_burst,
            cache_ttl_seconds=self.cache_ttl_seconds
            if file_config.cache_ttl_seconds is None
            else file_config.cache_ttl_seconds,
        )

    @property
    def credentials(self) -> Credentials | None:
        """Basic-auth credentials, or None when the key pair is incomplete."""
        if not self.api_key or not self.api_secret:
            return None
        return Credentials(api_key=self.api_key, api_secret=self.api_secret)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_seconds=self.retry_base_delay_seconds,
            max_delay_seconds=self.retry_max_delay_seconds,
            retry_statuses=self.retry_statuses,
        )


def _parse_positive_int(value: str, *, default: int, env_name: str) -> int:
    """Parse a positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_non_negative_int(value: str, *, default: int, env_name: str) -> int:
    """Parse a non-negative integer from an environment variable."""
    text = value.strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _parse_seconds(value: str, *, default: float, env_name: str) -> float:
    """Parse a non-negative number of seconds from an environment variable."""
    text = value.strip()
    if not text:
        return default
    try:
        parsed = float(text)
    except ValueError as exc:
        raise NonNegativeNumberEnvVarError(env_name) from exc
    if parsed < 0.0:
        raise NonNegativeNumberEnvVarError(env_name)
    return parsed


def _parse_statuses(value: str, *, env_name: str) -> frozenset[int]:
    """Parse a comma-separated list of HTTP status codes."""
    items = [item.strip() for item in value.split(",") if item.strip()]
    if not items:
        return DEFAULT_RETRY_STATUSES
    statuses: set[int] = set()
    for item in items:
        if not item.isdigit() or not 100 <= int(item) <= 599:
            raise StatusListEnvVarError(env_name)
        statuses.add(int(item))
    return frozenset(statuses)
