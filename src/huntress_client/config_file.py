"""Typed parsing and validation for client config files.

Usage example:
    from pathlib import Path

    from huntress_client.config import ClientConfig
    from huntress_client.config_file import load_client_config_file

    file_config = load_client_config_file(path=Path("huntress.toml"))
    config = ClientConfig.from_env().with_file_overrides(file_config)

File format:
    schema_version = 1

    [client]
    base_url = "https://api.huntress.io/v1"
    requests_per_minute = 60
    max_retries = 3
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ClientConfigFile:
    """Validated client config values loaded from a TOML file.

    Credentials are read from the environment only.
    """

    base_url: str | None = None
    user_agent: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    retry_base_delay_seconds: float | None = None
    retry_max_delay_seconds: float | None = None
    retry_statuses: frozenset[int] | None = None
    requests_per_minute: int | None = None
    rate_limit_burst: int | None = None
    cache_ttl_seconds: float | None = None


class _ClientSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str | None = None
    user_agent: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    retry_base_delay_seconds: float | None = None
    retry_max_delay_seconds: float | None = None
    retry_statuses: tuple[int, ...] | None = None
    requests_per_minute: int | None = None
    rate_limit_burst: int | None = None
    cache_ttl_seconds: float | None = None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().rstrip("/")
        if not text.startswith(("http://", "https://")):
            raise ValueError
        return text

    @field_validator("user_agent")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("requests_per_minute", "rate_limit_burst")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("max_retries")
    @classmethod
    def _validate_non_negative_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value

    @field_validator("timeout_seconds", "retry_base_delay_seconds", "retry_max_delay_seconds")
    @classmethod
    def _validate_positive_seconds(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0.0:
            raise ValueError
        return value

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _validate_non_negative_seconds(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value < 0.0:
            raise ValueError
        return value

    @field_validator("retry_statuses")
    @classmethod
    def _validate_statuses(cls, value: tuple[int, ...] | None) -> tuple[int, ...] | None:
        if value is None:
            return None
        if any(status < 100 or status > 599 for status in value):
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    client: _ClientSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_client_config_file(*, path: Path) -> ClientConfigFile:
    """Load and validate a client TOML config file.

    Raises:
        ConfigFileNotFoundError: If the path does not exist.
        ConfigFileParseError: If the file is not valid TOML.
        ConfigFileValidationError: If the content does not match the schema.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.client
    return ClientConfigFile(
        base_url=section.base_url,
        user_agent=section.user_agent,
        timeout_seconds=section.timeout_seconds,
        max_retries=section.max_retries,
        retry_base_delay_seconds=section.retry_base_delay_seconds,
        retry_max_delay_seconds=section.retry_max_delay_seconds,
        retry_statuses=None if section.retry_statuses is None else frozenset(section.retry_statuses),
        requests_per_minute=section.requests_per_minute,
        rate_limit_burst=section.rate_limit_burst,
        cache_ttl_seconds=section.cache_ttl_seconds,
    )
