"""Tests for config-file schema parsing and fail-fast validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from huntress_client.config_file import load_client_config_file
from huntress_client.exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "huntress.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_client_config_file_parses_valid_toml(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
schema_version = 1

[client]
base_url = "https://api.example.test/v1/"
user_agent = " acme-sync/2.0 "
timeout_seconds = 15
max_retries = 5
retry_base_delay_seconds = 0.25
retry_max_delay_seconds = 10
retry_statuses = [429, 503]
requests_per_minute = 30
rate_limit_burst = 2
cache_ttl_seconds = 0
""".strip(),
    )

    loaded = load_client_config_file(path=path)

    assert loaded.base_url == "https://api.example.test/v1"
    assert loaded.user_agent == "acme-sync/2.0"
    assert loaded.timeout_seconds == 15.0
    assert loaded.max_retries == 5
    assert loaded.retry_base_delay_seconds == 0.25
    assert loaded.retry_max_delay_seconds == 10.0
    assert loaded.retry_statuses == frozenset({429, 503})
    assert loaded.requests_per_minute == 30
    assert loaded.rate_limit_burst == 2
    assert loaded.cache_ttl_seconds == 0.0


def test_empty_client_section_leaves_everything_unset(tmp_path: Path) -> None:
    loaded = load_client_config_file(path=_write(tmp_path, "schema_version = 1\n[client]\n"))

    assert loaded.base_url is None
    assert loaded.retry_statuses is None


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileNotFoundError):
        load_client_config_file(path=tmp_path / "absent.toml")


def test_invalid_toml_raises_parse_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileParseError):
        load_client_config_file(path=_write(tmp_path, "schema_version = = 1"))


@pytest.mark.parametrize(
    ("content", "location"),
    [
        ("schema_version = 2\n[client]\n", "schema_version"),
        ("schema_version = 1\n", "client"),
        ('schema_version = 1\n[client]\napi_secret = "x"\n', "client.api_secret"),
        ('schema_version = 1\n[client]\nbase_url = "ftp://x"\n', "client.base_url"),
        ("schema_version = 1\n[client]\nrequests_per_minute = 0\n", "client.requests_per_minute"),
        ("schema_version = 1\n[client]\nmax_retries = -1\n", "client.max_retries"),
        ("schema_version = 1\n[client]\ntimeout_seconds = 0\n", "client.timeout_seconds"),
        ("schema_version = 1\n[client]\nretry_statuses = [99]\n", "client.retry_statuses"),
    ],
)
def test_schema_violations_raise_validation_error(
    tmp_path: Path, content: str, location: str
) -> None:
    with pytest.raises(ConfigFileValidationError) as exc_info:
        load_client_config_file(path=_write(tmp_path, content))

    assert location in str(exc_info.value)
