"""Tests for CLI composition root wiring."""

from __future__ import annotations

import logging

import pytest
import typer

from huntress_client import composition
from huntress_client.client import HuntressClient
from huntress_client.config import ClientConfig
from huntress_client.infrastructure.http import RequestExecutor


def test_build_cli_dependencies_builds_client() -> None:
    deps = composition.build_cli_dependencies(
        config=ClientConfig(api_key="key", api_secret="secret"), verbose=False
    )
    try:
        assert isinstance(deps.client, HuntressClient)
        assert isinstance(deps.client.requester, RequestExecutor)
        assert deps.client.requester.credentials is not None
    finally:
        deps.client.close()
    assert logging.getLogger("huntress_client").level == logging.WARNING


def test_verbose_enables_debug_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_build_client(config: ClientConfig, *, logger: logging.Logger) -> HuntressClient:
        captured["config"] = config
        captured["logger"] = logger
        return HuntressClient(RequestExecutor(transport=_NoTransport()))

    monkeypatch.setattr(composition, "build_client", fake_build_client)

    deps = composition.build_cli_dependencies(config=ClientConfig(), verbose=True)
    deps.client.close()

    logger = captured["logger"]
    assert isinstance(logger, logging.Logger)
    assert logger.level == logging.DEBUG


def test_app_is_typer_instance() -> None:
    assert isinstance(composition.app, typer.Typer)


class _NoTransport:
    def send(self, request: object, *, timeout: float) -> object:
        pytest.fail("Unexpected HTTP request")

    def close(self) -> None:
        pass
