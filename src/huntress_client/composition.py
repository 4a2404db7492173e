"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

import logging

from .cli import CliDependencies, create_app
from .client import build_client
from .config import ClientConfig
from .observability.logging import get_logger


def build_cli_dependencies(*, config: ClientConfig, verbose: bool) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Client configuration (credentials, limits, retries).
        verbose: Whether request and retry logs are shown.
    """
    logger = get_logger("huntress_client")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return CliDependencies(client=build_client(config, logger=logger))


app = create_app(build_cli_dependencies)
