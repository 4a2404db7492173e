"""Observability helpers."""

from .logging import NullLogger, get_logger

__all__ = ["NullLogger", "get_logger"]
