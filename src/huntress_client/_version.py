"""Installed distribution version."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

_DISTRIBUTION = "huntress-client"


def _resolve_version() -> str:
    try:
        return version(_DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _resolve_version()
