"""Runtime configuration helpers for the documentation generator."""
from __future__ import annotations

import os
from typing import Final


def _parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    return value in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(name: str, *, default: bool = False) -> bool:
    return _parse_bool(os.getenv(name), default=default)


def _env_int(name: str, *, default: int) -> int:
    return _parse_int(os.getenv(name), default=default)


RUNTIME_REFS: Final[bool] = _env_bool("SCHEMADOC_RUNTIME_REFS", default=True)
STRICT: Final[bool] = _env_bool("SCHEMADOC_STRICT", default=True)
VALIDATE_SAMPLES: Final[bool] = _env_bool("SCHEMADOC_VALIDATE_SAMPLES", default=False)
HTTP_TIMEOUT_SECONDS: Final[int] = _env_int("SCHEMADOC_HTTP_TIMEOUT", default=10)


__all__ = [
    "HTTP_TIMEOUT_SECONDS",
    "RUNTIME_REFS",
    "STRICT",
    "VALIDATE_SAMPLES",
]
