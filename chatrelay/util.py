"""Miscellaneous helper utilities for chatrelay."""

from __future__ import annotations

import os
from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dictionary with override merged into base."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def env_first(*keys: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable among keys."""
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value
    return default


def header_value(headers: dict[str, Any] | None, name: str) -> str | None:
    """Look up an HTTP header case-insensitively."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def strip_bearer(authorization: str) -> str:
    """Remove the first ``Bearer `` marker from an authorization value."""
    return authorization.replace("Bearer ", "", 1)
