"""Shared utility functions for pagebridge."""

import secrets
from datetime import datetime, timezone
from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dicts. Override values take precedence.

    Merge rules:
    - Dicts are recursively merged
    - Lists are REPLACED (override wins completely), so a local config can
      clear a list set globally (e.g. a migration table)
    - Other values are overwritten

    Args:
        base: Base dictionary.
        override: Dictionary with values to overlay.

    Returns:
        New merged dictionary (original dicts not modified).
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def generate_element_id() -> str:
    """Return a fresh 8-character hex element id."""
    return secrets.token_hex(4)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def now_ms() -> int:
    """Current time in integer milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)
