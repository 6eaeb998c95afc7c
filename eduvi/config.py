"""
EduVi configuration. All environment variables in one place.

Read from environment at import time. Every setting has a default, so the
engine runs with an empty environment.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


class Settings:
    """Engine settings from environment variables."""

    # History
    HISTORY_LIMIT: int = _int_env("EDUVI_HISTORY_LIMIT", 50)

    # Interchange file
    SCHEMA_VERSION: str = os.environ.get("EDUVI_SCHEMA_VERSION", "1.0.0")
    FILE_EXTENSION: str = os.environ.get("EDUVI_FILE_EXTENSION", ".eduvi")
    EXPORT_DIR: str = os.environ.get("EDUVI_EXPORT_DIR", ".")

    # New layouts
    DEFAULT_GAP: int = _int_env("EDUVI_DEFAULT_GAP", 4)

    # Logging
    LOG_LEVEL: str = os.environ.get("EDUVI_LOG_LEVEL", "INFO").upper()


# Singleton instance
settings = Settings()

if settings.HISTORY_LIMIT < 1:
    raise RuntimeError("EDUVI_HISTORY_LIMIT must be at least 1")
if settings.DEFAULT_GAP < 0:
    raise RuntimeError("EDUVI_DEFAULT_GAP must not be negative")
if not settings.FILE_EXTENSION.startswith("."):
    raise RuntimeError("EDUVI_FILE_EXTENSION must start with '.'")
