"""Centralized environment variable helpers."""

from __future__ import annotations

import os


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def getenv_int(name: str) -> int | None:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw.strip())
