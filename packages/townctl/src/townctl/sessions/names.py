from __future__ import annotations

PREFIX = "gt-"
HQ_PREFIX = "hq-"


def mayor_session_name() -> str:
    return f"{HQ_PREFIX}mayor"


def deacon_session_name() -> str:
    return f"{HQ_PREFIX}deacon"


def matches_prefixes(name: str, prefixes: tuple[str, ...]) -> bool:
    return any(name.startswith(prefix) for prefix in prefixes)
