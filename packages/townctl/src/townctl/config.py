from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .contracts.ids import CONFIG
from .contracts.validate import validate
from .core.context import RunContext
from .core.env import getenv, getenv_int
from .core.errors import ScriptError
from .core.exit_codes import ERR_CONFIG
from .core.logging import log_event
from .sessions.names import HQ_PREFIX, PREFIX

CONFIG_FILE = ".townctl.yaml"

DEFAULT_EXCLUDED_DIRS = frozenset({"mayor", "deacon", "daemon", "docs", ".git"})
DEFAULT_REQUIRED_HOOKS = ("beforeSubmitPrompt", "stop")
DEFAULT_SESSION_PREFIXES = (PREFIX, HQ_PREFIX)
DEFAULT_PATROL_ROLES = frozenset({"witness", "refinery", "deacon", "mayor"})


@dataclass(frozen=True)
class DoctorConfig:
    excluded_dirs: frozenset[str] = DEFAULT_EXCLUDED_DIRS
    required_hooks: tuple[str, ...] = DEFAULT_REQUIRED_HOOKS
    session_prefixes: tuple[str, ...] = DEFAULT_SESSION_PREFIXES
    patrol_roles: frozenset[str] = DEFAULT_PATROL_ROLES
    max_workers: int = 8
    vcs_timeout_seconds: float = 10.0
    session_timeout_seconds: float = 5.0
    agent: str = "cursor"
    source: tuple[str, ...] = field(default=("defaults",), compare=False)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.vcs_timeout_seconds <= 0 or self.session_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")
        if not self.required_hooks:
            raise ValueError("required_hooks cannot be empty")


def _from_mapping(base: DoctorConfig, doctor: dict[str, Any], source: str) -> DoctorConfig:
    updates: dict[str, Any] = {}
    if "excluded_dirs" in doctor:
        updates["excluded_dirs"] = frozenset(str(x) for x in doctor["excluded_dirs"])
    if "required_hooks" in doctor:
        updates["required_hooks"] = tuple(str(x) for x in doctor["required_hooks"])
    if "session_prefixes" in doctor:
        updates["session_prefixes"] = tuple(str(x) for x in doctor["session_prefixes"])
    if "patrol_roles" in doctor:
        updates["patrol_roles"] = frozenset(str(x) for x in doctor["patrol_roles"])
    for key in ("max_workers",):
        if key in doctor:
            updates[key] = int(doctor[key])
    for key in ("vcs_timeout_seconds", "session_timeout_seconds"):
        if key in doctor:
            updates[key] = float(doctor[key])
    if "agent" in doctor:
        updates["agent"] = str(doctor["agent"])
    return replace(base, source=(*base.source, source), **updates)


def _load_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ScriptError(f"invalid config file {path}: {exc}", ERR_CONFIG, kind="config_parse") from exc
    if raw is None:
        return {}
    try:
        validate(CONFIG, raw)
    except ScriptError as exc:
        raise ScriptError(f"invalid config file {path}: {exc.message}", ERR_CONFIG, kind="config_schema") from exc
    return dict(raw.get("doctor") or {})


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    try:
        workers = getenv_int("TOWNCTL_MAX_WORKERS")
        vcs_timeout = getenv("TOWNCTL_VCS_TIMEOUT")
        session_timeout = getenv("TOWNCTL_SESSION_TIMEOUT")
        if workers is not None:
            overrides["max_workers"] = workers
        if vcs_timeout:
            overrides["vcs_timeout_seconds"] = float(vcs_timeout)
        if session_timeout:
            overrides["session_timeout_seconds"] = float(session_timeout)
    except ValueError as exc:
        raise ScriptError(f"invalid environment override: {exc}", ERR_CONFIG, kind="config_env") from exc
    agent = getenv("TOWNCTL_AGENT")
    if agent:
        overrides["agent"] = agent
    return overrides


def load_config(town_root: Path | None = None, ctx: RunContext | None = None) -> DoctorConfig:
    config = DoctorConfig()
    try:
        if town_root is not None:
            path = town_root / CONFIG_FILE
            if path.is_file():
                config = _from_mapping(config, _load_file(path), str(path))
        overrides = _env_overrides()
        if overrides:
            config = _from_mapping(config, overrides, "env")
    except ValueError as exc:
        raise ScriptError(f"invalid configuration: {exc}", ERR_CONFIG, kind="config_value") from exc
    log_event(
        ctx,
        "debug",
        "config",
        "load",
        source=",".join(config.source),
        max_workers=config.max_workers,
        agent=config.agent,
    )
    return config


__all__ = ["CONFIG_FILE", "DoctorConfig", "load_config"]
