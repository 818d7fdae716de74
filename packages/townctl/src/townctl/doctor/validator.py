from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable

from ..config import DEFAULT_REQUIRED_HOOKS
from ..provision.base import ArtifactKind
from .model import Finding

UNREADABLE = "unreadable"
INVALID_JSON = "invalid JSON"


def hook_has_command(hooks: dict[str, Any], hook_name: str) -> bool:
    entries = hooks.get(hook_name)
    if not isinstance(entries, list) or not entries:
        return False
    return any(isinstance(entry, dict) and "command" in entry for entry in entries)


def check_settings_payload(payload: Any, required_hooks: Iterable[str] = DEFAULT_REQUIRED_HOOKS) -> list[str]:
    if not isinstance(payload, dict):
        return [INVALID_JSON]
    missing: list[str] = []
    if "version" not in payload:
        missing.append("version")
    hooks = payload.get("hooks")
    if not isinstance(hooks, dict):
        missing.append("hooks")
        return missing
    for hook_name in required_hooks:
        if not hook_has_command(hooks, hook_name):
            missing.append(f"{hook_name} hook")
    return missing


def check_settings_file(path: Path, required_hooks: Iterable[str] = DEFAULT_REQUIRED_HOOKS) -> list[str]:
    try:
        data = path.read_bytes()
    except OSError:
        return [UNREADABLE]
    try:
        payload = json.loads(data)
    except ValueError:
        return [INVALID_JSON]
    return check_settings_payload(payload, required_hooks)


def validate_findings(findings: Iterable[Finding], required_hooks: Iterable[str] = DEFAULT_REQUIRED_HOOKS) -> list[Finding]:
    """Populate `missing` for canonical settings files; drop the ones that are complete."""
    hooks = tuple(required_hooks)
    out: list[Finding] = []
    for finding in findings:
        if finding.wrong_location:
            out.append(finding)
            continue
        if finding.artifact != ArtifactKind.SETTINGS:
            continue
        missing = check_settings_file(finding.path, hooks)
        if missing:
            out.append(replace(finding, missing=tuple(missing)))
    return out


__all__ = [
    "INVALID_JSON",
    "UNREADABLE",
    "check_settings_file",
    "check_settings_payload",
    "hook_has_command",
    "validate_findings",
]
