from __future__ import annotations

import json
from pathlib import Path

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_VALIDATION


def load_hooks(path: Path) -> dict[str, object]:
    try:
        payload = json.loads(path.read_bytes())
    except OSError as exc:
        raise ScriptError(f"cannot read settings file {path}: {exc}", ERR_VALIDATION, kind="settings_unreadable") from exc
    except ValueError as exc:
        raise ScriptError(f"settings file {path} is not valid JSON: {exc}", ERR_VALIDATION, kind="settings_invalid") from exc
    hooks = payload.get("hooks") if isinstance(payload, dict) else None
    if not isinstance(hooks, dict):
        raise ScriptError(f"settings file {path} has no hooks mapping", ERR_VALIDATION, kind="settings_invalid")
    return hooks


def hook_commands(path: Path, event: str) -> list[str]:
    entries = load_hooks(path).get(event, [])
    if not isinstance(entries, list):
        return []
    commands: list[str] = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("command"):
            commands.append(str(entry["command"]))
    return commands


def hook_events(path: Path) -> list[str]:
    return sorted(load_hooks(path))
