"""Cursor agent settings: `.cursor/hooks.json` and the town rules file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .base import write_if_absent

SETTINGS_DIR = ".cursor"
HOOKS_FILE = "hooks.json"
RULES_FILE = Path("rules") / "town.mdc"
HOOKS_VERSION = 1

KNOWN_ROLES = frozenset({"mayor", "deacon", "witness", "refinery", "crew", "polecat"})
AUTONOMOUS_ROLES = frozenset({"deacon", "witness", "refinery", "polecat"})

_ROLE_SUMMARY = {
    "mayor": "You coordinate work across every rig in the town.",
    "deacon": "You patrol the town and keep background agents healthy.",
    "witness": "You watch the rig's polecats and escalate stuck work.",
    "refinery": "You process the rig's merge queue.",
    "crew": "You are a long-lived crew worker in this rig.",
    "polecat": "You are an ephemeral worker assigned a single issue.",
}


def hooks_for_role(role: str) -> dict[str, Any]:
    start = "gt prime && gt mail check --inject" if role in AUTONOMOUS_ROLES else "gt prime"
    return {
        "version": HOOKS_VERSION,
        "hooks": {
            "sessionStart": [{"command": start}],
            "beforeSubmitPrompt": [{"command": "gt mail check --inject"}],
            "stop": [{"command": "gt costs record"}],
            "preCompact": [{"command": "gt prime"}],
        },
    }


def rules_for_role(role: str) -> str:
    return (
        "---\n"
        f"description: Town rules for the {role} role\n"
        "alwaysApply: true\n"
        "---\n\n"
        f"# Role: {role}\n\n"
        f"{_ROLE_SUMMARY.get(role, '')}\n\n"
        "Run `gt prime` after compaction or a new session to reload your context.\n"
    )


def ensure_settings_for_role(work_dir: Path, role: str) -> list[Path]:
    if role not in KNOWN_ROLES:
        return []
    settings_dir = work_dir / SETTINGS_DIR
    written: list[Path] = []
    hooks_path = settings_dir / HOOKS_FILE
    if write_if_absent(hooks_path, json.dumps(hooks_for_role(role), indent=2) + "\n"):
        written.append(hooks_path)
    rules_path = settings_dir / RULES_FILE
    if write_if_absent(rules_path, rules_for_role(role)):
        written.append(rules_path)
    return written
