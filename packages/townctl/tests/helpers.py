from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from townctl.core.context import RunContext
from townctl.core.errors import ScriptError
from townctl.core.exit_codes import ERR_FIX
from townctl.provision import cursor
from townctl.provision.base import ArtifactKind
from townctl.vcs.git import VcsQueryError


def make_town(root: Path, name: str = "testtown") -> Path:
    (root / "mayor").mkdir(parents=True, exist_ok=True)
    (root / "mayor" / "town.json").write_text(json.dumps({"name": name}) + "\n", encoding="utf-8")
    return root


def valid_settings(role: str = "witness") -> dict[str, Any]:
    return cursor.hooks_for_role(role)


def write_settings(path: Path, payload: Any | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    body = valid_settings() if payload is None else payload
    text = body if isinstance(body, str) else json.dumps(body, indent=2)
    path.write_text(text, encoding="utf-8")
    return path


def stale_settings(*drop_hooks: str, drop_version: bool = False) -> dict[str, Any]:
    payload = valid_settings()
    for name in drop_hooks:
        payload["hooks"].pop(name, None)
    if drop_version:
        payload.pop("version")
    return payload


def quiet_ctx() -> RunContext:
    return RunContext(run_id="pytest-run", quiet=True)


@dataclass
class FakeGit:
    """In-memory GitView keyed by file path.

    States: `untracked`, `clean`, `modified`, `outside`, `error`.
    Paths without an entry are untracked.
    """

    states: dict[Path, str] = field(default_factory=dict)
    queried: list[Path] = field(default_factory=list)

    def set(self, path: Path, state: str) -> None:
        self.states[path] = state

    def _state(self, path: Path) -> str:
        return self.states.get(path, "untracked")

    def is_inside_checkout(self, directory: Path) -> bool:
        matches = [state for path, state in self.states.items() if path.parent == directory]
        if "error" in matches:
            raise VcsQueryError(f"git rev-parse failed in {directory}: fatal: bad object")
        return "outside" not in matches

    def is_tracked(self, path: Path) -> bool:
        self.queried.append(path)
        return self._state(path) in {"clean", "modified"}

    def has_changes(self, path: Path) -> bool:
        return self._state(path) == "modified"


@dataclass
class FakeSessions:
    running: set[str] = field(default_factory=set)
    killed: list[str] = field(default_factory=list)
    list_calls: int = 0
    fail_kill: set[str] = field(default_factory=set)

    def list_sessions(self) -> list[str]:
        self.list_calls += 1
        return sorted(self.running)

    def has_session(self, name: str) -> bool:
        return name in self.running

    def kill_session(self, name: str) -> None:
        if name in self.fail_kill:
            raise ScriptError(f"tmux kill-session {name} failed", ERR_FIX, kind="session_kill")
        self.running.discard(name)
        self.killed.append(name)


@dataclass
class FakeProvisioner:
    """Records provision calls and writes real Cursor settings unless told to fail."""

    calls: list[tuple[str, Path, ArtifactKind]] = field(default_factory=list)
    fail_roles: set[str] = field(default_factory=set)

    def provision(self, role: str, target_dir: Path, artifact: ArtifactKind = ArtifactKind.SETTINGS) -> None:
        self.calls.append((role, target_dir, artifact))
        if role in self.fail_roles:
            raise OSError(f"permission denied: {target_dir}")
        if artifact == ArtifactKind.SETTINGS:
            cursor.ensure_settings_for_role(target_dir, role)
        else:
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / "CLAUDE.md").write_text(f"# {role}\n", encoding="utf-8")
