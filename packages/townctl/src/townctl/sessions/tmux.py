from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_FIX
from ..core.process import CommandResult, run_command

_NO_SERVER_MARKERS = ("no server running", "error connecting to", "no such file or directory")


@runtime_checkable
class SessionManager(Protocol):
    def list_sessions(self) -> list[str]: ...

    def has_session(self, name: str) -> bool: ...

    def kill_session(self, name: str) -> None: ...


@dataclass(frozen=True)
class Tmux:
    timeout_seconds: float = 5.0
    ctx: RunContext | None = None
    binary: str = "tmux"

    def _run(self, *args: str) -> CommandResult:
        return run_command([self.binary, *args], timeout_seconds=self.timeout_seconds, ctx=self.ctx)

    def list_sessions(self) -> list[str]:
        result = self._run("list-sessions", "-F", "#{session_name}")
        if result.code == 0:
            return sorted({line.strip() for line in result.stdout.splitlines() if line.strip()})
        if any(marker in result.stderr.lower() for marker in _NO_SERVER_MARKERS):
            return []
        raise ScriptError(f"tmux list-sessions failed: {result.combined_output or result.code}", ERR_FIX, kind="session_list")

    def has_session(self, name: str) -> bool:
        if not name:
            return False
        return self._run("has-session", "-t", f"={name}").code == 0

    def kill_session(self, name: str) -> None:
        result = self._run("kill-session", "-t", f"={name}")
        if result.code != 0:
            raise ScriptError(f"tmux kill-session {name} failed: {result.combined_output or result.code}", ERR_FIX, kind="session_kill")
