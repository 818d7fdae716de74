from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..core.context import RunContext
from ..core.process import CommandResult, run_command


class VcsQueryError(Exception):
    """A git query could not produce an answer."""


@runtime_checkable
class GitView(Protocol):
    def is_inside_checkout(self, directory: Path) -> bool: ...

    def is_tracked(self, path: Path) -> bool: ...

    def has_changes(self, path: Path) -> bool: ...


def _describe(result: CommandResult) -> str:
    if result.timed_out:
        return "timed out"
    return result.combined_output.splitlines()[-1] if result.combined_output else f"exit {result.code}"


@dataclass(frozen=True)
class GitCli:
    timeout_seconds: float = 10.0
    ctx: RunContext | None = None

    def _git(self, directory: Path, *args: str) -> CommandResult:
        return run_command(
            ["git", "-C", str(directory), *args],
            timeout_seconds=self.timeout_seconds,
            ctx=self.ctx,
        )

    def is_inside_checkout(self, directory: Path) -> bool:
        result = self._git(directory, "rev-parse", "--git-dir")
        if result.code == 0:
            return True
        if "not a git repository" in result.stderr.lower():
            return False
        raise VcsQueryError(f"git rev-parse failed in {directory}: {_describe(result)}")

    def is_tracked(self, path: Path) -> bool:
        result = self._git(path.parent, "ls-files", "--", path.name)
        if result.code != 0:
            raise VcsQueryError(f"git ls-files failed for {path}: {_describe(result)}")
        return bool(result.stdout.strip())

    def has_changes(self, path: Path) -> bool:
        for args in (("diff", "--quiet", "--", path.name), ("diff", "--cached", "--quiet", "--", path.name)):
            result = self._git(path.parent, *args)
            if result.code == 1:
                return True
            if result.code != 0:
                raise VcsQueryError(f"git {' '.join(args[:-2])} failed for {path}: {_describe(result)}")
        return False


__all__ = ["GitCli", "GitView", "VcsQueryError"]
