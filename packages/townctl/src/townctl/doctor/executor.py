from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ..config import DoctorConfig
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.logging import log_event
from ..provision.base import ArtifactKind, Provisioner
from ..sessions.names import matches_prefixes
from ..sessions.tmux import SessionManager
from .model import Finding, FixOutcome, ReconcileError
from .topology import SETTINGS_RELPATH

_SETTINGS_DEPTH = len(Path(SETTINGS_RELPATH).parts)


def work_dir_for(path: Path, artifact: ArtifactKind) -> Path:
    """Directory an agent runs in, given the artifact path it reads."""
    if artifact == ArtifactKind.SETTINGS:
        return path.parents[_SETTINGS_DEPTH - 1]
    return path.parent


@dataclass
class _FixState:
    deleted: list[str] = field(default_factory=list)
    regenerated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    terminated: list[str] = field(default_factory=list)
    invalidate: bool = False
    invalidated: bool = False

    def outcome(self) -> FixOutcome:
        return FixOutcome(
            deleted=tuple(self.deleted),
            regenerated=tuple(self.regenerated),
            skipped=tuple(self.skipped),
            errors=tuple(self.errors),
            terminated_sessions=tuple(self.terminated),
            invalidated=self.invalidated,
        )


@dataclass(frozen=True)
class ReconciliationExecutor:
    provisioner: Provisioner
    sessions: SessionManager
    config: DoctorConfig = field(default_factory=DoctorConfig)
    ctx: RunContext | None = None

    def fix(self, findings: Iterable[Finding], town_root: Path, *, restart_sessions: bool = False) -> FixOutcome:
        """Apply the safe repair for every finding.

        Files carrying local modifications are skipped with a warning. Delete and
        regenerate failures are collected and raised together as one
        `ReconcileError` once every finding has been processed.
        """
        state = _FixState()
        for finding in findings:
            if finding.needs_manual_review:
                message = f"{finding.path}: has local modifications, skipping"
                state.skipped.append(message)
                log_event(self.ctx, "warn", "executor", "skip", path=str(finding.path), reason="tracked-modified")
                continue
            removed = self._delete(finding, town_root, state)
            if removed is None:
                continue
            if finding.wrong_location:
                if finding.root_level and removed:
                    self._regenerate_root_artifact(finding, town_root, state)
                    state.invalidate = True
                continue
            self._regenerate(finding, state)
            if restart_sessions:
                self._restart_session(finding, state)
        if state.invalidate:
            self._invalidate_all_sessions(state)
        outcome = state.outcome()
        if outcome.errors:
            raise ReconcileError.from_outcome(outcome)
        return outcome

    def _delete(self, finding: Finding, town_root: Path, state: _FixState) -> bool | None:
        """Remove the artifact; `True` if removed, `False` if already gone, `None` on failure."""
        try:
            finding.path.unlink()
        except FileNotFoundError:
            log_event(self.ctx, "info", "executor", "already-removed", path=str(finding.path))
            return False
        except OSError as exc:
            state.errors.append(f"failed to delete {finding.path}: {exc}")
            return None
        else:
            state.deleted.append(str(finding.path))
            log_event(self.ctx, "info", "executor", "delete", path=str(finding.path), role=finding.role)
        parent = finding.path.parent
        if parent.resolve() != town_root.resolve():
            try:
                parent.rmdir()
            except OSError:
                pass
        return True

    def _provision(self, role: str, target_dir: Path, artifact: ArtifactKind, state: _FixState, label: Path) -> None:
        try:
            self.provisioner.provision(role, target_dir, artifact)
        except Exception as exc:
            state.errors.append(f"failed to recreate {artifact.value} for {label}: {exc}")
            log_event(self.ctx, "error", "executor", "regenerate-failed", path=str(label), role=role, error=str(exc))
            return
        state.regenerated.append(str(label))
        log_event(self.ctx, "info", "executor", "regenerate", path=str(label), role=role, artifact=artifact.value)

    def _regenerate_root_artifact(self, finding: Finding, town_root: Path, state: _FixState) -> None:
        canonical = finding.canonical_path or town_root / finding.role / finding.path.name
        self._provision(finding.role, work_dir_for(canonical, finding.artifact), finding.artifact, state, canonical)

    def _regenerate(self, finding: Finding, state: _FixState) -> None:
        self._provision(finding.role, work_dir_for(finding.path, finding.artifact), finding.artifact, state, finding.path)

    def _restart_session(self, finding: Finding, state: _FixState) -> None:
        if finding.role not in self.config.patrol_roles or not finding.session:
            return
        try:
            if not self.sessions.has_session(finding.session):
                return
            self.sessions.kill_session(finding.session)
        except ScriptError as exc:
            log_event(self.ctx, "warn", "executor", "restart-failed", session=finding.session, error=str(exc))
            return
        state.terminated.append(finding.session)
        log_event(self.ctx, "info", "executor", "restart", session=finding.session, role=finding.role)

    def _invalidate_all_sessions(self, state: _FixState) -> None:
        if state.invalidated:
            return
        state.invalidated = True
        try:
            names = self.sessions.list_sessions()
        except ScriptError as exc:
            log_event(self.ctx, "warn", "executor", "invalidate-failed", error=str(exc))
            return
        for name in names:
            if not matches_prefixes(name, self.config.session_prefixes):
                continue
            try:
                self.sessions.kill_session(name)
            except ScriptError as exc:
                log_event(self.ctx, "warn", "executor", "invalidate-failed", session=name, error=str(exc))
                continue
            state.terminated.append(name)
        log_event(self.ctx, "info", "executor", "invalidate", terminated=len(state.terminated))


__all__ = ["ReconciliationExecutor", "work_dir_for"]
