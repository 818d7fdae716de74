from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_FIX
from ..provision.base import ArtifactKind


class VcsStatus(str, Enum):
    UNTRACKED = "untracked"
    TRACKED_CLEAN = "tracked-clean"
    TRACKED_MODIFIED = "tracked-modified"
    UNKNOWN = "unknown"

    @property
    def safe_to_delete(self) -> bool:
        return self != VcsStatus.TRACKED_MODIFIED


class ReportStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class Finding:
    path: Path
    role: str
    rig: str = ""
    session: str = ""
    missing: tuple[str, ...] = ()
    wrong_location: bool = False
    vcs_status: VcsStatus | None = None
    vcs_detail: str = ""
    root_level: bool = False
    artifact: ArtifactKind = ArtifactKind.SETTINGS
    canonical_path: Path | None = None

    @property
    def needs_manual_review(self) -> bool:
        return self.wrong_location and self.vcs_status is not None and not self.vcs_status.safe_to_delete

    def as_row(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "role": self.role,
            "rig": self.rig,
            "session": self.session,
            "artifact": self.artifact.value,
            "wrong_location": self.wrong_location,
            "root_level": self.root_level,
            "missing": list(self.missing),
            "vcs_status": None if self.vcs_status is None else self.vcs_status.value,
            "vcs_detail": self.vcs_detail,
        }


@dataclass(frozen=True)
class Report:
    status: ReportStatus
    message: str
    details: tuple[str, ...] = ()
    fix_hint: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ReportStatus.OK


@dataclass(frozen=True)
class FixOutcome:
    deleted: tuple[str, ...] = ()
    regenerated: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    terminated_sessions: tuple[str, ...] = ()
    invalidated: bool = False

    def as_row(self) -> dict[str, object]:
        return {
            "deleted": list(self.deleted),
            "regenerated": list(self.regenerated),
            "skipped": list(self.skipped),
            "errors": list(self.errors),
            "terminated_sessions": list(self.terminated_sessions),
            "invalidated": self.invalidated,
        }


@dataclass
class ReconcileError(ScriptError):
    outcome: FixOutcome = field(default_factory=FixOutcome)

    @classmethod
    def from_outcome(cls, outcome: FixOutcome) -> "ReconcileError":
        return cls("; ".join(outcome.errors), ERR_FIX, kind="fix_failed", outcome=outcome)


__all__ = ["Finding", "FixOutcome", "ReconcileError", "Report", "ReportStatus", "VcsStatus"]
