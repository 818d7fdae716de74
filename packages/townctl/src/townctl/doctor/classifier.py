from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from ..core.context import RunContext
from ..core.logging import log_event
from ..vcs.git import GitView, VcsQueryError
from .model import Finding, VcsStatus

NOT_A_CHECKOUT = "not inside a git checkout"


def classify_path(path: Path, git: GitView) -> tuple[VcsStatus, str]:
    """Return the git status of `path` and, for `unknown`, why it is unknown."""
    try:
        if not git.is_inside_checkout(path.parent):
            return VcsStatus.UNKNOWN, NOT_A_CHECKOUT
        if not git.is_tracked(path):
            return VcsStatus.UNTRACKED, ""
        if git.has_changes(path):
            return VcsStatus.TRACKED_MODIFIED, ""
        return VcsStatus.TRACKED_CLEAN, ""
    except VcsQueryError as exc:
        return VcsStatus.UNKNOWN, f"git query failed: {exc}"
    except Exception as exc:
        return VcsStatus.UNKNOWN, f"git query failed: {exc.__class__.__name__}: {exc}"


def classify_findings(
    findings: Iterable[Finding],
    git: GitView,
    *,
    max_workers: int = 8,
    ctx: RunContext | None = None,
) -> list[Finding]:
    rows = list(findings)
    targets = sorted({f.path for f in rows if f.wrong_location})
    if not targets:
        return rows
    workers = max(1, min(int(max_workers), len(targets)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="townctl-vcs") as pool:
        statuses = dict(zip(targets, pool.map(lambda p: classify_path(p, git), targets)))
    out: list[Finding] = []
    for finding in rows:
        if not finding.wrong_location:
            out.append(finding)
            continue
        status, detail = statuses[finding.path]
        log_event(ctx, "info", "classifier", "classify", path=str(finding.path), vcs_status=status.value, detail=detail or "-")
        out.append(replace(finding, vcs_status=status, vcs_detail=detail))
    return out


__all__ = ["NOT_A_CHECKOUT", "classify_findings", "classify_path"]
