from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from ..contracts.ids import DOCTOR_REPORT
from ..contracts.validate import validate_self
from .model import Finding, FixOutcome, Report, ReportStatus, VcsStatus

OK_MESSAGE = "All settings files are up to date"
FIX_HINT = "Run 'townctl doctor --fix' to update settings and restart affected agents"
FIX_HINT_MANUAL = "Run 'townctl doctor --fix' to fix safe issues. Files with local modifications require manual review."

_LOCATION_MESSAGES = {
    VcsStatus.UNTRACKED: "wrong location, untracked (safe to delete)",
    VcsStatus.TRACKED_CLEAN: "wrong location, tracked but unmodified (safe to delete)",
    VcsStatus.TRACKED_MODIFIED: "wrong location, tracked with local modifications (manual review needed)",
}


def detail_line(finding: Finding) -> str:
    if finding.wrong_location:
        status = finding.vcs_status or VcsStatus.UNKNOWN
        return f"{finding.path}: {_LOCATION_MESSAGES.get(status, 'wrong location (inside source repo)')}"
    return f"{finding.path}: missing {', '.join(finding.missing)}"


def build_report(findings: Iterable[Finding]) -> Report:
    rows = list(findings)
    if not rows:
        return Report(status=ReportStatus.OK, message=OK_MESSAGE)
    manual = any(f.needs_manual_review for f in rows)
    return Report(
        status=ReportStatus.ERROR,
        message=f"Found {len(rows)} stale settings file(s)",
        details=tuple(detail_line(f) for f in rows),
        fix_hint=FIX_HINT_MANUAL if manual else FIX_HINT,
    )


def build_report_payload(
    report: Report,
    findings: Iterable[Finding],
    *,
    check: str,
    town_root: Path,
    run_id: str = "",
    fix: FixOutcome | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "schema_name": DOCTOR_REPORT,
        "schema_version": 1,
        "tool": "townctl",
        "run_id": run_id,
        "town_root": str(town_root),
        "check": check,
        "status": report.status.value,
        "message": report.message,
        "details": list(report.details),
        "fix_hint": report.fix_hint,
        "findings": [f.as_row() for f in findings],
    }
    if fix is not None:
        payload["fix"] = fix.as_row()
    return validate_self(DOCTOR_REPORT, payload)


def render_text(report: Report, *, check: str, verbose: bool = False) -> str:
    marker = "OK" if report.ok else "ERROR"
    out = [f"{marker} {check}: {report.message}"]
    for line in report.details:
        out.append(f"  {line}")
    if report.fix_hint and (verbose or not report.ok):
        out.append(f"  hint: {report.fix_hint}")
    return "\n".join(out)


def render_fix_text(outcome: FixOutcome) -> str:
    out = [f"  Warning: {line}" for line in outcome.skipped]
    out.extend(f"  deleted: {path}" for path in outcome.deleted)
    out.extend(f"  regenerated: {path}" for path in outcome.regenerated)
    if outcome.invalidated:
        out.append(f"  restarted sessions: {', '.join(outcome.terminated_sessions) or 'none running'}")
    elif outcome.terminated_sessions:
        out.append(f"  restarted sessions: {', '.join(outcome.terminated_sessions)}")
    return "\n".join(out)


__all__ = [
    "FIX_HINT",
    "FIX_HINT_MANUAL",
    "OK_MESSAGE",
    "build_report",
    "build_report_payload",
    "detail_line",
    "render_fix_text",
    "render_text",
]
