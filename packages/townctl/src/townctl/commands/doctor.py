from __future__ import annotations

from pathlib import Path

from ..config import load_config
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CHECK_FAILED, ERR_USAGE, OK
from ..core.logging import log_event
from ..core.serialize import dumps_json
from ..doctor.check import SettingsCheck
from ..doctor.model import FixOutcome, ReconcileError
from ..doctor.report import build_report_payload, render_fix_text, render_text
from ..workspace import resolve_town_root


def _write_out_file(out_file: str, payload: dict[str, object]) -> None:
    path = Path(out_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")


def run_doctor(
    ctx: RunContext,
    *,
    town_root: str | None,
    fix: bool,
    restart_sessions: bool,
    as_json: bool,
    out_file: str | None = None,
) -> int:
    if restart_sessions and not fix:
        raise ScriptError("--restart-sessions requires --fix", ERR_USAGE, kind="usage")
    root = resolve_town_root(town_root)
    config = load_config(root, ctx)
    check = SettingsCheck.for_town(root, config, ctx)
    log_event(ctx, "info", "doctor", "start", town_root=str(root), fix=fix, restart_sessions=restart_sessions)

    report = check.run(root)
    findings = check.findings_for(root)
    outcome: FixOutcome | None = None
    fix_error: ReconcileError | None = None
    if fix and not report.ok:
        try:
            outcome = check.fix(root, restart_sessions=restart_sessions)
        except ReconcileError as exc:
            fix_error = exc
            outcome = exc.outcome
        report = check.run(root)
        findings = check.findings_for(root)

    payload = build_report_payload(report, findings, check=check.name, town_root=root, run_id=ctx.run_id, fix=outcome)
    if out_file:
        _write_out_file(out_file, payload)
    if as_json:
        print(dumps_json(payload))
    else:
        if outcome is not None:
            fix_text = render_fix_text(outcome)
            if fix_text:
                print(fix_text)
        print(render_text(report, check=check.name, verbose=ctx.verbose))
    log_event(ctx, "info", "doctor", "finish", status=report.status.value, details=len(report.details))

    if fix_error is not None:
        raise fix_error
    return OK if report.ok else ERR_CHECK_FAILED


__all__ = ["run_doctor"]
