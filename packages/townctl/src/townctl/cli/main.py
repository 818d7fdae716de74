from __future__ import annotations

import argparse
import sys

from .. import __version__
from ..commands.doctor import run_doctor
from ..commands.hooks import run_hooks
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL, OK
from ..core.logging import log_event
from ..core.serialize import dumps_json
from .output import render_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="townctl", description="Town workspace settings doctor")
    p.add_argument("--version", action="version", version=f"townctl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for log events")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    version_p = sub.add_parser("version", help="print version")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")

    doctor_p = sub.add_parser("doctor", help="check agent settings files for drift")
    doctor_p.add_argument("--town-root", help="town root (defaults to GT_TOWN_ROOT or discovery from cwd)")
    doctor_p.add_argument("--fix", action="store_true", help="delete stale files and regenerate settings")
    doctor_p.add_argument(
        "--restart-sessions",
        action="store_true",
        help="with --fix, restart patrol agents whose settings were regenerated",
    )
    doctor_p.add_argument("--out-file", help="optional output path for the JSON report")
    doctor_p.add_argument("--json", action="store_true", help="emit JSON output")

    hooks_p = sub.add_parser("hooks", help="list hook events or the commands registered for one event")
    hooks_p.add_argument("settings_file", help="path to a hooks.json settings file")
    hooks_p.add_argument("--event", help="hook event name, e.g. stop")
    hooks_p.add_argument("--json", action="store_true", help="emit JSON output")
    return p


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    ns = parser.parse_args(raw_argv)
    fmt = resolve_output_format(cli_json=(bool(getattr(ns, "json", False)) or "--json" in raw_argv), cli_format=ns.format)
    ctx = RunContext.from_args(ns.run_id, fmt, ns.verbose, ns.quiet, ns.log_json)  # type: ignore[arg-type]
    as_json = ctx.output_format == "json"
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            if as_json:
                print(dumps_json({"schema_version": 1, "tool": "townctl", "status": "ok", "version": __version__}))
            else:
                print(f"townctl {__version__}")
            return OK
        if ns.cmd == "doctor":
            return run_doctor(
                ctx,
                town_root=ns.town_root,
                fix=ns.fix,
                restart_sessions=ns.restart_sessions,
                as_json=as_json,
                out_file=ns.out_file,
            )
        if ns.cmd == "hooks":
            return run_hooks(ctx, settings_file=ns.settings_file, event=ns.event, as_json=as_json)
        raise ScriptError(f"unknown command: {ns.cmd}", ERR_INTERNAL)
    except ScriptError as exc:
        log_event(ctx, "error", "cli", "error", cmd=ns.cmd, kind=exc.kind, code=exc.code)
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind, run_id=ctx.run_id), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL, kind="internal", run_id=ctx.run_id),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
