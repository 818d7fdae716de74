from __future__ import annotations

from pathlib import Path

from ..core.context import RunContext
from ..core.exit_codes import OK
from ..core.serialize import dumps_json
from ..doctor.hooks import hook_commands, hook_events


def run_hooks(ctx: RunContext, *, settings_file: str, event: str | None, as_json: bool) -> int:
    path = Path(settings_file)
    if event:
        rows = hook_commands(path, event)
        payload: dict[str, object] = {"schema_version": 1, "tool": "townctl", "status": "ok", "event": event, "commands": rows}
    else:
        rows = hook_events(path)
        payload = {"schema_version": 1, "tool": "townctl", "status": "ok", "events": rows}
    if as_json:
        print(dumps_json(payload))
    else:
        for row in rows:
            print(row)
    return OK
