"""Town root detection helpers.

`Path.cwd()` is only allowed in this module.
"""

from __future__ import annotations

import json
from pathlib import Path

from .core.env import getenv
from .core.errors import ScriptError
from .core.exit_codes import ERR_CONTEXT

TOWN_MARKER = Path("mayor") / "town.json"


def is_town_root(path: Path) -> bool:
    return (path / TOWN_MARKER).is_file()


def find_town_root(start: Path | None = None) -> Path:
    cur = (start or Path.cwd()).resolve()
    if cur.is_file():
        cur = cur.parent
    while True:
        if is_town_root(cur):
            return cur
        if cur.parent == cur:
            raise ScriptError("not in a town workspace (no mayor/town.json found)", ERR_CONTEXT, kind="town_root")
        cur = cur.parent


def resolve_town_root(explicit: str | None = None) -> Path:
    raw = explicit or getenv("GT_TOWN_ROOT")
    if raw:
        root = Path(raw).expanduser().resolve()
        if not root.is_dir():
            raise ScriptError(f"town root is not a directory: {root}", ERR_CONTEXT, kind="town_root")
        return root
    return find_town_root()


def town_name(town_root: Path) -> str:
    try:
        payload = json.loads((town_root / TOWN_MARKER).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return town_root.name
    name = payload.get("name") if isinstance(payload, dict) else None
    return str(name) if name else town_root.name
