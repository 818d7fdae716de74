from __future__ import annotations

from pathlib import Path

from .base import write_if_absent

INSTRUCTIONS_FILE = "CLAUDE.md"


def mayor_instructions(town_root: Path, town_name: str, mayor_session: str, deacon_session: str) -> str:
    return (
        f"# Mayor of {town_name}\n\n"
        "You are the mayor: you coordinate work across every rig in this town.\n\n"
        "## Town\n\n"
        f"- Root: `{town_root}`\n"
        f"- Your session: `{mayor_session}`\n"
        f"- Deacon session: `{deacon_session}`\n\n"
        "## Startup\n\n"
        "Run `gt prime` to load your context, then `gt mail inbox` for pending work.\n"
    )


def create_mayor_instructions(
    mayor_dir: Path,
    town_root: Path,
    town_name: str,
    mayor_session: str,
    deacon_session: str,
) -> Path | None:
    path = mayor_dir / INSTRUCTIONS_FILE
    content = mayor_instructions(town_root, town_name, mayor_session, deacon_session)
    return path if write_if_absent(path, content) else None
