from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..core.context import RunContext
from ..core.logging import log_event
from ..sessions.names import deacon_session_name, mayor_session_name
from ..workspace import town_name
from . import cursor
from .base import ArtifactKind
from .templates import create_mayor_instructions

AGENT_CURSOR = "cursor"
NO_SETTINGS_AGENTS = frozenset({"gemini", "codex", "auggie", "amp"})


def ensure_settings_for_role(work_dir: Path, role: str, agent_name: str = "") -> list[Path]:
    """Ensure agent settings exist for `role` in `work_dir`.

    Cursor gets `.cursor/hooks.json` plus a rules file. Agents without a
    settings mechanism are a no-op; unknown agent names fall back to Cursor.
    """
    name = (agent_name or AGENT_CURSOR).strip().lower()
    if name in NO_SETTINGS_AGENTS:
        return []
    return cursor.ensure_settings_for_role(work_dir, role)


@dataclass(frozen=True)
class AgentProvisioner:
    town_root: Path
    agent_name: str = AGENT_CURSOR
    ctx: RunContext | None = None

    def provision(self, role: str, target_dir: Path, artifact: ArtifactKind = ArtifactKind.SETTINGS) -> None:
        target_dir.mkdir(parents=True, exist_ok=True)
        if artifact == ArtifactKind.INSTRUCTIONS:
            written = []
            if role == "mayor":
                created = create_mayor_instructions(
                    target_dir,
                    self.town_root,
                    town_name(self.town_root),
                    mayor_session_name(),
                    deacon_session_name(),
                )
                written = [created] if created else []
        else:
            written = ensure_settings_for_role(target_dir, role, self.agent_name)
        log_event(
            self.ctx,
            "info",
            "provision",
            "ensure",
            role=role,
            artifact=artifact.value,
            target=str(target_dir),
            written=len(written),
        )
