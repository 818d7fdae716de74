from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable


class ArtifactKind(str, Enum):
    SETTINGS = "settings"
    INSTRUCTIONS = "instructions"


@runtime_checkable
class Provisioner(Protocol):
    def provision(self, role: str, target_dir: Path, artifact: ArtifactKind = ArtifactKind.SETTINGS) -> None: ...


def write_if_absent(path: Path, content: str, *, mode: int | None = None) -> bool:
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
    return True
