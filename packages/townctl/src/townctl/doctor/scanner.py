from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable

from ..config import DEFAULT_EXCLUDED_DIRS
from ..core.context import RunContext
from ..core.logging import log_event
from ..provision.base import ArtifactKind
from .model import Finding
from .topology import DEFAULT_TOPOLOGY, Scope, TopologyEntry, render_template, rig_entries, root_entries


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _child_dirs(path: Path) -> list[str]:
    try:
        entries = list(os.scandir(path))
    except OSError:
        return []
    names: list[str] = []
    for entry in entries:
        try:
            if entry.is_dir():
                names.append(entry.name)
        except OSError:
            continue
    return sorted(names)


def _root_note(entry: TopologyEntry) -> str:
    if entry.artifact == ArtifactKind.SETTINGS:
        return f"{PurePosixPath(entry.canonical_path).parent}/"
    return entry.canonical_path


@dataclass(frozen=True)
class TopologyScanner:
    topology: tuple[TopologyEntry, ...] = DEFAULT_TOPOLOGY
    excluded_dirs: frozenset[str] = DEFAULT_EXCLUDED_DIRS
    ctx: RunContext | None = None

    def is_rig_dir(self, name: str) -> bool:
        return not (name.startswith(".") or name in self.excluded_dirs)

    def rigs(self, town_root: Path) -> list[str]:
        return [name for name in _child_dirs(town_root) if self.is_rig_dir(name)]

    def scan(self, town_root: Path) -> list[Finding]:
        findings: list[Finding] = []
        findings.extend(self._scan_root(town_root))
        rigs = self.rigs(town_root)
        for rig in rigs:
            findings.extend(self.scan_rig(town_root, rig))
        log_event(
            self.ctx,
            "info",
            "scanner",
            "scan",
            town_root=str(town_root),
            rigs=len(rigs),
            candidates=len(findings),
            wrong_location=sum(1 for f in findings if f.wrong_location),
        )
        return findings

    def _scan_root(self, town_root: Path) -> Iterable[Finding]:
        entries = root_entries(self.topology)
        for entry in entries:
            for template in entry.wrong_paths:
                path = town_root / template
                if _is_file(path):
                    yield Finding(
                        path=path,
                        role=entry.role,
                        session=entry.session,
                        missing=(f"should be at {_root_note(entry)}, not town root",),
                        wrong_location=True,
                        root_level=True,
                        artifact=entry.artifact,
                        canonical_path=town_root / entry.canonical_path,
                    )
        for entry in entries:
            path = town_root / entry.canonical_path
            if entry.validate_canonical and _is_file(path):
                yield Finding(
                    path=path,
                    role=entry.role,
                    session=entry.session,
                    artifact=entry.artifact,
                    canonical_path=path,
                )

    def scan_rig(self, town_root: Path, rig: str) -> list[Finding]:
        findings: list[Finding] = []
        for entry in rig_entries(self.topology):
            canonical = town_root / render_template(entry.canonical_path, rig=rig)
            if entry.validate_canonical and _is_file(canonical):
                findings.append(
                    Finding(
                        path=canonical,
                        role=entry.role,
                        rig=rig,
                        session=render_template(entry.session, rig=rig),
                        artifact=entry.artifact,
                        canonical_path=canonical,
                    )
                )
            if entry.scope == Scope.POOL:
                findings.extend(self._scan_pool_members(town_root, rig, entry, canonical))
                continue
            for template in entry.wrong_paths:
                path = town_root / render_template(template, rig=rig)
                if _is_file(path):
                    findings.append(
                        Finding(
                            path=path,
                            role=entry.role,
                            rig=rig,
                            session=render_template(entry.session, rig=rig),
                            wrong_location=True,
                            artifact=entry.artifact,
                            canonical_path=canonical,
                        )
                    )
        return findings

    def _scan_pool_members(self, town_root: Path, rig: str, entry: TopologyEntry, canonical: Path) -> list[Finding]:
        pool_dir = town_root / render_template(entry.pool_dir, rig=rig)
        reserved = entry.pool_reserved
        findings: list[Finding] = []
        for member in _child_dirs(pool_dir):
            if member == reserved:
                continue
            for template in entry.wrong_paths:
                path = town_root / render_template(template, rig=rig, member=member)
                if _is_file(path):
                    findings.append(
                        Finding(
                            path=path,
                            role=entry.role,
                            rig=rig,
                            session=render_template(entry.member_session, rig=rig, member=member),
                            wrong_location=True,
                            artifact=entry.artifact,
                            canonical_path=canonical,
                        )
                    )
        return findings


__all__ = ["TopologyScanner"]
