"""Where each role's settings artifacts belong, and where they must not be.

Every entry is data: adding a role means adding a row here, the scanner
never special-cases a role name.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
import string

from ..provision.base import ArtifactKind

SETTINGS_RELPATH = ".cursor/hooks.json"
INSTRUCTIONS_NAME = "CLAUDE.md"

_PLACEHOLDERS = frozenset({"rig", "member"})


class Scope(str, Enum):
    TOWN = "town"
    RIG = "rig"
    POOL = "pool"


def template_fields(template: str) -> frozenset[str]:
    return frozenset(name for _, name, _, _ in string.Formatter().parse(template) if name)


def render_template(template: str, *, rig: str = "", member: str = "") -> str:
    return template.format(rig=rig, member=member)


@dataclass(frozen=True)
class TopologyEntry:
    role: str
    scope: Scope
    canonical_path: str
    wrong_paths: tuple[str, ...] = ()
    session: str = ""
    member_session: str = ""
    artifact: ArtifactKind = ArtifactKind.SETTINGS
    validate_canonical: bool = True

    def __post_init__(self) -> None:
        paths = (self.canonical_path, *self.wrong_paths)
        if len(set(paths)) != len(paths):
            raise ValueError(f"topology entry `{self.role}`: canonical and wrong paths must be distinct")
        for template in paths:
            unknown = template_fields(template) - _PLACEHOLDERS
            if unknown:
                raise ValueError(f"topology entry `{self.role}`: unknown placeholder(s) {sorted(unknown)} in `{template}`")
            if PurePosixPath(template).is_absolute():
                raise ValueError(f"topology entry `{self.role}`: `{template}` must be relative")
        if self.scope == Scope.TOWN and any("{rig}" in p or "{member}" in p for p in paths):
            raise ValueError(f"topology entry `{self.role}`: town-scoped paths cannot use rig placeholders")
        if self.scope == Scope.POOL:
            if not self.wrong_paths or not all("{member}" in p for p in self.wrong_paths):
                raise ValueError(f"topology entry `{self.role}`: pool wrong paths must contain {{member}}")

    @property
    def rig_scoped(self) -> bool:
        return self.scope in {Scope.RIG, Scope.POOL}

    @property
    def pool_dir(self) -> str:
        """Pool directory template (`{rig}/crew`) that holds one subdirectory per member."""
        head, marker, _ = self.wrong_paths[0].partition("{member}") if self.wrong_paths else ("", "", "")
        if not marker:
            raise ValueError(f"topology entry `{self.role}` has no pool member template")
        return head.rstrip("/")

    @property
    def pool_reserved(self) -> str:
        """Name inside the pool directory owned by the canonical artifact (`.cursor`)."""
        pool = PurePosixPath(self.pool_dir)
        canonical = PurePosixPath(self.canonical_path)
        return canonical.relative_to(pool).parts[0]


def settings_path(prefix: str) -> str:
    return f"{prefix}/{SETTINGS_RELPATH}" if prefix else SETTINGS_RELPATH


def singleton_entry(role: str, checkout: str = "rig") -> TopologyEntry:
    return TopologyEntry(
        role=role,
        scope=Scope.RIG,
        canonical_path=settings_path(f"{{rig}}/{role}"),
        wrong_paths=(settings_path(f"{{rig}}/{role}/{checkout}"),),
        session=f"gt-{{rig}}-{role}",
    )


def pool_entry(role: str, pool: str, member_session: str) -> TopologyEntry:
    return TopologyEntry(
        role=role,
        scope=Scope.POOL,
        canonical_path=settings_path(f"{{rig}}/{pool}"),
        wrong_paths=(settings_path(f"{{rig}}/{pool}/{{member}}"),),
        member_session=member_session,
    )


DEFAULT_TOPOLOGY: tuple[TopologyEntry, ...] = (
    TopologyEntry(
        role="mayor",
        scope=Scope.TOWN,
        canonical_path=settings_path("mayor"),
        wrong_paths=(SETTINGS_RELPATH,),
        session="hq-mayor",
    ),
    TopologyEntry(
        role="mayor",
        scope=Scope.TOWN,
        canonical_path=f"mayor/{INSTRUCTIONS_NAME}",
        wrong_paths=(INSTRUCTIONS_NAME,),
        session="hq-mayor",
        artifact=ArtifactKind.INSTRUCTIONS,
        validate_canonical=False,
    ),
    TopologyEntry(
        role="deacon",
        scope=Scope.TOWN,
        canonical_path=settings_path("deacon"),
        session="hq-deacon",
    ),
    singleton_entry("witness"),
    singleton_entry("refinery"),
    pool_entry("crew", "crew", "gt-{rig}-crew-{member}"),
    pool_entry("polecat", "polecats", "gt-{rig}-{member}"),
)


def root_entries(topology: tuple[TopologyEntry, ...]) -> tuple[TopologyEntry, ...]:
    return tuple(entry for entry in topology if entry.scope == Scope.TOWN)


def rig_entries(topology: tuple[TopologyEntry, ...]) -> tuple[TopologyEntry, ...]:
    return tuple(entry for entry in topology if entry.rig_scoped)


__all__ = [
    "DEFAULT_TOPOLOGY",
    "INSTRUCTIONS_NAME",
    "SETTINGS_RELPATH",
    "Scope",
    "TopologyEntry",
    "pool_entry",
    "render_template",
    "rig_entries",
    "root_entries",
    "singleton_entry",
    "template_fields",
]
