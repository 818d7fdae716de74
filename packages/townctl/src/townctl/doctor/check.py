from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..config import DoctorConfig
from ..core.context import RunContext
from ..provision.agent import AgentProvisioner
from ..provision.base import Provisioner
from ..sessions.tmux import SessionManager, Tmux
from ..vcs.git import GitCli, GitView
from .classifier import classify_findings
from .executor import ReconciliationExecutor
from .model import Finding, FixOutcome, Report
from .report import build_report
from .scanner import TopologyScanner
from .topology import DEFAULT_TOPOLOGY, TopologyEntry
from .validator import validate_findings

CHECK_NAME = "agent-settings"
CHECK_DESCRIPTION = "Verify agent settings files are at their canonical locations and match the expected hooks"


@dataclass
class SettingsCheck:
    git: GitView
    provisioner: Provisioner
    sessions: SessionManager
    config: DoctorConfig = field(default_factory=DoctorConfig)
    topology: tuple[TopologyEntry, ...] = DEFAULT_TOPOLOGY
    ctx: RunContext | None = None
    _cache: tuple[Path, tuple[Finding, ...]] | None = field(default=None, init=False, repr=False)

    name = CHECK_NAME
    description = CHECK_DESCRIPTION

    @classmethod
    def for_town(cls, town_root: Path, config: DoctorConfig, ctx: RunContext | None = None) -> "SettingsCheck":
        return cls(
            git=GitCli(timeout_seconds=config.vcs_timeout_seconds, ctx=ctx),
            provisioner=AgentProvisioner(town_root=town_root, agent_name=config.agent, ctx=ctx),
            sessions=Tmux(timeout_seconds=config.session_timeout_seconds, ctx=ctx),
            config=config,
            ctx=ctx,
        )

    @property
    def scanner(self) -> TopologyScanner:
        return TopologyScanner(topology=self.topology, excluded_dirs=self.config.excluded_dirs, ctx=self.ctx)

    def collect(self, town_root: Path) -> tuple[Finding, ...]:
        candidates = self.scanner.scan(town_root)
        checked = validate_findings(candidates, self.config.required_hooks)
        classified = classify_findings(checked, self.git, max_workers=self.config.max_workers, ctx=self.ctx)
        findings = tuple(classified)
        self._cache = (town_root.resolve(), findings)
        return findings

    def findings_for(self, town_root: Path) -> tuple[Finding, ...]:
        if self._cache is not None and self._cache[0] == town_root.resolve():
            return self._cache[1]
        return self.collect(town_root)

    def run(self, town_root: Path) -> Report:
        return build_report(self.collect(town_root))

    def fix(self, town_root: Path, *, restart_sessions: bool = False) -> FixOutcome:
        findings = self.findings_for(town_root)
        self._cache = None
        executor = ReconciliationExecutor(
            provisioner=self.provisioner,
            sessions=self.sessions,
            config=self.config,
            ctx=self.ctx,
        )
        return executor.fix(findings, town_root, restart_sessions=restart_sessions)


__all__ = ["CHECK_DESCRIPTION", "CHECK_NAME", "SettingsCheck"]
