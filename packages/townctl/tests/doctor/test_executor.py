from __future__ import annotations

import json
from pathlib import Path

import pytest
from helpers import FakeProvisioner, FakeSessions, stale_settings, write_settings

from townctl.core.exit_codes import ERR_FIX
from townctl.doctor.executor import ReconciliationExecutor, work_dir_for
from townctl.doctor.model import Finding, ReconcileError, VcsStatus
from townctl.provision.base import ArtifactKind


def _executor(provisioner: FakeProvisioner, sessions: FakeSessions) -> ReconciliationExecutor:
    return ReconciliationExecutor(provisioner=provisioner, sessions=sessions)


def test_work_dir_for_artifacts(tmp_path: Path) -> None:
    assert work_dir_for(tmp_path / "rig/witness/.cursor/hooks.json", ArtifactKind.SETTINGS) == tmp_path / "rig/witness"
    assert work_dir_for(tmp_path / "mayor/CLAUDE.md", ArtifactKind.INSTRUCTIONS) == tmp_path / "mayor"


def test_modified_wrong_location_is_skipped(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    path = write_settings(town_root / "alpha/witness/rig/.cursor/hooks.json")
    finding = Finding(path=path, role="witness", rig="alpha", wrong_location=True, vcs_status=VcsStatus.TRACKED_MODIFIED)
    outcome = _executor(fake_provisioner, fake_sessions).fix([finding], town_root)
    assert path.is_file()
    assert outcome.skipped == (f"{path}: has local modifications, skipping",)
    assert outcome.deleted == ()
    assert fake_provisioner.calls == []


@pytest.mark.parametrize("status", [VcsStatus.UNTRACKED, VcsStatus.TRACKED_CLEAN, VcsStatus.UNKNOWN])
def test_safe_wrong_location_is_deleted_without_regeneration(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions, status: VcsStatus
) -> None:
    path = write_settings(town_root / "alpha/crew/max/.cursor/hooks.json")
    finding = Finding(path=path, role="crew", rig="alpha", wrong_location=True, vcs_status=status)
    outcome = _executor(fake_provisioner, fake_sessions).fix([finding], town_root)
    assert not path.exists()
    assert not path.parent.exists()
    assert (town_root / "alpha/crew/max").is_dir()
    assert outcome.deleted == (str(path),)
    assert outcome.regenerated == ()
    assert fake_provisioner.calls == []
    assert fake_sessions.list_calls == 0


def test_parent_with_other_files_is_kept(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    path = write_settings(town_root / "alpha/witness/rig/.cursor/hooks.json")
    (path.parent / "rules").mkdir()
    finding = Finding(path=path, role="witness", wrong_location=True, vcs_status=VcsStatus.UNTRACKED)
    _executor(fake_provisioner, fake_sessions).fix([finding], town_root)
    assert not path.exists()
    assert path.parent.is_dir()


def test_stale_canonical_is_regenerated(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    path = write_settings(town_root / "alpha/witness/.cursor/hooks.json", stale_settings("stop"))
    finding = Finding(path=path, role="witness", rig="alpha", session="gt-alpha-witness", missing=("stop hook",))
    fake_sessions.running.add("gt-alpha-witness")
    outcome = _executor(fake_provisioner, fake_sessions).fix([finding], town_root)
    assert outcome.deleted == (str(path),)
    assert outcome.regenerated == (str(path),)
    assert fake_provisioner.calls == [("witness", town_root / "alpha/witness", ArtifactKind.SETTINGS)]
    assert "stop" in json.loads(path.read_text(encoding="utf-8"))["hooks"]
    assert fake_sessions.killed == []


def test_restart_sessions_only_for_patrol_roles(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    witness = write_settings(town_root / "alpha/witness/.cursor/hooks.json", stale_settings("stop"))
    crew = write_settings(town_root / "alpha/crew/.cursor/hooks.json", stale_settings("stop"))
    refinery = write_settings(town_root / "alpha/refinery/.cursor/hooks.json", stale_settings("stop"))
    fake_sessions.running.update({"gt-alpha-witness", "gt-alpha-crew-max"})
    findings = [
        Finding(path=witness, role="witness", rig="alpha", session="gt-alpha-witness", missing=("stop hook",)),
        Finding(path=crew, role="crew", rig="alpha", missing=("stop hook",)),
        Finding(path=refinery, role="refinery", rig="alpha", session="gt-alpha-refinery", missing=("stop hook",)),
    ]
    outcome = _executor(fake_provisioner, fake_sessions).fix(findings, town_root, restart_sessions=True)
    assert outcome.terminated_sessions == ("gt-alpha-witness",)
    assert fake_sessions.killed == ["gt-alpha-witness"]
    assert "gt-alpha-crew-max" in fake_sessions.running
    assert not outcome.invalidated


def test_restart_failure_is_not_a_fix_error(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    path = write_settings(town_root / "alpha/witness/.cursor/hooks.json", stale_settings("stop"))
    fake_sessions.running.add("gt-alpha-witness")
    fake_sessions.fail_kill.add("gt-alpha-witness")
    finding = Finding(path=path, role="witness", rig="alpha", session="gt-alpha-witness", missing=("stop hook",))
    outcome = _executor(fake_provisioner, fake_sessions).fix([finding], town_root, restart_sessions=True)
    assert outcome.errors == ()
    assert outcome.terminated_sessions == ()


def test_root_level_findings_invalidate_sessions_once(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    settings = write_settings(town_root / ".cursor/hooks.json")
    instructions = town_root / "CLAUDE.md"
    instructions.write_text("# stray\n", encoding="utf-8")
    fake_sessions.running.update({"hq-mayor", "gt-alpha-witness", "other-session"})
    findings = [
        Finding(
            path=settings,
            role="mayor",
            session="hq-mayor",
            wrong_location=True,
            root_level=True,
            vcs_status=VcsStatus.UNKNOWN,
            canonical_path=town_root / "mayor/.cursor/hooks.json",
        ),
        Finding(
            path=instructions,
            role="mayor",
            session="hq-mayor",
            wrong_location=True,
            root_level=True,
            vcs_status=VcsStatus.UNKNOWN,
            artifact=ArtifactKind.INSTRUCTIONS,
            canonical_path=town_root / "mayor/CLAUDE.md",
        ),
    ]
    outcome = _executor(fake_provisioner, fake_sessions).fix(findings, town_root)
    assert not settings.exists()
    assert not instructions.exists()
    assert town_root.is_dir()
    assert (town_root / "mayor/.cursor/hooks.json").is_file()
    assert (town_root / "mayor/CLAUDE.md").is_file()
    assert fake_provisioner.calls == [
        ("mayor", town_root / "mayor", ArtifactKind.SETTINGS),
        ("mayor", town_root / "mayor", ArtifactKind.INSTRUCTIONS),
    ]
    assert outcome.invalidated
    assert fake_sessions.list_calls == 1
    assert sorted(outcome.terminated_sessions) == ["gt-alpha-witness", "hq-mayor"]
    assert fake_sessions.running == {"other-session"}


def test_regeneration_errors_are_aggregated(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    fake_provisioner.fail_roles.update({"witness", "refinery"})
    witness = write_settings(town_root / "alpha/witness/.cursor/hooks.json", stale_settings("stop"))
    refinery = write_settings(town_root / "alpha/refinery/.cursor/hooks.json", stale_settings("stop"))
    crew = write_settings(town_root / "alpha/crew/.cursor/hooks.json", stale_settings("stop"))
    findings = [
        Finding(path=witness, role="witness", missing=("stop hook",)),
        Finding(path=refinery, role="refinery", missing=("stop hook",)),
        Finding(path=crew, role="crew", missing=("stop hook",)),
    ]
    with pytest.raises(ReconcileError) as exc_info:
        _executor(fake_provisioner, fake_sessions).fix(findings, town_root)
    err = exc_info.value
    assert err.code == ERR_FIX
    assert len(err.outcome.errors) == 2
    assert err.message == "; ".join(err.outcome.errors)
    assert err.outcome.errors[0].startswith(f"failed to recreate settings for {witness}")
    assert err.outcome.regenerated == (str(crew),)
    assert crew.is_file()


def test_missing_file_at_fix_time_is_not_an_error(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    gone = town_root / "alpha/witness/rig/.cursor/hooks.json"
    finding = Finding(path=gone, role="witness", wrong_location=True, vcs_status=VcsStatus.UNTRACKED)
    outcome = _executor(fake_provisioner, fake_sessions).fix([finding], town_root)
    assert outcome.errors == ()
    assert outcome.deleted == ()


def test_fix_is_idempotent(town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions) -> None:
    path = write_settings(town_root / "alpha/crew/max/.cursor/hooks.json")
    finding = Finding(path=path, role="crew", wrong_location=True, vcs_status=VcsStatus.UNTRACKED)
    executor = _executor(fake_provisioner, fake_sessions)
    executor.fix([finding], town_root)
    second = executor.fix([finding], town_root)
    assert second.errors == ()
    assert second.deleted == ()


def test_repeated_root_level_fix_leaves_sessions_alone(
    town_root: Path, fake_provisioner: FakeProvisioner, fake_sessions: FakeSessions
) -> None:
    path = write_settings(town_root / ".cursor/hooks.json")
    finding = Finding(
        path=path,
        role="mayor",
        session="hq-mayor",
        wrong_location=True,
        root_level=True,
        vcs_status=VcsStatus.UNTRACKED,
        canonical_path=town_root / "mayor/.cursor/hooks.json",
    )
    executor = _executor(fake_provisioner, fake_sessions)
    first = executor.fix([finding], town_root)
    assert first.invalidated
    fake_sessions.running.update({"hq-mayor", "gt-alpha-witness"})
    calls = len(fake_provisioner.calls)

    second = executor.fix([finding], town_root)
    assert second.deleted == ()
    assert not second.invalidated
    assert second.terminated_sessions == ()
    assert fake_sessions.running == {"hq-mayor", "gt-alpha-witness"}
    assert fake_sessions.list_calls == 1
    assert len(fake_provisioner.calls) == calls


def test_unexpected_provisioner_exception_is_collected(
    town_root: Path, fake_sessions: FakeSessions
) -> None:
    class BrokenProvisioner(FakeProvisioner):
        def provision(self, role: str, target_dir: Path, artifact: ArtifactKind = ArtifactKind.SETTINGS) -> None:
            if role == "witness":
                raise TypeError("provision() got an unexpected keyword argument")
            super().provision(role, target_dir, artifact)

    witness = write_settings(town_root / "alpha/witness/.cursor/hooks.json", stale_settings("stop"))
    refinery = write_settings(town_root / "alpha/refinery/.cursor/hooks.json", stale_settings("stop"))
    findings = [
        Finding(path=witness, role="witness", missing=("stop hook",)),
        Finding(path=refinery, role="refinery", missing=("stop hook",)),
    ]
    with pytest.raises(ReconcileError) as exc_info:
        _executor(BrokenProvisioner(), fake_sessions).fix(findings, town_root)
    outcome = exc_info.value.outcome
    assert outcome.errors == (f"failed to recreate settings for {witness}: provision() got an unexpected keyword argument",)
    assert outcome.regenerated == (str(refinery),)
    assert refinery.is_file()
