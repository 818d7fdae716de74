from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings

from helpers import FakeGit, FakeProvisioner, FakeSessions, make_town

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("townctl", deadline=None, max_examples=50)
settings.load_profile("townctl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GT_TOWN_ROOT", "RUN_ID", "TOWNCTL_MAX_WORKERS", "TOWNCTL_VCS_TIMEOUT", "TOWNCTL_SESSION_TIMEOUT", "TOWNCTL_AGENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def town_root(tmp_path: Path) -> Path:
    return make_town(tmp_path / "town")


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_sessions() -> FakeSessions:
    return FakeSessions()


@pytest.fixture
def fake_provisioner() -> FakeProvisioner:
    return FakeProvisioner()
