"""Shared test fixtures for tracker tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from tracker.app import Repositories, Tracker, build_tracker, open_repositories
from tracker.config import Settings
from tracker.models import Project
from tests.helpers import FakeClock, utc


@pytest.fixture
def clock() -> FakeClock:
    # Thursday
    return FakeClock(utc(2026, 2, 12, 9, 0))


@pytest.fixture
def repos(clock: FakeClock) -> Repositories:
    return open_repositories(Settings(data_root=Path("/nonexistent"), store="memory"), clock)


@pytest.fixture
def tracker(repos: Repositories, clock: FakeClock) -> Tracker:
    return build_tracker(repos=repos, clock=clock)


@pytest.fixture
def project(repos: Repositories) -> Project:
    return repos.projects.create(Project(id="proj-1", user_id="user-1", name="Launch"))


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with a tracker.yaml using the JSON store."""
    root = tmp_path / "tracker"
    root.mkdir(parents=True)
    (root / "tracker.yaml").write_text(
        yaml.dump({"store": "json", "log_level": "debug"}, default_flow_style=False),
        encoding="utf-8",
    )

    os.environ["TRACKER_ROOT"] = str(root)
    yield root
    if "TRACKER_ROOT" in os.environ:
        del os.environ["TRACKER_ROOT"]
