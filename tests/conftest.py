"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from fakes import FakeGitLab, FakeGitRunner, TOKEN
from gitlobster.core.models.config import BackupConfig, InstanceConfig, MirrorConfig


@pytest.fixture
def source_gitlab() -> FakeGitLab:
    """Source instance with the two-project scenario used across tests."""
    gitlab = FakeGitLab("gitlab.local")
    gitlab.add_group("team", name="Team")
    gitlab.add_group("team/tools", name="Tools")
    gitlab.add_project("team/api", name="API", description="Public API")
    gitlab.add_project("team/tools/cli", name="CLI")
    return gitlab


@pytest.fixture
def backup_gitlab() -> FakeGitLab:
    """Backup instance with an existing root group."""
    gitlab = FakeGitLab("backup.local")
    gitlab.add_group("mirrors", name="Mirrors")
    return gitlab


@pytest.fixture
def fake_git() -> FakeGitRunner:
    git = FakeGitRunner()
    git.add_upstream("team/api", {"main", "feature-x"})
    git.add_upstream("team/tools/cli", {"main"})
    return git


@pytest.fixture
def mirror_config(tmp_path: Path, source_gitlab: FakeGitLab) -> MirrorConfig:
    """Download-only configuration pointing at the fake source."""
    return MirrorConfig(
        source=InstanceConfig(url=source_gitlab.base_url, token=TOKEN),
        destination=tmp_path / "out",
    )


@pytest.fixture
def backup_config(mirror_config: MirrorConfig, backup_gitlab: FakeGitLab) -> MirrorConfig:
    """Configuration that also pushes to the fake backup under ``mirrors``."""
    return mirror_config.model_copy(
        update={
            "backup": BackupConfig(url=backup_gitlab.base_url, token=TOKEN, group="mirrors"),
        }
    )
