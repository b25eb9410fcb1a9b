"""Tests for GitRunner and RepositorySync against real repositories."""

import subprocess
from pathlib import Path

import pytest

from gitlobster.core.exceptions import GitOperationError
from gitlobster.git.runner import GitRunner
from gitlobster.git.sync import RepositorySync


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


def commit(repo: Path, name: str, content: str) -> None:
    (repo / name).write_text(content)
    git(repo, "add", ".")
    git(repo, "commit", "-m", f"Add {name}")


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    """Create an upstream repository with two branches and a tag."""
    repo = tmp_path / "upstream"
    repo.mkdir()

    git(repo, "init")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@test.com")
    git(repo, "config", "user.name", "Test")

    commit(repo, "README.md", "# Upstream\n")
    git(repo, "tag", "v1.0")
    git(repo, "checkout", "-b", "feature-x")
    commit(repo, "feature.txt", "x\n")
    git(repo, "checkout", "main")

    return repo


def branches(repo: Path) -> set[str]:
    return set(git(repo, "branch", "--format=%(refname:short)").splitlines())


@pytest.mark.unit
class TestGitRunner:
    """Tests for GitRunner."""

    @pytest.mark.asyncio
    async def test_is_work_tree(self, upstream: Path, tmp_path: Path) -> None:
        runner = GitRunner()
        (upstream / "sub").mkdir()

        assert await runner.is_work_tree(upstream) is True
        assert await runner.is_work_tree(upstream / "sub") is False
        assert await runner.is_work_tree(tmp_path / "missing") is False
        assert await runner.is_work_tree(tmp_path) is False

    @pytest.mark.asyncio
    async def test_failure_carries_stderr(self, tmp_path: Path) -> None:
        with pytest.raises(GitOperationError) as exc_info:
            await GitRunner().list_branches(tmp_path)
        assert "not a git repository" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path: Path) -> None:
        with pytest.raises(GitOperationError, match="Cannot run"):
            await GitRunner("gitlobster-no-such-git").current_branch(tmp_path)

    @pytest.mark.asyncio
    async def test_remote_url(self, upstream: Path) -> None:
        runner = GitRunner()
        assert await runner.get_remote_url(upstream, "origin") is None
        await runner.add_remote(upstream, "origin", "https://example.com/a.git")
        assert await runner.get_remote_url(upstream, "origin") == "https://example.com/a.git"


@pytest.mark.unit
class TestRepositorySyncWithGit:
    """End-to-end download and upload with the git executable."""

    @pytest.mark.asyncio
    async def test_download_creates_all_branches(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "team" / "api"

        result = await RepositorySync().download(path, str(upstream))

        assert result is not None
        assert result.default == "main"
        assert branches(path) == {"main", "feature-x"}
        assert git(path, "rev-parse", "--abbrev-ref", "HEAD") == "main"
        assert "v1.0" in git(path, "tag").splitlines()

    @pytest.mark.asyncio
    async def test_download_follows_upstream_changes(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "api"
        sync = RepositorySync()
        await sync.download(path, str(upstream))

        git(upstream, "branch", "-D", "feature-x")
        git(upstream, "checkout", "-b", "feature-y")
        commit(upstream, "y.txt", "y\n")
        git(upstream, "checkout", "main")
        commit(upstream, "CHANGES.md", "more\n")

        await sync.download(path, str(upstream))

        assert branches(path) == {"main", "feature-y"}
        assert (path / "CHANGES.md").exists()
        assert git(path, "rev-parse", "feature-y") == git(upstream, "rev-parse", "feature-y")

    @pytest.mark.asyncio
    async def test_branch_replaced_by_nested_branch(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "api"
        sync = RepositorySync()
        await sync.download(path, str(upstream))

        git(upstream, "branch", "-m", "feature-x", "feature-x/v2")
        await sync.download(path, str(upstream))

        assert branches(path) == {"main", "feature-x/v2"}
        # Later runs keep working
        await sync.download(path, str(upstream))

    @pytest.mark.asyncio
    async def test_moved_tag_follows_upstream(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "api"
        sync = RepositorySync()
        await sync.download(path, str(upstream))

        commit(upstream, "CHANGES.md", "more\n")
        git(upstream, "tag", "-f", "v1.0")
        git(upstream, "tag", "v0.9", "HEAD~1")
        await sync.download(path, str(upstream))

        assert git(path, "rev-parse", "v1.0^{commit}") == git(upstream, "rev-parse", "HEAD")
        assert "v0.9" in git(path, "tag").splitlines()

        git(upstream, "tag", "-d", "v0.9")
        await sync.download(path, str(upstream))

        assert "v0.9" not in git(path, "tag").splitlines()

    @pytest.mark.asyncio
    async def test_only_default_branch(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "api"
        sync = RepositorySync(only_default_branch=True)
        await sync.download(path, str(upstream))
        commit(upstream, "CHANGES.md", "more\n")

        await sync.download(path, str(upstream))

        assert branches(path) == {"main"}
        assert (path / "CHANGES.md").exists()

    @pytest.mark.asyncio
    async def test_upload_to_bare_repository(self, upstream: Path, tmp_path: Path) -> None:
        path = tmp_path / "out" / "api"
        backup = tmp_path / "backup.git"
        git(tmp_path, "init", "--bare", str(backup))

        sync = RepositorySync()
        await sync.download(path, str(upstream))
        failed = await sync.upload(path, str(backup))

        assert failed == []
        assert branches(backup) == {"main", "feature-x"}
        assert git(backup, "tag") == "v1.0"
        # Pulls keep using origin after the upload
        await sync.download(path, str(upstream))
