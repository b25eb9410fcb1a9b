"""Git command runner using subprocess."""

import asyncio
import subprocess
from pathlib import Path

import structlog

from gitlobster.core.exceptions import GitOperationError
from gitlobster.git.urls import redact_url

logger = structlog.get_logger(__name__)

BRANCH_FORMAT = "%(HEAD) %(refname)"


class GitRunner:
    """Runs git commands against a working tree.

    Uses subprocess + git CLI directly (no gitpython dependency). Each
    command runs in a worker thread so concurrent mirror tasks do not block
    the event loop. Any non-zero exit raises ``GitOperationError`` carrying
    the captured stderr.
    """

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def _run_git(self, cwd: Path, *args: str) -> str:
        """Run a git command and return stdout."""
        logger.debug("git", args=[redact_url(a) for a in args], cwd=str(cwd))
        try:
            result = subprocess.run(
                [self._executable, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise GitOperationError(
                f"git {args[0]} failed in {cwd}",
                stderr=e.stderr or "",
                details={"args": list(args), "returncode": e.returncode},
            ) from e
        except OSError as e:
            raise GitOperationError(
                f"Cannot run {self._executable} in {cwd}: {e}",
                details={"args": list(args)},
            ) from e
        return result.stdout.strip()

    async def _git(self, cwd: Path, *args: str) -> str:
        return await asyncio.to_thread(self._run_git, cwd, *args)

    async def is_work_tree(self, path: Path) -> bool:
        """Check if ``path`` is the top level of a git working tree.

        This is the only check whose failure is an answer, not an error.
        """
        if not path.is_dir():
            return False
        try:
            toplevel = await self._git(path, "rev-parse", "--show-toplevel")
        except GitOperationError:
            return False
        return Path(toplevel).resolve() == path.resolve()

    async def clone(self, url: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        await self._git(path.parent, "clone", url, str(path))

    async def set_config(self, path: Path, key: str, value: str) -> None:
        await self._git(path, "config", key, value)

    async def rename_remote(self, path: Path, old: str, new: str) -> None:
        await self._git(path, "remote", "rename", old, new)

    async def get_remote_url(self, path: Path, name: str) -> str | None:
        """Get the URL of remote ``name``, if it is configured."""
        try:
            url = await self._git(path, "remote", "get-url", name)
        except GitOperationError:
            return None
        return url or None

    async def add_remote(self, path: Path, name: str, url: str) -> None:
        await self._git(path, "remote", "add", name, url)

    async def set_remote_url(self, path: Path, name: str, url: str) -> None:
        await self._git(path, "remote", "set-url", name, url)

    async def fetch(self, path: Path, remote: str) -> None:
        """Fetch branches and tags, letting moved or deleted upstream tags win."""
        await self._git(path, "fetch", "--prune", "--prune-tags", "--force", "--tags", remote)

    async def list_branches(self, path: Path) -> str:
        """Local and remote-tracking branches, one ``<*| > <refname>`` per line."""
        return await self._git(path, "branch", "--all", f"--format={BRANCH_FORMAT}")

    async def current_branch(self, path: Path) -> str:
        return await self._git(path, "rev-parse", "--abbrev-ref", "HEAD")

    async def create_branch(
        self, path: Path, name: str, start_point: str, force: bool = False
    ) -> None:
        args = ["branch", "--track"]
        if force:
            args.append("--force")
        await self._git(path, *args, name, start_point)

    async def delete_branch(self, path: Path, name: str) -> None:
        await self._git(path, "branch", "-D", name)

    async def pull(self, path: Path, remote: str, branch: str) -> None:
        await self._git(path, "pull", remote, branch)

    async def push(self, path: Path, remote: str, branch: str) -> None:
        await self._git(path, "push", "--set-upstream", remote, branch)

    async def push_tags(self, path: Path, remote: str) -> None:
        await self._git(path, "push", remote, "--tags")
