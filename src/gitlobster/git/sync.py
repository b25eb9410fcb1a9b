"""Local clone bootstrap, branch reconciliation and backup push."""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from gitlobster.core.exceptions import GitOperationError
from gitlobster.git.runner import GitRunner

logger = structlog.get_logger(__name__)

ORIGIN = "origin"
BACKUP = "backup"
# Older versions of gitlobster renamed ``origin`` to this after cloning
LEGACY_ORIGIN = "upstream"

LOCAL_PREFIX = "refs/heads/"


@dataclass
class BranchSet:
    """Branches of one working tree, parsed from ``git branch --all``."""

    local: set[str] = field(default_factory=set)
    remote: set[str] = field(default_factory=set)
    default: str | None = None

    @classmethod
    def parse(cls, output: str, remote: str = ORIGIN) -> "BranchSet":
        """Parse ``%(HEAD) %(refname)`` lines.

        The line marked ``*`` is the checked-out (default) branch. Only
        tracking refs of ``remote`` are kept and its ``HEAD`` symref is
        ignored.
        """
        remote_prefix = f"refs/remotes/{remote}/"
        branches = cls()
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            current = line.startswith("*")
            refname = line.lstrip("*").strip()

            if refname.startswith(LOCAL_PREFIX):
                name = refname[len(LOCAL_PREFIX):]
                branches.local.add(name)
                if current:
                    branches.default = name
            elif refname.startswith(remote_prefix):
                name = refname[len(remote_prefix):]
                if name != "HEAD":
                    branches.remote.add(name)
        return branches

    def to_create(self) -> list[str]:
        """Upstream branches with no local branch yet, default excluded."""
        return sorted(b for b in self.remote - self.local if b != self.default)

    def to_delete(self) -> list[str]:
        """Local branches gone from upstream; the default is never one."""
        return sorted(b for b in self.local - self.remote if b != self.default)

    def to_refresh(self) -> list[str]:
        """Branches on both sides, other than the default."""
        return sorted(b for b in self.local & self.remote if b != self.default)


class RepositorySync:
    """Brings one local working tree in sync with a remote.

    A missing or invalid working tree is cloned fresh. An existing one is
    fetched and its local branches are reconciled with the remote's:
    new upstream branches get a local tracking branch, branches deleted
    upstream are deleted locally, and the checked-out default branch is
    pulled. The default branch is never deleted.
    """

    def __init__(
        self, git: GitRunner | None = None, only_default_branch: bool = False
    ) -> None:
        self._git = git or GitRunner()
        self._only_default_branch = only_default_branch

    async def download(self, path: Path, url: str) -> BranchSet | None:
        """Clone or update ``path`` from ``url``.

        Returns the reconciled branch set, or ``None`` in default-branch-only
        mode where no branch bookkeeping is done.
        """
        if not await self._git.is_work_tree(path):
            logger.info("Cloning repository", path=str(path))
            await self._git.clone(url, path)
            await self._git.set_config(path, "pull.rebase", "false")
        else:
            await self._restore_origin(path)

        await self._set_remote(path, ORIGIN, url)

        if self._only_default_branch:
            await self._git.fetch(path, ORIGIN)
            branch = await self._git.current_branch(path)
            await self._git.pull(path, ORIGIN, branch)
            return None

        return await self._reconcile(path)

    async def _restore_origin(self, path: Path) -> None:
        """Rename a legacy ``upstream`` remote back to ``origin``.

        Failing is expected when there is nothing to rename.
        """
        try:
            await self._git.rename_remote(path, LEGACY_ORIGIN, ORIGIN)
        except GitOperationError:
            return
        logger.info("Renamed legacy remote", path=str(path), old=LEGACY_ORIGIN, new=ORIGIN)

    async def _set_remote(self, path: Path, name: str, url: str) -> None:
        """Point remote ``name`` at ``url``, adding it if missing."""
        current = await self._git.get_remote_url(path, name)
        if current is None:
            await self._git.add_remote(path, name, url)
        elif current != url:
            await self._git.set_remote_url(path, name, url)

    async def _reconcile(self, path: Path) -> BranchSet:
        await self._git.fetch(path, ORIGIN)
        branches = BranchSet.parse(await self._git.list_branches(path))

        created = branches.to_create()
        deleted = branches.to_delete()

        # Stale branches go first so `a` can be replaced upstream by `a/b`
        for name in deleted:
            logger.info("Deleting branch removed upstream", path=str(path), branch=name)
            await self._git.delete_branch(path, name)
        for name in created:
            await self._git.create_branch(path, name, f"{ORIGIN}/{name}")
        for name in branches.to_refresh():
            await self._git.create_branch(path, name, f"{ORIGIN}/{name}", force=True)

        if branches.default is not None:
            await self._git.pull(path, ORIGIN, branches.default)

        branches.local = (branches.local | set(created)) - set(deleted)
        logger.debug(
            "Branches reconciled",
            path=str(path),
            default=branches.default,
            branches=sorted(branches.local),
        )
        return branches

    async def upload(self, path: Path, url: str) -> list[str]:
        """Push every local branch and all tags of ``path`` to ``url``.

        A ref that fails to push is logged and skipped. Returns the names
        of the refs that failed.
        """
        await self._set_remote(path, BACKUP, url)
        branches = BranchSet.parse(await self._git.list_branches(path))

        failed: list[str] = []
        for name in sorted(branches.local):
            try:
                await self._git.push(path, BACKUP, name)
            except GitOperationError as e:
                logger.error("Branch push failed", path=str(path), branch=name, error=str(e))
                failed.append(name)
        try:
            await self._git.push_tags(path, BACKUP)
        except GitOperationError as e:
            logger.error("Tag push failed", path=str(path), error=str(e))
            failed.append("--tags")
        return failed
