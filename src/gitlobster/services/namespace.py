"""Recreation of the source group hierarchy on the backup instance."""

import asyncio

import structlog

from gitlobster.core.exceptions import ApiError, NamespaceResolutionError
from gitlobster.core.models.gitlab import Group
from gitlobster.gitlab.client import GitLabClient

logger = structlog.get_logger(__name__)


class NamespaceCache:
    """Resolved backup groups keyed by full path, shared by all tasks of a run.

    Each entry is a future created the moment a path is first requested.
    Later callers for the same path await that future instead of issuing
    their own lookup, so every distinct path is resolved once.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: dict[str, asyncio.Future[Group]] = {}

    async def claim(self, full_path: str) -> tuple[asyncio.Future[Group], bool]:
        """Return the future for ``full_path`` and whether the caller owns it.

        The owner must resolve the future; everyone else just awaits it.
        """
        async with self._lock:
            future = self._entries.get(full_path)
            if future is not None:
                return future, False
            future = asyncio.get_running_loop().create_future()
            self._entries[full_path] = future
            return future, True

    async def forget(self, full_path: str) -> None:
        """Drop a failed entry so a later project may retry the path."""
        async with self._lock:
            self._entries.pop(full_path, None)

    def __contains__(self, full_path: str) -> bool:
        future = self._entries.get(full_path)
        return future is not None and future.done() and future.exception() is None

    def __len__(self) -> int:
        return len(self._entries)


class NamespaceResolver:
    """Materializes a project's namespace chain on the backup instance.

    Segments are walked root to leaf. Each cumulative path is looked up in
    the cache, then on the backup instance, and created under the
    previously resolved parent when absent.
    """

    def __init__(
        self,
        backup: GitLabClient,
        source: GitLabClient | None = None,
        cache: NamespaceCache | None = None,
    ) -> None:
        self._backup = backup
        self._source = source
        self._cache = cache if cache is not None else NamespaceCache()

    @property
    def cache(self) -> NamespaceCache:
        return self._cache

    async def resolve(
        self,
        path_segments: list[str],
        root_group: Group | None = None,
    ) -> tuple[int, list[Group]]:
        """Resolve the namespace of ``path_segments`` (namespace + slug).

        Returns the id of the group the project belongs in and the chain
        of groups resolved on the way, outermost first.
        """
        if not path_segments:
            raise NamespaceResolutionError("Cannot resolve an empty project path")

        namespace_segments = path_segments[:-1]
        parent_id = root_group.id if root_group else None
        backup_path = root_group.full_path if root_group else ""
        chain: list[Group] = []

        for depth, segment in enumerate(namespace_segments):
            backup_path = f"{backup_path}/{segment}" if backup_path else segment
            source_path = "/".join(namespace_segments[: depth + 1])
            group = await self._resolve_one(backup_path, source_path, segment, parent_id)
            chain.append(group)
            parent_id = group.id

        if parent_id is None:
            raise NamespaceResolutionError(
                f"No backup namespace for {'/'.join(path_segments)}: "
                "set a backup group or keep the hierarchy enabled",
                details={"path": "/".join(path_segments)},
            )
        return parent_id, chain

    async def _resolve_one(
        self,
        backup_path: str,
        source_path: str,
        segment: str,
        parent_id: int | None,
    ) -> Group:
        future, owner = await self._cache.claim(backup_path)
        if not owner:
            return await future

        try:
            group = await self._lookup_or_create(backup_path, source_path, segment, parent_id)
        except asyncio.CancelledError:
            await self._cache.forget(backup_path)
            future.cancel()
            raise
        except Exception as e:
            await self._cache.forget(backup_path)
            future.set_exception(e)
            # Retrieved here so an unawaited future does not warn
            future.exception()
            raise
        future.set_result(group)
        return group

    async def _lookup_or_create(
        self,
        backup_path: str,
        source_path: str,
        segment: str,
        parent_id: int | None,
    ) -> Group:
        existing = await self._backup.group_exists(backup_path)
        if existing is not None:
            logger.debug("Backup group found", group=backup_path, id=existing.id)
            return existing

        name = segment
        if self._source is not None:
            source_group = await self._source.group_exists(source_path)
            if source_group is not None:
                name = source_group.name

        try:
            return await self._backup.create_group(name, segment, parent_id)
        except ApiError as e:
            raise NamespaceResolutionError(
                f"Cannot create group {backup_path} on backup: {e}",
                details={
                    "group": backup_path,
                    "parent_id": parent_id,
                    "status": e.status_code,
                },
            ) from e
