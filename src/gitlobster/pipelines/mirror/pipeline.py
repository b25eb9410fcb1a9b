"""Per-project mirror pipeline."""

from dataclasses import dataclass
from pathlib import Path

import structlog

from gitlobster.core.models.config import ForceProtocol
from gitlobster.core.models.gitlab import Group, Project
from gitlobster.git.sync import RepositorySync
from gitlobster.git.urls import make_clone_url
from gitlobster.gitlab.client import GitLabClient
from gitlobster.services.namespace import NamespaceResolver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BackupTarget:
    """Everything needed to publish projects to the backup instance."""

    client: GitLabClient
    resolver: NamespaceResolver
    root_group: Group | None = None
    http_auth: str | None = None
    force_protocol: ForceProtocol = ForceProtocol.UNFORCED


class MirrorPipeline:
    """Mirrors one project at a time.

    Orchestrates the per-project steps:
    1. Clone or update the local working tree from the source
    2. Resolve the namespace on the backup instance (if configured)
    3. Create the backup project or refresh its description
    4. Push all branches and tags to the backup project
    """

    def __init__(
        self,
        sync: RepositorySync,
        destination: Path,
        source_http_auth: str | None = None,
        download_protocol: ForceProtocol = ForceProtocol.UNFORCED,
        disable_hierarchy: bool = False,
        backup: BackupTarget | None = None,
    ) -> None:
        self._sync = sync
        self._destination = destination
        self._source_http_auth = source_http_auth
        self._download_protocol = download_protocol
        self._disable_hierarchy = disable_hierarchy
        self._backup = backup

    def local_path(self, project: Project) -> Path:
        """Where the working tree of ``project`` lives."""
        if self._disable_hierarchy:
            return self._destination / project.path
        return self._destination.joinpath(*project.path_with_namespace.split("/"))

    def backup_segments(self, project: Project) -> list[str]:
        """Namespace segments plus slug, as recreated on the backup."""
        if self._disable_hierarchy:
            return [project.path]
        return project.path_with_namespace.split("/")

    async def mirror(self, project: Project) -> Project | None:
        """Run the pipeline for ``project``.

        Returns the backup project, or ``None`` when no backup is configured.
        """
        log = logger.bind(project=project.path_with_namespace)
        path = self.local_path(project)

        source_url = make_clone_url(project, self._source_http_auth, self._download_protocol)
        await self._sync.download(path, source_url)
        log.info("Project downloaded", path=str(path))

        if self._backup is None:
            return None

        backup_project = await self._ensure_backup_project(project, self._backup)
        remote = make_clone_url(
            backup_project, self._backup.http_auth, self._backup.force_protocol
        )
        failed = await self._sync.upload(path, remote)
        log.info(
            "Project pushed",
            backup=backup_project.path_with_namespace,
            failed_refs=failed,
        )
        return backup_project

    async def _ensure_backup_project(self, project: Project, backup: BackupTarget) -> Project:
        """Create the backup project, or refresh it if it already exists."""
        segments = self.backup_segments(project)
        parent_id, chain = await backup.resolver.resolve(segments, backup.root_group)

        if chain:
            namespace = chain[-1].full_path
        elif backup.root_group is not None:
            namespace = backup.root_group.full_path
        else:
            namespace = ""
        slug = segments[-1]
        backup_path = f"{namespace}/{slug}" if namespace else slug

        existing = await backup.client.project_exists(backup_path)
        if existing is not None:
            return await backup.client.update_project(existing, project)
        return await backup.client.create_project(slug, parent_id, project)
