"""Top-level mirror run."""

import asyncio
from collections.abc import Callable

import structlog

from gitlobster.core.exceptions import AllFilteredError, ConfigurationError, NoProjectsError
from gitlobster.core.models.config import MirrorConfig
from gitlobster.core.models.gitlab import Project
from gitlobster.core.models.result import MirrorResult, ProjectFailure
from gitlobster.git.runner import GitRunner
from gitlobster.git.sync import RepositorySync
from gitlobster.git.urls import make_http_auth
from gitlobster.gitlab.client import GitLabClient
from gitlobster.pipelines.mirror import BackupTarget, MirrorPipeline
from gitlobster.services.filtering import ProjectFilter
from gitlobster.services.namespace import NamespaceCache, NamespaceResolver
from gitlobster.utils.fs import clear_directory

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class MirrorOrchestrator:
    """Runs a full mirror of the source inventory.

    Projects are processed in batches of ``concurrency_limit``: every
    project of a batch runs concurrently and the whole batch must settle
    before the next one starts. A failed project either aborts the run
    once its batch has settled or, with ``continue_on_error``, is logged
    and skipped.
    """

    def __init__(
        self,
        config: MirrorConfig,
        source: GitLabClient | None = None,
        backup: GitLabClient | None = None,
        git: GitRunner | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._config = config
        # Bad patterns fail here, before anything is listed
        self._filter = ProjectFilter.from_patterns(config.patterns, config.limit)
        self._owned: list[GitLabClient] = []

        if source is None:
            source = GitLabClient(
                config.source.url,
                config.source.token,
                per_page=config.objects_per_page,
                timeout=config.request_timeout,
            )
            self._owned.append(source)
        self._source = source

        if backup is None and config.backup is not None:
            backup = GitLabClient(
                config.backup.url,
                config.backup.token,
                sync_date=not config.disable_sync_date,
                timeout=config.request_timeout,
            )
            self._owned.append(backup)
        self._backup = backup if config.backup is not None else None

        self._git = git or GitRunner()
        self._on_progress = on_progress

    async def run(self) -> MirrorResult:
        """Mirror every selected project; see the class docstring."""
        try:
            return await self._run()
        finally:
            for client in self._owned:
                await client.aclose()

    async def _run(self) -> MirrorResult:
        config = self._config

        projects = await self._list_projects()
        backup = await self._prepare_backup()

        source_auth = None
        if not config.download_ssh:
            user = await self._source.get_current_user()
            source_auth = make_http_auth(user, config.source.token)

        result = MirrorResult(
            projects=projects,
            destination=config.destination,
            backup_group=backup.root_group if backup else None,
            dry_run=config.dry_run,
        )
        if config.dry_run:
            logger.info("Dry run, nothing mirrored", total=len(projects))
            return result

        if config.clear_destination:
            clear_directory(config.destination)

        pipeline = MirrorPipeline(
            sync=RepositorySync(self._git, only_default_branch=config.only_default_branch),
            destination=config.destination,
            source_http_auth=source_auth,
            download_protocol=config.download_protocol,
            disable_hierarchy=config.disable_hierarchy,
            backup=backup,
        )

        logger.info("Start mirroring", total=len(projects), concurrency=config.concurrency_limit)
        size = config.concurrency_limit
        for start in range(0, len(projects), size):
            await self._run_batch(pipeline, projects[start:start + size], result)

        logger.info(
            "Mirroring finished",
            total=result.total,
            succeeded=result.succeeded,
            failed=len(result.failures),
        )
        return result

    async def _list_projects(self) -> list[Project]:
        config = self._config
        projects = await self._source.list_projects(
            group=config.group,
            only_owned=config.only_owned,
            only_membership=config.only_membership,
            exclude_archived=config.exclude_archived,
        )
        if not projects:
            raise NoProjectsError("Projects not found in GitLab")

        filtered = self._filter.apply(projects)
        if not filtered:
            raise AllFilteredError(
                "All projects filtered out",
                details={"listed": len(projects)},
            )
        if config.disable_hierarchy:
            self._check_flat_layout(filtered)
        logger.info("Projects selected", listed=len(projects), selected=len(filtered))
        return filtered

    @staticmethod
    def _check_flat_layout(projects: list[Project]) -> None:
        """Reject projects that would share one working tree without hierarchy."""
        by_slug: dict[str, list[str]] = {}
        for project in projects:
            by_slug.setdefault(project.path, []).append(project.path_with_namespace)
        collisions = {slug: paths for slug, paths in by_slug.items() if len(paths) > 1}
        if collisions:
            raise ConfigurationError(
                "Projects share a slug and cannot be mirrored with --disable-hierarchy: "
                + "; ".join(", ".join(paths) for paths in collisions.values()),
                details={"collisions": collisions},
            )

    async def _prepare_backup(self) -> BackupTarget | None:
        """Resolve the backup root group and push credentials once per run."""
        config = self._config
        if self._backup is None or config.backup is None:
            return None

        root_group = None
        if config.backup.group:
            root_group = await self._backup.get_group(config.backup.group)

        http_auth = None
        if not config.upload_ssh:
            user = await self._backup.get_current_user()
            http_auth = make_http_auth(user, config.backup.token)

        return BackupTarget(
            client=self._backup,
            resolver=NamespaceResolver(self._backup, self._source, NamespaceCache()),
            root_group=root_group,
            http_auth=http_auth,
            force_protocol=config.upload_protocol,
        )

    async def _run_batch(
        self,
        pipeline: MirrorPipeline,
        batch: list[Project],
        result: MirrorResult,
    ) -> None:
        outcomes = await asyncio.gather(
            *(self._mirror_one(pipeline, project, result) for project in batch),
            return_exceptions=True,
        )

        first_error: Exception | None = None
        for project, outcome in zip(batch, outcomes):
            if not isinstance(outcome, BaseException):
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            logger.error(
                "Error while mirroring project (please run with -vv for more details)",
                project=project.path_with_namespace,
                error=str(outcome),
            )
            result.failures.append(
                ProjectFailure(project=project.path_with_namespace, error=str(outcome))
            )
            if first_error is None:
                first_error = outcome

        if first_error is not None and not self._config.continue_on_error:
            raise first_error

    async def _mirror_one(
        self,
        pipeline: MirrorPipeline,
        project: Project,
        result: MirrorResult,
    ) -> None:
        try:
            await pipeline.mirror(project)
        finally:
            result.completed += 1
            logger.debug(
                "Project done",
                project=project.path_with_namespace,
                completed=result.completed,
                total=result.total,
            )
            if self._on_progress is not None:
                self._on_progress(result.completed, result.total)


async def run(config: MirrorConfig, **kwargs) -> MirrorResult:
    """Mirror everything ``config`` selects."""
    return await MirrorOrchestrator(config, **kwargs).run()
