"""Async GitLab REST client."""

from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog

from gitlobster.core.exceptions import ApiError
from gitlobster.core.models.gitlab import Group, Project, User

logger = structlog.get_logger(__name__)

API_VERSION = "v4"
DEFAULT_PER_PAGE = 100
SYNC_MARK = " 🦞 Synced: "

T = TypeVar("T")


def _encode(path: str) -> str:
    """URL-encode a full path so it can be used as a resource id."""
    return quote(path, safe="")


class GitLabClient:
    """Client for one GitLab instance.

    The same class serves the source and the backup instance; each has its
    own base URL, token and timeout. Existence checks return ``None`` on a
    404 instead of raising.
    """

    def __init__(
        self,
        url: str,
        token: str,
        per_page: int | None = None,
        sync_date: bool = True,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = f"{url.rstrip('/')}/api/{API_VERSION}"
        self._per_page = per_page or DEFAULT_PER_PAGE
        self._sync_date = sync_date
        self._http = httpx.AsyncClient(
            base_url=self._api_url,
            headers={
                "Content-Type": "application/json",
                "PRIVATE-TOKEN": token,
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    async def __aenter__(self) -> "GitLabClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Any = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and raise ``ApiError`` for any non-2xx status."""
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise ApiError(
                f"Request to {self._api_url}/{path} failed: {e}",
                details={"method": method, "path": path},
            ) from e

        logger.debug(
            "GitLab request",
            method=method,
            url=str(response.request.url),
            status=response.status_code,
        )

        if response.is_error:
            raise ApiError(
                f"GitLab returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
                details={"method": method, "path": path, "body": response.text[:500]},
            )
        return response

    @staticmethod
    async def _exists(call: Awaitable[T]) -> T | None:
        """Translate a 404 into ``None``; any other error propagates."""
        try:
            return await call
        except ApiError as e:
            if e.status_code == httpx.codes.NOT_FOUND:
                return None
            raise

    # --- Projects -------------------------------------------------------

    async def list_projects(
        self,
        group: str | None = None,
        only_owned: bool = False,
        only_membership: bool = False,
        exclude_archived: bool = False,
    ) -> list[Project]:
        """List every visible project, following pagination to the end.

        Projects with an empty repository are dropped since there is
        nothing to clone.
        """
        path = "projects" if group is None else f"groups/{_encode(group)}/projects"

        params: Any = {"order_by": "id", "sort": "asc", "per_page": self._per_page}
        if only_owned:
            params["owned"] = "true"
        if only_membership:
            params["membership"] = "true"
        if exclude_archived:
            params["archived"] = "false"
        if group is not None:
            params["include_subgroups"] = "true"

        projects: list[Project] = []
        while True:
            response = await self._request("GET", path, params=params)
            projects.extend(Project.model_validate(item) for item in response.json())

            if not response.headers.get("x-next-page"):
                break
            next_link = response.links.get("next")
            if not next_link or not next_link.get("url"):
                break
            # Continue with the server-provided query verbatim
            params = httpx.URL(next_link["url"]).params

        logger.info("Projects listed", total=len(projects), path=path)
        return [p for p in projects if not p.empty_repo]

    async def get_project(self, path: str) -> Project:
        response = await self._request("GET", f"projects/{_encode(path)}")
        return Project.model_validate(response.json())

    async def project_exists(self, path: str) -> Project | None:
        return await self._exists(self.get_project(path))

    def make_description(self, description: str | None) -> str:
        """Source description, stamped with the sync time unless disabled."""
        description = description or ""
        if not self._sync_date:
            return description
        return f"{description}{SYNC_MARK}{datetime.now(timezone.utc).isoformat()}"

    async def create_project(self, slug: str, namespace_id: int, info: Project) -> Project:
        """Create a project mirroring ``info`` under the given namespace."""
        response = await self._request(
            "POST",
            "projects",
            json={
                "name": info.name,
                "path": slug,
                "namespace_id": namespace_id,
                "description": self.make_description(info.description),
            },
        )
        project = Project.model_validate(response.json())
        logger.info("Project created", project=project.path_with_namespace)
        return project

    async def update_project(self, project: Project, info: Project) -> Project:
        """Overwrite the description of ``project`` from ``info``."""
        response = await self._request(
            "PUT",
            f"projects/{project.id}",
            json={"description": self.make_description(info.description)},
        )
        return Project.model_validate(response.json())

    # --- Groups ---------------------------------------------------------

    async def get_group(self, path: str) -> Group:
        response = await self._request("GET", f"groups/{_encode(path)}")
        return Group.model_validate(response.json())

    async def group_exists(self, path: str) -> Group | None:
        return await self._exists(self.get_group(path))

    async def create_group(self, name: str, path: str, parent_id: int | None) -> Group:
        response = await self._request(
            "POST",
            "groups",
            json={"name": name, "path": path, "parent_id": parent_id},
        )
        group = Group.model_validate(response.json())
        logger.info("Group created", group=group.full_path)
        return group

    # --- Users ----------------------------------------------------------

    async def get_current_user(self) -> User:
        response = await self._request("GET", "user")
        return User.model_validate(response.json())
