"""Clone URL construction."""

from urllib.parse import quote

from gitlobster.core.exceptions import ApiError
from gitlobster.core.models.config import ForceProtocol
from gitlobster.core.models.gitlab import Project, User


def make_http_auth(user: User, token: str) -> str:
    """Credentials to embed in HTTP(S) clone URLs for ``user``."""
    return f"{quote(user.username, safe='')}:{quote(token, safe='')}"


def make_clone_url(
    project: Project,
    http_auth: str | None,
    force_protocol: ForceProtocol = ForceProtocol.UNFORCED,
) -> str:
    """Build the URL git should use for ``project``.

    With credentials the HTTP(S) URL is used, with the credentials embedded
    and the scheme optionally forced. Without them the SSH URL is used as is.
    """
    if http_auth is None:
        return project.ssh_url_to_repo

    scheme, sep, rest = project.http_url_to_repo.partition("://")
    if not sep:
        raise ApiError(
            f"Project {project.path_with_namespace} has an invalid http url",
            details={"http_url_to_repo": project.http_url_to_repo},
        )
    if force_protocol != ForceProtocol.UNFORCED:
        scheme = force_protocol.value
    return f"{scheme}://{http_auth}@{rest}"


def redact_url(url: str) -> str:
    """Hide embedded credentials for logging."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest.split("/", 1)[0]:
        return url
    return f"{scheme}://***@{rest.split('@', 1)[1]}"
