"""GitLab REST resources, reduced to the fields gitlobster reads."""

from pydantic import BaseModel


class User(BaseModel):
    """The account a token belongs to."""

    id: int
    username: str
    name: str | None = None


class Group(BaseModel):
    """A GitLab group (namespace)."""

    id: int
    name: str
    path: str
    full_path: str
    parent_id: int | None = None


class Project(BaseModel):
    """A GitLab project."""

    id: int
    name: str
    path: str
    path_with_namespace: str
    name_with_namespace: str | None = None
    description: str | None = None
    ssh_url_to_repo: str
    http_url_to_repo: str
    default_branch: str | None = None
    empty_repo: bool = False
    archived: bool = False

    @property
    def namespace(self) -> str:
        """Full path of the namespace the project lives in."""
        namespace, _, _ = self.path_with_namespace.rpartition("/")
        return namespace
