"""Run configuration models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from gitlobster.core.exceptions import ConflictingFilterError
from gitlobster.utils.fs import default_destination


class ForceProtocol(str, Enum):
    """Scheme override for HTTP(S) clone URLs."""

    UNFORCED = "unforced"
    HTTP = "http"
    HTTPS = "https"


class FilterMode(str, Enum):
    """Whether patterns select or reject projects."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


class FilterPatterns(BaseModel):
    """Either a whitelist or a blacklist of regular expressions."""

    model_config = ConfigDict(frozen=True)

    mode: FilterMode
    patterns: tuple[str, ...]

    @classmethod
    def from_lists(
        cls,
        include: list[str] | tuple[str, ...] | None = None,
        exclude: list[str] | tuple[str, ...] | None = None,
    ) -> "FilterPatterns | None":
        """Build patterns from CLI-style lists, rejecting include+exclude."""
        if include and exclude:
            raise ConflictingFilterError(
                "You cannot use the --include and --exclude flags together",
                details={"include": list(include), "exclude": list(exclude)},
            )
        if include:
            return cls(mode=FilterMode.INCLUDE, patterns=tuple(include))
        if exclude:
            return cls(mode=FilterMode.EXCLUDE, patterns=tuple(exclude))
        return None


class InstanceConfig(BaseModel):
    """Address and credentials of a GitLab instance."""

    model_config = ConfigDict(frozen=True)

    url: str
    token: str = Field(repr=False)


class BackupConfig(InstanceConfig):
    """Backup instance, optionally rooted at an existing group."""

    group: str | None = None


class MirrorConfig(BaseModel):
    """Immutable configuration of one mirror run."""

    model_config = ConfigDict(frozen=True)

    source: InstanceConfig
    backup: BackupConfig | None = None
    patterns: FilterPatterns | None = None
    destination: Path = Field(default_factory=default_destination)

    dry_run: bool = False
    objects_per_page: int = Field(default=100, ge=1, le=100)
    limit: int | None = Field(default=None, ge=0)
    concurrency_limit: PositiveInt = 21

    # Source scoping
    only_owned: bool = False
    only_membership: bool = False
    group: str | None = None
    exclude_archived: bool = False

    # Transport
    download_ssh: bool = False
    upload_ssh: bool = False
    download_protocol: ForceProtocol = ForceProtocol.UNFORCED
    upload_protocol: ForceProtocol = ForceProtocol.UNFORCED

    # Behaviour
    disable_hierarchy: bool = False
    clear_destination: bool = False
    only_default_branch: bool = False
    disable_sync_date: bool = False
    continue_on_error: bool = False
    request_timeout: float | None = None
