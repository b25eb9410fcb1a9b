"""Application settings using Pydantic Settings."""

from pathlib import Path

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitlobster.core.exceptions import ConfigurationError
from gitlobster.core.models.config import (
    BackupConfig,
    FilterPatterns,
    ForceProtocol,
    InstanceConfig,
    MirrorConfig,
)
from gitlobster.utils.fs import default_destination

BACKUP_FLAGS_ERROR = "For upload to another gitlab, you must specify both the --bt and --bu flags"


class Settings(BaseSettings):
    """Run settings loaded from ``GTLBSTR_*`` environment variables.

    Command-line values are passed as keyword arguments and take
    precedence over the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="GTLBSTR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source instance
    fetch_url: str
    fetch_token: str

    # Backup instance
    backup_url: str | None = None
    backup_token: str | None = None
    backup_group: str | None = None

    # Selection
    include: list[str] | None = None
    exclude: list[str] | None = None
    limit: int | None = None
    only_owned: bool = False
    only_membership: bool = False
    group: str | None = None
    exclude_archived: bool = False
    objects_per_page: int | None = None

    # Local side
    dst: str | None = None
    clear_dst: bool = False
    disable_hierarchy: bool = False
    only_master: bool = False

    # Transport
    download_ssh: bool = False
    upload_ssh: bool = False
    download_force_http: bool = False
    download_force_https: bool = False
    upload_force_http: bool = False
    upload_force_https: bool = False
    gitlab_timeout: float | None = None

    # Run behaviour
    concurrency_limit: int = 21
    continue_on_error: bool = False
    disable_sync_date: bool = False
    dry_run: bool = False

    def to_mirror_config(self) -> MirrorConfig:
        """Validate cross-field constraints and build the run configuration."""
        source = InstanceConfig(url=_validate_url(self.fetch_url, "fetch"), token=self.fetch_token)

        backup = None
        if self.backup_url and self.backup_token:
            backup = BackupConfig(
                url=_validate_url(self.backup_url, "backup"),
                token=self.backup_token,
                group=self.backup_group,
            )
        elif self.backup_url or self.backup_token or self.backup_group:
            raise ConfigurationError(BACKUP_FLAGS_ERROR)

        if self.concurrency_limit < 1:
            raise ConfigurationError(
                "Concurrency limit must be a positive integer",
                details={"concurrency_limit": self.concurrency_limit},
            )
        if self.objects_per_page is not None and not 1 <= self.objects_per_page <= 100:
            raise ConfigurationError(
                "Objects per page must be between 1 and 100",
                details={"objects_per_page": self.objects_per_page},
            )
        if self.limit is not None and self.limit < 0:
            raise ConfigurationError("Limit cannot be negative", details={"limit": self.limit})

        return MirrorConfig(
            source=source,
            backup=backup,
            patterns=FilterPatterns.from_lists(self.include, self.exclude),
            destination=Path(self.dst).expanduser() if self.dst else default_destination(),
            dry_run=self.dry_run,
            objects_per_page=self.objects_per_page or 100,
            limit=self.limit,
            concurrency_limit=self.concurrency_limit,
            only_owned=self.only_owned,
            only_membership=self.only_membership,
            group=self.group,
            exclude_archived=self.exclude_archived,
            download_ssh=self.download_ssh,
            upload_ssh=self.upload_ssh,
            download_protocol=_force_protocol(
                self.download_force_http, self.download_force_https, "download"
            ),
            upload_protocol=_force_protocol(
                self.upload_force_http, self.upload_force_https, "upload"
            ),
            disable_hierarchy=self.disable_hierarchy,
            clear_destination=self.clear_dst,
            only_default_branch=self.only_master,
            disable_sync_date=self.disable_sync_date,
            continue_on_error=self.continue_on_error,
            request_timeout=self.gitlab_timeout,
        )


def _validate_url(url: str, which: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(f"Invalid {which} URL: {url}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(
            f"Invalid {which} URL: {url}",
            details={"expected": "http(s)://host[/path]"},
        )
    return url


def _force_protocol(http: bool, https: bool, direction: str) -> ForceProtocol:
    if http and https:
        raise ConfigurationError(
            f"You cannot use --{direction}-force-http and --{direction}-force-https flags together"
        )
    if http:
        return ForceProtocol.HTTP
    if https:
        return ForceProtocol.HTTPS
    return ForceProtocol.UNFORCED


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, overridden by explicit values."""
    return Settings(**overrides)
