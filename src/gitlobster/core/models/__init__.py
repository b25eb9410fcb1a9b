"""Domain models for gitlobster."""

from gitlobster.core.models.config import (
    BackupConfig,
    FilterMode,
    FilterPatterns,
    ForceProtocol,
    InstanceConfig,
    MirrorConfig,
)
from gitlobster.core.models.gitlab import Group, Project, User
from gitlobster.core.models.result import MirrorResult, ProjectFailure

__all__ = [
    "Project",
    "Group",
    "User",
    "InstanceConfig",
    "BackupConfig",
    "MirrorConfig",
    "ForceProtocol",
    "FilterMode",
    "FilterPatterns",
    "MirrorResult",
    "ProjectFailure",
]
