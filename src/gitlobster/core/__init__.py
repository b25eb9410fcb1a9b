"""Core domain models and exceptions for gitlobster."""

from gitlobster.core.exceptions import (
    AllFilteredError,
    ApiError,
    ConfigurationError,
    ConflictingFilterError,
    FilterError,
    GitlobsterError,
    GitOperationError,
    InvalidPatternError,
    NamespaceResolutionError,
    NoProjectsError,
)
from gitlobster.core.models import (
    FilterMode,
    FilterPatterns,
    ForceProtocol,
    Group,
    MirrorConfig,
    MirrorResult,
    Project,
    ProjectFailure,
    User,
)

__all__ = [
    # Models
    "Project",
    "Group",
    "User",
    "MirrorConfig",
    "MirrorResult",
    "ProjectFailure",
    "ForceProtocol",
    "FilterMode",
    "FilterPatterns",
    # Exceptions
    "GitlobsterError",
    "ConfigurationError",
    "ConflictingFilterError",
    "FilterError",
    "InvalidPatternError",
    "ApiError",
    "NamespaceResolutionError",
    "GitOperationError",
    "NoProjectsError",
    "AllFilteredError",
]
