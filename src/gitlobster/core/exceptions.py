"""Exception hierarchy for gitlobster."""

from typing import Any


class GitlobsterError(Exception):
    """Base exception for all gitlobster errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(GitlobsterError):
    """Invalid or conflicting configuration."""


class ConflictingFilterError(ConfigurationError):
    """Include and exclude patterns were given together."""


class FilterError(GitlobsterError):
    """Project filter could not be built."""


class InvalidPatternError(FilterError):
    """A filter pattern is not a valid regular expression."""


class ApiError(GitlobsterError):
    """Unexpected response (or no response) from a GitLab instance."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class NamespaceResolutionError(GitlobsterError):
    """A group on the backup instance could not be found or created."""


class GitOperationError(GitlobsterError):
    """A git subprocess exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        stderr: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr.strip()}"
        return self.message


class NoProjectsError(GitlobsterError):
    """The source instance returned no projects."""


class AllFilteredError(GitlobsterError):
    """Every project was removed by the include/exclude filter."""
