"""Include/exclude filtering of the project inventory."""

import re

from gitlobster.core.exceptions import ConflictingFilterError, InvalidPatternError
from gitlobster.core.models.config import FilterMode, FilterPatterns
from gitlobster.core.models.gitlab import Project


class ProjectFilter:
    """Filters projects by regular expressions over ``path_with_namespace``.

    In include mode a project is kept if any pattern matches; in exclude
    mode it is kept if none does. The result is truncated to ``limit``
    items, preserving the original order.
    """

    def __init__(
        self,
        include: list[str] | tuple[str, ...] | None = None,
        exclude: list[str] | tuple[str, ...] | None = None,
        limit: int | None = None,
    ) -> None:
        if include and exclude:
            raise ConflictingFilterError(
                "You cannot use the --include and --exclude flags together",
                details={"include": list(include), "exclude": list(exclude)},
            )
        self._keep_on_match = not exclude
        self._patterns = [self._compile(p) for p in (include or exclude or [])]
        self._limit = limit

    @classmethod
    def from_patterns(
        cls, patterns: FilterPatterns | None, limit: int | None = None
    ) -> "ProjectFilter":
        if patterns is None:
            return cls(limit=limit)
        if patterns.mode == FilterMode.INCLUDE:
            return cls(include=patterns.patterns, limit=limit)
        return cls(exclude=patterns.patterns, limit=limit)

    @staticmethod
    def _compile(pattern: str) -> re.Pattern[str]:
        try:
            return re.compile(pattern)
        except re.error as e:
            raise InvalidPatternError(
                f"Invalid filter pattern {pattern!r}: {e}",
                details={"pattern": pattern},
            ) from e

    def matches(self, project: Project) -> bool:
        """Whether ``project`` survives the filter."""
        if not self._patterns:
            return True
        hit = any(p.search(project.path_with_namespace) for p in self._patterns)
        return hit == self._keep_on_match

    def apply(self, projects: list[Project]) -> list[Project]:
        filtered = [p for p in projects if self.matches(p)]
        if self._limit is not None:
            filtered = filtered[: self._limit]
        return filtered
