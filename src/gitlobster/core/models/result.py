"""Outcome of a mirror run."""

from pathlib import Path

from pydantic import BaseModel, Field

from gitlobster.core.models.gitlab import Group, Project


class ProjectFailure(BaseModel):
    """A project whose pipeline raised."""

    project: str
    error: str


class MirrorResult(BaseModel):
    """Summary returned by the orchestrator."""

    projects: list[Project] = Field(default_factory=list)
    destination: Path
    backup_group: Group | None = None
    dry_run: bool = False
    completed: int = 0
    failures: list[ProjectFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.projects)

    @property
    def succeeded(self) -> int:
        return self.completed - len(self.failures)
