"""GitLab REST API integration."""

from gitlobster.gitlab.client import GitLabClient

__all__ = ["GitLabClient"]
