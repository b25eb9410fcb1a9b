"""Git integration module for gitlobster."""

from gitlobster.git.runner import GitRunner
from gitlobster.git.sync import BranchSet, RepositorySync
from gitlobster.git.urls import make_clone_url, make_http_auth

__all__ = ["GitRunner", "BranchSet", "RepositorySync", "make_clone_url", "make_http_auth"]
