"""Mirroring services for gitlobster."""

from gitlobster.services.filtering import ProjectFilter
from gitlobster.services.namespace import NamespaceCache, NamespaceResolver

__all__ = [
    "ProjectFilter",
    "NamespaceCache",
    "NamespaceResolver",
]
