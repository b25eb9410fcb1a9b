"""gitlobster: mirror every repository of a GitLab account to disk and to a backup GitLab."""

__version__ = "0.1.0"
