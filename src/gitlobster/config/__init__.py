"""Configuration for gitlobster."""

from gitlobster.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
