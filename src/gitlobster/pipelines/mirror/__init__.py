"""Per-project mirror pipeline."""

from gitlobster.pipelines.mirror.pipeline import BackupTarget, MirrorPipeline

__all__ = ["BackupTarget", "MirrorPipeline"]
