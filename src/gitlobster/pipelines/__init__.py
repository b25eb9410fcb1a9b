"""Processing pipelines for gitlobster."""

from gitlobster.pipelines.mirror import BackupTarget, MirrorPipeline

__all__ = ["BackupTarget", "MirrorPipeline"]
