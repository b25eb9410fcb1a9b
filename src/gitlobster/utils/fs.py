"""Destination directory helpers."""

import shutil
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

TEMP_DIR = "gitlobster"


def default_destination() -> Path:
    """Where repositories land when no destination is configured."""
    return Path(tempfile.gettempdir()) / TEMP_DIR


def clear_directory(path: Path) -> None:
    """Remove a destination tree; a missing tree is not an error."""
    if not path.exists():
        return
    logger.info("Clearing destination", path=str(path))
    shutil.rmtree(path)
