"""Filesystem helpers."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create a directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)
    return path


def default_output_path(video_path: Path, suffix: str = ".gif") -> Path:
    """Return a default output path next to the video file."""

    if not suffix.startswith("."):
        suffix = "." + suffix
    return video_path.with_suffix(suffix)


def default_report_path(output_path: Path) -> Path:
    return output_path.with_suffix(".json")
