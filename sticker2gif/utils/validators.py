"""Validation helpers for user inputs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..core.errors import InvalidVideoError, ValidationError


ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v"}


def validate_video_path(path: Path) -> Path:
    """Ensure the video path exists and appears to be a supported format."""

    if not path:
        raise InvalidVideoError(Path("<unset>"), reason="No path provided")
    if not path.exists():
        raise InvalidVideoError(path, reason="File not found")
    if path.suffix.lower() not in ALLOWED_VIDEO_EXTENSIONS:
        raise InvalidVideoError(path, reason="Unsupported format")
    return path


def parse_fraction(value: str | float | None, field: str) -> Optional[float]:
    """Parse a 0-1 fraction; strings ending in ``%`` are read as percentages."""

    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            parsed = float(text[:-1]) / 100 if text.endswith("%") else float(text)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number or percentage") from exc
    else:
        parsed = float(value)
    if parsed < 0 or parsed > 1:
        raise ValidationError(f"{field} must be between 0 and 1 (or 0% and 100%)")
    return parsed


def validate_border_pair(first: float, second: float, axis: str) -> None:
    """Opposite borders must leave part of the frame to scan."""

    if first + second >= 1:
        raise ValidationError(f"{axis} border ratios must add up to less than 1")
