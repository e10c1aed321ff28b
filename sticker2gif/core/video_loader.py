"""Video loading and metadata discovery."""

from __future__ import annotations

import logging
from pathlib import Path

from . import VideoMetadata
from .errors import DecodeError, InvalidVideoError
from ..utils import validators

logger = logging.getLogger(__name__)


def load_metadata(video_path: Path) -> VideoMetadata:
    """Return size, native fps and duration for the selected video."""

    validated_path = validators.validate_video_path(video_path)
    ensure_ffmpeg_available()
    clip_class = resolve_video_file_clip()

    try:
        with clip_class(str(validated_path)) as clip:
            width, height = clip.size
            fps = float(getattr(clip, "fps", 0.0) or 0.0)
            duration_seconds = float(getattr(clip, "duration", 0.0) or 0.0)
    except Exception as exc:  # pragma: no cover - backend dependent
        raise InvalidVideoError(validated_path, reason=f"Could not read metadata: {exc}") from exc

    if duration_seconds <= 0:
        raise InvalidVideoError(validated_path, reason="Video reports no duration")

    logger.info(
        "Video %s: %sx%s, %.2fs at %sfps",
        validated_path,
        width,
        height,
        duration_seconds,
        fps,
    )
    return VideoMetadata(width=width, height=height, fps=fps, duration_seconds=duration_seconds)


def ensure_ffmpeg_available() -> None:
    """Raise a friendly error if ffmpeg is missing."""

    try:
        from moviepy.config import FFMPEG_BINARY  # type: ignore
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise DecodeError("moviepy is not installed. Run pip install -e .") from exc

    if not FFMPEG_BINARY:
        raise DecodeError("ffmpeg not found. Install ffmpeg and ensure it is on PATH.")


def resolve_video_file_clip():
    """Import VideoFileClip from supported moviepy locations."""

    try:
        from moviepy import VideoFileClip  # type: ignore
        return VideoFileClip
    except ImportError:
        try:
            from moviepy.editor import VideoFileClip  # type: ignore
            return VideoFileClip
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise DecodeError("moviepy is not installed. Run pip install -e .") from exc
