"""Frame extraction at a fixed capture rate using moviepy."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Callable, Iterator, Optional

from PIL import Image

from . import VideoMetadata
from .errors import DecodeError
from .frames import Frame
from .video_loader import ensure_ffmpeg_available, resolve_video_file_clip

logger = logging.getLogger(__name__)
LOG_INTERVAL = 10


def compute_sample_times(duration_seconds: float, frame_rate: float) -> list[float]:
    """Timestamps ``i / frame_rate`` for ``floor(duration * frame_rate)`` frames."""

    frame_count = math.floor(duration_seconds * frame_rate)
    return [index / frame_rate for index in range(frame_count)]


def iter_frames(
    video_path: Path,
    frame_rate: float,
    metadata: Optional[VideoMetadata] = None,
) -> Iterator[Frame]:
    """Yield RGBA frames one-by-one sampled at ``frame_rate``."""

    clip_class = resolve_video_file_clip()
    ensure_ffmpeg_available()

    clip = None
    try:
        clip = clip_class(str(video_path))
        duration = metadata.duration_seconds if metadata else float(clip.duration or 0.0)
        times = compute_sample_times(duration, frame_rate)
        logger.info("Extracting %s frames at %s fps from %s", len(times), frame_rate, video_path)
        for ts in times:
            image = Image.fromarray(clip.get_frame(ts))
            yield Frame.from_image(image)
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError(f"Failed to decode {video_path}: {exc}") from exc
    finally:
        if clip is not None:
            clip.close()


def extract_frames(
    video_path: Path,
    frame_rate: float,
    metadata: Optional[VideoMetadata] = None,
    on_progress: Optional[Callable[[float], None]] = None,
) -> list[Frame]:
    """Decode every sample eagerly, reporting per-frame progress as 0-100."""

    expected = len(compute_sample_times(metadata.duration_seconds, frame_rate)) if metadata else 0
    frames: list[Frame] = []
    for frame in iter_frames(video_path, frame_rate, metadata):
        frames.append(frame)
        count = len(frames)
        if expected and (count % LOG_INTERVAL == 0 or count == expected):
            logger.info("Extracted %s/%s frames", count, expected)
        if on_progress is not None and expected:
            on_progress(min(100.0, count / expected * 100))
    logger.info("Frame extraction finished with %s frames", len(frames))
    return frames
