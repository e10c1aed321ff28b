"""Nearest-neighbour downscaling to a maximum dimension."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Sequence

import numpy as np

from .frames import Frame, ensure_uniform_size

logger = logging.getLogger(__name__)

YIELD_EVERY = 5


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def target_dimensions(width: int, height: int, target_size: int) -> Optional[tuple[int, int, float]]:
    """Return ``(new_width, new_height, scale)`` or ``None`` when no resize is needed."""

    if target_size <= 0 or max(width, height) <= target_size:
        return None
    scale = target_size / max(width, height)
    new_width = max(1, _round_half_up(width * scale))
    new_height = max(1, _round_half_up(height * scale))
    return new_width, new_height, scale


def resize_frames(
    frames: Sequence[Frame],
    target_size: int,
    checkpoint: Optional[Callable[[], None]] = None,
) -> list[Frame]:
    """Shrink frames so the larger side equals ``target_size``.

    ``0`` disables resizing; frames already small enough are returned as-is.
    """

    if not frames:
        return []
    if target_size == 0:
        logger.info("Target size disabled, skipping resize")
        return list(frames)

    width, height = ensure_uniform_size(frames)
    dims = target_dimensions(width, height, target_size)
    if dims is None:
        logger.info("Frames are %sx%s, within %spx; skipping resize", width, height, target_size)
        return list(frames)

    new_width, new_height, scale = dims
    logger.info(
        "Resizing %sx%s to %sx%s (scale %.2f%%, target %spx)",
        width,
        height,
        new_width,
        new_height,
        scale * 100,
        target_size,
    )
    source_x = [min(width - 1, math.floor(x / scale)) for x in range(new_width)]
    source_y = [min(height - 1, math.floor(y / scale)) for y in range(new_height)]
    index = np.ix_(source_y, source_x)

    resized: list[Frame] = []
    for position, frame in enumerate(frames):
        resized.append(Frame(frame.pixels[index]))
        if checkpoint is not None and position % YIELD_EVERY == 0:
            checkpoint()
    logger.info("Resize finished for %s frames", len(frames))
    return resized
