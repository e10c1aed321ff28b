"""Exact-match chroma keying of the background colour."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from . import Color
from .background import color_to_string
from .frames import Frame

logger = logging.getLogger(__name__)

LOG_EVERY = 10
YIELD_EVERY = 5


@dataclass(frozen=True)
class ReplacementStats:
    replaced: int
    total: int

    @property
    def percentage(self) -> float:
        return self.replaced / self.total * 100 if self.total else 0.0


def replace_color(frame: Frame, target: Color) -> tuple[Frame, ReplacementStats]:
    """Turn pixels exactly equal to ``target`` into transparent black.

    Nearly-matching pixels are left untouched.
    """

    mask = np.all(frame.pixels == np.asarray(target, dtype=np.uint8), axis=2)
    pixels = np.array(frame.pixels, copy=True)
    pixels[mask] = 0
    stats = ReplacementStats(replaced=int(mask.sum()), total=frame.width * frame.height)
    return Frame(pixels), stats


def replace_background(
    frames: Sequence[Frame],
    target: Color,
    checkpoint: Optional[Callable[[], None]] = None,
) -> tuple[list[Frame], int]:
    """Apply :func:`replace_color` to every frame and return the replaced pixel total."""

    logger.info("Replacing background %s with transparency", color_to_string(target))
    processed: list[Frame] = []
    replaced = 0
    last = len(frames) - 1
    for index, frame in enumerate(frames):
        result, stats = replace_color(frame, target)
        processed.append(result)
        replaced += stats.replaced
        if index == 0 or index == last or (index + 1) % LOG_EVERY == 0:
            logger.info(
                "Frame %s: replaced %s/%s pixels (%.2f%%)",
                index + 1,
                stats.replaced,
                stats.total,
                stats.percentage,
            )
        if checkpoint is not None and index % YIELD_EVERY == 0:
            checkpoint()
    logger.info("Background replacement finished for %s frames", len(frames))
    return processed, replaced
