"""Background colour detection from frame borders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from . import Color
from .frames import Frame

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND: Color = (0, 0, 0, 255)
ANALYZE_TOP_COLORS = 10
EXACT_SCAN_LIMIT = 50


@dataclass(frozen=True)
class BackgroundDetection:
    """Dominant border colour and how often it was seen."""

    color: Color
    count: int
    total_samples: int

    @property
    def ratio(self) -> float:
        if self.total_samples <= 0:
            return 0.0
        return self.count / self.total_samples


def color_to_string(color: Color) -> str:
    r, g, b, a = color
    return f"rgba({r}, {g}, {b}, {a})"


def _pack(pixels: np.ndarray) -> np.ndarray:
    """Fold RGBA rows into single uint32 keys for counting."""

    values = pixels.astype(np.uint32)
    return (values[:, 0] << 24) | (values[:, 1] << 16) | (values[:, 2] << 8) | values[:, 3]


def _unpack(key: int) -> Color:
    return (key >> 24) & 0xFF, (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF


def border_samples(frame: Frame) -> np.ndarray:
    """Return border pixels in scan order: top row, bottom row, then the side columns without corners."""

    pixels = frame.pixels
    if frame.width == 0 or frame.height == 0:
        return np.empty((0, 4), dtype=np.uint8)
    return np.concatenate(
        [
            pixels[0, :],
            pixels[frame.height - 1, :],
            pixels[1 : frame.height - 1, 0],
            pixels[1 : frame.height - 1, frame.width - 1],
        ]
    )


def detect_background_color(frame: Frame) -> BackgroundDetection:
    """Pick the most frequent border colour; the first seen wins ties."""

    logger.info("Detecting background colour on a %sx%s frame", frame.width, frame.height)
    samples = border_samples(frame)
    total = len(samples)
    if total == 0:
        logger.warning("No border samples available, defaulting background to %s", color_to_string(DEFAULT_BACKGROUND))
        return BackgroundDetection(color=DEFAULT_BACKGROUND, count=0, total_samples=0)

    keys, first_seen, counts = np.unique(_pack(samples), return_index=True, return_counts=True)
    best = max(range(len(keys)), key=lambda idx: (counts[idx], -first_seen[idx]))
    detection = BackgroundDetection(
        color=_unpack(int(keys[best])),
        count=int(counts[best]),
        total_samples=total,
    )
    logger.info(
        "Background colour %s (%s/%s samples, %.2f%%)",
        color_to_string(detection.color),
        detection.count,
        detection.total_samples,
        detection.ratio * 100,
    )
    return detection


def pick_sample_frame(frames: Sequence[Frame], sample_index: Optional[int] = None) -> Frame:
    """Return the requested frame, clamped to the sequence, or the middle one."""

    if sample_index is None:
        return frames[len(frames) // 2]
    return frames[max(0, min(sample_index, len(frames) - 1))]


@dataclass(frozen=True)
class ColumnColorReport:
    """Colour distribution of one column across all frames."""

    x: int
    top_colors: list[tuple[Color, int]]
    distinct_colors: int

    @property
    def is_single_color(self) -> bool:
        return self.distinct_colors == 1


def analyze_column_colors(frames: Sequence[Frame], x: int, top: int = ANALYZE_TOP_COLORS) -> ColumnColorReport:
    """Count colours appearing in column ``x`` over every frame."""

    column = np.concatenate([frame.pixels[:, x] for frame in frames])
    keys, counts = np.unique(_pack(column), return_counts=True)
    order = sorted(range(len(keys)), key=lambda idx: -counts[idx])[:top]
    return ColumnColorReport(
        x=x,
        top_colors=[(_unpack(int(keys[idx])), int(counts[idx])) for idx in order],
        distinct_colors=len(keys),
    )


def _column_is_constant(frames: Sequence[Frame], x: int) -> bool:
    reference = frames[0].pixels[0, x]
    return all(bool(np.all(frame.pixels[:, x] == reference)) for frame in frames)


def exact_column_scan(frames: Sequence[Frame], limit: int = EXACT_SCAN_LIMIT) -> tuple[Optional[int], Optional[int]]:
    """Return the first non-constant column from the left and from the right.

    Only the outer ``limit`` columns on each side are inspected; ``None`` means
    every inspected column was a single colour.
    """

    width = frames[0].width
    left = next((x for x in range(min(limit, width)) if not _column_is_constant(frames, x)), None)
    right = next(
        (x for x in range(width - 1, max(width - limit, 0) - 1, -1) if not _column_is_constant(frames, x)),
        None,
    )
    return left, right
