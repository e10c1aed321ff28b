"""Crop detection: find the bounding box of non-background content."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np

from . import BorderRatios, Color, CropRegion
from .errors import EmptyInputError, ValidationError
from .frames import Frame, ensure_uniform_size, stack_frames

logger = logging.getLogger(__name__)

MAX_COLOR_DISTANCE = math.sqrt(4 * 255 * 255)
DEBUG_COLUMNS = 3
CROP_YIELD_EVERY = 5


@dataclass(frozen=True)
class CropParams:
    """Inputs read by the crop detector."""

    tolerance: float = 0.02
    borders: BorderRatios = field(default_factory=BorderRatios)


@dataclass(frozen=True)
class BorderPixels:
    left: int
    right: int
    top: int
    bottom: int

    @classmethod
    def from_ratios(cls, width: int, height: int, ratios: BorderRatios) -> "BorderPixels":
        return cls(
            left=math.floor(width * ratios.left),
            right=math.floor(width * ratios.right),
            top=math.floor(height * ratios.top),
            bottom=math.floor(height * ratios.bottom),
        )


def normalized_distance(pixels: np.ndarray, background: Color) -> Optional[float]:
    """Root-mean-square RGBA distance to ``background`` scaled to 0..1."""

    flat = pixels.reshape(-1, 4)
    if len(flat) == 0:
        return None
    diff = flat.astype(np.int64) - np.asarray(background, dtype=np.int64)
    sum_squared = int((diff * diff).sum())
    return math.sqrt(sum_squared / len(flat)) / MAX_COLOR_DISTANCE


def is_column_uniform(
    stack: np.ndarray,
    x: int,
    background: Optional[Color],
    tolerance: float,
    y_start: int = 0,
    y_end: Optional[int] = None,
) -> bool:
    """Whether column ``x`` over rows ``[y_start, y_end)`` of every frame matches the background."""

    if stack.shape[0] == 0 or background is None:
        return False
    height = stack.shape[1]
    end = height if y_end is None else min(y_end, height)
    start = max(0, y_start)
    if start >= end:
        return False
    distance = normalized_distance(stack[:, start:end, x], background)
    return distance is not None and distance <= tolerance


def is_row_uniform(
    stack: np.ndarray,
    y: int,
    background: Optional[Color],
    tolerance: float,
    x_start: int = 0,
    x_end: Optional[int] = None,
) -> bool:
    """Whether row ``y`` over columns ``[x_start, x_end)`` of every frame matches the background."""

    if stack.shape[0] == 0 or background is None:
        return False
    width = stack.shape[2]
    end = width if x_end is None else min(x_end, width)
    start = max(0, x_start)
    if start >= end:
        return False
    distance = normalized_distance(stack[:, y, start:end], background)
    return distance is not None and distance <= tolerance


def _log_column_details(stack: np.ndarray, x: int, background: Optional[Color], tolerance: float, y_start: int, y_end: int) -> None:
    if background is None:
        logger.debug("  column %s: no background colour, treated as content", x)
        return
    column = stack[:, y_start:y_end, x].astype(np.int64) - np.asarray(background, dtype=np.int64)
    squared = (column * column).sum(axis=2)
    for frame_idx, y in zip(*np.nonzero(squared > 1)):
        dr, dg, db, da = (int(v) for v in column[frame_idx, y])
        logger.debug(
            "    frame %s pixel (%s, %s): dr=%s dg=%s db=%s da=%s squared=%s",
            frame_idx,
            x,
            y + y_start,
            dr,
            dg,
            db,
            da,
            int(squared[frame_idx, y]),
        )
    if squared.size:
        mean = math.sqrt(int(squared.sum()) / squared.size)
        logger.debug(
            "  column %s: mean distance=%.2f normalized=%.4f tolerance=%.2f",
            x,
            mean,
            mean / MAX_COLOR_DISTANCE,
            tolerance,
        )


def detect_crop_region(
    frames: Sequence[Frame],
    params: CropParams,
    background: Optional[Color],
    checkpoint: Optional[Callable[[], None]] = None,
) -> CropRegion:
    """Scan inwards from each border for the first column/row that is not background.

    Columns are scanned first over the rows left after excluding the top and
    bottom borders; rows are then scanned only between the detected left and
    right edges. A side with no content stops at its border bound.
    """

    if not frames:
        raise EmptyInputError("No frames available for crop detection")
    width, height = ensure_uniform_size(frames)
    borders = BorderPixels.from_ratios(width, height, params.borders)
    if borders.left > width - 1 - borders.right or borders.top > height - 1 - borders.bottom:
        raise ValidationError(
            f"Border ratios leave no area to scan in a {width}x{height} frame"
        )

    tolerance = params.tolerance
    stack = stack_frames(frames)
    y_start, y_end = borders.top, height - borders.bottom

    logger.info("Detecting crop region on %s frames of %sx%s", len(frames), width, height)
    logger.info(
        "Borders: top=%spx bottom=%spx left=%spx right=%spx (cropped as well)",
        borders.top,
        borders.bottom,
        borders.left,
        borders.right,
    )
    logger.info("Crop tolerance: %.2f%%", tolerance * 100)
    debug = logger.isEnabledFor(logging.DEBUG)

    left = borders.left
    for x in range(borders.left, width - borders.right):
        uniform = is_column_uniform(stack, x, background, tolerance, y_start, y_end)
        if debug and x < DEBUG_COLUMNS:
            _log_column_details(stack, x, background, tolerance, y_start, y_end)
        if not uniform:
            left = x
            logger.debug("Left edge at column %s", left)
            break
        if checkpoint is not None:
            checkpoint()

    right = width - 1 - borders.right
    for x in range(width - 1 - borders.right, borders.left - 1, -1):
        if not is_column_uniform(stack, x, background, tolerance, y_start, y_end):
            right = x
            logger.debug("Right edge at column %s", right)
            break
        if checkpoint is not None:
            checkpoint()

    top = borders.top
    for y in range(borders.top, height - borders.bottom):
        if not is_row_uniform(stack, y, background, tolerance, left, right + 1):
            top = y
            break

    bottom = height - 1 - borders.bottom
    for y in range(height - 1 - borders.bottom, borders.top - 1, -1):
        if not is_row_uniform(stack, y, background, tolerance, left, right + 1):
            bottom = y
            break

    region = CropRegion(left=left, top=top, width=right - left + 1, height=bottom - top + 1)
    saved = 100 - (region.width * region.height) / (width * height) * 100
    logger.info(
        "Content region: left=%s top=%s width=%s height=%s (saves %.2f%% of the area)",
        region.left,
        region.top,
        region.width,
        region.height,
        saved,
    )
    return region


def apply_crop(
    frames: Sequence[Frame],
    region: CropRegion,
    checkpoint: Optional[Callable[[], None]] = None,
) -> list[Frame]:
    """Copy ``region`` out of every frame into new buffers."""

    if not frames:
        return []
    width, height = ensure_uniform_size(frames)
    if (
        region.width < 1
        or region.height < 1
        or region.left < 0
        or region.top < 0
        or region.left + region.width > width
        or region.top + region.height > height
    ):
        raise ValidationError(f"Crop region {region} does not fit inside {width}x{height} frames")

    logger.info("Cropping %s frames to %sx%s", len(frames), region.width, region.height)
    cropped: list[Frame] = []
    for index, frame in enumerate(frames):
        window = frame.pixels[region.top : region.top + region.height, region.left : region.left + region.width]
        cropped.append(Frame.from_array(window))
        if checkpoint is not None and index % CROP_YIELD_EVERY == 0:
            checkpoint()
    return cropped
