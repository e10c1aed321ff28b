"""Loop boundary detection from per-frame perceptual hashes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from . import CycleBoundary
from .frames import Frame
from .perceptual_hash import hamming_distance, hash_frames

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleParams:
    """Inputs read by the cycle detector."""

    frame_rate: float
    hash_diff_threshold: int = 2
    consecutive_match: int = 3
    min_cycle_time_ms: float = 500.0


def _frame_time_ms(index: int, frame_rate: float) -> float:
    return index / frame_rate * 1000


def _is_stable_span(hashes: Sequence[str], start: int, match: int, threshold: int) -> tuple[bool, str]:
    """Reject spans containing an adjacent-frame jump larger than ``2 * threshold``."""

    jump_limit = threshold * 2
    for index in range(start, match - 1):
        diff = hamming_distance(hashes[index], hashes[index + 1], limit=jump_limit)
        if diff > jump_limit:
            return False, f"frames {index}-{index + 1} differ by {diff} > {jump_limit}"
    return True, ""


def detect_cycles(
    frames: Sequence[Frame],
    params: CycleParams,
    hashes: Optional[Sequence[str]] = None,
    checkpoint: Optional[Callable[[], None]] = None,
) -> list[CycleBoundary]:
    """Find non-overlapping loops where the content starts repeating.

    A loop starting at ``i`` is confirmed at ``j`` when ``consecutive_match``
    frame pairs ``(i + k, j + k)`` are all within ``hash_diff_threshold``,
    the span lasts at least ``min_cycle_time_ms`` and contains no sudden jump.
    """

    frame_count = len(frames)
    threshold = params.hash_diff_threshold
    consecutive = params.consecutive_match
    if hashes is None:
        logger.info("Hashing %s frames for cycle detection", frame_count)
        hashes = hash_frames(frames)
    times = [_frame_time_ms(index, params.frame_rate) for index in range(frame_count)]
    min_offset = max(consecutive, math.ceil(params.min_cycle_time_ms / 1000 * params.frame_rate))

    logger.info("Detecting cycles in %s frames at %s fps", frame_count, params.frame_rate)
    logger.debug(
        "Cycle params: hash_diff_threshold=%s consecutive_match=%s min_cycle_time_ms=%s",
        threshold,
        consecutive,
        params.min_cycle_time_ms,
    )

    boundaries: list[CycleBoundary] = []
    i = 0
    while i < frame_count - consecutive:
        if any(b.start_frame <= i <= b.end_frame for b in boundaries):
            i += 1
            continue

        for j in range(i + min_offset, frame_count - consecutive):
            if not all(
                hamming_distance(hashes[i + k], hashes[j + k], limit=threshold) <= threshold
                for k in range(consecutive)
            ):
                continue

            cycle_time = times[j] - times[i]
            logger.debug("Candidate cycle: frames %s-%s, %.0fms", i, j - 1, cycle_time)
            if cycle_time < params.min_cycle_time_ms:
                logger.debug("Rejected: %.0fms shorter than %sms", cycle_time, params.min_cycle_time_ms)
                continue
            stable, reason = _is_stable_span(hashes, i, j, threshold)
            if not stable:
                logger.debug("Rejected: %s", reason)
                continue

            boundary = CycleBoundary(
                start_frame=i,
                end_frame=j - 1,
                start_ms=times[i],
                end_ms=times[j - 1],
                cycle_duration_ms=cycle_time,
                frame_count=j - i,
            )
            logger.info(
                "Found cycle: frames %s-%s (%.2fs-%.2fs), %.2fs long",
                boundary.start_frame,
                boundary.end_frame,
                boundary.start_ms / 1000,
                boundary.end_ms / 1000,
                cycle_time / 1000,
            )
            boundaries.append(boundary)
            i = j + consecutive
            break

        if checkpoint is not None:
            checkpoint()
        i += 1

    logger.info("Cycle detection finished with %s boundaries", len(boundaries))
    return boundaries


def trim_to_first_cycle(frames: Sequence[Frame], boundaries: Sequence[CycleBoundary]) -> list[Frame]:
    """Keep the first loop's frames, or every frame when no loop was found."""

    if not boundaries:
        logger.info("No cycle detected, keeping all %s frames", len(frames))
        return list(frames)
    first = boundaries[0]
    logger.info("Using first cycle: frames %s-%s", first.start_frame, first.end_frame)
    return list(frames[first.start_frame : first.end_frame + 1])
