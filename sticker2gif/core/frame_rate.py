"""Native frame-rate inference from runs of duplicated frames."""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence

from .frames import Frame
from .perceptual_hash import hamming_distance, hash_frames

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRateEstimate:
    """Advisory estimate of the sticker's own frame rate."""

    captured_rate: float
    run_lengths: tuple[int, ...]
    histogram: dict[int, int]
    mean_repeat: float
    typical_repeat: int
    estimated_rate: float
    recommended_rate: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def collect_run_lengths(hashes: Sequence[str], threshold: int = 1) -> list[int]:
    """Split the sequence into maximal runs of frames similar to their predecessor."""

    if not hashes:
        return []
    runs: list[int] = []
    current = 1
    for index in range(1, len(hashes)):
        if hamming_distance(hashes[index - 1], hashes[index], limit=threshold) <= threshold:
            current += 1
        else:
            runs.append(current)
            current = 1
    runs.append(current)
    return runs


def typical_repeat(run_lengths: Sequence[int]) -> int:
    """Histogram mode of the run lengths; ties go to the shorter run."""

    histogram = Counter(run_lengths)
    return min(histogram, key=lambda length: (-histogram[length], length))


def estimate_frame_rate(
    frames: Sequence[Frame],
    captured_rate: float,
    threshold: int = 1,
    hashes: Optional[Sequence[str]] = None,
) -> Optional[FrameRateEstimate]:
    """Estimate how many capture frames each sticker frame was shown for.

    Returns ``None`` when there are too few frames or no repeats at all, in
    which case the captured rate already matches the sticker.
    """

    if len(frames) < 2:
        logger.info("Frame rate detection skipped: fewer than 2 frames")
        return None

    logger.info("Estimating native frame rate from %s frames", len(frames))
    if hashes is None:
        hashes = hash_frames(frames)
    runs = collect_run_lengths(hashes, threshold)

    if all(length == 1 for length in runs):
        logger.info("No repeated frames found; keeping captured rate of %s fps", captured_rate)
        return None

    histogram = dict(sorted(Counter(runs).items()))
    mean_repeat = sum(runs) / len(runs)
    typical = typical_repeat(runs)
    estimated = captured_rate / typical
    recommended = max(1, _round_half_up(estimated))

    logger.debug("Run lengths: %s", ", ".join(str(length) for length in runs))
    logger.debug(
        "Run length histogram: %s",
        ", ".join(f"{length}x{count}" for length, count in histogram.items()),
    )
    logger.info(
        "Captured at %s fps, each frame repeats %.2f times on average, typically %s",
        captured_rate,
        mean_repeat,
        typical,
    )
    logger.info("Estimated native frame rate ~%.2f fps (recommended %s fps, advisory)", estimated, recommended)

    return FrameRateEstimate(
        captured_rate=captured_rate,
        run_lengths=tuple(runs),
        histogram=histogram,
        mean_repeat=mean_repeat,
        typical_repeat=typical,
        estimated_rate=estimated,
        recommended_rate=recommended,
    )
