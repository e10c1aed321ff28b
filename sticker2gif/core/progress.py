"""Weighted multi-step progress and timing coordinator."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.001


class PipelineStep(str, Enum):
    """Stages of one conversion job, in execution order."""

    DECODE = "videoToFrames"
    CYCLE_DETECT = "cycleDetect"
    FRAME_RATE_DETECT = "frameRateDetect"
    BACKGROUND_DETECT = "backgroundDetect"
    CROP = "crop"
    RESIZE = "resize"
    CHROMA_KEY = "colorReplacement"
    ENCODE = "framesToGif"


# Decoding dominates wall-clock time, so it carries most of the bar.
STEP_WEIGHTS: dict[PipelineStep, float] = {
    PipelineStep.DECODE: 0.9,
    PipelineStep.CYCLE_DETECT: 0.005,
    PipelineStep.FRAME_RATE_DETECT: 0.005,
    PipelineStep.BACKGROUND_DETECT: 0.005,
    PipelineStep.CROP: 0.065,
    PipelineStep.RESIZE: 0.005,
    PipelineStep.CHROMA_KEY: 0.005,
    PipelineStep.ENCODE: 0.01,
}


@dataclass(frozen=True)
class ProgressStep:
    name: str
    weight: float


@dataclass(frozen=True)
class StepTiming:
    name: str
    duration_ms: float
    percentage: float


def default_steps() -> list[ProgressStep]:
    return [ProgressStep(step.value, STEP_WEIGHTS[step]) for step in PipelineStep]


class ProgressCoordinator:
    """Track which step is running and map its progress onto one 0-100 scale.

    Steps run strictly in order. ``on_progress`` receives the global
    percentage, floored and capped at 100.
    """

    def __init__(
        self,
        steps: Sequence[ProgressStep],
        on_progress: Optional[Callable[[int], None]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        total = sum(step.weight for step in steps)
        if abs(total - 1) > WEIGHT_TOLERANCE:
            logger.warning("Step weights should sum to 1, got %s", total)
        self.steps = list(steps)
        self._on_progress = on_progress
        self._clock = clock
        self._index = -1
        self._step_started = 0.0
        self._timings: dict[str, float] = {}
        self.progress = 0

    @property
    def current_step(self) -> Optional[ProgressStep]:
        if 0 <= self._index < len(self.steps):
            return self.steps[self._index]
        return None

    def _record_timing(self) -> None:
        step = self.current_step
        if step is not None:
            self._timings[step.name] = (self._clock() - self._step_started) * 1000

    def _emit(self, value: int) -> None:
        self.progress = value
        if self._on_progress is not None:
            self._on_progress(value)

    def start_next_step(self) -> Optional[ProgressStep]:
        """Close timing for the running step and open the next one."""

        self._record_timing()
        if self._index >= len(self.steps):
            logger.warning("All steps already completed")
            return None
        self._index += 1
        step = self.current_step
        if step is None:
            logger.warning("All steps already completed")
            return None
        self._step_started = self._clock()
        logger.debug("Starting step %s", step.name)
        return step

    def update_step_progress(self, step_progress: float) -> None:
        """Report ``step_progress`` (0-100) of the running step."""

        step = self.current_step
        if step is None:
            return
        step_progress = max(0.0, min(100.0, step_progress))
        completed = sum(s.weight for s in self.steps[: self._index])
        total = (completed + step_progress / 100 * step.weight) * 100
        value = min(100, math.floor(total))
        if self._finishes_job(step_progress):
            value = 100
        self._emit(value)

    def _finishes_job(self, step_progress: float) -> bool:
        """Completing the last step of a well-formed table reports exactly 100."""

        if self._index != len(self.steps) - 1 or step_progress < 100:
            return False
        return abs(sum(s.weight for s in self.steps) - 1) <= WEIGHT_TOLERANCE

    def complete_current_step(self) -> None:
        self.update_step_progress(100)
        self._record_timing()

    def timing_stats(self) -> list[StepTiming]:
        """Per-step duration and share of total time, for steps that ran."""

        total = sum(self._timings.values())
        stats = []
        for step in self.steps:
            duration = self._timings.get(step.name, 0.0)
            if duration <= 0:
                continue
            stats.append(
                StepTiming(
                    name=step.name,
                    duration_ms=duration,
                    percentage=duration / total * 100 if total > 0 else 0.0,
                )
            )
        return stats

    def log_timing_summary(self) -> None:
        for timing in self.timing_stats():
            logger.info(
                "  %s: %s (%.1f%%)",
                timing.name,
                self.format_duration(timing.duration_ms),
                timing.percentage,
            )

    def reset(self) -> None:
        self._index = -1
        self._step_started = 0.0
        self._timings.clear()
        self._emit(0)

    @staticmethod
    def format_duration(ms: float) -> str:
        if ms < 1000:
            return f"{ms:.0f}ms"
        if ms < 60000:
            return f"{ms / 1000:.2f}s"
        minutes = math.floor(ms / 60000)
        seconds = (ms % 60000) / 1000
        return f"{minutes}m {seconds:.1f}s"
