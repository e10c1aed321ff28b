"""Ordered stage pipeline turning captured frames into a trimmed, cropped loop."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

from . import AnalysisResults, ConversionOutcome, ConversionSettings
from . import frame_extractor, gif_writer, report_writer, video_loader
from .background import detect_background_color, pick_sample_frame
from .chroma_key import replace_background
from .crop import CropParams, apply_crop, detect_crop_region
from .cycle_detector import CycleParams, detect_cycles, trim_to_first_cycle
from .diagnostics import capture_diagnostics
from .errors import EmptyInputError
from .frame_rate import estimate_frame_rate
from .frames import Frame, ensure_uniform_size
from .perceptual_hash import hash_frames
from .progress import PipelineStep, ProgressCoordinator, default_steps
from .resize import resize_frames

logger = logging.getLogger(__name__)

Decoder = Callable[[ConversionSettings, Callable[[float], None]], list[Frame]]
Encoder = Callable[[Sequence[Frame], ConversionSettings], Path]


def _no_checkpoint() -> None:
    return None


@dataclass
class JobContext:
    """Everything one conversion job threads through its stages.

    ``settings`` is only read; stages hand their outputs back and the pipeline
    stores them on ``results`` for later stages.
    """

    settings: ConversionSettings
    results: AnalysisResults = field(default_factory=AnalysisResults)
    progress: Optional[ProgressCoordinator] = None
    checkpoint: Callable[[], None] = _no_checkpoint

    @property
    def cycle_params(self) -> CycleParams:
        return CycleParams(
            frame_rate=self.settings.frame_rate,
            hash_diff_threshold=self.settings.hash_diff_threshold,
            consecutive_match=self.settings.consecutive_match,
            min_cycle_time_ms=self.settings.min_cycle_time_ms,
        )

    @property
    def crop_params(self) -> CropParams:
        return CropParams(tolerance=self.settings.crop_tolerance, borders=self.settings.borders)


@contextmanager
def _step(context: JobContext, step: PipelineStep) -> Iterator[None]:
    progress = context.progress
    logger.debug("Stage %s", step.value)
    if progress is not None:
        progress.start_next_step()
    yield
    if progress is not None:
        progress.complete_current_step()


def run_pipeline(frames: Sequence[Frame], context: JobContext) -> list[Frame]:
    """Run cycle trim, frame-rate estimate, background, crop, resize and chroma key."""

    if not frames:
        raise EmptyInputError("No frames to process")
    ensure_uniform_size(frames)
    settings = context.settings
    results = context.results
    results.source_frame_count = results.source_frame_count or len(frames)
    current = list(frames)

    with _step(context, PipelineStep.CYCLE_DETECT):
        hashes = hash_frames(current)
        results.cycle_boundaries = detect_cycles(
            current, context.cycle_params, hashes=hashes, checkpoint=context.checkpoint
        )
        current = trim_to_first_cycle(current, results.cycle_boundaries)
        if results.cycle_boundaries:
            first = results.cycle_boundaries[0]
            hashes = hashes[first.start_frame : first.end_frame + 1]

    with _step(context, PipelineStep.FRAME_RATE_DETECT):
        results.frame_rate_estimate = estimate_frame_rate(
            current, settings.frame_rate, threshold=settings.frame_rate_hash_threshold, hashes=hashes
        )

    with _step(context, PipelineStep.BACKGROUND_DETECT):
        sample = pick_sample_frame(current, settings.background_sample_index)
        results.background = detect_background_color(sample)

    with _step(context, PipelineStep.CROP):
        background = results.background_color
        if background is None:
            logger.warning("No background colour available, skipping crop")
        else:
            results.crop_region = detect_crop_region(
                current, context.crop_params, background, checkpoint=context.checkpoint
            )
            current = apply_crop(current, results.crop_region, checkpoint=context.checkpoint)

    with _step(context, PipelineStep.RESIZE):
        current = resize_frames(current, settings.target_size, checkpoint=context.checkpoint)

    with _step(context, PipelineStep.CHROMA_KEY):
        if not settings.remove_background:
            logger.info("Keeping background (removal not requested)")
        elif results.background_color is None:
            logger.warning("No background colour available, skipping background removal")
        else:
            current, results.replaced_pixels = replace_background(
                current, results.background_color, checkpoint=context.checkpoint
            )

    results.output_frame_count = len(current)
    results.output_size = current[0].size
    return current


def decode_video(settings: ConversionSettings, on_progress: Callable[[float], None]) -> list[Frame]:
    metadata = video_loader.load_metadata(settings.video_path)
    return frame_extractor.extract_frames(settings.video_path, settings.frame_rate, metadata, on_progress)


def encode_gif(frames: Sequence[Frame], settings: ConversionSettings) -> Path:
    return gif_writer.write_gif(
        frames,
        settings.output_path,
        settings.frame_rate,
        colors=settings.gif_colors,
        transparent=settings.remove_background,
    )


def convert_video(
    settings: ConversionSettings,
    on_progress: Optional[Callable[[int], None]] = None,
    checkpoint: Optional[Callable[[], None]] = None,
    decoder: Decoder = decode_video,
    encoder: Encoder = encode_gif,
) -> ConversionOutcome:
    """Decode, analyse and encode one video; any failure aborts the whole job."""

    progress = ProgressCoordinator(default_steps(), on_progress)
    context = JobContext(settings=settings, progress=progress, checkpoint=checkpoint or _no_checkpoint)

    with capture_diagnostics(settings.debug_mode) as diagnostics:
        logger.info("Starting conversion of %s", settings.video_path)
        try:
            with _step(context, PipelineStep.DECODE):
                frames = decoder(settings, progress.update_step_progress)
            if not frames:
                raise EmptyInputError("The video contains no usable frames")
            context.results.source_frame_count = len(frames)

            processed = run_pipeline(frames, context)

            with _step(context, PipelineStep.ENCODE):
                output_path = encoder(processed, settings)
        except Exception as exc:
            logger.error("Conversion failed: %s", exc)
            raise

        report_path = None
        if settings.report_path is not None:
            report_path = report_writer.write_report(
                context.results, settings, output_path, progress.timing_stats()
            )

        logger.info("Step timings:")
        progress.log_timing_summary()
        logger.info("Conversion finished: %s", output_path)

    return ConversionOutcome(
        output_path=output_path,
        report_path=report_path,
        results=context.results,
        diagnostics=list(diagnostics.entries),
    )
