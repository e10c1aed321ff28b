"""Command-line entry point for sticker-recording-to-GIF conversion."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError as OptionsError

from .config import load_request
from .core import background
from .core import frame_extractor, video_loader
from .core.errors import ProcessingError
from .core.pipeline import convert_video
from .utils import file_tools

logger = logging.getLogger(__name__)

PROGRESS_LOG_STEP = 10


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sticker2gif",
        description="Convert a screen recording of an animated sticker into a trimmed, cropped looping GIF.",
    )
    parser.add_argument("input", type=Path, help="Path to the screen-recorded video")
    parser.add_argument("output", type=Path, nargs="?", help="Destination GIF path (default: next to input)")
    parser.add_argument("--config", type=Path, help="JSON file with conversion options")
    parser.add_argument("--fps", type=int, dest="frame_rate", help="Capture frame rate (default: 15)")
    parser.add_argument(
        "--remove-background",
        action="store_true",
        default=None,
        help="Replace the detected background colour with transparency",
    )
    parser.add_argument(
        "--crop-tolerance",
        help="Colour distance treated as background when cropping, 0-1 or percentage (default: 2%%)",
    )
    for side, default in (("left", "0"), ("right", "0"), ("top", "0.055"), ("bottom", "0.055")):
        parser.add_argument(
            f"--border-{side}",
            dest=f"border_{side}",
            help=f"Fraction of the frame excluded from crop scanning on the {side} (default: {default})",
        )
    parser.add_argument(
        "--target-size",
        type=int,
        help="Downscale so the larger side is at most this many pixels (0 keeps the size)",
    )
    parser.add_argument(
        "--background-sample",
        type=int,
        dest="background_sample_index",
        help="Frame index used for background detection (default: middle frame)",
    )
    parser.add_argument("--colors", type=int, dest="gif_colors", help="GIF palette size, 2-256")
    parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        type=Path,
        help="Write a JSON run report (optionally to the given path)",
    )
    parser.add_argument("--debug", action="store_true", default=None, dest="debug_mode", help="Verbose diagnostics")
    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Print edge-column colour analysis for the decoded frames instead of converting",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate options and print them without processing",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    keys = (
        "frame_rate",
        "remove_background",
        "crop_tolerance",
        "border_left",
        "border_right",
        "border_top",
        "border_bottom",
        "target_size",
        "background_sample_index",
        "gif_colors",
        "debug_mode",
    )
    return {key: getattr(args, key) for key in keys}


def _progress_printer():
    last = {"value": -PROGRESS_LOG_STEP}

    def report(value: int) -> None:
        if value - last["value"] >= PROGRESS_LOG_STEP or value == 100:
            last["value"] = value
            logger.info("Progress: %s%%", value)

    return report


def run_analysis(video_path: Path, frame_rate: int) -> None:
    """Print the colour makeup of the outer columns, useful for tuning crop options."""

    metadata = video_loader.load_metadata(video_path)
    frames = frame_extractor.extract_frames(video_path, frame_rate, metadata)
    if not frames:
        raise ProcessingError("No frames could be extracted from the video.")
    width, height = frames[0].size
    print(f"Frames: {len(frames)}, size: {width}x{height}")

    left, right = background.exact_column_scan(frames)
    print(f"First non-constant column from the left: {left if left is not None else 'none in scan range'}")
    print(f"First non-constant column from the right: {right if right is not None else 'none in scan range'}")

    for x in sorted({0, min(1, width - 1), width - 1}):
        report = background.analyze_column_colors(frames, x)
        print(f"Column {x}: {report.distinct_colors} distinct colours")
        for rank, (color, count) in enumerate(report.top_colors, start=1):
            print(f"  {rank}. {background.color_to_string(color)}: {count}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(bool(args.debug_mode))

    try:
        request = load_request(args.config, _overrides(args))
    except (OptionsError, ValueError) as exc:
        logger.error("Invalid options: %s", exc)
        return 2

    output_path = args.output or file_tools.default_output_path(args.input)
    report_path = None
    if args.report is True:
        report_path = file_tools.default_report_path(output_path)
    elif args.report:
        report_path = args.report

    if args.dry_run:
        print(request.model_dump_json(indent=2))
        return 0

    try:
        if args.analyze:
            run_analysis(args.input, request.frame_rate)
            return 0
        settings = request.to_settings(args.input, output_path, report_path)
        outcome = convert_video(settings, on_progress=_progress_printer())
    except (ProcessingError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    estimate = outcome.results.detected_frame_rate
    if estimate is not None and estimate != settings.frame_rate:
        logger.info("Sticker looks like ~%s fps; rerun with --fps %s for a smaller file", estimate, estimate)
    logger.info("Saved %s", outcome.output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
