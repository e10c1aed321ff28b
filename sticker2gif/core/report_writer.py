"""Run report writing logic."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Iterable

from . import AnalysisResults, ConversionSettings
from .progress import StepTiming
from ..utils import file_tools

logger = logging.getLogger(__name__)


def build_report(
    results: AnalysisResults,
    settings: ConversionSettings,
    output_path: Path,
    timings: Iterable[StepTiming] = (),
) -> dict:
    """Collect what every stage detected into a JSON-serialisable dict."""

    estimate = results.frame_rate_estimate
    background = results.background
    return {
        "source": str(settings.video_path),
        "output": str(output_path),
        "frames": {
            "extracted": results.source_frame_count,
            "output": results.output_frame_count,
            "size": list(results.output_size) if results.output_size else None,
        },
        "cycles": [asdict(boundary) for boundary in results.cycle_boundaries],
        "frame_rate": {
            "captured": settings.frame_rate,
            "recommended": estimate.recommended_rate if estimate else None,
            "estimated": estimate.estimated_rate if estimate else None,
            "typical_repeat": estimate.typical_repeat if estimate else None,
        },
        "background": {
            "color": list(background.color),
            "ratio": background.ratio,
        }
        if background
        else None,
        "crop_region": asdict(results.crop_region) if results.crop_region else None,
        "replaced_pixels": results.replaced_pixels,
        "timings": [asdict(timing) for timing in timings],
    }


def write_report(
    results: AnalysisResults,
    settings: ConversionSettings,
    output_path: Path,
    timings: Iterable[StepTiming] = (),
) -> Path:
    """Write the run report next to the output unless a path was given."""

    report_path = (settings.report_path or output_path).with_suffix(".json")
    file_tools.ensure_directory(report_path.parent)
    report = build_report(results, settings, output_path, timings)
    report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    logger.info("Wrote report to %s", report_path)
    return report_path
