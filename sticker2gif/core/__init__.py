"""Core processing scaffolding for sticker-to-GIF conversion."""

__all__ = [
    "Color",
    "VideoMetadata",
    "BorderRatios",
    "ConversionSettings",
    "CycleBoundary",
    "CropRegion",
    "AnalysisResults",
    "ConversionOutcome",
]

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

Color = tuple[int, int, int, int]


@dataclass
class VideoMetadata:
    """Basic metadata for a source video."""

    width: int
    height: int
    fps: float
    duration_seconds: float


@dataclass(frozen=True)
class BorderRatios:
    """Fractions of each dimension excluded from crop scanning."""

    left: float = 0.0
    right: float = 0.0
    top: float = 0.055
    bottom: float = 0.055


@dataclass
class ConversionSettings:
    """User-configurable settings used for one conversion job."""

    video_path: Path
    output_path: Path
    frame_rate: int = 15
    remove_background: bool = False
    crop_tolerance: float = 0.02
    borders: BorderRatios = field(default_factory=BorderRatios)
    target_size: int = 0
    debug_mode: bool = False
    background_sample_index: Optional[int] = None
    hash_diff_threshold: int = 2
    consecutive_match: int = 3
    min_cycle_time_ms: float = 500.0
    frame_rate_hash_threshold: int = 1
    gif_colors: int = 256
    report_path: Optional[Path] = None


@dataclass(frozen=True)
class CycleBoundary:
    """One detected loop; ``end_frame`` is inclusive."""

    start_frame: int
    end_frame: int
    start_ms: float
    end_ms: float
    cycle_duration_ms: float
    frame_count: int


@dataclass(frozen=True)
class CropRegion:
    """Rectangle in source-frame pixel coordinates."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width - 1

    @property
    def bottom(self) -> int:
        return self.top + self.height - 1


@dataclass
class AnalysisResults:
    """Values produced by analysis stages for downstream stages to read."""

    source_frame_count: int = 0
    cycle_boundaries: list[CycleBoundary] = field(default_factory=list)
    frame_rate_estimate: Optional[Any] = None
    background: Optional[Any] = None
    crop_region: Optional[CropRegion] = None
    replaced_pixels: int = 0
    output_frame_count: int = 0
    output_size: Optional[tuple[int, int]] = None

    @property
    def background_color(self) -> Optional[Color]:
        return self.background.color if self.background is not None else None

    @property
    def detected_frame_rate(self) -> Optional[int]:
        if self.frame_rate_estimate is None:
            return None
        return self.frame_rate_estimate.recommended_rate


@dataclass
class ConversionOutcome:
    """Result paths produced by a conversion run."""

    output_path: Path
    report_path: Optional[Path]
    results: AnalysisResults
    diagnostics: list[Any] = field(default_factory=list)
