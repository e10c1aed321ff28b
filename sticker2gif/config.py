"""Option model for one conversion job."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from .core import BorderRatios, ConversionSettings
from .core.errors import ValidationError
from .utils import file_tools, validators


class ConversionRequest(BaseModel):
    """Incoming settings payload for a conversion."""

    frame_rate: int = Field(15, ge=1, le=120)
    remove_background: bool = False
    crop_tolerance: float = Field(0.02, ge=0, le=1)
    border_left: float = Field(0.0, ge=0, le=1)
    border_right: float = Field(0.0, ge=0, le=1)
    border_top: float = Field(0.055, ge=0, le=1)
    border_bottom: float = Field(0.055, ge=0, le=1)
    target_size: int = Field(0, ge=0)
    debug_mode: bool = False
    background_sample_index: Optional[int] = Field(None, ge=0)
    hash_diff_threshold: int = Field(2, ge=0, le=64)
    consecutive_match: int = Field(3, ge=1)
    min_cycle_time_ms: float = Field(500.0, ge=0)
    frame_rate_hash_threshold: int = Field(1, ge=0, le=64)
    gif_colors: int = Field(256, ge=2, le=256)

    @field_validator("crop_tolerance", "border_left", "border_right", "border_top", "border_bottom", mode="before")
    @classmethod
    def _parse_fraction(cls, value, info: ValidationInfo):
        if isinstance(value, str):
            return validators.parse_fraction(value, info.field_name)
        return value

    @model_validator(mode="after")
    def _check_borders(self) -> "ConversionRequest":
        validators.validate_border_pair(self.border_left, self.border_right, "Left/right")
        validators.validate_border_pair(self.border_top, self.border_bottom, "Top/bottom")
        return self

    @property
    def borders(self) -> BorderRatios:
        return BorderRatios(
            left=self.border_left,
            right=self.border_right,
            top=self.border_top,
            bottom=self.border_bottom,
        )

    def to_settings(
        self,
        video_path: Path,
        output_path: Optional[Path] = None,
        report_path: Optional[Path] = None,
    ) -> ConversionSettings:
        return ConversionSettings(
            video_path=video_path,
            output_path=output_path or file_tools.default_output_path(video_path),
            frame_rate=self.frame_rate,
            remove_background=self.remove_background,
            crop_tolerance=self.crop_tolerance,
            borders=self.borders,
            target_size=self.target_size,
            debug_mode=self.debug_mode,
            background_sample_index=self.background_sample_index,
            hash_diff_threshold=self.hash_diff_threshold,
            consecutive_match=self.consecutive_match,
            min_cycle_time_ms=self.min_cycle_time_ms,
            frame_rate_hash_threshold=self.frame_rate_hash_threshold,
            gif_colors=self.gif_colors,
            report_path=report_path,
        )


def load_request(config_path: Optional[Path] = None, overrides: Optional[dict[str, Any]] = None) -> ConversionRequest:
    """Merge a JSON options file with explicit overrides; ``None`` overrides are ignored."""

    payload: dict[str, Any] = {}
    if config_path is not None:
        try:
            payload = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValidationError(f"Could not read options from {config_path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationError(f"Options file {config_path} must contain a JSON object")
    for key, value in (overrides or {}).items():
        if value is not None:
            payload[key] = value
    return ConversionRequest.model_validate(payload)
