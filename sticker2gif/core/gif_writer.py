"""Animated GIF composition using Pillow."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from .errors import EmptyInputError, EncodeError
from .frames import Frame, ensure_uniform_size
from ..utils import file_tools

logger = logging.getLogger(__name__)

MAX_COLORS = 256
PALETTE_SAMPLE_LIMIT = 1 << 20


def frame_delay_ms(frame_rate: float) -> int:
    """Per-frame display time for a given playback rate."""

    return max(1, round(1000 / frame_rate))


def build_shared_palette(frames: Sequence[Frame], colors: int, transparent: bool) -> list[int]:
    """Median-cut palette of up to ``colors`` entries computed over every frame.

    Fully transparent pixels are left out when ``transparent`` is set so they
    do not take palette slots from visible content.
    """

    pixels = np.concatenate([frame.pixels.reshape(-1, 4) for frame in frames])
    if transparent:
        pixels = pixels[pixels[:, 3] != 0]
    if len(pixels) == 0:
        pixels = np.zeros((1, 4), dtype=np.uint8)
    stride = max(1, math.ceil(len(pixels) / PALETTE_SAMPLE_LIMIT))
    sample = np.ascontiguousarray(pixels[::stride, :3]).reshape(-1, 1, 3)
    quantized = Image.fromarray(sample).quantize(
        colors=colors, method=Image.Quantize.MEDIANCUT, dither=Image.Dither.NONE
    )
    palette = quantized.getpalette() or [0, 0, 0]
    return palette[: 3 * colors]


def _palette_image(palette: list[int]) -> Image.Image:
    # Unused slots repeat the first entry so nearest-colour lookups never land on them.
    padded = palette + palette[:3] * (MAX_COLORS - len(palette) // 3)
    image = Image.new("P", (1, 1))
    image.putpalette(padded)
    return image


def _to_palette(
    frame: Frame,
    mapping: Image.Image,
    output_palette: list[int],
    transparent_index: int | None,
) -> Image.Image:
    """Map one frame onto the shared palette; fully transparent pixels get ``transparent_index``."""

    image = frame.to_image()
    paletted = image.convert("RGB").quantize(palette=mapping, dither=Image.Dither.NONE)
    paletted.putpalette(output_palette)
    if transparent_index is not None:
        transparent = image.getchannel("A").point(lambda v: 255 if v == 0 else 0)
        paletted.paste(transparent_index, mask=transparent)
    return paletted


def write_gif(
    frames: Sequence[Frame],
    output_path: Path,
    frame_rate: float,
    colors: int = MAX_COLORS,
    transparent: bool = False,
) -> Path:
    """Encode frames into a looping GIF shown at ``frame_rate``."""

    if not frames:
        raise EmptyInputError("No frames provided to encode.")
    width, height = ensure_uniform_size(frames)
    colors = max(2, min(MAX_COLORS, colors))
    delay = frame_delay_ms(frame_rate)
    transparent_index = colors - 1 if transparent else None

    output_path = output_path.with_suffix(".gif")
    file_tools.ensure_directory(output_path.parent)
    logger.info(
        "Encoding %s frames of %sx%s at %sms per frame (%s colours%s)",
        len(frames),
        width,
        height,
        delay,
        colors,
        ", transparent" if transparent else "",
    )

    try:
        palette = build_shared_palette(frames, colors - 1 if transparent else colors, transparent)
        mapping = _palette_image(palette)
        output_palette = (palette + [0] * (3 * colors))[: 3 * colors]
        images = [_to_palette(frame, mapping, output_palette, transparent_index) for frame in frames]
        save_kwargs = {
            "save_all": True,
            "append_images": images[1:],
            "loop": 0,
            "duration": delay,
            "disposal": 2,
            "optimize": False,
        }
        if transparent_index is not None:
            save_kwargs["transparency"] = transparent_index
        images[0].save(output_path, format="GIF", **save_kwargs)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Failed to write {output_path}: {exc}") from exc

    logger.info("Wrote GIF to %s (%.2f MB)", output_path, output_path.stat().st_size / 1024 / 1024)
    return output_path
