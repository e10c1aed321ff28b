"""Immutable RGBA frame container shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from PIL import Image

from . import Color
from .errors import EmptyInputError, ProcessingError


@dataclass(frozen=True, eq=False)
class Frame:
    """Interleaved RGBA pixels, row-major, 8 bits per channel.

    The backing array has shape ``(height, width, 4)``. It is always a private
    copy of what the caller passed and is marked read-only; stages that change
    pixels build a new ``Frame``.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        owned = np.array(self.pixels, copy=True)
        owned.flags.writeable = False
        object.__setattr__(self, "pixels", owned)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Frame":
        """Build a frame from any array-like, converting to uint8 first."""

        return cls(np.asarray(array, dtype=np.uint8))

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "Frame":
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        array = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(array)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Frame":
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def solid(cls, width: int, height: int, color: Color) -> "Frame":
        array = np.empty((height, width, 4), dtype=np.uint8)
        array[:, :] = color
        return cls(array)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Color:
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return r, g, b, a

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]


def ensure_uniform_size(frames: Sequence[Frame]) -> tuple[int, int]:
    """Return the shared ``(width, height)`` of a non-empty frame sequence."""

    if not frames:
        raise EmptyInputError("No frames available")
    size = frames[0].size
    for index, frame in enumerate(frames):
        if frame.size != size:
            raise ProcessingError(
                f"Frame {index} is {frame.width}x{frame.height}, expected {size[0]}x{size[1]}"
            )
    return size


def stack_frames(frames: Iterable[Frame]) -> np.ndarray:
    """Stack frames into one ``(N, H, W, 4)`` read-only view for scanning."""

    stacked = np.stack([frame.pixels for frame in frames])
    stacked.flags.writeable = False
    return stacked
