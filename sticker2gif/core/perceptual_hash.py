"""Difference hash (dHash) fingerprints for fast frame similarity checks."""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from .frames import Frame

HASH_COLUMNS = 9
HASH_ROWS = 8
HASH_BITS = HASH_ROWS * (HASH_COLUMNS - 1)


def _sample_positions(extent: int, steps: int) -> list[int]:
    return [math.floor(i / steps * extent) for i in range(steps)]


def dhash(frame: Frame) -> str:
    """Return a 64-character bit string for the frame's luminance gradients.

    An 8x9 grid is sampled proportionally from the source so the hash does not
    depend on resolution. Each bit is ``1`` when the left sample's gray level
    (unweighted mean of R, G and B) is strictly darker than its right neighbour.
    """

    rows = _sample_positions(frame.height, HASH_ROWS)
    columns = _sample_positions(frame.width, HASH_COLUMNS)
    samples = frame.pixels[np.ix_(rows, columns)][:, :, :3].astype(np.int32)
    # Comparing channel sums is equivalent to comparing their means.
    gray = samples.sum(axis=2)
    bits = gray[:, :-1] < gray[:, 1:]
    return "".join("1" if bit else "0" for bit in bits.ravel())


def hash_frames(frames: Iterable[Frame]) -> list[str]:
    return [dhash(frame) for frame in frames]


def hamming_distance(left: str, right: str, limit: int | None = None) -> int:
    """Count differing positions between two hashes.

    Extra trailing bits on the longer hash count as differences. With ``limit``
    set, counting stops as soon as the distance exceeds it, so the result is
    exact up to ``limit + 1``.
    """

    common = min(len(left), len(right))
    diff = 0
    for index in range(common):
        if left[index] != right[index]:
            diff += 1
            if limit is not None and diff > limit:
                return diff
    return diff + (len(left) - common) + (len(right) - common)
