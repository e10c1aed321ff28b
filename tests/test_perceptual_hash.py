import numpy as np

from sticker2gif.core.frames import Frame
from sticker2gif.core.perceptual_hash import HASH_BITS, dhash, hamming_distance

from frame_factory import marked_frame, solid


def test_uniform_frames_hash_identically_at_any_resolution():
    small = solid(50, 50, (255, 0, 0, 255))
    large = solid(200, 200, (255, 0, 0, 255))
    assert dhash(small) == dhash(large) == "0" * HASH_BITS


def test_identical_frames_share_a_hash():
    first = marked_frame([(0, 1), (3, 4)])
    second = marked_frame([(0, 1), (3, 4)])
    assert dhash(first) == dhash(second)
    assert len(dhash(first)) == 64


def test_marked_sample_sets_expected_bit():
    value = dhash(marked_frame([(2, 5)]))
    assert value[2 * 8 + 4] == "1"
    assert value.count("1") == 1


def test_horizontal_gradient_sets_every_bit():
    width, height = 90, 40
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    ramp = (np.arange(width) * 255 // (width - 1)).astype(np.uint8)
    pixels[:, :, 0] = ramp
    pixels[:, :, 1] = ramp
    pixels[:, :, 2] = ramp
    pixels[:, :, 3] = 255
    assert dhash(Frame(pixels)) == "1" * 64


def test_alpha_channel_is_ignored():
    opaque = solid(30, 30, (10, 20, 30, 255))
    clear = solid(30, 30, (10, 20, 30, 0))
    assert dhash(opaque) == dhash(clear)


def test_hamming_distance_is_symmetric_and_zero_for_identical():
    left = "1100110011"
    right = "1010101010"
    assert hamming_distance(left, left) == 0
    assert hamming_distance(left, right) == hamming_distance(right, left) == 5


def test_hamming_distance_stops_past_limit():
    assert hamming_distance("1111", "0000", limit=1) == 2
    assert hamming_distance("1111", "0000") == 4


def test_hamming_distance_counts_extra_length():
    assert hamming_distance("10", "101") == 1
    assert hamming_distance("101", "10") == 1
