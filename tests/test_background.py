import numpy as np

from sticker2gif.core.background import (
    DEFAULT_BACKGROUND,
    analyze_column_colors,
    color_to_string,
    detect_background_color,
    exact_column_scan,
    pick_sample_frame,
)
from sticker2gif.core.frames import Frame

from frame_factory import solid, with_rect

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def test_border_color_wins_over_content():
    frame = with_rect(10, 6, GREEN, 3, 2, 4, 2, RED)
    detection = detect_background_color(frame)

    assert detection.color == GREEN
    assert detection.total_samples == 2 * 10 + 2 * (6 - 2)
    assert detection.count == detection.total_samples
    assert detection.ratio == 1.0


def test_corners_are_counted_once():
    detection = detect_background_color(solid(3, 3, BLUE))
    assert detection.count == 8
    assert detection.total_samples == 8


def test_ties_go_to_first_color_in_scan_order():
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[0, :] = RED
    pixels[3, :] = BLUE
    pixels[1:3, 0] = GREEN
    pixels[1:3, 3] = GREEN
    detection = detect_background_color(Frame(pixels))

    assert detection.color == RED
    assert detection.count == 4


def test_empty_frame_falls_back_to_opaque_black():
    detection = detect_background_color(Frame(np.zeros((0, 0, 4), dtype=np.uint8)))
    assert detection.color == DEFAULT_BACKGROUND
    assert detection.ratio == 0.0


def test_sample_frame_defaults_to_middle_and_clamps():
    frames = [solid(2, 2, (index, 0, 0, 255)) for index in range(5)]
    assert pick_sample_frame(frames) is frames[2]
    assert pick_sample_frame(frames, 0) is frames[0]
    assert pick_sample_frame(frames, 99) is frames[4]


def test_color_to_string():
    assert color_to_string((1, 2, 3, 4)) == "rgba(1, 2, 3, 4)"


def test_column_analysis_counts_colors_across_frames():
    frames = [with_rect(6, 4, GREEN, 0, 0, 1, 1, RED), solid(6, 4, GREEN)]
    report = analyze_column_colors(frames, 0)

    assert report.distinct_colors == 2
    assert report.top_colors[0] == (GREEN, 7)
    assert report.top_colors[1] == (RED, 1)
    assert not report.is_single_color
    assert analyze_column_colors(frames, 5).is_single_color


def test_exact_column_scan_finds_first_varying_columns():
    frames = [with_rect(10, 5, GREEN, 3, 1, 4, 2, RED), solid(10, 5, GREEN)]
    assert exact_column_scan(frames) == (3, 6)
    assert exact_column_scan([solid(10, 5, GREEN)]) == (None, None)
