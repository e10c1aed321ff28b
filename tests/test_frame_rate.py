from sticker2gif.core.frame_rate import collect_run_lengths, estimate_frame_rate, typical_repeat

from frame_factory import marked_frame


def _distinct(count):
    return [marked_frame([(row, 1), (row, 3)]) for row in range(count)]


def _repeat(images, counts):
    frames = []
    for image, count in zip(images, counts):
        frames.extend([image] * count)
    return frames


def test_each_image_shown_three_times_gives_a_third_of_the_rate():
    frames = _repeat(_distinct(4), [3, 3, 3, 3])
    estimate = estimate_frame_rate(frames, 30)

    assert estimate is not None
    assert estimate.run_lengths == (3, 3, 3, 3)
    assert estimate.typical_repeat == 3
    assert estimate.recommended_rate == 10
    assert estimate.histogram == {3: 4}


def test_histogram_ties_prefer_shorter_runs():
    frames = _repeat(_distinct(4), [3, 2, 3, 2])
    estimate = estimate_frame_rate(frames, 30)

    assert estimate.typical_repeat == 2
    assert estimate.recommended_rate == 15
    assert estimate.mean_repeat == 2.5


def test_estimate_rounds_half_up():
    frames = _repeat(_distinct(2), [2, 2])
    estimate = estimate_frame_rate(frames, 15)

    assert estimate.estimated_rate == 7.5
    assert estimate.recommended_rate == 8


def test_recommended_rate_never_drops_below_one():
    frames = _repeat(_distinct(2), [3, 3])
    estimate = estimate_frame_rate(frames, 1)
    assert estimate.recommended_rate == 1


def test_no_repeats_keeps_captured_rate():
    assert estimate_frame_rate(_distinct(5), 30) is None


def test_single_frame_is_skipped():
    assert estimate_frame_rate(_distinct(1), 30) is None


def test_runs_break_only_on_dissimilar_transitions():
    hashes = ["0000", "0001", "0111", "0111"]
    assert collect_run_lengths(hashes, threshold=1) == [2, 2]
    assert collect_run_lengths(hashes, threshold=2) == [4]
    assert collect_run_lengths([]) == []


def test_typical_repeat_is_histogram_mode():
    assert typical_repeat([1, 4, 4, 2, 2, 4]) == 4
    assert typical_repeat([5, 1]) == 1
