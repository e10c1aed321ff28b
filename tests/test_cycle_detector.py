from sticker2gif.core.cycle_detector import CycleParams, detect_cycles, trim_to_first_cycle

from frame_factory import marked_frame, solid, step_frames

STEPS = step_frames()


def _period(count):
    # Each frame sets two bits on its own row: any two differ by exactly four bits.
    return [marked_frame([(row, 1), (row, 3)]) for row in range(count)]


def test_loop_starting_twice_is_found_at_start():
    frames = STEPS + STEPS[:3] + STEPS[3:5]
    boundaries = detect_cycles(frames, CycleParams(frame_rate=10, min_cycle_time_ms=0))

    assert len(boundaries) == 1
    first = boundaries[0]
    assert first.start_frame == 0
    assert first.end_frame == 4
    assert first.frame_count == 5
    assert first.start_ms == 0
    assert first.end_ms == 400
    assert first.cycle_duration_ms == 500


def test_repeating_sequence_reports_its_period():
    pattern = _period(6)
    frames = [pattern[index % 6] for index in range(24)]
    boundaries = detect_cycles(frames, CycleParams(frame_rate=10))

    assert boundaries
    assert boundaries[0].start_frame == 0
    assert boundaries[0].frame_count == 6
    assert all(boundary.frame_count == 6 for boundary in boundaries)
    starts = [boundary.start_frame for boundary in boundaries]
    assert starts == sorted(starts)


def test_min_cycle_time_pushes_match_to_a_later_repeat():
    pattern = _period(6)
    frames = [pattern[index % 6] for index in range(30)]
    boundaries = detect_cycles(frames, CycleParams(frame_rate=10, min_cycle_time_ms=1000))

    assert boundaries[0].frame_count == 12
    assert boundaries[0].cycle_duration_ms >= 1000


def test_sudden_jump_inside_candidate_loop_is_rejected():
    steady = solid(200, 200)
    jump = marked_frame([(row, 1) for row in range(8)])
    frames = [steady, jump, steady, steady, steady]
    params = CycleParams(frame_rate=10, consecutive_match=1, min_cycle_time_ms=0)

    boundaries = detect_cycles(frames, params)

    assert boundaries[0].start_frame == 2
    assert boundaries[0].end_frame == 2


def test_no_repeats_means_no_boundaries_and_full_sequence_kept():
    frames = [marked_frame([(row, 1), (row, 3), (row, 5), (row, 7)]) for row in range(8)]
    boundaries = detect_cycles(frames, CycleParams(frame_rate=10, min_cycle_time_ms=0))

    assert boundaries == []
    assert trim_to_first_cycle(frames, boundaries) == frames


def test_trim_keeps_first_loop_inclusive():
    frames = STEPS + STEPS[:3] + STEPS[3:5]
    boundaries = detect_cycles(frames, CycleParams(frame_rate=10, min_cycle_time_ms=0))
    trimmed = trim_to_first_cycle(frames, boundaries)
    assert trimmed == STEPS


def test_precomputed_hashes_and_checkpoint_are_used():
    calls = []
    frames = STEPS + STEPS[:3] + STEPS[3:5]
    hashes = ["0" * 64] * len(frames)
    boundaries = detect_cycles(
        frames,
        CycleParams(frame_rate=10, min_cycle_time_ms=0),
        hashes=hashes,
        checkpoint=lambda: calls.append(1),
    )
    # Identical hashes match at the minimum offset.
    assert boundaries[0].frame_count == 3
    assert calls


def test_too_few_frames_yield_nothing():
    assert detect_cycles(STEPS[:3], CycleParams(frame_rate=10, min_cycle_time_ms=0)) == []
    assert detect_cycles([], CycleParams(frame_rate=10)) == []
