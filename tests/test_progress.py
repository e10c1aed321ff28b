import logging
import math

from sticker2gif.core.progress import ProgressCoordinator, ProgressStep, default_steps


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_default_steps_cover_the_pipeline_and_sum_to_one():
    steps = default_steps()
    assert [step.name for step in steps] == [
        "videoToFrames",
        "cycleDetect",
        "frameRateDetect",
        "backgroundDetect",
        "crop",
        "resize",
        "colorReplacement",
        "framesToGif",
    ]
    assert abs(sum(step.weight for step in steps) - 1) < 1e-9


def test_progress_is_monotonic_and_ends_at_100():
    values = []
    coordinator = ProgressCoordinator(default_steps(), values.append)
    for _ in default_steps():
        coordinator.start_next_step()
        coordinator.update_step_progress(50)
        coordinator.complete_current_step()

    assert values == sorted(values)
    assert values[-1] == 100
    assert coordinator.progress == 100


def test_step_progress_is_weighted_and_floored():
    values = []
    coordinator = ProgressCoordinator([ProgressStep("a", 0.9), ProgressStep("b", 0.1)], values.append)
    coordinator.start_next_step()
    coordinator.update_step_progress(33.3)
    coordinator.complete_current_step()
    coordinator.start_next_step()
    coordinator.update_step_progress(250)

    assert values == [29, 90, 100]


def test_weights_off_by_more_than_tolerance_only_warn(caplog):
    with caplog.at_level(logging.WARNING):
        coordinator = ProgressCoordinator([ProgressStep("a", 0.5)])
    assert "Step weights should sum to 1" in caplog.text
    assert coordinator.start_next_step().name == "a"


def test_starting_past_the_last_step_is_a_no_op(caplog):
    values = []
    coordinator = ProgressCoordinator([ProgressStep("only", 1.0)], values.append)
    coordinator.start_next_step()
    coordinator.complete_current_step()

    with caplog.at_level(logging.WARNING):
        assert coordinator.start_next_step() is None
    coordinator.update_step_progress(50)

    assert "All steps already completed" in caplog.text
    assert values == [100]
    assert coordinator.current_step is None


def test_timing_stats_use_the_injected_clock():
    clock = FakeClock()
    coordinator = ProgressCoordinator([ProgressStep("a", 0.5), ProgressStep("b", 0.5), ProgressStep("c", 0)], clock=clock)
    coordinator.start_next_step()
    clock.now = 2.0
    coordinator.complete_current_step()
    coordinator.start_next_step()
    clock.now = 5.0
    coordinator.complete_current_step()

    stats = coordinator.timing_stats()
    assert [(timing.name, timing.duration_ms, timing.percentage) for timing in stats] == [
        ("a", 2000.0, 40.0),
        ("b", 3000.0, 60.0),
    ]


def test_reset_starts_over():
    values = []
    coordinator = ProgressCoordinator([ProgressStep("a", 1.0)], values.append)
    coordinator.start_next_step()
    coordinator.complete_current_step()
    coordinator.reset()

    assert values == [100, 0]
    assert coordinator.current_step is None
    assert coordinator.timing_stats() == []
    assert coordinator.start_next_step().name == "a"


def test_format_duration():
    assert ProgressCoordinator.format_duration(500) == "500ms"
    assert ProgressCoordinator.format_duration(1500) == "1.50s"
    assert ProgressCoordinator.format_duration(61500) == "1m 1.5s"


def test_progress_is_floored_without_rounding_up():
    values = []
    coordinator = ProgressCoordinator([ProgressStep("a", 0.3), ProgressStep("b", 0.7)], values.append)
    coordinator.start_next_step()
    coordinator.update_step_progress(99.9999999)

    assert values == [29]


def test_finishing_the_last_step_reports_100_despite_float_noise():
    values = []
    steps = [ProgressStep("a", 0.7), ProgressStep("b", 0.2), ProgressStep("c", 0.1)]
    coordinator = ProgressCoordinator(steps, values.append)
    for _ in steps:
        coordinator.start_next_step()
        coordinator.complete_current_step()

    assert math.floor(sum(step.weight for step in steps) * 100) == 99
    assert values == sorted(values)
    assert values[-1] == 100


def test_short_weight_table_is_not_rounded_up_to_100():
    coordinator = ProgressCoordinator([ProgressStep("a", 0.5)])
    coordinator.start_next_step()
    coordinator.complete_current_step()
    assert coordinator.progress == 50
