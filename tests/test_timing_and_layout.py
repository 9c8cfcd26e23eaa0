from __future__ import annotations

import pytest

from lane_layout import compute_lane_layout
from timing_model import TrackClock


class FakeNow:
    def __init__(self, *readings):
        self.readings = list(readings)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.readings.pop(0)


def test_clock_measures_elapsed_from_start():
    clock = TrackClock(FakeNow(50.0, 50.25, 52.0))

    assert clock.start() == 50.0
    assert clock.elapsed_seconds() == pytest.approx(0.25)
    assert clock.elapsed_seconds() == pytest.approx(2.0)


def test_clock_start_is_captured_once():
    clock = TrackClock(FakeNow(1.0, 2.0))
    clock.start()

    with pytest.raises(RuntimeError):
        clock.start()
    assert clock.start_timestamp() == 1.0


def test_clock_requires_start_before_reading_elapsed():
    clock = TrackClock(FakeNow(1.0))

    with pytest.raises(RuntimeError):
        clock.elapsed_seconds()


def test_clock_clamps_readings_before_start():
    clock = TrackClock(FakeNow(10.0, 9.5))
    clock.start()

    assert clock.elapsed_seconds() == 0.0
    assert clock.elapsed_at(8.0) == 0.0
    assert clock.elapsed_at(12.5) == pytest.approx(2.5)


def test_clock_propagates_backward_step_after_start():
    clock = TrackClock(FakeNow(0.0, 5.0, 4.0))
    clock.start()

    assert clock.elapsed_seconds() == pytest.approx(5.0)
    assert clock.elapsed_seconds() == pytest.approx(4.0)


def test_layout_centers_lanes_and_places_judgement_line():
    layout = compute_lane_layout(
        screen_width=1000.0,
        screen_height=2000.0,
        lane_count=5,
        lane_spacing=0.16,
        judgement_ratio=0.8,
    )

    assert layout.judgement_line_y == pytest.approx(1600.0)
    assert [layout.lane_center_x(lane) for lane in range(5)] == pytest.approx([180.0, 340.0, 500.0, 660.0, 820.0])
    assert layout.lane_left_x(0) == pytest.approx(100.0)
    assert layout.lane_right_x(4) == pytest.approx(900.0)
    assert layout.lane_right_x(0) - layout.lane_left_x(0) == pytest.approx(160.0)


def test_layout_is_pure():
    arguments = dict(screen_width=720.0, screen_height=1280.0, lane_count=4, lane_spacing=0.2, judgement_ratio=0.75)
    assert compute_lane_layout(**arguments) == compute_lane_layout(**arguments)


@pytest.mark.parametrize("width, height", [(0.0, 100.0), (100.0, 0.0), (-5.0, 100.0)])
def test_layout_rejects_empty_screen(width, height):
    with pytest.raises(ValueError):
        compute_lane_layout(screen_width=width, screen_height=height, lane_count=5, lane_spacing=0.16, judgement_ratio=0.8)
