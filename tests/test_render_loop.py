from __future__ import annotations

import logging

import pytest

from draw_surface import RecordingSurface
from gameplay_models import Beatmap, Note, TapEvent
from render_loop import Armed, RenderLoop, RenderSettings, SessionPhase, Unmeasured, WaitingForSong
from timing_model import TrackClock


class SteppedNow:
    """Host clock that only moves when told to and counts reads."""

    def __init__(self, start=100.0):
        self.value = float(start)
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.value


def _loop(notes, *, now=None, **kwargs):
    now = now or SteppedNow()
    beatmap = Beatmap(tempo_bpm=105.0, notes=list(notes), duration_seconds=30.0)
    return RenderLoop(beatmap, RenderSettings(), clock=TrackClock(now), **kwargs), now


CHROME_CALLS = 5 * 3 + 1


def test_frames_before_measurement_draw_nothing_and_never_read_the_clock():
    loop, now = _loop([Note(lane=0, tap_time_seconds=0.5)])
    surface = RecordingSurface()

    for _ in range(3):
        result = loop.on_frame(surface)
        assert result.should_continue
        assert result.elapsed_seconds is None

    assert surface.calls == []
    assert now.reads == 0
    assert isinstance(loop.state, Unmeasured)
    assert loop.phase == SessionPhase.UNMEASURED


def test_measurement_arms_clock_and_freezes_layout_once():
    loop, now = _loop([])

    loop.on_measured(1000.0, 2000.0)
    state = loop.state
    assert isinstance(state, Armed)
    assert state.start_timestamp == 100.0
    assert state.layout.judgement_line_y == pytest.approx(1600.0)
    assert loop.phase == SessionPhase.ARMED

    now.value = 105.0
    loop.on_measured(500.0, 500.0)
    assert loop.state is state


def test_empty_measurement_is_ignored():
    loop, now = _loop([])

    loop.on_measured(0.0, 0.0)
    assert isinstance(loop.state, Unmeasured)
    assert now.reads == 0


def test_lane_chrome_is_drawn_every_frame_after_measurement():
    loop, now = _loop([])
    loop.on_measured(1000.0, 2000.0)
    surface = RecordingSurface()

    result = loop.on_frame(surface)

    assert result.notes_drawn == 0
    assert len(surface.calls) == CHROME_CALLS
    rects = surface.calls_of_kind(RecordingSurface.RECT)
    assert len(rects) == 5
    assert rects[0].args == pytest.approx((100.0, 0.0, 260.0, 1600.0))
    judgement_line = surface.calls[-1]
    assert judgement_line.kind == RecordingSurface.LINE
    assert judgement_line.args == pytest.approx((0.0, 1600.0, 1000.0, 1600.0))
    assert loop.phase == SessionPhase.RUNNING


def test_note_is_drawn_on_judgement_line_at_its_tap_time():
    loop, now = _loop([Note(lane=4, tap_time_seconds=3.2)])
    loop.on_measured(1000.0, 2000.0)
    surface = RecordingSurface()

    now.value = 103.2
    result = loop.on_frame(surface)

    assert result.notes_drawn == 1
    assert result.elapsed_seconds == pytest.approx(3.2)
    fill, outline = surface.calls[CHROME_CALLS:]
    assert fill.kind == outline.kind == RecordingSurface.CIRCLE
    assert fill.stroke_width is None
    assert outline.stroke_width == 5.0
    assert fill.args == pytest.approx((820.0, 1600.0, 20.0))
    assert outline.args == fill.args


@pytest.mark.parametrize(
    "elapsed, expected_drawn",
    [(1.9, 0), (2.0 + 1e-6, 1), (3.5 - 1e-6, 1), (3.6, 0)],
)
def test_visibility_example_through_the_frame_pipeline(elapsed, expected_drawn):
    loop, now = _loop([Note(lane=0, tap_time_seconds=3.2)])
    loop.on_measured(1000.0, 2000.0)

    now.value = 100.0 + elapsed
    assert loop.on_frame(RecordingSurface()).notes_drawn == expected_drawn


def test_tap_marks_nearest_note_and_removes_it_from_the_playfield():
    notes = [Note(lane=1, tap_time_seconds=3.0), Note(lane=1, tap_time_seconds=3.4)]
    loop, now = _loop(notes, tap_tolerance_seconds=0.2)
    loop.on_measured(1000.0, 2000.0)

    judgement = loop.on_tap(TapEvent(timestamp=103.05, lane=1))

    assert judgement is not None
    assert judgement.note_time_seconds == 3.0
    assert judgement.delta_seconds == pytest.approx(0.05)
    assert notes[0].has_been_tapped
    assert not notes[1].has_been_tapped

    now.value = 103.1
    assert loop.on_frame(RecordingSurface()).notes_drawn == 1


def test_taps_outside_tolerance_or_lanes_are_ignored():
    notes = [Note(lane=1, tap_time_seconds=3.0)]
    loop, now = _loop(notes, tap_tolerance_seconds=0.1)
    loop.on_measured(1000.0, 2000.0)

    assert loop.on_tap(TapEvent(timestamp=103.5, lane=1)) is None
    assert loop.on_tap(TapEvent(timestamp=103.0, lane=0)) is None
    assert loop.on_tap(TapEvent(timestamp=103.0, lane=9)) is None
    assert not notes[0].has_been_tapped


def test_tap_on_lane_outside_playfield_is_logged(caplog):
    loop, now = _loop([Note(lane=1, tap_time_seconds=3.0)])
    loop.on_measured(1000.0, 2000.0)

    with caplog.at_level(logging.DEBUG, logger="render_loop"):
        assert loop.on_tap(TapEvent(timestamp=103.0, lane=7)) is None

    assert "outside the 5-lane playfield" in caplog.text
    assert loop.tap_judge.stray_tap_count() == 0


def test_taps_before_measurement_are_ignored():
    notes = [Note(lane=0, tap_time_seconds=0.0)]
    loop, now = _loop(notes)

    assert loop.on_tap(TapEvent(timestamp=100.0, lane=0)) is None
    assert not notes[0].has_been_tapped


def test_waiting_for_song_defers_clock_start_until_loaded():
    song_loaded = {"value": False}
    loop, now = _loop(
        [Note(lane=0, tap_time_seconds=0.5)],
        wait_for_song_loaded=True,
        song_loaded_provider=lambda: song_loaded["value"],
    )

    loop.on_measured(1000.0, 2000.0)
    assert isinstance(loop.state, WaitingForSong)
    assert loop.phase == SessionPhase.WAITING_FOR_SONG

    surface = RecordingSurface()
    result = loop.on_frame(surface)
    assert result.should_continue
    assert result.notes_drawn == 0
    assert len(surface.calls) == CHROME_CALLS
    assert now.reads == 0

    now.value = 140.0
    song_loaded["value"] = True
    surface.clear()
    result = loop.on_frame(surface)
    assert isinstance(loop.state, Armed)
    assert loop.state.start_timestamp == 140.0
    assert result.elapsed_seconds == 0.0
    assert result.notes_drawn == 1


def test_readiness_is_not_consulted_by_default():
    def not_loaded():
        raise AssertionError("readiness should not be queried")

    loop, now = _loop([], song_loaded_provider=not_loaded)
    loop.on_measured(1000.0, 2000.0)
    assert isinstance(loop.state, Armed)


def test_end_session_stops_the_loop():
    loop, now = _loop([Note(lane=0, tap_time_seconds=0.5)])
    loop.on_measured(1000.0, 2000.0)
    loop.end_session()

    surface = RecordingSurface()
    result = loop.on_frame(surface)
    assert not result.should_continue
    assert surface.calls == []
    assert loop.phase == SessionPhase.ENDED


def test_frames_keep_requesting_continuation_after_last_note():
    loop, now = _loop([Note(lane=0, tap_time_seconds=0.5)])
    loop.on_measured(1000.0, 2000.0)

    now.value = 10_000.0
    result = loop.on_frame(RecordingSurface())
    assert result.should_continue
    assert result.notes_drawn == 0


def test_judgement_ratio_must_be_inside_unit_interval():
    with pytest.raises(ValueError):
        RenderLoop(Beatmap(tempo_bpm=105.0, notes=[], duration_seconds=0.0), RenderSettings(judgement_ratio=1.0))
