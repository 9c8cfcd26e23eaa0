from __future__ import annotations

import pytest

from gameplay_models import Beatmap, Note
from judge import TapJudge
from note_scheduler import NoteScheduler


def _judge(notes, tolerance=0.2):
    scheduler = NoteScheduler(
        Beatmap(tempo_bpm=105.0, notes=list(notes), duration_seconds=10.0),
        travel_duration_seconds=1.5,
        judgement_ratio=0.8,
    )
    return TapJudge(scheduler, tolerance_seconds=tolerance), scheduler


def test_tap_claims_nearest_note_once():
    notes = [Note(lane=2, tap_time_seconds=1.0), Note(lane=2, tap_time_seconds=1.15)]
    engine, scheduler = _judge(notes)

    first = engine.on_tap(lane=2, track_time_seconds=1.12)
    second = engine.on_tap(lane=2, track_time_seconds=1.12)

    assert first.note_time_seconds == 1.15
    assert first.delta_seconds == pytest.approx(-0.03)
    assert second.note_time_seconds == 1.0
    assert scheduler.tapped_count() == 2
    assert [j.note_time_seconds for j in engine.recent_judgements()] == [1.15, 1.0]


def test_stray_taps_are_counted_and_change_nothing():
    notes = [Note(lane=0, tap_time_seconds=1.0)]
    engine, scheduler = _judge(notes, tolerance=0.05)

    assert engine.on_tap(lane=0, track_time_seconds=1.2) is None
    assert engine.on_tap(lane=1, track_time_seconds=1.0) is None
    assert engine.stray_tap_count() == 2
    assert not notes[0].has_been_tapped


def test_zero_tolerance_requires_exact_time():
    notes = [Note(lane=0, tap_time_seconds=2.5)]
    engine, _ = _judge(notes, tolerance=0.0)

    assert engine.on_tap(lane=0, track_time_seconds=2.5001) is None
    assert engine.on_tap(lane=0, track_time_seconds=2.5) is not None


def test_negative_tolerance_is_rejected():
    with pytest.raises(ValueError):
        _judge([], tolerance=-0.1)
