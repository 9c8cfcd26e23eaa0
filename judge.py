# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Tap matching. Pairs a TapEvent (already converted to track time) with the nearest
#   untapped note in its lane and marks that note as tapped.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - There is no grading, scoring or miss detection here. A note that is never tapped
#   simply scrolls out of its visibility window.
# - The tolerance is a single symmetric window taken from configuration.
# - Scheduler owns the note list; TapJudge mutates notes only through NoteScheduler.mark_tapped.
#
########################
# Interfaces:
# Public classes:
# - class TapJudge
#   - __init__(note_scheduler: NoteScheduler, *, tolerance_seconds: float)
#   - on_tap(*, lane: int, track_time_seconds: float) -> Optional[TapJudgement]
#   - recent_judgements() -> list[TapJudgement]
#   - stray_tap_count() -> int
#
########################

from __future__ import annotations

import logging
from typing import List, Optional

import gameplay_models
import note_scheduler


logger = logging.getLogger(__name__)


class TapJudge:
    def __init__(self, note_scheduler_obj: note_scheduler.NoteScheduler, *, tolerance_seconds: float) -> None:
        if float(tolerance_seconds) < 0.0:
            raise ValueError(f"tolerance_seconds must be non-negative, got {tolerance_seconds}")
        self._note_scheduler = note_scheduler_obj
        self._tolerance_seconds = float(tolerance_seconds)
        self._recent_judgements: List[gameplay_models.TapJudgement] = []
        self._stray_tap_count = 0

    def recent_judgements(self) -> List[gameplay_models.TapJudgement]:
        return list(self._recent_judgements)

    def stray_tap_count(self) -> int:
        return self._stray_tap_count

    def on_tap(self, *, lane: int, track_time_seconds: float) -> Optional[gameplay_models.TapJudgement]:
        note = self._note_scheduler.find_nearest_untapped_note(
            lane=int(lane),
            target_time_seconds=float(track_time_seconds),
            max_window_seconds=self._tolerance_seconds,
        )
        if note is None:
            self._stray_tap_count += 1
            logger.debug("Stray tap lane=%d t=%.3f", int(lane), float(track_time_seconds))
            return None

        self._note_scheduler.mark_tapped(note)
        judgement = gameplay_models.TapJudgement(
            track_time_seconds=float(track_time_seconds),
            lane=int(lane),
            note_time_seconds=float(note.tap_time_seconds),
            delta_seconds=float(track_time_seconds) - float(note.tap_time_seconds),
        )
        self._recent_judgements.append(judgement)
        return judgement


def _run_unit_tests() -> None:
    beatmap = gameplay_models.Beatmap(
        tempo_bpm=120.0,
        notes=[gameplay_models.Note(lane=0, tap_time_seconds=1.0)],
        duration_seconds=3.0,
    )
    scheduler = note_scheduler.NoteScheduler(beatmap, travel_duration_seconds=1.5, judgement_ratio=0.8)
    engine = TapJudge(scheduler, tolerance_seconds=0.2)

    hit = engine.on_tap(lane=0, track_time_seconds=1.05)
    assert hit is not None
    assert abs(hit.delta_seconds - 0.05) < 1e-9
    assert beatmap.notes[0].has_been_tapped

    assert engine.on_tap(lane=0, track_time_seconds=1.0) is None
    assert engine.on_tap(lane=1, track_time_seconds=1.0) is None
    assert engine.stray_tap_count() == 2


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
