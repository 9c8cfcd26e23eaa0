# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Own the beatmap notes during play and answer the per-frame questions about them:
#   which notes are on screen, how far along their travel they are, and which note a tap targets.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - visible_notes scans every note in generation order each frame.
# - The visibility window is an open interval. Boundary instants are not visible.
# - Per-lane lists sorted by (tap_time_seconds) are kept only for tap matching.
#
########################
# Interfaces:
# Public dataclasses:
# - VisibilityWindow(appear_time_seconds: float, disappear_time_seconds: float)
# - VisibleNote(note: Note, progress: float)
#
# Public functions:
# - visibility_window(tap_time_seconds, *, travel_duration_seconds, judgement_ratio) -> VisibilityWindow
# - note_progress(tap_time_seconds, elapsed_seconds, *, travel_duration_seconds, judgement_ratio) -> float
#
# Public classes:
# - class NoteScheduler
#   - __init__(beatmap: Beatmap, *, travel_duration_seconds: float, judgement_ratio: float)
#   - is_visible(note: Note, elapsed_seconds: float) -> bool
#   - visible_notes(*, elapsed_seconds: float) -> list[VisibleNote]
#   - find_nearest_untapped_note(*, lane: int, target_time_seconds: float, max_window_seconds: float) -> Optional[Note]
#   - mark_tapped(note: Note) -> None
#   - tapped_count() -> int
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from gameplay_models import Beatmap, Note


@dataclass(frozen=True)
class VisibilityWindow:
    appear_time_seconds: float
    disappear_time_seconds: float

    def contains(self, elapsed_seconds: float) -> bool:
        return self.appear_time_seconds < float(elapsed_seconds) < self.disappear_time_seconds


@dataclass(frozen=True)
class VisibleNote:
    note: Note
    progress: float


def visibility_window(
    tap_time_seconds: float,
    *,
    travel_duration_seconds: float,
    judgement_ratio: float,
) -> VisibilityWindow:
    travel = float(travel_duration_seconds)
    ratio = float(judgement_ratio)
    return VisibilityWindow(
        appear_time_seconds=float(tap_time_seconds) - travel * ratio,
        disappear_time_seconds=float(tap_time_seconds) + travel * (1.0 - ratio),
    )


def note_progress(
    tap_time_seconds: float,
    elapsed_seconds: float,
    *,
    travel_duration_seconds: float,
    judgement_ratio: float,
) -> float:
    """Fraction of the screen height covered by a note at elapsed_seconds.

    Equals judgement_ratio when elapsed_seconds == tap_time_seconds.
    """
    window = visibility_window(
        tap_time_seconds,
        travel_duration_seconds=travel_duration_seconds,
        judgement_ratio=judgement_ratio,
    )
    return (float(elapsed_seconds) - window.appear_time_seconds) / float(travel_duration_seconds)


class NoteScheduler:
    def __init__(self, beatmap: Beatmap, *, travel_duration_seconds: float, judgement_ratio: float) -> None:
        if not float(travel_duration_seconds) > 0.0:
            raise ValueError(f"travel_duration_seconds must be positive, got {travel_duration_seconds}")
        self._beatmap = beatmap
        self._travel_duration_seconds = float(travel_duration_seconds)
        self._judgement_ratio = float(judgement_ratio)
        self._tapped_count = 0

        self._lanes: Dict[int, List[Note]] = {}
        for note in beatmap.notes:
            self._lanes.setdefault(int(note.lane), []).append(note)
        for lane_list in self._lanes.values():
            lane_list.sort(key=lambda item: float(item.tap_time_seconds))

    def window_for(self, note: Note) -> VisibilityWindow:
        return visibility_window(
            note.tap_time_seconds,
            travel_duration_seconds=self._travel_duration_seconds,
            judgement_ratio=self._judgement_ratio,
        )

    def is_visible(self, note: Note, elapsed_seconds: float) -> bool:
        if note.has_been_tapped:
            return False
        return self.window_for(note).contains(elapsed_seconds)

    def visible_notes(self, *, elapsed_seconds: float) -> List[VisibleNote]:
        elapsed = float(elapsed_seconds)
        visible: List[VisibleNote] = []
        for note in self._beatmap.notes:
            if not self.is_visible(note, elapsed):
                continue
            window = self.window_for(note)
            progress = (elapsed - window.appear_time_seconds) / self._travel_duration_seconds
            visible.append(VisibleNote(note=note, progress=progress))
        return visible

    def find_nearest_untapped_note(
        self,
        *,
        lane: int,
        target_time_seconds: float,
        max_window_seconds: float,
    ) -> Optional[Note]:
        lane_list = self._lanes.get(int(lane), [])
        target = float(target_time_seconds)
        start = target - float(max_window_seconds)
        end = target + float(max_window_seconds)

        best_note: Optional[Note] = None
        best_abs_delta = float("inf")
        for candidate in lane_list:
            if candidate.has_been_tapped:
                continue
            note_time = float(candidate.tap_time_seconds)
            if note_time < start:
                continue
            if note_time > end:
                break
            abs_delta = abs(target - note_time)
            # Strict comparison keeps the earlier note on ties since the lane list is time sorted.
            if abs_delta < best_abs_delta:
                best_note = candidate
                best_abs_delta = abs_delta
        return best_note

    def mark_tapped(self, note: Note) -> None:
        if note.has_been_tapped:
            return
        note.has_been_tapped = True
        self._tapped_count += 1

    def tapped_count(self) -> int:
        return self._tapped_count


def _run_unit_tests() -> None:
    window = visibility_window(3.2, travel_duration_seconds=1.5, judgement_ratio=0.8)
    assert abs(window.appear_time_seconds - 2.0) < 1e-9
    assert abs(window.disappear_time_seconds - 3.5) < 1e-9
    assert not window.contains(window.appear_time_seconds)
    assert not window.contains(window.disappear_time_seconds)

    progress = note_progress(3.2, 3.2, travel_duration_seconds=1.5, judgement_ratio=0.8)
    assert abs(progress - 0.8) < 1e-9

    notes = [Note(lane=0, tap_time_seconds=1.0), Note(lane=0, tap_time_seconds=0.5), Note(lane=1, tap_time_seconds=1.0)]
    scheduler = NoteScheduler(
        Beatmap(tempo_bpm=120.0, notes=notes, duration_seconds=2.0),
        travel_duration_seconds=1.5,
        judgement_ratio=0.8,
    )
    nearest = scheduler.find_nearest_untapped_note(lane=0, target_time_seconds=0.9, max_window_seconds=0.2)
    assert nearest is notes[0]
    scheduler.mark_tapped(nearest)
    assert [v.note for v in scheduler.visible_notes(elapsed_seconds=0.7)] == [notes[1], notes[2]]


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
