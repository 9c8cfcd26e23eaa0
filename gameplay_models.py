# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models shared by the generator, the render loop and the host widget.
# - Defines sections, notes, the beatmap and tap events.
#
# Design notes:
# - No Qt usage. These are plain dataclasses.
# - Note is the only mutable model, and only its has_been_tapped flag changes after generation.
# - Beatmap keeps generation order. Nothing downstream may assume the note list is sorted by time.
#
########################
# Interfaces:
# Public dataclasses:
# - Section(start_beat: int, duration_beats: int, pattern_id: Hashable)
# - Note(lane: int, tap_time_seconds: float, has_been_tapped: bool = False)
# - Beatmap(tempo_bpm: float, notes: list[Note], duration_seconds: float)
# - TapEvent(timestamp: float, lane: int)
# - TapJudgement(track_time_seconds: float, lane: int, note_time_seconds: float, delta_seconds: float)
#
# Inputs/Outputs:
# - These types are exchanged between beatmap_generator, note_scheduler, judge, render_loop,
#   input_router and overlay_renderer.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, List


@dataclass(frozen=True)
class Section:
    start_beat: int
    duration_beats: int
    pattern_id: Hashable


@dataclass
class Note:
    lane: int
    tap_time_seconds: float
    has_been_tapped: bool = False


@dataclass(frozen=True)
class Beatmap:
    tempo_bpm: float
    notes: List[Note]
    duration_seconds: float


@dataclass(frozen=True)
class TapEvent:
    # Host clock base (same as TrackClock.now_fn), not track time.
    timestamp: float
    lane: int


@dataclass(frozen=True)
class TapJudgement:
    track_time_seconds: float
    lane: int
    note_time_seconds: float
    delta_seconds: float
