# -*- coding: utf-8 -*-
########################
# beatmap_generator.py
########################
# Purpose:
# - Expand a compact musical description (tempo, sections, sixteenth-note patterns) into a Beatmap.
# - Ships the default song table used by the game when no other description is supplied.
#
# Design notes:
# - No Qt usage. Pure and deterministic apart from lane draws on the injected rng.
# - All configuration errors are raised before the first note is produced.
# - A section whose duration is not a multiple of 4 beats overruns into its last full measure.
#   This mirrors the authoring table and is not truncated.
#
########################
# Interfaces:
# Public enums:
# - class PatternId(enum.Enum): SILENCE | SYNCOPATED | QUARTER | SYNCOPATED_DENSE | ACCENTED | HALF
#
# Public constants:
# - SIXTEENTH_NOTE_PATTERNS: dict[PatternId, tuple[int, ...]]
# - DEFAULT_SECTIONS: tuple[Section, ...]
# - DEFAULT_TEMPO_BPM, DEFAULT_SONG_BEATS, DEFAULT_LANE_COUNT
#
# Public exceptions:
# - class BeatmapConfigError(ValueError)
#
# Public functions:
# - generate_beatmap(*, tempo_bpm, sections, patterns, lane_count, rng) -> Beatmap
# - generate_default_beatmap(*, seed, tempo_bpm, lane_count) -> GeneratedBeatmap
#
########################

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Hashable, List, Mapping, Optional, Sequence

from gameplay_models import Beatmap, Note, Section


logger = logging.getLogger(__name__)

BEATS_PER_MEASURE = 4
SIXTEENTHS_PER_BEAT = 4
SIXTEENTHS_PER_MEASURE = BEATS_PER_MEASURE * SIXTEENTHS_PER_BEAT

DEFAULT_TEMPO_BPM = 105.0
DEFAULT_SONG_BEATS = 336
DEFAULT_LANE_COUNT = 5


class PatternId(enum.Enum):
    SILENCE = "silence"
    SYNCOPATED = "syncopated"
    QUARTER = "quarter"
    SYNCOPATED_DENSE = "syncopated_dense"
    ACCENTED = "accented"
    HALF = "half"


SIXTEENTH_NOTE_PATTERNS = {
    PatternId.SILENCE: (),
    PatternId.SYNCOPATED: (0, 2, 3, 5, 6, 8, 10, 12, 14),
    PatternId.QUARTER: (0, 4, 8, 12),
    PatternId.SYNCOPATED_DENSE: (0, 2, 3, 5, 6, 8, 10, 11, 13, 14),
    PatternId.ACCENTED: (0, 2, 3, 8, 12),
    PatternId.HALF: (0, 8),
}

DEFAULT_SECTIONS = (
    Section(start_beat=0, duration_beats=16, pattern_id=PatternId.SILENCE),
    Section(start_beat=16, duration_beats=32, pattern_id=PatternId.QUARTER),
    Section(start_beat=48, duration_beats=32, pattern_id=PatternId.SYNCOPATED_DENSE),
    Section(start_beat=80, duration_beats=32, pattern_id=PatternId.SYNCOPATED),
    Section(start_beat=112, duration_beats=32, pattern_id=PatternId.ACCENTED),
    Section(start_beat=144, duration_beats=32, pattern_id=PatternId.SYNCOPATED),
    Section(start_beat=176, duration_beats=64, pattern_id=PatternId.SYNCOPATED_DENSE),
    Section(start_beat=240, duration_beats=32, pattern_id=PatternId.SYNCOPATED),
    Section(start_beat=272, duration_beats=32, pattern_id=PatternId.QUARTER),
    Section(start_beat=306, duration_beats=32, pattern_id=PatternId.HALF),
)


class BeatmapConfigError(ValueError):
    """Raised when the musical description cannot produce a valid beatmap."""


@dataclass(frozen=True)
class GeneratedBeatmap:
    beatmap: Beatmap
    seed: int


def seconds_per_beat(tempo_bpm: float) -> float:
    return 60.0 / float(tempo_bpm)


def _validate(
    *,
    tempo_bpm: float,
    sections: Sequence[Section],
    patterns: Mapping[Hashable, Sequence[int]],
    lane_count: int,
) -> None:
    if not float(tempo_bpm) > 0.0:
        raise BeatmapConfigError(f"tempo_bpm must be positive, got {tempo_bpm!r}")
    if int(lane_count) <= 0:
        raise BeatmapConfigError(f"lane_count must be positive, got {lane_count!r}")

    for section_index, section in enumerate(sections):
        if int(section.start_beat) < 0:
            raise BeatmapConfigError(f"Section {section_index} has negative start_beat {section.start_beat}")
        if int(section.duration_beats) < 0:
            raise BeatmapConfigError(f"Section {section_index} has negative duration_beats {section.duration_beats}")
        if section.pattern_id not in patterns:
            raise BeatmapConfigError(f"Section {section_index} references unknown pattern {section.pattern_id!r}")

        for offset in patterns[section.pattern_id]:
            if not 0 <= int(offset) < SIXTEENTHS_PER_MEASURE:
                raise BeatmapConfigError(
                    f"Pattern {section.pattern_id!r} has offset {offset} outside 0..{SIXTEENTHS_PER_MEASURE - 1}"
                )


def generate_beatmap(
    *,
    tempo_bpm: float,
    sections: Sequence[Section],
    patterns: Mapping[Hashable, Sequence[int]],
    lane_count: int,
    rng: random.Random,
) -> Beatmap:
    """Walk every section in measure strides and emit one note per pattern offset.

    Lanes are drawn with rng.randrange(lane_count), one independent draw per note
    in generation order, so a seeded rng reproduces the lane sequence too.
    """
    _validate(tempo_bpm=tempo_bpm, sections=sections, patterns=patterns, lane_count=lane_count)

    beat_seconds = seconds_per_beat(tempo_bpm)
    notes: List[Note] = []
    last_beat = 0

    for section in sections:
        offsets = patterns[section.pattern_id]
        beats_used = 0
        while beats_used < int(section.duration_beats):
            stride_start = int(section.start_beat) + beats_used
            for offset in offsets:
                beat_position = stride_start + int(offset) / float(SIXTEENTHS_PER_BEAT)
                tap_time_seconds = beat_position * beat_seconds
                lane = int(rng.randrange(int(lane_count)))
                notes.append(Note(lane=lane, tap_time_seconds=float(tap_time_seconds)))
            beats_used += BEATS_PER_MEASURE
        last_beat = max(last_beat, int(section.start_beat) + beats_used)

    duration_seconds = float(last_beat * beat_seconds)
    logger.info(
        "Generated beatmap: %d notes over %d sections (tempo=%.1f bpm, %.1f s)",
        len(notes),
        len(sections),
        float(tempo_bpm),
        duration_seconds,
    )
    return Beatmap(tempo_bpm=float(tempo_bpm), notes=notes, duration_seconds=duration_seconds)


def generate_default_beatmap(
    *,
    seed: Optional[int] = None,
    tempo_bpm: float = DEFAULT_TEMPO_BPM,
    lane_count: int = DEFAULT_LANE_COUNT,
) -> GeneratedBeatmap:
    # Without a configured seed every session gets fresh lanes, but the seed is still
    # reported so a session can be replayed.
    effective_seed = int(seed) if seed is not None else random.SystemRandom().randrange(2**63)
    beatmap = generate_beatmap(
        tempo_bpm=tempo_bpm,
        sections=DEFAULT_SECTIONS,
        patterns=SIXTEENTH_NOTE_PATTERNS,
        lane_count=lane_count,
        rng=random.Random(effective_seed),
    )
    return GeneratedBeatmap(beatmap=beatmap, seed=effective_seed)


def _run_unit_tests() -> None:
    beatmap = generate_beatmap(
        tempo_bpm=105.0,
        sections=[Section(start_beat=0, duration_beats=16, pattern_id="quarter")],
        patterns={"quarter": (0, 4, 8, 12)},
        lane_count=5,
        rng=random.Random(7),
    )
    assert len(beatmap.notes) == 16
    for beat, note in enumerate(beatmap.notes):
        assert abs(note.tap_time_seconds - beat * 60.0 / 105.0) < 1e-9
        assert 0 <= note.lane < 5

    try:
        generate_beatmap(
            tempo_bpm=105.0,
            sections=[Section(start_beat=0, duration_beats=4, pattern_id="missing")],
            patterns={},
            lane_count=5,
            rng=random.Random(7),
        )
    except BeatmapConfigError:
        pass
    else:
        raise AssertionError("Expected BeatmapConfigError for unknown pattern")

    first = generate_default_beatmap(seed=11)
    second = generate_default_beatmap(seed=11)
    assert [(n.lane, n.tap_time_seconds) for n in first.beatmap.notes] == [
        (n.lane, n.tap_time_seconds) for n in second.beatmap.notes
    ]


if __name__ == "__main__":
    _run_unit_tests()
    print("beatmap_generator.py: ok")
