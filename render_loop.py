# -*- coding: utf-8 -*-
########################
# render_loop.py
########################
# Purpose:
# - Frame-by-frame render and tap pipeline for one play session.
# - Turns the track clock plus the beatmap into primitive draw calls on a DrawSurface.
#
########################
# Key Logic:
# - Session state is an explicit value:
#   - Unmeasured: screen size unknown. on_frame draws nothing and never reads the clock.
#   - WaitingForSong: layout frozen, clock not started because the song is not loaded yet
#     (only with wait_for_song_loaded). Lane chrome is drawn, notes are not.
#   - Armed: layout frozen and start timestamp captured. The first drawn frame moves the
#     session phase to RUNNING.
# - on_measured is honoured once. The first valid size freezes the layout for the session.
# - Visibility uses an open interval around each note's tap time:
#     appear    = tap - travel * judgement_ratio
#     disappear = tap + travel * (1 - judgement_ratio)
#   and y = progress * screen_height, so at elapsed == tap a note sits on the judgement line.
# - on_frame returns FrameResult.should_continue. The host re-arms its own frame driver.
# - Taps are converted to track time with the same clock and matched by TapJudge.
#
########################
# Interfaces:
# Public enums:
# - class SessionPhase(enum.Enum): UNMEASURED | WAITING_FOR_SONG | ARMED | RUNNING | ENDED
#
# Public dataclasses:
# - Unmeasured(), WaitingForSong(layout), Armed(start_timestamp, layout)
# - PlayfieldStyle(lane_colors, chrome_color, note_fill_color, note_outline_color, note_radius_pixels,
#                  judgement_marker_radius_pixels, line_width_pixels)
# - RenderSettings(lane_count, lane_spacing, judgement_ratio, travel_duration_seconds, style)
# - FrameResult(should_continue: bool, elapsed_seconds: Optional[float], notes_drawn: int)
#
# Public classes:
# - class RenderLoop
#   - __init__(beatmap, settings, *, clock, tap_tolerance_seconds, song_loaded_provider, wait_for_song_loaded)
#   - state -> Unmeasured | WaitingForSong | Armed
#   - phase -> SessionPhase
#   - on_measured(screen_width: float, screen_height: float) -> None
#   - on_frame(surface: DrawSurface) -> FrameResult
#   - on_tap(tap_event: TapEvent) -> Optional[TapJudgement]
#   - end_session() -> None
#
# Inputs:
# - Beatmap from beatmap_generator, TrackClock, host measurement/frame/tap callbacks.
#
# Outputs:
# - Draw calls on the supplied DrawSurface and TapJudgement values.
#
########################

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union

import draw_surface
import gameplay_models
import judge
import lane_layout
import note_scheduler
import timing_model


logger = logging.getLogger(__name__)


DEFAULT_LANE_COLORS: Tuple[draw_surface.Color, ...] = (
    draw_surface.rgb(223, 227, 152, 200),
    draw_surface.rgb(152, 227, 178, 200),
    draw_surface.rgb(152, 183, 227, 200),
    draw_surface.rgb(212, 152, 227, 200),
    draw_surface.rgb(227, 152, 165, 200),
)


class SessionPhase(enum.Enum):
    UNMEASURED = "unmeasured"
    WAITING_FOR_SONG = "waiting_for_song"
    ARMED = "armed"
    RUNNING = "running"
    ENDED = "ended"


@dataclass(frozen=True)
class Unmeasured:
    pass


@dataclass(frozen=True)
class WaitingForSong:
    layout: lane_layout.VisualLaneLayout


@dataclass(frozen=True)
class Armed:
    start_timestamp: float
    layout: lane_layout.VisualLaneLayout


SessionState = Union[Unmeasured, WaitingForSong, Armed]


@dataclass(frozen=True)
class PlayfieldStyle:
    lane_colors: Tuple[draw_surface.Color, ...] = DEFAULT_LANE_COLORS
    chrome_color: draw_surface.Color = draw_surface.WHITE
    note_fill_color: draw_surface.Color = draw_surface.RED
    note_outline_color: draw_surface.Color = draw_surface.BLACK
    note_radius_pixels: float = 20.0
    judgement_marker_radius_pixels: float = 20.0
    line_width_pixels: float = 5.0

    def lane_color(self, lane: int) -> draw_surface.Color:
        return self.lane_colors[int(lane) % len(self.lane_colors)]


@dataclass(frozen=True)
class RenderSettings:
    lane_count: int = 5
    lane_spacing: float = 0.16
    # Shared by the judgement line position and the note travel math.
    judgement_ratio: float = 0.8
    travel_duration_seconds: float = 1.5
    style: PlayfieldStyle = field(default_factory=PlayfieldStyle)


@dataclass(frozen=True)
class FrameResult:
    should_continue: bool
    elapsed_seconds: Optional[float] = None
    notes_drawn: int = 0


def _always_loaded() -> bool:
    return True


class RenderLoop:
    def __init__(
        self,
        beatmap: gameplay_models.Beatmap,
        settings: Optional[RenderSettings] = None,
        *,
        clock: Optional[timing_model.TrackClock] = None,
        tap_tolerance_seconds: float = 0.2,
        song_loaded_provider: Optional[Callable[[], bool]] = None,
        wait_for_song_loaded: bool = False,
    ) -> None:
        self._settings = settings or RenderSettings()
        if not 0.0 < float(self._settings.judgement_ratio) < 1.0:
            raise ValueError(f"judgement_ratio must be inside (0, 1), got {self._settings.judgement_ratio}")

        self._clock = clock or timing_model.TrackClock()
        self._song_loaded_provider = song_loaded_provider or _always_loaded
        self._wait_for_song_loaded = bool(wait_for_song_loaded)

        self._note_scheduler = note_scheduler.NoteScheduler(
            beatmap,
            travel_duration_seconds=float(self._settings.travel_duration_seconds),
            judgement_ratio=float(self._settings.judgement_ratio),
        )
        self._tap_judge = judge.TapJudge(self._note_scheduler, tolerance_seconds=float(tap_tolerance_seconds))

        self._state: SessionState = Unmeasured()
        self._frames_drawn = 0
        self._is_active = True

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        if not self._is_active:
            return SessionPhase.ENDED
        if isinstance(self._state, Unmeasured):
            return SessionPhase.UNMEASURED
        if isinstance(self._state, WaitingForSong):
            return SessionPhase.WAITING_FOR_SONG
        return SessionPhase.RUNNING if self._frames_drawn > 0 else SessionPhase.ARMED

    @property
    def note_scheduler(self) -> note_scheduler.NoteScheduler:
        return self._note_scheduler

    @property
    def tap_judge(self) -> judge.TapJudge:
        return self._tap_judge

    @property
    def clock(self) -> timing_model.TrackClock:
        return self._clock

    def end_session(self) -> None:
        if self._is_active:
            logger.info("Session ended after %d frames", self._frames_drawn)
        self._is_active = False

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def on_measured(self, screen_width: float, screen_height: float) -> None:
        if not isinstance(self._state, Unmeasured):
            logger.debug("Ignoring repeated measurement %sx%s", screen_width, screen_height)
            return
        if float(screen_width) <= 0.0 or float(screen_height) <= 0.0:
            logger.debug("Ignoring empty measurement %sx%s", screen_width, screen_height)
            return

        layout = lane_layout.compute_lane_layout(
            screen_width=float(screen_width),
            screen_height=float(screen_height),
            lane_count=int(self._settings.lane_count),
            lane_spacing=float(self._settings.lane_spacing),
            judgement_ratio=float(self._settings.judgement_ratio),
        )
        logger.info("Playfield measured at %dx%d", int(screen_width), int(screen_height))

        if self._wait_for_song_loaded and not self._song_loaded_provider():
            logger.info("Waiting for song to finish loading before starting the track clock")
            self._state = WaitingForSong(layout=layout)
            return
        self._arm(layout)

    def on_frame(self, surface: draw_surface.DrawSurface) -> FrameResult:
        if not self._is_active:
            return FrameResult(should_continue=False)

        state = self._state
        if isinstance(state, Unmeasured):
            return FrameResult(should_continue=True)

        if isinstance(state, WaitingForSong):
            if not self._song_loaded_provider():
                self._draw_lane_chrome(surface, state.layout)
                return FrameResult(should_continue=True)
            self._arm(state.layout)
            state = self._state

        assert isinstance(state, Armed)
        elapsed_seconds = self._clock.elapsed_seconds()
        self._draw_lane_chrome(surface, state.layout)
        notes_drawn = self._draw_notes(surface, state.layout, elapsed_seconds)
        self._frames_drawn += 1
        return FrameResult(should_continue=True, elapsed_seconds=elapsed_seconds, notes_drawn=notes_drawn)

    def on_tap(self, tap_event: gameplay_models.TapEvent) -> Optional[gameplay_models.TapJudgement]:
        if not self._is_active or not isinstance(self._state, Armed):
            logger.debug("Ignoring tap on lane %d before the track clock started", int(tap_event.lane))
            return None
        lane = int(tap_event.lane)
        if lane < 0 or lane >= int(self._settings.lane_count):
            logger.debug("Ignoring tap on lane %d outside the %d-lane playfield", lane, int(self._settings.lane_count))
            return None
        track_time_seconds = self._clock.elapsed_at(float(tap_event.timestamp))
        return self._tap_judge.on_tap(lane=lane, track_time_seconds=track_time_seconds)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _arm(self, layout: lane_layout.VisualLaneLayout) -> None:
        start_timestamp = self._clock.start()
        self._state = Armed(start_timestamp=start_timestamp, layout=layout)
        logger.info("Track clock armed at %.3f", start_timestamp)

    def _draw_lane_chrome(self, surface: draw_surface.DrawSurface, layout: lane_layout.VisualLaneLayout) -> None:
        style = self._settings.style
        judgement_y = layout.judgement_line_y

        for lane in range(int(layout.lane_count)):
            center_x = layout.lane_center_x(lane)
            surface.fill_rect(layout.lane_left_x(lane), 0.0, layout.lane_right_x(lane), judgement_y, style.lane_color(lane))
            surface.draw_circle(center_x, judgement_y, float(style.judgement_marker_radius_pixels), style.chrome_color)
            surface.draw_line(center_x, 0.0, center_x, judgement_y, style.chrome_color, width=float(style.line_width_pixels))

        surface.draw_line(
            0.0,
            judgement_y,
            layout.screen_width,
            judgement_y,
            style.chrome_color,
            width=float(style.line_width_pixels),
        )

    def _draw_notes(
        self,
        surface: draw_surface.DrawSurface,
        layout: lane_layout.VisualLaneLayout,
        elapsed_seconds: float,
    ) -> int:
        style = self._settings.style
        radius = float(style.note_radius_pixels)
        notes_drawn = 0

        for visible in self._note_scheduler.visible_notes(elapsed_seconds=elapsed_seconds):
            lane = int(visible.note.lane)
            if lane < 0 or lane >= int(layout.lane_count):
                continue
            x = layout.lane_center_x(lane)
            y = visible.progress * layout.screen_height
            surface.draw_circle(x, y, radius, style.note_fill_color)
            surface.draw_circle(x, y, radius, style.note_outline_color, stroke_width=float(style.line_width_pixels))
            notes_drawn += 1

        return notes_drawn


def _run_unit_tests() -> None:
    readings = [100.0, 103.2]
    clock = timing_model.TrackClock(lambda: readings.pop(0))
    beatmap = gameplay_models.Beatmap(
        tempo_bpm=105.0,
        notes=[gameplay_models.Note(lane=2, tap_time_seconds=3.2)],
        duration_seconds=4.0,
    )
    loop = RenderLoop(beatmap, clock=clock)
    surface = draw_surface.RecordingSurface()

    assert loop.on_frame(surface).should_continue
    assert surface.calls == []

    loop.on_measured(1000.0, 500.0)
    result = loop.on_frame(surface)
    assert result.notes_drawn == 1
    note_circle = surface.calls_of_kind(draw_surface.RecordingSurface.CIRCLE)[-1]
    assert abs(note_circle.args[1] - 400.0) < 1e-6
    assert loop.phase == SessionPhase.RUNNING


if __name__ == "__main__":
    _run_unit_tests()
    print("render_loop.py: ok")
