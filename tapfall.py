"""
tapfall.py

Real entrypoint that launches the game. Supports a headless mode for offline checks.

Integration
- Loads config and sets up logging
- Generates the beatmap from the default song table
- Creates QApplication and the gameplay overlay window
- Headless mode drives the same RenderLoop with a simulated clock and a RecordingSurface
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import beatmap_generator
import draw_surface
import gameplay_models
import render_loop
import timing_model
from config import AppConfig, load_config, to_json
from logging_setup import setup_logging


logger = logging.getLogger("tapfall")


class _SimulatedClockSource:
    """Manually advanced host clock for headless runs."""

    def __init__(self, start_seconds: float = 0.0) -> None:
        self._now_seconds = float(start_seconds)

    def __call__(self) -> float:
        return self._now_seconds

    def advance(self, seconds: float) -> None:
        self._now_seconds += float(seconds)


@dataclass
class _HeadlessStats:
    frames: int = 0
    max_notes_on_screen: int = 0
    notes_drawn_total: int = 0
    last_frame_draw_calls: int = 0
    final_elapsed_seconds: float = 0.0


def _render_settings_from_config(app_config: AppConfig) -> render_loop.RenderSettings:
    playfield = app_config.playfield
    return render_loop.RenderSettings(
        lane_count=int(playfield.lane_count),
        lane_spacing=float(playfield.lane_spacing_ratio),
        judgement_ratio=float(playfield.judgement_ratio),
        travel_duration_seconds=float(playfield.travel_duration_seconds),
        style=render_loop.PlayfieldStyle(note_radius_pixels=float(playfield.note_radius_pixels)),
    )


def build_render_loop(
    app_config: AppConfig,
    *,
    seed: Optional[int] = None,
    clock: Optional[timing_model.TrackClock] = None,
) -> tuple[render_loop.RenderLoop, beatmap_generator.GeneratedBeatmap]:
    effective_seed = seed if seed is not None else app_config.track.seed
    generated = beatmap_generator.generate_default_beatmap(
        seed=effective_seed,
        tempo_bpm=float(app_config.track.tempo_bpm),
        lane_count=int(app_config.playfield.lane_count),
    )
    logger.info("Beatmap seed %d", generated.seed)

    loop = render_loop.RenderLoop(
        generated.beatmap,
        _render_settings_from_config(app_config),
        clock=clock,
        tap_tolerance_seconds=float(app_config.judge.tap_tolerance_seconds),
        # No audio subsystem is wired in this build, so the song always reports loaded.
        song_loaded_provider=lambda: True,
        wait_for_song_loaded=bool(app_config.session.wait_for_song_loaded),
    )
    return loop, generated


def run_headless(
    app_config: AppConfig,
    *,
    frame_count: int,
    seed: Optional[int] = None,
    autoplay: bool = False,
    screen_width: float = 1080.0,
    screen_height: float = 1920.0,
) -> Dict[str, Any]:
    clock_source = _SimulatedClockSource()
    loop, generated = build_render_loop(app_config, seed=seed, clock=timing_model.TrackClock(clock_source))
    frame_seconds = max(1, int(app_config.playfield.frame_interval_ms)) / 1000.0

    loop.on_measured(screen_width, screen_height)
    surface = draw_surface.RecordingSurface()
    stats = _HeadlessStats()

    # Autoplay taps every note exactly on time, in tap-time order.
    pending_taps: List[gameplay_models.Note] = sorted(
        generated.beatmap.notes, key=lambda item: float(item.tap_time_seconds)
    )
    tap_index = 0

    for _frame_index in range(int(frame_count)):
        if autoplay and loop.clock.is_started():
            elapsed_now = loop.clock.elapsed_seconds()
            while tap_index < len(pending_taps) and pending_taps[tap_index].tap_time_seconds <= elapsed_now:
                note = pending_taps[tap_index]
                loop.on_tap(
                    gameplay_models.TapEvent(
                        timestamp=loop.clock.start_timestamp() + float(note.tap_time_seconds),
                        lane=int(note.lane),
                    )
                )
                tap_index += 1

        surface.clear()
        result = loop.on_frame(surface)
        stats.frames += 1
        stats.notes_drawn_total += int(result.notes_drawn)
        stats.max_notes_on_screen = max(stats.max_notes_on_screen, int(result.notes_drawn))
        stats.last_frame_draw_calls = len(surface.calls)
        if result.elapsed_seconds is not None:
            stats.final_elapsed_seconds = float(result.elapsed_seconds)
        if not result.should_continue:
            break
        clock_source.advance(frame_seconds)

    return {
        "ok": True,
        "seed": int(generated.seed),
        "notes_total": len(generated.beatmap.notes),
        "track_duration_seconds": float(generated.beatmap.duration_seconds),
        "frames": stats.frames,
        "final_elapsed_seconds": stats.final_elapsed_seconds,
        "max_notes_on_screen": stats.max_notes_on_screen,
        "notes_drawn_total": stats.notes_drawn_total,
        "last_frame_draw_calls": stats.last_frame_draw_calls,
        "notes_tapped": loop.note_scheduler.tapped_count(),
        "stray_taps": loop.tap_judge.stray_tap_count(),
        "max_abs_tap_delta_seconds": max(
            (abs(float(item.delta_seconds)) for item in loop.tap_judge.recent_judgements()),
            default=0.0,
        ),
        "phase": loop.phase.value,
    }


def show_overlay_widget(overlay_widget: Any, *, fullscreen: bool) -> None:
    # The first show measures the playfield and freezes the layout, so the window
    # must already have its final size when it is shown.
    if fullscreen:
        overlay_widget.showFullScreen()
        return
    overlay_widget.resize(540, 960)
    overlay_widget.show()


def _run_windowed(app_config: AppConfig, *, seed: Optional[int], fullscreen: bool) -> int:
    from PyQt6.QtWidgets import QApplication

    import overlay_renderer

    qt_application = QApplication(sys.argv)

    loop, _generated = build_render_loop(app_config, seed=seed)
    overlay_widget = overlay_renderer.GameplayOverlayWidget(
        loop,
        frame_interval_ms=int(app_config.playfield.frame_interval_ms),
    )
    overlay_widget.setWindowTitle("Tapfall")
    show_overlay_widget(overlay_widget, fullscreen=fullscreen)

    qt_application.aboutToQuit.connect(overlay_widget.end_session)
    return int(qt_application.exec())


def main(argv: Optional[List[str]] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="Tapfall rhythm game")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a tapfall_config.json file.")
    argument_parser.add_argument("--seed", type=int, default=None, help="Lane seed, overrides track.seed.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    argument_parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    argument_parser.add_argument("--print-config", action="store_true", help="Print the effective config and exit.")
    argument_parser.add_argument(
        "--headless-frames",
        type=int,
        default=None,
        metavar="N",
        help="Run N frames without a window on a simulated clock and print a JSON summary.",
    )
    argument_parser.add_argument("--autoplay", action="store_true", help="Headless only: tap every note on time.")
    parsed_args = argument_parser.parse_args(argv)

    setup_logging(parsed_args)

    try:
        app_config, config_path = load_config(parsed_args.config)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    logger.info("Using config %s", str(config_path) if config_path is not None else "(defaults)")

    if parsed_args.print_config:
        print(to_json(app_config))
        return 0

    if parsed_args.headless_frames is not None:
        try:
            summary = run_headless(
                app_config,
                frame_count=int(parsed_args.headless_frames),
                seed=parsed_args.seed,
                autoplay=bool(parsed_args.autoplay),
            )
        except beatmap_generator.BeatmapConfigError as exception:
            print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
            return 2
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0

    return _run_windowed(app_config, seed=parsed_args.seed, fullscreen=bool(parsed_args.fullscreen))


if __name__ == "__main__":
    raise SystemExit(main())
