from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

pytest.importorskip("PyQt6.QtWidgets")

from PyQt6.QtCore import QEvent, Qt  # noqa: E402
from PyQt6.QtGui import QColor, QImage, QKeyEvent, QPainter  # noqa: E402
from PyQt6.QtWidgets import QApplication  # noqa: E402

import input_router  # noqa: E402
import overlay_renderer  # noqa: E402
import tapfall  # noqa: E402
from gameplay_models import Beatmap, Note  # noqa: E402
from render_loop import RenderLoop, SessionPhase  # noqa: E402
from timing_model import TrackClock  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    app = QApplication.instance() or QApplication([])
    yield app


def _key_event(event_type, key, *, auto_repeat=False):
    return QKeyEvent(event_type, int(key.value), Qt.KeyboardModifier.NoModifier, "", auto_repeat)


def test_painter_surface_fills_rectangles(qt_app):
    image = QImage(100, 100, QImage.Format.Format_ARGB32)
    image.fill(QColor(0, 0, 0))

    painter = QPainter(image)
    surface = overlay_renderer.QPainterSurface(painter)
    surface.fill_rect(10.0, 10.0, 50.0, 50.0, (255, 0, 0, 255))
    surface.draw_circle(80.0, 80.0, 10.0, (0, 255, 0, 255))
    painter.end()

    assert image.pixelColor(20, 20) == QColor(255, 0, 0)
    assert image.pixelColor(80, 80) == QColor(0, 255, 0)
    assert image.pixelColor(5, 5) == QColor(0, 0, 0)


def test_router_emits_tap_events_with_clock_timestamp(qt_app):
    router = input_router.InputRouter(lambda: 12.5)
    received = []
    router.tapEvent.connect(received.append)

    assert router.handle_key_press(_key_event(QEvent.Type.KeyPress, Qt.Key.Key_J))
    assert router.handle_key_press(_key_event(QEvent.Type.KeyPress, Qt.Key.Key_J))
    assert router.handle_key_release(_key_event(QEvent.Type.KeyRelease, Qt.Key.Key_J))
    assert router.handle_key_press(_key_event(QEvent.Type.KeyPress, Qt.Key.Key_J, auto_repeat=True))
    assert not router.handle_key_press(_key_event(QEvent.Type.KeyPress, Qt.Key.Key_Q))

    assert [(event.lane, event.timestamp) for event in received] == [(3, 12.5)]
    assert router.total_presses == 1
    assert router.ignored_presses == 2


def test_overlay_measures_once_and_paints_frames(qt_app):
    readings = {"now": 0.0}
    note = Note(lane=0, tap_time_seconds=0.5)
    loop = RenderLoop(
        Beatmap(tempo_bpm=105.0, notes=[note], duration_seconds=1.0),
        clock=TrackClock(lambda: readings["now"]),
    )
    widget = overlay_renderer.GameplayOverlayWidget(loop, frame_interval_ms=16)
    widget.resize(400, 800)
    widget.show()
    qt_app.processEvents()

    assert loop.phase in (SessionPhase.ARMED, SessionPhase.RUNNING)
    layout = loop.state.layout
    assert (layout.screen_width, layout.screen_height) == (400.0, 800.0)

    widget.resize(200, 200)
    qt_app.processEvents()
    assert loop.state.layout is layout

    widget.grab()
    assert loop.phase == SessionPhase.RUNNING

    readings["now"] = 0.5
    widget.keyPressEvent(_key_event(QEvent.Type.KeyPress, Qt.Key.Key_D))
    assert note.has_been_tapped

    widget.end_session()
    widget.close()


def test_fullscreen_window_freezes_the_fullscreen_layout(qt_app):
    loop = RenderLoop(
        Beatmap(tempo_bpm=105.0, notes=[], duration_seconds=1.0),
        clock=TrackClock(lambda: 0.0),
    )
    widget = overlay_renderer.GameplayOverlayWidget(loop)
    tapfall.show_overlay_widget(widget, fullscreen=True)
    qt_app.processEvents()

    layout = loop.state.layout
    assert (layout.screen_width, layout.screen_height) == (float(widget.width()), float(widget.height()))

    widget.end_session()
    widget.close()
