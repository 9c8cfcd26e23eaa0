# -*- coding: utf-8 -*-
########################
# overlay_renderer.py
########################
# Purpose:
# - Gameplay playfield Qt widget.
# - Hosts a RenderLoop: measures itself once, drives frames and forwards key presses as taps.
#
########################
# Key Logic:
# - Measurement:
#   - the first showEvent or resizeEvent with a non-empty size calls RenderLoop.on_measured
#   - later resizes do not change the frozen layout
# - Frame driver:
#   - paintEvent runs exactly one RenderLoop.on_frame pass on a QPainterSurface
#   - when FrameResult.should_continue is set, the next frame is re-armed with QTimer.singleShot
#   - end_session stops re-arming
# - Strict boundaries:
#   - RenderLoop decides what to draw. This widget only adapts primitives to QPainter.
#   - InputRouter is the only lane input source.
#
########################
# Interfaces:
# Public classes:
# - class QPainterSurface(draw_surface.DrawSurface)
#   - __init__(painter: QPainter)
# - class GameplayOverlayWidget(PyQt6.QtWidgets.QWidget)
#   - __init__(render_loop: RenderLoop, *, frame_interval_ms: int = 16, parent: Optional[QWidget] = None)
#   - render_loop() -> RenderLoop
#   - input_router() -> InputRouter
#   - end_session() -> None
#
# Inputs:
# - Qt show/resize/paint/key events.
#
# Outputs:
# - Painted playfield on the widget surface.
#
########################

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QPointF, QRectF, Qt, QTimer
from PyQt6.QtGui import QBrush, QColor, QPainter, QPen
from PyQt6.QtWidgets import QWidget

import draw_surface
import gameplay_models
import input_router
import render_loop


logger = logging.getLogger(__name__)

BACKGROUND_COLOR = QColor(10, 10, 12)


def _qcolor(color: draw_surface.Color) -> QColor:
    red, green, blue, alpha = color
    return QColor(int(red), int(green), int(blue), int(alpha))


class QPainterSurface:
    """DrawSurface backed by an active QPainter."""

    def __init__(self, painter: QPainter) -> None:
        self._painter = painter

    def fill_rect(self, left: float, top: float, right: float, bottom: float, color: draw_surface.Color) -> None:
        rect = QRectF(float(left), float(top), float(right) - float(left), float(bottom) - float(top))
        self._painter.fillRect(rect, QBrush(_qcolor(color)))

    def draw_circle(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        color: draw_surface.Color,
        *,
        stroke_width: Optional[float] = None,
    ) -> None:
        painter = self._painter
        painter.save()
        if stroke_width is None:
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(_qcolor(color)))
        else:
            painter.setPen(QPen(_qcolor(color), float(stroke_width)))
            painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(QPointF(float(center_x), float(center_y)), float(radius), float(radius))
        painter.restore()

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: draw_surface.Color, *, width: float) -> None:
        painter = self._painter
        painter.save()
        painter.setPen(QPen(_qcolor(color), float(width)))
        painter.drawLine(QPointF(float(x0), float(y0)), QPointF(float(x1), float(y1)))
        painter.restore()


class GameplayOverlayWidget(QWidget):
    def __init__(
        self,
        render_loop_obj: render_loop.RenderLoop,
        *,
        frame_interval_ms: int = 16,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._render_loop = render_loop_obj
        self._frame_interval_ms = max(0, int(frame_interval_ms))
        self._frame_pending = False

        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self._router = input_router.InputRouter(
            render_loop_obj.clock.now,
            parent=self,
            lane_count=int(render_loop_obj.settings.lane_count),
        )
        self._router.tapEvent.connect(self._on_tap_event)

    def render_loop(self) -> render_loop.RenderLoop:
        return self._render_loop

    def input_router(self) -> input_router.InputRouter:
        return self._router

    def end_session(self) -> None:
        self._render_loop.end_session()

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------

    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        self._try_measure()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._try_measure()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(BACKGROUND_COLOR))
        try:
            result = self._render_loop.on_frame(QPainterSurface(painter))
        finally:
            painter.end()

        if result.should_continue:
            self._request_frame()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if not self._router.handle_key_press(event):
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event) -> None:  # type: ignore[override]
        if not self._router.handle_key_release(event):
            super().keyReleaseEvent(event)

    def focusOutEvent(self, event) -> None:  # type: ignore[override]
        self._router.clear_pressed_keys()
        super().focusOutEvent(event)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _try_measure(self) -> None:
        if self._render_loop.phase != render_loop.SessionPhase.UNMEASURED:
            return
        width = int(self.width())
        height = int(self.height())
        if width <= 0 or height <= 0:
            return
        self._render_loop.on_measured(float(width), float(height))
        self._request_frame()

    def _request_frame(self) -> None:
        if self._frame_pending:
            return
        self._frame_pending = True
        QTimer.singleShot(self._frame_interval_ms, self._on_frame_due)

    def _on_frame_due(self) -> None:
        self._frame_pending = False
        self.update()

    def _on_tap_event(self, tap_event: gameplay_models.TapEvent) -> None:
        self._render_loop.on_tap(tap_event)
