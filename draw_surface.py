# -*- coding: utf-8 -*-
########################
# draw_surface.py
########################
# Purpose:
# - The only output contract of the render loop: primitive draw calls in device pixels.
# - Provides a recording implementation for headless runs and tests.
#
# Design notes:
# - No Qt usage here. The QPainter adapter lives in overlay_renderer.py.
# - Colors are RGBA tuples with components in 0..255.
#
########################
# Interfaces:
# Public type aliases:
# - Color = tuple[int, int, int, int]
#
# Public protocols:
# - DrawSurface
#   - fill_rect(left, top, right, bottom, color) -> None
#   - draw_circle(center_x, center_y, radius, color, *, stroke_width: Optional[float] = None) -> None
#     - stroke_width None means filled, otherwise an outline of that width.
#   - draw_line(x0, y0, x1, y1, color, *, width: float) -> None
#
# Public dataclasses:
# - DrawCall(kind: str, args: tuple, color: Color, stroke_width: Optional[float])
#
# Public classes:
# - class RecordingSurface(DrawSurface)
#   - calls -> list[DrawCall]
#   - calls_of_kind(kind: str) -> list[DrawCall]
#   - clear() -> None
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple, runtime_checkable


Color = Tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)
BLACK: Color = (0, 0, 0, 255)
RED: Color = (255, 0, 0, 255)


def rgb(red: int, green: int, blue: int, alpha: int = 255) -> Color:
    return (int(red), int(green), int(blue), int(alpha))


@runtime_checkable
class DrawSurface(Protocol):
    def fill_rect(self, left: float, top: float, right: float, bottom: float, color: Color) -> None:
        ...

    def draw_circle(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        color: Color,
        *,
        stroke_width: Optional[float] = None,
    ) -> None:
        ...

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: Color, *, width: float) -> None:
        ...


@dataclass(frozen=True)
class DrawCall:
    kind: str
    args: Tuple[float, ...]
    color: Color
    stroke_width: Optional[float] = None


class RecordingSurface:
    """DrawSurface that keeps every call in order instead of painting."""

    RECT = "rect"
    CIRCLE = "circle"
    LINE = "line"

    def __init__(self) -> None:
        self.calls: List[DrawCall] = []

    def fill_rect(self, left: float, top: float, right: float, bottom: float, color: Color) -> None:
        self.calls.append(DrawCall(self.RECT, (float(left), float(top), float(right), float(bottom)), color))

    def draw_circle(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        color: Color,
        *,
        stroke_width: Optional[float] = None,
    ) -> None:
        self.calls.append(
            DrawCall(self.CIRCLE, (float(center_x), float(center_y), float(radius)), color, stroke_width)
        )

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: Color, *, width: float) -> None:
        self.calls.append(DrawCall(self.LINE, (float(x0), float(y0), float(x1), float(y1)), color, float(width)))

    def calls_of_kind(self, kind: str) -> List[DrawCall]:
        return [call for call in self.calls if call.kind == kind]

    def clear(self) -> None:
        self.calls.clear()
