# -*- coding: utf-8 -*-
########################
# lane_layout.py
########################
# Purpose:
# - Derive the on-screen playfield geometry from the screen size and playfield settings.
#
# Design notes:
# - No Qt usage. compute_lane_layout is a pure function.
# - Lanes are centered horizontally; lane_spacing is a fraction of the screen width.
# - judgement_ratio is the same value the note position math uses, so the judgement line
#   and the arrival point of every note coincide.
#
########################
# Interfaces:
# Public dataclasses:
# - VisualLaneLayout(screen_width, screen_height, lane_count, lane_spacing, judgement_ratio)
#   - lane_center_x(lane: int) -> float
#   - lane_left_x(lane: int) -> float
#   - lane_right_x(lane: int) -> float
#   - judgement_line_y -> float
#
# Public functions:
# - compute_lane_layout(*, screen_width, screen_height, lane_count, lane_spacing, judgement_ratio) -> VisualLaneLayout
#
########################

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VisualLaneLayout:
    screen_width: float
    screen_height: float
    lane_count: int
    lane_spacing: float
    judgement_ratio: float

    @property
    def judgement_line_y(self) -> float:
        return float(self.screen_height) * float(self.judgement_ratio)

    def _lane_relative_x(self, lane: int) -> float:
        first_lane = (1.0 - float(self.lane_spacing) * (int(self.lane_count) - 1)) / 2.0
        return first_lane + int(lane) * float(self.lane_spacing)

    def lane_center_x(self, lane: int) -> float:
        return self._lane_relative_x(lane) * float(self.screen_width)

    def lane_left_x(self, lane: int) -> float:
        return (self._lane_relative_x(lane) - float(self.lane_spacing) / 2.0) * float(self.screen_width)

    def lane_right_x(self, lane: int) -> float:
        return (self._lane_relative_x(lane) + float(self.lane_spacing) / 2.0) * float(self.screen_width)


def compute_lane_layout(
    *,
    screen_width: float,
    screen_height: float,
    lane_count: int,
    lane_spacing: float,
    judgement_ratio: float,
) -> VisualLaneLayout:
    if float(screen_width) <= 0.0 or float(screen_height) <= 0.0:
        raise ValueError(f"Screen dimensions must be positive, got {screen_width}x{screen_height}")
    if int(lane_count) <= 0:
        raise ValueError(f"lane_count must be positive, got {lane_count}")
    return VisualLaneLayout(
        screen_width=float(screen_width),
        screen_height=float(screen_height),
        lane_count=int(lane_count),
        lane_spacing=float(lane_spacing),
        judgement_ratio=float(judgement_ratio),
    )


def _run_unit_tests() -> None:
    layout = compute_lane_layout(
        screen_width=1000.0,
        screen_height=500.0,
        lane_count=5,
        lane_spacing=0.16,
        judgement_ratio=0.8,
    )
    assert abs(layout.judgement_line_y - 400.0) < 1e-9
    assert abs(layout.lane_center_x(2) - 500.0) < 1e-9
    assert abs(layout.lane_center_x(0) - 180.0) < 1e-9
    assert abs(layout.lane_right_x(0) - layout.lane_left_x(1)) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("lane_layout.py: ok")
