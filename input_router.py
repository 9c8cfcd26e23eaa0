# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for gameplay lane input.
# - Translates QKeyEvent into gameplay_models.TapEvent and emits a Qt signal.
#
# Design notes:
# - This must be the only lane input source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
# - The timestamp is read from the injected clock at press time, in the same base as
#   TrackClock.now. Conversion to track time happens in RenderLoop.on_tap.
#
########################
# Interfaces:
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - tapEvent(gameplay_models.TapEvent)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - clear_pressed_keys() -> None
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - TapEvent values consumed by RenderLoop.on_tap through GameplayOverlayWidget.
#
########################

from __future__ import annotations

from typing import Callable, Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

import gameplay_models


def _build_default_key_to_lane_map(lane_count: int = 5) -> Dict[int, int]:
    """
    Default lane mapping, left to right.

    Accepted keys:
      - Home row: D, F, Space, J, K
      - Number row: 1, 2, 3, 4, 5
    Keys for lanes beyond lane_count are not bound.
    """
    key_to_lane: Dict[int, int] = {}

    def bind(key_constant: Qt.Key, lane_index: int) -> None:
        if lane_index < int(lane_count):
            key_to_lane[int(key_constant.value)] = int(lane_index)

    home_row = (Qt.Key.Key_D, Qt.Key.Key_F, Qt.Key.Key_Space, Qt.Key.Key_J, Qt.Key.Key_K)
    number_row = (Qt.Key.Key_1, Qt.Key.Key_2, Qt.Key.Key_3, Qt.Key.Key_4, Qt.Key.Key_5)
    for lane_index, key_constant in enumerate(home_row):
        bind(key_constant, lane_index)
    for lane_index, key_constant in enumerate(number_row):
        bind(key_constant, lane_index)

    return key_to_lane


class InputRouter(QObject):
    """
    Central keyboard router for gameplay lane input.

    This object never judges timing. Its only job is to:
      - map keys to lane indexes
      - stamp each press with the current host clock reading
      - emit a gameplay_models.TapEvent for each valid press
    """

    tapEvent = pyqtSignal(object)

    def __init__(
        self,
        now_fn: Callable[[], float],
        parent: Optional[QObject] = None,
        key_to_lane_map: Optional[Dict[int, int]] = None,
        lane_count: int = 5,
    ) -> None:
        """
        now_fn:
            Host clock in seconds. GameplayOverlayWidget passes TrackClock.now.
        parent:
            Optional QObject parent.
        key_to_lane_map:
            Optional override for the key map.
        lane_count:
            Lanes bound by the default key map.
        """
        super().__init__(parent)

        self._now_fn: Callable[[], float] = now_fn
        self._key_to_lane: Dict[int, int] = (
            dict(key_to_lane_map) if key_to_lane_map is not None else _build_default_key_to_lane_map(lane_count)
        )

        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API used by overlay_renderer
    # ------------------------------------------------------------------

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())

        if event.isAutoRepeat():
            if key_code in self._key_to_lane:
                self._ignored_presses += 1
                return True
            return False

        if key_code in self._pressed_keys:
            if key_code in self._key_to_lane:
                self._ignored_presses += 1
                return True
            return False

        self._pressed_keys.add(key_code)

        lane_index = self._key_to_lane.get(key_code)
        if lane_index is None:
            return False

        self._total_presses += 1
        self._emit_tap_event_for_lane(lane_index)
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key release.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())

        if event.isAutoRepeat():
            return key_code in self._key_to_lane

        if key_code in self._pressed_keys:
            self._pressed_keys.discard(key_code)

        return key_code in self._key_to_lane

    def clear_pressed_keys(self) -> None:
        """
        Clear pressed state for all keys.

        Called by the overlay widget on focus loss.
        """
        self._pressed_keys.clear()

    def _emit_tap_event_for_lane(self, lane_index: int) -> None:
        tap_event = gameplay_models.TapEvent(
            timestamp=float(self._now_fn()),
            lane=int(lane_index),
        )
        self.tapEvent.emit(tap_event)

    @property
    def key_to_lane_map(self) -> Dict[int, int]:
        return dict(self._key_to_lane)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


def _run_unit_tests() -> None:
    router = InputRouter(lambda: 1.25)

    assert router.key_to_lane_map[int(Qt.Key.Key_D.value)] == 0
    assert router.key_to_lane_map[int(Qt.Key.Key_Space.value)] == 2
    assert router.key_to_lane_map[int(Qt.Key.Key_K.value)] == 4
    assert router.key_to_lane_map[int(Qt.Key.Key_1.value)] == 0

    narrow = InputRouter(lambda: 0.0, lane_count=3)
    assert int(Qt.Key.Key_J.value) not in narrow.key_to_lane_map


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
