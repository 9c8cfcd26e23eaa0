# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for track time in gameplay.
# - Converts host clock readings into seconds elapsed since the track started.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic given its now_fn.
# - The start timestamp is captured exactly once.
# - Readings taken before the start timestamp clamp to 0.0.
#
########################
# Interfaces:
# Public classes:
# - class TrackClock
#   - __init__(now_fn: Callable[[], float] = time.monotonic)
#   - start() -> float
#   - is_started() -> bool
#   - start_timestamp() -> float
#   - elapsed_seconds() -> float
#   - elapsed_at(timestamp: float) -> float
#
# Inputs:
# - now_fn: host clock in seconds (time.monotonic by default).
#
# Outputs:
# - elapsed_seconds used by RenderLoop for visibility and by the tap path for judgement.
#
########################

from __future__ import annotations

import logging
import time
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class TrackClock:
    def __init__(self, now_fn: Callable[[], float] = time.monotonic) -> None:
        self._now_fn = now_fn
        self._start_timestamp: Optional[float] = None
        self._last_now: Optional[float] = None

    def now(self) -> float:
        return float(self._now_fn())

    def start(self) -> float:
        if self._start_timestamp is not None:
            raise RuntimeError("TrackClock already started")
        self._start_timestamp = self.now()
        self._last_now = self._start_timestamp
        return self._start_timestamp

    def is_started(self) -> bool:
        return self._start_timestamp is not None

    def start_timestamp(self) -> float:
        if self._start_timestamp is None:
            raise RuntimeError("TrackClock has not been started")
        return float(self._start_timestamp)

    def elapsed_at(self, timestamp: float) -> float:
        # Contract choice:
        # - timestamps before the start clamp to 0.0
        # - a clock that steps backwards after the start is propagated, not corrected
        elapsed = float(timestamp) - self.start_timestamp()
        if elapsed < 0.0:
            elapsed = 0.0
        return elapsed

    def elapsed_seconds(self) -> float:
        now_timestamp = self.now()
        if self._last_now is not None and now_timestamp < self._last_now:
            logger.debug("Clock stepped backwards by %.6f s", self._last_now - now_timestamp)
        self._last_now = now_timestamp
        return self.elapsed_at(now_timestamp)


def _run_unit_tests() -> None:
    readings = [10.0, 11.5, 9.0]
    clock = TrackClock(lambda: readings.pop(0))
    assert not clock.is_started()
    assert clock.start() == 10.0
    assert abs(clock.elapsed_seconds() - 1.5) < 1e-9
    assert clock.elapsed_seconds() == 0.0

    try:
        clock.start()
    except RuntimeError:
        pass
    else:
        raise AssertionError("Expected RuntimeError on second start")


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
