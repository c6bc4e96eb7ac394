"""
clock.py: Monotonic millisecond clock and the fixed-step accumulator that
turns variable frame times into whole simulation ticks.
"""

import time
from typing import Callable, Optional

from .constants import MAX_FRAME_DELTA_MS, MAX_STEPS_PER_FRAME, TICK_MS


class Clock:
    """Monotonic elapsed time in milliseconds with a bounded per-frame delta."""

    def __init__(self, time_source: Optional[Callable[[], float]] = None,
                 max_delta_ms: float = MAX_FRAME_DELTA_MS):
        # time_source returns seconds, like time.monotonic
        self._time_source = time_source or time.monotonic
        self.max_delta_ms = max_delta_ms
        self._origin = self._time_source()
        self._last: Optional[float] = None
        self.elapsed_ms = 0.0

    def now_ms(self) -> float:
        """Milliseconds since the clock was created."""
        return (self._time_source() - self._origin) * 1000.0

    def tick(self) -> float:
        """Advance one frame and return the delta since the previous frame."""
        now = self._time_source()
        if self._last is None:
            delta = 0.0
        else:
            delta = max(0.0, (now - self._last) * 1000.0)
            delta = min(delta, self.max_delta_ms)
        self._last = now
        self.elapsed_ms += delta
        return delta


class FixedStep:
    """Accumulates frame deltas into a count of fixed-size simulation steps."""

    def __init__(self, step_ms: float = TICK_MS, max_steps: int = MAX_STEPS_PER_FRAME):
        if step_ms <= 0:
            raise ValueError("step_ms must be > 0")
        if max_steps <= 0:
            raise ValueError("max_steps must be > 0")
        self.step_ms = step_ms
        self.max_steps = max_steps
        self.accumulated = 0.0

    def consume(self, delta_ms: float) -> int:
        if delta_ms < 0:
            raise ValueError("delta_ms must be >= 0")
        self.accumulated += delta_ms
        steps = min(int(self.accumulated // self.step_ms), self.max_steps)
        self.accumulated -= steps * self.step_ms
        # Drop backlog we refused to simulate so the game does not spiral
        if self.accumulated >= self.step_ms:
            self.accumulated %= self.step_ms
        return steps

    def reset(self):
        self.accumulated = 0.0
