"""
Deadline-based rest countdown.

The countdown stores an absolute wall-clock deadline instead of a counter, so
remaining time stays correct when periodic callbacks are throttled or
suspended (app in background, laptop asleep).  Any later read recomputes the
remaining seconds from the deadline.
"""

import math


class RestTimer:
    """
    Countdown of *duration* seconds, optionally sped up by *speed*.

    With speed=2 the countdown shows the same 90..0 seconds but reaches zero
    after 45 real seconds.
    """

    def __init__(self, duration: int, started_at: float, speed: float = 1.0):
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.duration = duration
        self.speed = speed
        self.deadline = started_at + duration / speed
        self.paused_at: float | None = None

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def remaining(self, now: float) -> int:
        """Whole seconds left (rounded up), never negative."""
        ref = self.paused_at if self.paused_at is not None else now
        left = (self.deadline - ref) * self.speed
        return max(0, math.ceil(round(left, 6)))

    def expired(self, now: float) -> bool:
        return self.remaining(now) == 0

    def pause(self, now: float) -> bool:
        if self.paused_at is not None:
            return False
        self.paused_at = now
        return True

    def resume(self, now: float) -> bool:
        """Shift the deadline by the paused duration so no time is lost."""
        if self.paused_at is None:
            return False
        self.deadline += now - self.paused_at
        self.paused_at = None
        return True
