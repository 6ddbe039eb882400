"""
Side-effect collaborators of the workout state machine.

Feedback receives fire-and-forget cues (sound, haptics, console output);
WakeLock keeps the screen on while a workout runs.  Both default to no-ops,
and a failing implementation is logged and otherwise ignored: cues never
influence a state transition.
"""

import logging

logger = logging.getLogger(__name__)


class Feedback:
    """Audio/haptic cue hooks.  Override the ones you need."""

    def on_session_start(self) -> None:
        pass

    def on_set_logged(self, hit_target: bool) -> None:
        pass

    def on_countdown_tick(self, seconds_left: int) -> None:
        pass

    def on_rest_complete(self) -> None:
        pass

    def on_next_exercise(self) -> None:
        pass

    def on_skip(self) -> None:
        pass

    def on_session_complete(self) -> None:
        pass

    def on_undo(self) -> None:
        pass

    def on_switch_side(self) -> None:
        pass


class WakeLock:
    """Screen wake lock.  request() may fail; callers treat that as best-effort."""

    def request(self) -> None:
        pass

    def release(self) -> None:
        pass


def notify(target: object, method: str, *args: object) -> None:
    """Call target.method(*args), logging instead of raising on failure."""
    try:
        getattr(target, method)(*args)
    except Exception:
        logger.warning("%s.%s failed", type(target).__name__, method, exc_info=True)
