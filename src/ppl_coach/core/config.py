"""
Configuration constants for the workout coach.

All adjustable parameters are centralized here.  The Final constants are the
Python defaults; load_coach_config() overlays the bundled coach.yaml and the
user's ~/.ppl-coach/coach.yaml on top of them.
"""

from dataclasses import dataclass, field
from typing import Any, Final

from .engine.config_loader import load_model_config

# =============================================================================
# WEEKLY CYCLE
# =============================================================================

# Monday first. 6-day push/pull/legs rotation with Sunday off.
DEFAULT_CYCLE: Final[tuple[str, ...]] = (
    "push", "pull", "legs", "push", "pull", "legs", "rest",
)
VALID_WORKOUT_TYPES: Final[tuple[str, ...]] = ("push", "pull", "legs", "rest")

# =============================================================================
# PROGRESSION (reps)
# =============================================================================

START_REPS: Final[int] = 8  # First session / tier reset
MIN_REPS: Final[int] = 6
MAX_REPS: Final[int] = 20  # All sets >= this -> time for a harder variation
REPS_INCREMENT: Final[int] = 1

# =============================================================================
# PROGRESSION (seconds)
# =============================================================================

START_SECONDS: Final[int] = 20
MIN_SECONDS: Final[int] = 15
MAX_SECONDS: Final[int] = 60
SECONDS_INCREMENT: Final[int] = 5

# =============================================================================
# VOLUME
# =============================================================================

SETS_BEFORE_THRESHOLD: Final[int] = 3
SETS_AFTER_THRESHOLD: Final[int] = 4
SETS_THRESHOLD_WEEK: Final[int] = 2  # Last week that uses SETS_BEFORE_THRESHOLD

# =============================================================================
# SESSION TIMING
# =============================================================================

REST_SECONDS: Final[int] = 90
FEEDBACK_DELAY_SECONDS: Final[float] = 0.7  # Let the hit/miss cue play
FLASH_SECONDS: Final[float] = 0.6
TRANSITION_SECONDS: Final[float] = 2.0
COUNTDOWN_FROM: Final[int] = 3
STREAK_LOOKBACK_DAYS: Final[int] = 365


@dataclass(frozen=True)
class ScheduleConfig:
    """Weekly cycle, one workout type per weekday (Monday first)."""

    cycle: tuple[str, ...] = DEFAULT_CYCLE
    streak_lookback_days: int = STREAK_LOOKBACK_DAYS

    def __post_init__(self) -> None:
        if len(self.cycle) != 7:
            raise ValueError(f"cycle must list 7 weekdays, got {len(self.cycle)}")
        for wt in self.cycle:
            if wt not in VALID_WORKOUT_TYPES:
                raise ValueError(f"Invalid workout type in cycle: {wt!r}")

    @property
    def training_days_per_week(self) -> int:
        return sum(1 for wt in self.cycle if wt != "rest")


@dataclass(frozen=True)
class ProgressionConfig:
    """Floor/ceiling/start for one unit of measurement."""

    start: int = START_REPS
    floor: int = MIN_REPS
    ceiling: int = MAX_REPS
    increment: int = REPS_INCREMENT

    def __post_init__(self) -> None:
        if not 0 <= self.floor <= self.ceiling:
            raise ValueError(
                f"progression floor/ceiling out of order: {self.floor}/{self.ceiling}"
            )
        if self.start < 0 or self.increment < 0:
            raise ValueError("progression start and increment must be non-negative")


@dataclass(frozen=True)
class VolumeConfig:
    """Sets per exercise as a step function of the week number."""

    sets_before: int = SETS_BEFORE_THRESHOLD
    sets_after: int = SETS_AFTER_THRESHOLD
    threshold_week: int = SETS_THRESHOLD_WEEK

    def __post_init__(self) -> None:
        if self.sets_before < 1 or self.sets_after < self.sets_before:
            raise ValueError(
                "sets_after must be >= sets_before >= 1, got "
                f"{self.sets_before}/{self.sets_after}"
            )


@dataclass(frozen=True)
class SessionConfig:
    """Timing of the in-session state machine."""

    rest_seconds: int = REST_SECONDS
    feedback_delay_seconds: float = FEEDBACK_DELAY_SECONDS
    flash_seconds: float = FLASH_SECONDS
    transition_seconds: float = TRANSITION_SECONDS
    countdown_from: int = COUNTDOWN_FROM


@dataclass(frozen=True)
class CoachConfig:
    """Everything the schedule, progression and session modules need."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    reps: ProgressionConfig = field(default_factory=ProgressionConfig)
    seconds: ProgressionConfig = field(
        default_factory=lambda: ProgressionConfig(
            start=START_SECONDS,
            floor=MIN_SECONDS,
            ceiling=MAX_SECONDS,
            increment=SECONDS_INCREMENT,
        )
    )
    volume: VolumeConfig = field(default_factory=VolumeConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    def progression_for(self, unit: str) -> ProgressionConfig:
        """Return the progression constants for an exercise unit."""
        return self.seconds if unit == "seconds" else self.reps


def _progression_from(raw: dict[str, Any], base: ProgressionConfig) -> ProgressionConfig:
    return ProgressionConfig(
        start=int(raw.get("start", base.start)),
        floor=int(raw.get("floor", base.floor)),
        ceiling=int(raw.get("ceiling", base.ceiling)),
        increment=int(raw.get("increment", base.increment)),
    )


def coach_config_from_dict(raw: dict[str, Any]) -> CoachConfig:
    """
    Build a CoachConfig from a merged YAML dict.

    Missing sections and keys fall back to the Final defaults above.

    Raises:
        ValueError: If a value is out of range (e.g. floor above ceiling)
    """
    defaults = CoachConfig()

    sched = raw.get("schedule") or {}
    sess = raw.get("session") or {}
    prog = raw.get("progression") or {}
    vol = raw.get("volume") or {}

    schedule = ScheduleConfig(
        cycle=tuple(str(wt) for wt in sched.get("cycle", DEFAULT_CYCLE)),
        streak_lookback_days=int(sess.get("streak_lookback_days", STREAK_LOOKBACK_DAYS)),
    )
    reps = _progression_from(prog, defaults.reps)
    seconds = _progression_from(prog.get("seconds") or {}, defaults.seconds)
    volume = VolumeConfig(
        sets_before=int(vol.get("sets_before", SETS_BEFORE_THRESHOLD)),
        sets_after=int(vol.get("sets_after", SETS_AFTER_THRESHOLD)),
        threshold_week=int(vol.get("threshold_week", SETS_THRESHOLD_WEEK)),
    )
    session = SessionConfig(
        rest_seconds=int(sess.get("rest_seconds", REST_SECONDS)),
        feedback_delay_seconds=float(sess.get("feedback_delay_seconds", FEEDBACK_DELAY_SECONDS)),
        flash_seconds=float(sess.get("flash_seconds", FLASH_SECONDS)),
        transition_seconds=float(sess.get("transition_seconds", TRANSITION_SECONDS)),
        countdown_from=int(sess.get("countdown_from", COUNTDOWN_FROM)),
    )
    return CoachConfig(
        schedule=schedule, reps=reps, seconds=seconds, volume=volume, session=session
    )


_cached: CoachConfig | None = None


def load_coach_config(reload: bool = False) -> CoachConfig:
    """
    Return the active CoachConfig (bundled YAML + user overrides).

    The result is cached; pass reload=True after editing the YAML files.
    """
    global _cached
    if _cached is None or reload:
        _cached = coach_config_from_dict(load_model_config())
    return _cached
