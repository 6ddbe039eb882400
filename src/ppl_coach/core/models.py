"""
Data models for ppl-coach.

Core dataclasses for persisted session records, schedule summaries and the
observable state of an in-progress workout.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

WorkoutType = Literal["push", "pull", "legs", "rest"]
TrainingType = Literal["push", "pull", "legs"]
ComparisonStatus = Literal["improved", "decreased", "same", "none"]
FlashColor = Literal["green", "red"]
Side = Literal["left", "right"]


@dataclass
class SessionRecord:
    """
    The durable outcome of one completed workout.

    ``sets`` maps exercise key to the values logged for each set, in set
    order.  Records are keyed by local calendar date in the history; the key
    is not stored on the record itself.
    """

    sets: dict[str, list[int]]
    logged_at: str  # ISO-8601 timestamp of completion
    week_number: int
    workout_type: TrainingType | None = None  # None only for legacy records

    def __post_init__(self) -> None:
        """Validate record data."""
        if self.week_number < 1:
            raise ValueError("week_number must be >= 1")
        if self.workout_type is not None and self.workout_type not in ("push", "pull", "legs"):
            raise ValueError(f"Invalid workout_type: {self.workout_type}")
        for key, values in self.sets.items():
            if any(v < 0 for v in values):
                raise ValueError(f"set values for {key!r} must be non-negative")

    @property
    def total_sets(self) -> int:
        """Number of sets across all exercises."""
        return sum(len(v) for v in self.sets.values())

    def values_for(self, exercise_key: str) -> list[int]:
        """Logged values for one exercise ([] when absent)."""
        return self.sets.get(exercise_key, [])


# date key (YYYY-MM-DD) -> record
History = dict[str, SessionRecord]


@dataclass(frozen=True)
class WeekProgress:
    """Training days done vs. scheduled in one Monday-start week."""

    completed: int
    total: int


@dataclass(frozen=True)
class WeeklyStats:
    """Volume summary for one Monday-start week."""

    sessions_completed: int
    total_sets: int
    vs_last_week: int | None  # None when the previous week had no sessions


@dataclass(frozen=True)
class Comparison:
    """A logged value compared against the same set last session."""

    status: ComparisonStatus
    previous_value: int | None


class SessionState(str, Enum):
    """Discrete states of the workout state machine."""

    idle = "idle"
    exercising = "exercising"
    resting = "resting"
    transitioning = "transitioning"
    complete = "complete"


@dataclass(frozen=True)
class SessionSummary:
    """
    Result handed to the caller when a workout completes.

    ``saved`` is False while the write is pending or after it failed;
    ``save_error`` carries the failure message in the latter case.
    """

    date_key: str
    record: SessionRecord
    saved: bool = False
    save_error: str | None = None
    kind: Literal["workout"] = "workout"


@dataclass
class SessionSnapshot:
    """
    Read-only view of the state machine for rendering.

    Produced by WorkoutSession.snapshot(); mutating it has no effect on the
    session.
    """

    state: SessionState
    workout_type: WorkoutType
    exercise_index: int
    current_set: int
    sets_per_exercise: int
    exercise_key: str | None
    exercise_name: str | None
    current_target: int
    previous_value: int | None
    timer: int
    is_paused: bool
    flash: FlashColor | None
    next_exercise_name: str
    week_number: int
    session_values: dict[str, list[int]] = field(default_factory=dict)
    save_error: str | None = None


class MobilityState(str, Enum):
    """Discrete states of the mobility routine runner."""

    idle = "idle"
    holding = "holding"
    complete = "complete"


@dataclass(frozen=True)
class MobilitySummary:
    """
    Result handed to the caller when the mobility routine completes.

    Same save contract as SessionSummary; ``kind`` tells the two apart.
    """

    date_key: str
    stretches: int
    holds_skipped: int
    total_seconds: int  # planned length of the routine
    saved: bool = False
    save_error: str | None = None
    kind: Literal["mobility"] = "mobility"
