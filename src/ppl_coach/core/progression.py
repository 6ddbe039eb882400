"""
Progressive overload: per-set targets from the previous session.

The rule is a ratchet.  Each session targets the floored average of the
last session for the same exercise plus one increment, clamped to
[floor, ceiling].  Once every set reaches the ceiling the target resets to
the starting value, which is the cue to switch to a harder variation (a
manual choice left to the user).  There is no decrease path: a bad session
can lower the average but the target never drops below the floor.
"""

from datetime import date
from typing import Mapping

from .config import CoachConfig, ProgressionConfig, load_coach_config
from .models import Comparison, SessionRecord
from .schedule import format_date_key, sets_for_week


def previous_session_date(
    current: date,
    history: Mapping[str, SessionRecord],
    exercise_key: str | None = None,
) -> str | None:
    """
    Most recent logged date strictly before *current*.

    With *exercise_key*, only records that contain values for that exercise
    count.
    """
    current_key = format_date_key(current)
    candidates = [
        d
        for d, record in history.items()
        if d < current_key
        and record.logged_at
        and (exercise_key is None or record.values_for(exercise_key))
    ]
    return max(candidates) if candidates else None


def next_target(previous: list[int], cfg: ProgressionConfig) -> int:
    """
    Single target value following a session that logged *previous*.

    Returns cfg.start when every set reached the ceiling, otherwise
    min(ceiling, max(floor, avg // 1 + increment)).
    """
    if not previous:
        return cfg.start
    if all(v >= cfg.ceiling for v in previous):
        return cfg.start
    avg = sum(previous) // len(previous)
    return min(cfg.ceiling, max(cfg.floor, avg + cfg.increment))


def compute_targets(
    exercise_key: str,
    week: int,
    current: date,
    history: Mapping[str, SessionRecord],
    unit: str = "reps",
    config: CoachConfig | None = None,
) -> list[int]:
    """
    Target for every set of *exercise_key* in the session on *current*.

    All sets share one value; the list length is sets_for_week(week).

    Args:
        exercise_key: Key of the exercise in session records
        week: Current training week (1-based)
        current: Date of the session being planned
        history: date key -> SessionRecord
        unit: "reps" or "seconds"; selects the progression constants
        config: Overrides the loaded CoachConfig

    Returns:
        List of identical integer targets
    """
    cfg = config if config is not None else load_coach_config()
    sets = sets_for_week(week, cfg.volume)
    prog = cfg.progression_for(unit)

    prev_key = previous_session_date(current, history, exercise_key)
    if prev_key is None:
        return [prog.start] * sets

    return [next_target(history[prev_key].values_for(exercise_key), prog)] * sets


def should_increase_difficulty(
    exercise_key: str,
    history: Mapping[str, SessionRecord],
    unit: str = "reps",
    config: CoachConfig | None = None,
) -> bool:
    """
    True when the latest session with this exercise hit the ceiling on every set.

    Scans history newest-first; False when the exercise was never logged.
    """
    cfg = config if config is not None else load_coach_config()
    ceiling = cfg.progression_for(unit).ceiling
    for d in sorted(history, reverse=True):
        values = history[d].values_for(exercise_key)
        if values:
            return all(v >= ceiling for v in values)
    return False


def previous_value(
    exercise_key: str,
    set_index: int,
    current: date,
    history: Mapping[str, SessionRecord],
) -> int | None:
    """Value logged for the same set of this exercise last time, if any."""
    prev_key = previous_session_date(current, history, exercise_key)
    if prev_key is None:
        return None
    values = history[prev_key].values_for(exercise_key)
    return values[set_index] if set_index < len(values) else None


def compare_values(value: int, previous: int | None) -> Comparison:
    """Classify *value* against the same set last session."""
    if previous is None:
        return Comparison(status="none", previous_value=None)
    if value > previous:
        return Comparison(status="improved", previous_value=previous)
    if value < previous:
        return Comparison(status="decreased", previous_value=previous)
    return Comparison(status="same", previous_value=previous)
