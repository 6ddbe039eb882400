"""
Calendar schedule: which workout falls on which day, and how the week went.

All functions are pure and work on calendar days in local time; the only
normalisation performed is formatting dates as YYYY-MM-DD keys.
"""

from datetime import date, datetime, timedelta
from typing import Mapping

from .config import ScheduleConfig, VolumeConfig, load_coach_config
from .models import SessionRecord, WeeklyStats, WeekProgress, WorkoutType


def format_date_key(d: date) -> str:
    """Format a date as the YYYY-MM-DD history key."""
    return d.strftime("%Y-%m-%d")


def parse_date_key(date_key: str) -> date:
    """Parse a YYYY-MM-DD history key."""
    return datetime.strptime(date_key, "%Y-%m-%d").date()


def _schedule(config: ScheduleConfig | None) -> ScheduleConfig:
    return config if config is not None else load_coach_config().schedule


def _is_logged(history: Mapping[str, SessionRecord], d: date) -> bool:
    record = history.get(format_date_key(d))
    return bool(record is not None and record.logged_at)


# =============================================================================
# Day classification
# =============================================================================


def workout_type_for_date(d: date, config: ScheduleConfig | None = None) -> WorkoutType:
    """
    Map a date onto the weekly cycle.

    The cycle lists one workout type per weekday, Monday first, so the result
    is periodic with a period of 7 days.
    """
    return _schedule(config).cycle[d.weekday()]  # type: ignore[return-value]


def is_training_day(d: date, config: ScheduleConfig | None = None) -> bool:
    """True unless the cycle puts a rest day on this weekday."""
    return workout_type_for_date(d, config) != "rest"


def next_training_day(d: date, config: ScheduleConfig | None = None) -> date:
    """
    Earliest date strictly after *d* that is a training day.

    Raises:
        ValueError: If the configured cycle has no training days at all
    """
    cfg = _schedule(config)
    if cfg.training_days_per_week == 0:
        raise ValueError("Weekly cycle has no training days")
    candidate = d + timedelta(days=1)
    for _ in range(7):
        if is_training_day(candidate, cfg):
            return candidate
        candidate += timedelta(days=1)
    raise AssertionError("unreachable: cycle has a training day")


def next_training_message(d: date, config: ScheduleConfig | None = None) -> str:
    """Human-readable next session, e.g. "MONDAY 2 NOV - PUSH"."""
    nxt = next_training_day(d, config)
    label = f"{nxt.strftime('%A')} {nxt.day} {nxt.strftime('%b')}".upper()
    return f"{label} - {workout_type_for_date(nxt, config).upper()}"


# =============================================================================
# Week numbering and volume
# =============================================================================


def week_start(d: date) -> date:
    """Monday of the week containing *d*."""
    return d - timedelta(days=d.weekday())


def week_number(first_session_date: str | None, current: date) -> int:
    """
    1-based training week since the first logged session.

    week = max(1, floor(days_elapsed / 7) + 1); week 1 before any session.
    """
    if not first_session_date:
        return 1
    elapsed = (current - parse_date_key(first_session_date)).days
    return max(1, elapsed // 7 + 1)


def sets_for_week(week: int, config: VolumeConfig | None = None) -> int:
    """Sets per exercise: a step from sets_before to sets_after past threshold_week."""
    cfg = config if config is not None else load_coach_config().volume
    return cfg.sets_before if week <= cfg.threshold_week else cfg.sets_after


# =============================================================================
# Progress against history
# =============================================================================


def week_progress(
    d: date,
    history: Mapping[str, SessionRecord],
    config: ScheduleConfig | None = None,
) -> WeekProgress:
    """
    Logged training days in the Monday-start week containing *d*.

    Only days the cycle marks as training days are counted, so completed is
    bounded by total.
    """
    cfg = _schedule(config)
    start = week_start(d)
    completed = 0
    for offset in range(7):
        day = start + timedelta(days=offset)
        if is_training_day(day, cfg) and _is_logged(history, day):
            completed += 1
    return WeekProgress(completed=completed, total=cfg.training_days_per_week)


def training_streak(
    d: date,
    history: Mapping[str, SessionRecord],
    config: ScheduleConfig | None = None,
) -> int:
    """
    Consecutive logged training days before *d*.

    Walks backwards from yesterday.  Rest days are skipped without breaking
    the streak; the first unlogged training day ends it.  The walk is bounded
    by streak_lookback_days.
    """
    cfg = _schedule(config)
    streak = 0
    check = d - timedelta(days=1)
    for _ in range(cfg.streak_lookback_days):
        if is_training_day(check, cfg):
            if not _is_logged(history, check):
                break
            streak += 1
        check -= timedelta(days=1)
    return streak


def weekly_stats(d: date, history: Mapping[str, SessionRecord]) -> WeeklyStats:
    """Sessions and sets logged this week, and sessions vs. the previous week."""
    start = week_start(d)

    sessions = 0
    total_sets = 0
    for offset in range(7):
        key = format_date_key(start + timedelta(days=offset))
        record = history.get(key)
        if record is not None and record.logged_at:
            sessions += 1
            total_sets += record.total_sets

    prev_start = start - timedelta(days=7)
    prev_sessions = sum(
        1 for offset in range(7) if _is_logged(history, prev_start + timedelta(days=offset))
    )

    return WeeklyStats(
        sessions_completed=sessions,
        total_sets=total_sets,
        vs_last_week=sessions - prev_sessions if prev_sessions > 0 else None,
    )
