"""
JSON serialization for session records.

Handles conversion between SessionRecord dataclasses and the wire/storage
shape shared with the companion desktop app:

    {"<exercise_key>": [int, ...], "logged_at": "<ISO-8601>",
     "week_number": int, "workout_type": "push" | "pull" | "legs"}
"""

import re
from datetime import datetime
from typing import Any, Mapping

from ..core.models import History, SessionRecord

META_KEYS = ("logged_at", "week_number", "workout_type")


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate a date string in ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        The same YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_value(raw: str) -> int:
    """
    Parse a logged rep/second count typed by the user.

    Accepts a bare non-negative integer ("12").

    Raises:
        ValidationError: If the input is not a non-negative integer
    """
    text = raw.strip()
    if not text:
        raise ValidationError("Enter a number")
    try:
        value = int(text)
    except ValueError as e:
        raise ValidationError(f"Not a whole number: {raw!r}") from e
    validate_non_negative(value, "value")
    return value


def record_to_dict(record: SessionRecord) -> dict[str, Any]:
    """
    Convert a SessionRecord to its JSON-compatible dict.

    Exercise keys come first, in the record's insertion order, followed by
    the metadata fields.  workout_type is omitted for legacy records.
    """
    data: dict[str, Any] = {key: list(values) for key, values in record.sets.items()}
    data["logged_at"] = record.logged_at
    data["week_number"] = record.week_number
    if record.workout_type is not None:
        data["workout_type"] = record.workout_type
    return data


def dict_to_record(data: Mapping[str, Any]) -> SessionRecord:
    """
    Convert a stored dict to a SessionRecord.

    Raises:
        ValidationError: If required metadata is missing or a set list
            contains anything other than non-negative integers
    """
    if not isinstance(data, Mapping):
        raise ValidationError(f"Session record must be an object, got {type(data).__name__}")

    logged_at = data.get("logged_at")
    if not isinstance(logged_at, str):
        raise ValidationError("Session record missing 'logged_at'")

    week = data.get("week_number")
    if not _is_int(week):
        raise ValidationError("Session record missing integer 'week_number'")

    workout_type = data.get("workout_type")
    if workout_type is not None and workout_type not in ("push", "pull", "legs"):
        raise ValidationError(f"Invalid workout_type: {workout_type!r}")

    sets: dict[str, list[int]] = {}
    for key, values in data.items():
        if key in META_KEYS:
            continue
        if not isinstance(values, list) or not all(_is_int(v) for v in values):
            raise ValidationError(f"Values for {key!r} must be a list of integers")
        for v in values:
            validate_non_negative(v, key)
        sets[key] = list(values)

    try:
        return SessionRecord(
            sets=sets,
            logged_at=logged_at,
            week_number=week,
            workout_type=workout_type,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def history_to_dict(history: Mapping[str, SessionRecord]) -> dict[str, dict[str, Any]]:
    """Serialize a whole history, sorted by date key."""
    return {d: record_to_dict(history[d]) for d in sorted(history)}


def dict_to_history(data: Any, errors: list[str] | None = None) -> History:
    """
    Parse a stored history mapping.

    When *errors* is given, a bad date key or record is skipped and its
    message appended to the list, so one damaged entry does not hide the
    rest of the history.

    Raises:
        ValidationError: If *data* is not a mapping, or on a bad date key or
            record when *errors* is None
    """
    if not isinstance(data, Mapping):
        raise ValidationError(f"History must be an object, got {type(data).__name__}")
    history: History = {}
    for date_key, raw in data.items():
        try:
            validate_date(date_key)
            history[date_key] = dict_to_record(raw)
        except ValidationError as e:
            message = f"{date_key}: {e}"
            if errors is None:
                raise ValidationError(message) from e
            errors.append(message)
    return history
