"""
JSON-file history storage for completed sessions.

Handles reading, writing, and managing the history file.  The synchronous
file operations are exposed directly for the CLI and wrapped in
asyncio.to_thread for the StorageAdapter interface.

A history file that cannot be parsed cleanly is never overwritten in place:
before the next write it is moved aside to history.json.bak so that records
this version could not read are kept.
"""

import asyncio
import json
import logging
from pathlib import Path

from ..core.engine.config_loader import user_config_dir
from ..core.models import History, SessionRecord
from .serializers import (
    ValidationError,
    dict_to_history,
    history_to_dict,
    validate_date,
)
from .storage import StorageAdapter, StorageError

logger = logging.getLogger(__name__)


class JsonHistoryStore(StorageAdapter):
    """
    Manages workout history stored as one JSON document.

    The history file maps YYYY-MM-DD to a session record.  A separate
    profile.json in the same directory stores the first session date and the
    day the mobility routine was last completed.
    """

    def __init__(self, history_path: str | Path):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSON history file
        """
        self.history_path = Path(history_path)
        self.profile_path = self.history_path.parent / "profile.json"

    # -- profile ---------------------------------------------------------------

    def _read_profile(self) -> dict:
        if not self.profile_path.exists():
            return {}
        try:
            with open(self.profile_path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable profile %s: %s", self.profile_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_profile(self, data: dict) -> None:
        try:
            self.profile_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.profile_path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise StorageError(f"Could not write {self.profile_path}: {e}") from e

    def read_first_session_date(self) -> str | None:
        """
        Get the first session date from profile.json.

        Returns:
            ISO date string or None if not set
        """
        value = self._read_profile().get("first_session_date")
        return value if isinstance(value, str) else None

    def write_first_session_date(self, date: str) -> None:
        """
        Store the first session date in profile.json unless already set.

        Raises:
            StorageError: If profile.json cannot be written
        """
        validate_date(date)
        data = self._read_profile()
        if data.get("first_session_date"):
            return
        data["first_session_date"] = date
        self._write_profile(data)

    def read_mobility_done(self, date: str) -> bool:
        """True if the mobility routine was completed on *date*."""
        return self._read_profile().get("mobility_done") == date

    def write_mobility_done(self, date: str) -> None:
        """
        Mark the mobility routine done on *date* (replaces any earlier day).

        Raises:
            StorageError: If profile.json cannot be written
        """
        validate_date(date)
        data = self._read_profile()
        data["mobility_done"] = date
        self._write_profile(data)

    # -- history ---------------------------------------------------------------

    def _load(self) -> tuple[History, bool]:
        """
        Parse the history file.

        Returns:
            (history, damaged): every record that could be read, and whether
            anything in the file had to be dropped to get there
        """
        if not self.history_path.exists():
            return {}, False

        try:
            with open(self.history_path, "r") as f:
                text = f.read()
        except OSError as e:
            logger.warning("Could not read history %s: %s", self.history_path, e)
            return {}, True
        if not text.strip():
            return {}, False

        errors: list[str] = []
        try:
            history = dict_to_history(json.loads(text), errors)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Treating history %s as empty: %s", self.history_path, e)
            return {}, True

        for message in errors:
            logger.warning("Skipping record in %s: %s", self.history_path, message)
        return history, bool(errors)

    def read_history(self) -> History:
        """
        Load all sessions from the history file.

        A missing, unreadable or malformed file is treated as empty history;
        individual records that fail validation are skipped.

        Returns:
            Mapping of date key to SessionRecord
        """
        return self._load()[0]

    def _backup_path(self) -> Path:
        name = self.history_path.name
        backup = self.history_path.with_name(f"{name}.bak")
        n = 1
        while backup.exists():
            backup = self.history_path.with_name(f"{name}.bak.{n}")
            n += 1
        return backup

    def _set_aside_damaged(self) -> None:
        """Move a history file that did not parse cleanly out of the way."""
        if not self._load()[1]:
            return
        backup = self._backup_path()
        self.history_path.replace(backup)
        logger.warning(
            "History %s contained unreadable data; original moved to %s",
            self.history_path,
            backup,
        )

    def save_history(self, history: History) -> None:
        """
        Rewrite the whole history file.

        Raises:
            StorageError: If the file cannot be written, or a damaged file
                cannot be moved aside first
        """
        try:
            self._set_aside_damaged()
            self.history_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.history_path, "w") as f:
                json.dump(history_to_dict(history), f, indent=2)
                f.write("\n")
        except OSError as e:
            raise StorageError(f"Could not write {self.history_path}: {e}") from e

    def write_session(self, date_key: str, record: SessionRecord) -> None:
        """
        Add or replace the record for one date.

        Raises:
            StorageError: If the file cannot be written
            ValidationError: If date_key is malformed
        """
        validate_date(date_key)
        history = self.read_history()
        history[date_key] = record
        self.save_history(history)

    def delete_session(self, date_key: str) -> None:
        """
        Delete the record for one date.

        Raises:
            KeyError: If no record exists for the date
        """
        history = self.read_history()
        if date_key not in history:
            raise KeyError(f"No session logged on {date_key}")
        del history[date_key]
        self.save_history(history)

    def clear_all(self) -> None:
        """
        Clear all history and the profile markers (dangerous - use with caution).
        """
        if self.history_path.exists():
            self.history_path.write_text("{}\n")
        if self.profile_path.exists():
            self.profile_path.unlink()

    # -- StorageAdapter --------------------------------------------------------

    async def load_history(self) -> History:
        return await asyncio.to_thread(self.read_history)

    async def save_session(self, date_key: str, record: SessionRecord) -> None:
        await asyncio.to_thread(self.write_session, date_key, record)

    async def get_first_session_date(self) -> str | None:
        return await asyncio.to_thread(self.read_first_session_date)

    async def set_first_session_date(self, date_key: str) -> None:
        await asyncio.to_thread(self.write_first_session_date, date_key)

    async def get_mobility_done(self, date_key: str) -> bool:
        return await asyncio.to_thread(self.read_mobility_done, date_key)

    async def set_mobility_done(self, date_key: str) -> None:
        await asyncio.to_thread(self.write_mobility_done, date_key)


def get_default_history_path() -> Path:
    """
    Get the default history file path (~/.ppl-coach/history.json).
    """
    return user_config_dir() / "history.json"
