"""
Storage adapter contract used by the workout state machine.

Every operation is a coroutine so that implementations backed by slow media
(disk, IPC to a native layer, a companion device) never block the caller.

Failure contract:
- reads never raise; a missing or unreadable store is an empty result
- writes raise StorageError, which the session machine catches and exposes
"""

import copy
import logging
from abc import ABC, abstractmethod

from ..core.models import History, SessionRecord
from .serializers import validate_date

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a session or marker could not be written."""

    pass


class StorageAdapter(ABC):
    """
    Async CRUD over per-date session records, the first-session marker and
    the mobility-done marker.

    Implementations must treat set_first_session_date as first-write-wins.
    """

    @abstractmethod
    async def load_history(self) -> History:
        """Return every stored record keyed by YYYY-MM-DD ({} on failure)."""

    @abstractmethod
    async def save_session(self, date_key: str, record: SessionRecord) -> None:
        """Store *record* under *date_key*, replacing any existing record."""

    @abstractmethod
    async def get_first_session_date(self) -> str | None:
        """Return the date of the first completed session, or None."""

    @abstractmethod
    async def set_first_session_date(self, date_key: str) -> None:
        """Record the first session date; a no-op once it is set."""

    @abstractmethod
    async def get_mobility_done(self, date_key: str) -> bool:
        """True if the mobility routine was completed on *date_key*."""

    @abstractmethod
    async def set_mobility_done(self, date_key: str) -> None:
        """Mark the mobility routine completed on *date_key*."""


class MemoryStorage(StorageAdapter):
    """
    In-memory reference adapter.

    Records are deep-copied on the way in and out so callers can never alias
    stored state.
    """

    def __init__(
        self,
        history: History | None = None,
        first_session_date: str | None = None,
        mobility_done: str | None = None,
    ) -> None:
        self._history: History = copy.deepcopy(history) if history else {}
        self._first_session_date = first_session_date
        self._mobility_done = mobility_done
        self.save_count = 0

    async def load_history(self) -> History:
        return copy.deepcopy(self._history)

    async def save_session(self, date_key: str, record: SessionRecord) -> None:
        validate_date(date_key)
        self._history[date_key] = copy.deepcopy(record)
        self.save_count += 1
        logger.debug("Saved session for %s (%d sets)", date_key, record.total_sets)

    async def get_first_session_date(self) -> str | None:
        return self._first_session_date

    async def set_first_session_date(self, date_key: str) -> None:
        validate_date(date_key)
        if self._first_session_date is None:
            self._first_session_date = date_key

    async def get_mobility_done(self, date_key: str) -> bool:
        return self._mobility_done == date_key

    async def set_mobility_done(self, date_key: str) -> None:
        validate_date(date_key)
        self._mobility_done = date_key
