"""
Mobility routine: timed stretches for rest days.

The routine is an ordered list of holds loaded from mobility.yaml (bundled
with the package; ~/.ppl-coach/mobility.yaml is merged over it).  A stretch
with ``sides: true`` is held for its duration on the left, then again on the
right.

MobilitySession runs the routine the way WorkoutSession runs a workout: each
hold is a RestTimer deadline applied by tick(), so a host that was suspended
catches up on its next tick.  Finishing the last hold marks the day done in
storage; nothing else is recorded.

    idle --start--> holding --zero/skip--> holding (other side, next stretch)
                    holding --zero/skip (last hold)--> complete
    any non-idle --quit--> idle
"""

import asyncio
import logging
import time
import warnings
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Callable

from ..io.storage import StorageAdapter
from .config import CoachConfig, load_coach_config
from .engine.config_loader import deep_merge, load_yaml_file, user_config_dir
from .feedback import Feedback, notify
from .models import MobilityState, MobilitySummary, Side, WorkoutType
from .schedule import format_date_key, workout_type_for_date
from .timer import RestTimer

logger = logging.getLogger(__name__)

_REQUIRED_STRETCH_FIELDS: frozenset[str] = frozenset({"key", "name", "duration", "instruction"})


@dataclass(frozen=True)
class MobilityStretch:
    """One stretch of the mobility routine."""

    key: str
    name: str
    duration: int             # seconds per hold
    instruction: str
    sides: bool = False       # held left, then right
    demo_id: str | None = None

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError(f"duration for {self.key!r} must be positive")

    @property
    def total_seconds(self) -> int:
        return self.duration * 2 if self.sides else self.duration


def stretch_from_dict(d: dict) -> MobilityStretch:
    """Convert a raw dict (from YAML) to a MobilityStretch.

    Raises ValueError if any required field is absent or invalid.
    """
    missing = _REQUIRED_STRETCH_FIELDS - set(d)
    if missing:
        raise ValueError(f"MobilityStretch missing fields: {sorted(missing)}")

    demo_id = d.get("demo_id")
    return MobilityStretch(
        key=str(d["key"]),
        name=str(d["name"]),
        duration=int(d["duration"]),
        instruction=" ".join(str(d["instruction"]).split()),
        sides=bool(d.get("sides", False)),
        demo_id=str(demo_id) if demo_id else None,
    )


def _get_bundled_mobility_path() -> Path | None:
    # mobility.py lives at src/ppl_coach/core/mobility.py
    candidate = Path(__file__).parent.parent / "mobility.yaml"
    return candidate if candidate.is_file() else None


def load_mobility_routine() -> list[MobilityStretch]:
    """
    Return the stretches of the mobility routine, in order.

    A ``stretches`` list in the user file replaces the bundled list.  Entries
    that fail validation are skipped with a warning.
    """
    raw: dict = {}
    bundled = _get_bundled_mobility_path()
    if bundled is not None:
        raw = load_yaml_file(bundled)
    user = user_config_dir() / "mobility.yaml"
    if user.exists():
        raw = deep_merge(raw, load_yaml_file(user))

    entries = raw.get("stretches") or []
    if not isinstance(entries, list):
        warnings.warn("ppl-coach: mobility 'stretches' must be a list", stacklevel=2)
        return []

    routine: list[MobilityStretch] = []
    for i, entry in enumerate(entries, 1):
        try:
            if not isinstance(entry, dict):
                raise ValueError("expected a mapping")
            routine.append(stretch_from_dict(entry))
        except (TypeError, ValueError) as exc:
            warnings.warn(f"ppl-coach: skipping mobility stretch {i}: {exc}", stacklevel=2)
    return routine


def mobility_total_duration(routine: list[MobilityStretch] | None = None) -> int:
    """Seconds the routine takes, counting both sides of sided stretches."""
    if routine is None:
        routine = load_mobility_routine()
    return sum(s.total_seconds for s in routine)


class MobilitySession:
    """
    One run through the mobility routine on one calendar day.

    Args:
        storage: Adapter holding the mobility-done marker
        session_date: Calendar day of the routine (default: today)
        feedback: Receives countdown, side switch and completion cues
        clock: Returns the current time in seconds (default: time.time)
        config: Overrides the loaded CoachConfig
        speed: Hold countdown multiplier (2.0 = twice as fast)
        routine: Overrides the loaded stretches
    """

    def __init__(
        self,
        storage: StorageAdapter,
        session_date: date | None = None,
        *,
        feedback: Feedback | None = None,
        clock: Callable[[], float] = time.time,
        config: CoachConfig | None = None,
        speed: float = 1.0,
        routine: list[MobilityStretch] | None = None,
    ) -> None:
        self.storage = storage
        self.session_date = session_date or date.today()
        self.feedback = feedback or Feedback()
        self.clock = clock
        self.config = config or load_coach_config()
        self.speed = speed
        self.routine = list(routine) if routine is not None else load_mobility_routine()

        self.done_today = False
        self.state = MobilityState.idle
        self.index = 0
        self.side: Side | None = None
        self.holds_skipped = 0
        self.save_error: str | None = None
        self.summary: MobilitySummary | None = None

        self._timer: RestTimer | None = None
        self._countdown_played: set[int] = set()
        self._save_pending = False
        self._save_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    @property
    def date_key(self) -> str:
        return format_date_key(self.session_date)

    @property
    def workout_type(self) -> WorkoutType:
        return workout_type_for_date(self.session_date, self.config.schedule)

    @property
    def current_stretch(self) -> MobilityStretch | None:
        if self.state is MobilityState.holding and 0 <= self.index < len(self.routine):
            return self.routine[self.index]
        return None

    @property
    def is_paused(self) -> bool:
        return self._timer is not None and self._timer.is_paused

    @property
    def save_pending(self) -> bool:
        if self._save_pending:
            return True
        return self._save_task is not None and not self._save_task.done()

    def timer_seconds(self, now: float | None = None) -> int:
        """Seconds left in the current hold (0 when not holding)."""
        if self._timer is None:
            return 0
        return self._timer.remaining(self.clock() if now is None else now)

    # -- storage ---------------------------------------------------------------

    async def load(self) -> None:
        try:
            self.done_today = await self.storage.get_mobility_done(self.date_key)
        except Exception as e:
            logger.warning("Could not read mobility marker: %s", e)
            self.done_today = False

    async def wait_saved(self) -> MobilitySummary | None:
        """Wait for the done-marker write, running it now if it was deferred."""
        if self._save_task is not None:
            await self._save_task
        elif self._save_pending:
            await self._persist()
        return self.summary

    async def _persist(self) -> None:
        self._save_pending = False
        try:
            await self.storage.set_mobility_done(self.date_key)
        except Exception as e:
            logger.warning("Marking mobility done on %s failed: %s", self.date_key, e)
            self.save_error = str(e) or type(e).__name__
            if self.summary is not None:
                self.summary = replace(self.summary, save_error=self.save_error)
            return
        self.done_today = True
        if self.summary is not None:
            self.summary = replace(self.summary, saved=True)

    # -- events ----------------------------------------------------------------

    def start(self) -> bool:
        """Begin the routine from the first stretch.  Only valid from idle."""
        if self.state is not MobilityState.idle or not self.routine or self.save_pending:
            return False
        self.holds_skipped = 0
        self.save_error = None
        self.summary = None
        self._save_task = None
        self.state = MobilityState.holding
        self._begin_stretch(0, self.clock())
        notify(self.feedback, "on_session_start")
        return True

    def tick(self, now: float | None = None) -> MobilityState:
        """Apply every hold deadline that has passed."""
        now = self.clock() if now is None else now
        while (
            self.state is MobilityState.holding
            and self._timer is not None
            and not self._timer.is_paused
            and self._timer.expired(now)
        ):
            self._advance(self._timer.deadline)

        if self.state is MobilityState.holding and self._timer is not None and not self._timer.is_paused:
            remaining = self._timer.remaining(now)
            countdown_from = self.config.session.countdown_from
            if 0 < remaining <= countdown_from and remaining not in self._countdown_played:
                self._countdown_played.update(range(remaining, countdown_from + 1))
                notify(self.feedback, "on_countdown_tick", remaining)
        return self.state

    recover = tick

    def skip(self) -> bool:
        """End the current hold now (one side of a sided stretch)."""
        if self.state is not MobilityState.holding:
            return False
        self.holds_skipped += 1
        notify(self.feedback, "on_skip")
        self._advance(self.clock())
        return True

    def pause(self) -> bool:
        if self.state is not MobilityState.holding or self._timer is None:
            return False
        return self._timer.pause(self.clock())

    def resume(self) -> bool:
        if self.state is not MobilityState.holding or self._timer is None:
            return False
        return self._timer.resume(self.clock())

    def quit(self) -> bool:
        """Leave the routine.  From `complete` the marker write is left to finish."""
        if self.state is MobilityState.idle:
            return False
        self._timer = None
        self.index = 0
        self.side = None
        self.state = MobilityState.idle
        return True

    done = quit

    # -- internals -------------------------------------------------------------

    def _begin_stretch(self, index: int, at: float) -> None:
        stretch = self.routine[index]
        self.index = index
        self.side = "left" if stretch.sides else None
        self._start_hold(stretch, at)

    def _start_hold(self, stretch: MobilityStretch, at: float) -> None:
        self._timer = RestTimer(stretch.duration, at, self.speed)
        self._countdown_played = set()

    def _advance(self, at: float) -> None:
        stretch = self.routine[self.index]
        if stretch.sides and self.side == "left":
            self.side = "right"
            self._start_hold(stretch, at)
            notify(self.feedback, "on_switch_side")
        elif self.index + 1 < len(self.routine):
            self._begin_stretch(self.index + 1, at)
            notify(self.feedback, "on_next_exercise")
        else:
            self._complete()

    def _complete(self) -> None:
        self._timer = None
        self.side = None
        self.state = MobilityState.complete
        self.summary = MobilitySummary(
            date_key=self.date_key,
            stretches=len(self.routine),
            holds_skipped=self.holds_skipped,
            total_seconds=mobility_total_duration(self.routine),
        )
        self._save_pending = True
        notify(self.feedback, "on_session_complete")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; mobility marker deferred to wait_saved()")
            return
        self._save_task = loop.create_task(self._persist())
        self._background.add(self._save_task)
        self._save_task.add_done_callback(self._background.discard)
