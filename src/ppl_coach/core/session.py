"""
Workout session state machine.

    idle --start--> exercising --log_set--> resting --zero--> exercising
                                                     +--> transitioning --> exercising
                     exercising --log_set (last set of last exercise)--> complete
    any non-idle --quit--> idle

The machine is a single-threaded actor: user events (start, log_set, skip,
pause, resume, undo, finish_transition, quit) and clock ticks are the only
inputs, and every event method is synchronous.  Events that do not apply to
the current state are ignored and return False.

Time comes from an injected clock.  Delayed steps (the feedback pause after a
logged set, the rest countdown, the pause between exercises) are stored as
absolute deadlines and applied by tick(); calling recover() after the host
was suspended catches up every deadline that passed in the meantime, firing
each transition exactly once.

Storage is asynchronous.  load() awaits history before a workout; on
completion the machine enters `complete` immediately and writes the record in
the background.  A failed write is reported through save_error and the
SessionSummary, never raised.  A new workout cannot start until the previous
record has been handed to storage.
"""

import asyncio
import logging
import time
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable

from ..io.storage import StorageAdapter
from .config import CoachConfig, load_coach_config
from .exercises import ExerciseDefinition, exercises_for_type
from .feedback import Feedback, WakeLock, notify
from .models import (
    FlashColor,
    History,
    SessionRecord,
    SessionSnapshot,
    SessionState,
    SessionSummary,
    WorkoutType,
)
from .progression import compute_targets, previous_value as last_value
from .schedule import format_date_key, sets_for_week, week_number, workout_type_for_date
from .timer import RestTimer

logger = logging.getLogger(__name__)

ExerciseSource = Callable[[str], list[ExerciseDefinition]]


class WorkoutSession:
    """
    One user's workout for one calendar day.

    Args:
        storage: Adapter holding history and the first session date
        session_date: Calendar day of the workout (default: today)
        feedback: Receives audio/haptic cues
        wake_lock: Kept while a workout is active
        clock: Returns the current time in seconds (default: time.time)
        config: Overrides the loaded CoachConfig
        speed: Rest countdown multiplier (2.0 = twice as fast)
        exercises: Maps a workout type to its ordered exercise list
    """

    def __init__(
        self,
        storage: StorageAdapter,
        session_date: date | None = None,
        *,
        feedback: Feedback | None = None,
        wake_lock: WakeLock | None = None,
        clock: Callable[[], float] = time.time,
        config: CoachConfig | None = None,
        speed: float = 1.0,
        exercises: ExerciseSource = exercises_for_type,
    ) -> None:
        self.storage = storage
        self.session_date = session_date or date.today()
        self.feedback = feedback or Feedback()
        self.wake_lock = wake_lock or WakeLock()
        self.clock = clock
        self.config = config or load_coach_config()
        self.speed = speed
        self._exercise_source = exercises

        self.history: History = {}
        self.first_session_date: str | None = None

        self.state = SessionState.idle
        self.exercises: list[ExerciseDefinition] = []
        self.exercise_index = 0
        self.current_set = 0
        self.session_values: dict[str, list[int]] = {}
        self.next_exercise_name = ""
        self.save_error: str | None = None
        self.summary: SessionSummary | None = None

        self._week = 1
        self._targets: dict[str, list[int]] = {}
        self._timer: RestTimer | None = None
        self._countdown_played: set[int] = set()
        self._advance_at: float | None = None
        self._transition_until: float | None = None
        self._flash: FlashColor | None = None
        self._flash_until: float | None = None
        self._wake_lock_held = False
        self._save_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._pending_save: tuple[str, SessionRecord] | None = None

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def date_key(self) -> str:
        return format_date_key(self.session_date)

    @property
    def workout_type(self) -> WorkoutType:
        return workout_type_for_date(self.session_date, self.config.schedule)

    @property
    def week_number(self) -> int:
        """Week in effect; frozen when a workout starts."""
        if self.state is not SessionState.idle:
            return self._week
        return week_number(self.first_session_date, self.session_date)

    @property
    def sets_per_exercise(self) -> int:
        return sets_for_week(self.week_number, self.config.volume)

    @property
    def current_exercise(self) -> ExerciseDefinition | None:
        if 0 <= self.exercise_index < len(self.exercises):
            return self.exercises[self.exercise_index]
        return None

    @property
    def current_target(self) -> int:
        ex = self.current_exercise
        if ex is None:
            return self.config.reps.start
        targets = self._targets.get(ex.key) or self._compute_targets(ex)
        if self.current_set < len(targets):
            return targets[self.current_set]
        return targets[0] if targets else self.config.progression_for(ex.unit).start

    @property
    def previous_value(self) -> int | None:
        """What the user logged for this set last time."""
        ex = self.current_exercise
        if ex is None:
            return None
        return last_value(ex.key, self.current_set, self.session_date, self.history)

    @property
    def is_paused(self) -> bool:
        return self._timer is not None and self._timer.is_paused

    @property
    def save_pending(self) -> bool:
        """A completed workout's record has not been written yet."""
        if self._pending_save is not None:
            return True
        return self._save_task is not None and not self._save_task.done()

    @property
    def awaiting_feedback(self) -> bool:
        """A set was just logged and the hit/miss cue is still playing."""
        return self._advance_at is not None

    def timer_seconds(self, now: float | None = None) -> int:
        """Seconds left in the current rest (full duration when not resting)."""
        if self._timer is None:
            return self.config.session.rest_seconds
        return self._timer.remaining(self.clock() if now is None else now)

    def flash(self, now: float | None = None) -> FlashColor | None:
        """Hit/miss flag of the last logged set while it is still showing."""
        if self._flash_until is None:
            return None
        if (self.clock() if now is None else now) >= self._flash_until:
            return None
        return self._flash

    def _compute_targets(self, ex: ExerciseDefinition) -> list[int]:
        return compute_targets(
            ex.key, self.week_number, self.session_date, self.history, ex.unit, self.config
        )

    def snapshot(self) -> SessionSnapshot:
        """Everything a view needs to render the current state."""
        now = self.clock()
        ex = self.current_exercise
        return SessionSnapshot(
            state=self.state,
            workout_type=self.workout_type,
            exercise_index=self.exercise_index,
            current_set=self.current_set,
            sets_per_exercise=self.sets_per_exercise,
            exercise_key=ex.key if ex else None,
            exercise_name=ex.name if ex else None,
            current_target=self.current_target,
            previous_value=self.previous_value,
            timer=self.timer_seconds(now),
            is_paused=self.is_paused,
            flash=self.flash(now),
            next_exercise_name=self.next_exercise_name,
            week_number=self.week_number,
            session_values={k: list(v) for k, v in self.session_values.items()},
            save_error=self.save_error,
        )

    # =========================================================================
    # Storage
    # =========================================================================

    async def load(self) -> None:
        """Fetch history and the first session date concurrently."""
        history, first = await asyncio.gather(
            self.storage.load_history(),
            self.storage.get_first_session_date(),
            return_exceptions=True,
        )
        if isinstance(history, BaseException):
            logger.warning("Could not load history, starting empty: %s", history)
            history = {}
        if isinstance(first, BaseException):
            logger.warning("Could not load first session date: %s", first)
            first = None
        self.history = history
        self.first_session_date = first

    async def wait_saved(self) -> SessionSummary | None:
        """
        Wait for the completion write, running it now if no event loop was
        available when the workout completed.
        """
        if self._save_task is not None:
            await self._save_task
        elif self._pending_save is not None:
            await self._persist(*self._pending_save)
        return self.summary

    async def _persist(self, date_key: str, record: SessionRecord) -> None:
        self._pending_save = None
        try:
            await self.storage.save_session(date_key, record)
        except Exception as e:
            logger.warning("Saving session %s failed: %s", date_key, e)
            self.save_error = str(e) or type(e).__name__
            if self.summary is not None:
                self.summary = replace(self.summary, saved=False, save_error=self.save_error)
            return

        try:
            await self.storage.set_first_session_date(date_key)
        except Exception as e:
            logger.warning("Recording first session date failed: %s", e)

        await self.load()
        if self.first_session_date is None:
            self.first_session_date = date_key
        if self.summary is not None:
            self.summary = replace(self.summary, saved=True)

    # =========================================================================
    # Events
    # =========================================================================

    def start(self) -> bool:
        """
        Begin today's workout.  Only valid from idle, on a training day, and
        once the previous workout's record is saved (see wait_saved()).
        """
        if self.state is not SessionState.idle:
            return False
        if self.save_pending:
            logger.info("Previous workout on %s is not saved yet", self.date_key)
            return False

        workout_type = self.workout_type
        exercises = self._exercise_source(workout_type) if workout_type != "rest" else []
        if not exercises:
            logger.info("No workout scheduled on %s (%s)", self.date_key, workout_type)
            return False

        self.exercises = list(exercises)
        self._week = week_number(self.first_session_date, self.session_date)
        self._targets = {ex.key: self._compute_targets(ex) for ex in self.exercises}
        self._reset_progress()
        self.save_error = None
        self.summary = None
        self._save_task = None
        self._pending_save = None
        self.state = SessionState.exercising

        try:
            self.wake_lock.request()
            self._wake_lock_held = True
        except Exception as e:
            logger.info("Wake lock unavailable: %s", e)
        notify(self.feedback, "on_session_start")
        return True

    def log_set(self, value: int) -> bool:
        """
        Record a finished set.  *value* must be a non-negative integer.

        The hit/miss cue plays immediately; the move to rest (or completion)
        happens feedback_delay_seconds later on tick().
        """
        ex = self.current_exercise
        if self.state is not SessionState.exercising or self._advance_at is not None or ex is None:
            return False

        now = self.clock()
        hit = value >= self.current_target
        self.session_values.setdefault(ex.key, []).append(value)

        self._flash = "green" if hit else "red"
        self._flash_until = now + self.config.session.flash_seconds
        notify(self.feedback, "on_set_logged", hit)

        self._advance_at = now + self.config.session.feedback_delay_seconds
        self._process(now)
        return True

    def tick(self, now: float | None = None) -> SessionState:
        """Apply every deadline that has passed.  Call about once per second."""
        self._process(self.clock() if now is None else now)
        return self.state

    def recover(self, now: float | None = None) -> SessionState:
        """Catch up after the host was backgrounded or suspended."""
        return self.tick(now)

    def pause(self) -> bool:
        if self.state is not SessionState.resting or self._timer is None:
            return False
        return self._timer.pause(self.clock())

    def resume(self) -> bool:
        if self.state is not SessionState.resting or self._timer is None:
            return False
        resumed = self._timer.resume(self.clock())
        if resumed:
            self._process(self.clock())
        return resumed

    def skip(self) -> bool:
        """End the rest now, as if the countdown had reached zero."""
        if self.state is not SessionState.resting:
            return False
        self._timer = None
        notify(self.feedback, "on_skip")
        self._advance_after_rest(self.clock())
        return True

    def undo(self) -> bool:
        """Drop the set just logged and redo it, abandoning the rest."""
        ex = self.current_exercise
        if self.state is not SessionState.resting or ex is None:
            return False
        values = self.session_values.get(ex.key)
        if values:
            values.pop()
            if not values:
                del self.session_values[ex.key]
        self._timer = None
        self._countdown_played = set()
        self.state = SessionState.exercising
        notify(self.feedback, "on_undo")
        return True

    def finish_transition(self) -> bool:
        if self.state is not SessionState.transitioning:
            return False
        self._transition_until = None
        self.state = SessionState.exercising
        return True

    def quit(self) -> bool:
        """
        Abandon the workout from any non-idle state.  Nothing is saved.

        From `complete` this is the "done" action: the record has already
        been handed to storage and the write is left to finish.
        """
        if self.state is SessionState.idle:
            return False
        self._release_wake_lock()
        self._reset_progress()
        self.exercises = []
        self.next_exercise_name = ""
        self.state = SessionState.idle
        return True

    done = quit

    # =========================================================================
    # Internals
    # =========================================================================

    def _reset_progress(self) -> None:
        self.exercise_index = 0
        self.current_set = 0
        self.session_values = {}
        self._timer = None
        self._countdown_played = set()
        self._advance_at = None
        self._transition_until = None
        self._flash = None
        self._flash_until = None

    def _release_wake_lock(self) -> None:
        if self._wake_lock_held:
            self._wake_lock_held = False
            notify(self.wake_lock, "release")

    def _process(self, now: float) -> None:
        if self._flash_until is not None and now >= self._flash_until:
            self._flash = None
            self._flash_until = None

        if (
            self.state is SessionState.exercising
            and self._advance_at is not None
            and now >= self._advance_at
        ):
            at = self._advance_at
            self._advance_at = None
            if self._is_last_set() and self._is_last_exercise():
                self._complete(at)
            else:
                self._timer = RestTimer(self.config.session.rest_seconds, at, self.speed)
                self._countdown_played = set()
                self.state = SessionState.resting

        if self.state is SessionState.resting and self._timer is not None and not self._timer.is_paused:
            remaining = self._timer.remaining(now)
            if 0 < remaining <= self.config.session.countdown_from and remaining not in self._countdown_played:
                self._countdown_played.update(range(remaining, self.config.session.countdown_from + 1))
                notify(self.feedback, "on_countdown_tick", remaining)
            if remaining == 0:
                ended_at = self._timer.deadline
                self._timer = None
                notify(self.feedback, "on_rest_complete")
                self._advance_after_rest(ended_at)

        if (
            self.state is SessionState.transitioning
            and self._transition_until is not None
            and now >= self._transition_until
        ):
            self.finish_transition()

    def _is_last_set(self) -> bool:
        return self.current_set + 1 >= self.sets_per_exercise

    def _is_last_exercise(self) -> bool:
        return self.exercise_index + 1 >= len(self.exercises)

    def _advance_after_rest(self, at: float) -> None:
        if not self._is_last_set():
            self.current_set += 1
            self.state = SessionState.exercising
        elif not self._is_last_exercise():
            self.exercise_index += 1
            self.current_set = 0
            self.next_exercise_name = self.exercises[self.exercise_index].name
            self.state = SessionState.transitioning
            delay = self.config.session.transition_seconds
            self._transition_until = at + delay if delay > 0 else None
            notify(self.feedback, "on_next_exercise")
        else:
            self._complete(at)

    def _build_record(self, at: float) -> SessionRecord:
        sets = {
            ex.key: list(self.session_values[ex.key])
            for ex in self.exercises
            if self.session_values.get(ex.key)
        }
        return SessionRecord(
            sets=sets,
            logged_at=datetime.fromtimestamp(at, tz=timezone.utc).isoformat(),
            week_number=self._week,
            workout_type=self.workout_type,  # type: ignore[arg-type]
        )

    def _complete(self, at: float) -> None:
        record = self._build_record(at)
        self.state = SessionState.complete
        self.summary = SessionSummary(date_key=self.date_key, record=record)
        self._pending_save = (self.date_key, record)

        notify(self.feedback, "on_session_complete")
        self._release_wake_lock()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; save deferred to wait_saved()")
            return
        self._save_task = loop.create_task(self._persist(self.date_key, record))
        self._background.add(self._save_task)
        self._save_task.add_done_callback(self._background.discard)
