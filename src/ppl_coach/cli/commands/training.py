"""Training commands: guided interactive workout and the mobility routine."""

import asyncio
import time
from typing import Annotated, Final

import typer

from ...core.mobility import MobilitySession, mobility_total_duration
from ...core.models import MobilityState, SessionState
from ...core.progression import compare_values
from ...core.schedule import next_training_message
from ...core.session import WorkoutSession
from ...io.serializers import ValidationError, parse_value
from .. import views
from ..app import DateOption, HistoryPathOption, app, get_store, resolve_date

# Wall-clock seconds between state machine ticks
POLL_SECONDS: Final[float] = 0.25

SpeedOption = Annotated[
    float,
    typer.Option("--speed", help="Countdown speed multiplier (2 = twice as fast)"),
]


def _sleep(speed: float) -> None:
    time.sleep(POLL_SECONDS / max(1.0, speed))


def _prompt_set(session: WorkoutSession) -> None:
    """Ask for the value of the current set and log it."""
    ex = session.current_exercise
    if ex is None:
        return
    views.print_exercise_prompt(session.snapshot(), ex.unit)
    raw = views.console.input(f"{ex.unit} done ([cyan]q[/cyan] quit): ").strip().lower()

    if raw == "q":
        if views.confirm_action("Quit without saving?"):
            session.quit()
        return

    try:
        value = parse_value(raw)
    except ValidationError as e:
        views.print_error(str(e))
        return
    previous = session.previous_value
    if session.log_set(value):
        views.print_comparison(compare_values(value, previous))


def _rest_menu(session: WorkoutSession) -> None:
    """Options offered when the rest countdown is interrupted with Ctrl-C."""
    paused = session.is_paused
    choice = views.console.input(
        "\\[s] skip rest  \\[u] undo last set  "
        f"\\[p] {'resume' if paused else 'pause'}  \\[q] quit  (Enter continues): "
    ).strip().lower()

    if choice == "s":
        session.skip()
    elif choice == "u":
        session.undo()
    elif choice == "p":
        if paused:
            session.resume()
        else:
            session.pause()
    elif choice == "q":
        if views.confirm_action("Quit without saving?"):
            session.quit()


def _rest(session: WorkoutSession) -> None:
    """Run the rest countdown until the machine leaves `resting`."""
    with views.console.status("") as status:
        while session.state is SessionState.resting:
            label = "paused" if session.is_paused else "rest"
            status.update(f"{label} {session.timer_seconds()}s  [dim](Ctrl-C for options)[/dim]")
            try:
                _sleep(session.speed)
                session.tick()
            except KeyboardInterrupt:
                status.stop()
                _rest_menu(session)
                status.start()


def _transition(session: WorkoutSession) -> None:
    views.console.print(f"\nNext up: [bold]{session.next_exercise_name}[/bold]")
    if session.config.session.transition_seconds <= 0:
        views.console.input("Press Enter when ready")
        session.finish_transition()
        return
    while session.state is SessionState.transitioning:
        _sleep(session.speed)
        session.tick()


def _drive(session: WorkoutSession) -> None:
    """Feed user input and clock ticks to the session until it ends."""
    while session.state not in (SessionState.complete, SessionState.idle):
        state = session.tick()
        if state is SessionState.exercising and not session.awaiting_feedback:
            _prompt_set(session)
        elif state is SessionState.resting:
            _rest(session)
        elif state is SessionState.transitioning:
            _transition(session)
        elif state is SessionState.exercising:
            _sleep(session.speed)


@app.command("train")
def train(
    date: DateOption = None,
    history_path: HistoryPathOption = None,
    speed: SpeedOption = 1.0,
) -> None:
    """
    Run today's workout: log each set, rest between sets, save at the end.

    Press Ctrl-C during a rest for skip/undo/pause; Ctrl-C at a set prompt
    abandons the workout without saving.
    """
    if speed <= 0:
        views.print_error("--speed must be positive")
        raise typer.Exit(1)

    day = resolve_date(date)
    store = get_store(history_path)
    session = WorkoutSession(store, day, feedback=views.ConsoleFeedback(), speed=speed)
    asyncio.run(session.load())

    if session.workout_type == "rest":
        views.console.print("[bold]Rest day.[/bold] Recover well.")
        views.console.print(f"Next session: {next_training_message(day, session.config.schedule)}")
        views.console.print("Stretch instead: [cyan]ppl-coach mobility[/cyan]")
        return

    if session.date_key in session.history:
        views.print_warning(f"A session is already logged on {session.date_key}.")
        if not views.confirm_action("Train again and replace it?"):
            raise typer.Exit(0)

    if not session.start():
        views.print_error(f"No exercises configured for {session.workout_type} day")
        raise typer.Exit(1)

    views.console.print(
        f"[bold]{session.workout_type.upper()}[/bold] - week {session.week_number}, "
        f"{session.sets_per_exercise} sets per exercise, "
        f"{len(session.exercises)} exercises"
    )

    try:
        _drive(session)
    except KeyboardInterrupt:
        session.quit()
        views.console.print()
        views.print_warning("Workout abandoned. Nothing was saved.")
        raise typer.Exit(130)

    if session.state is SessionState.idle:
        views.print_warning("Workout abandoned. Nothing was saved.")
        return

    summary = asyncio.run(session.wait_saved())
    session.done()
    if summary is not None:
        views.print_session_summary(summary)
        if not summary.saved:
            raise typer.Exit(1)


def _hold_menu(session: MobilitySession) -> None:
    """Options offered when a mobility hold is interrupted with Ctrl-C."""
    paused = session.is_paused
    choice = views.console.input(
        f"\\[s] skip hold  \\[p] {'resume' if paused else 'pause'}  \\[q] quit  "
        "(Enter continues): "
    ).strip().lower()

    if choice == "s":
        session.skip()
    elif choice == "p":
        if paused:
            session.resume()
        else:
            session.pause()
    elif choice == "q":
        session.quit()


def _run_mobility(session: MobilitySession) -> None:
    """Count down every hold, announcing each stretch and side as it starts."""
    shown = None
    with views.console.status("") as status:
        while session.state is MobilityState.holding:
            stretch = session.current_stretch
            if stretch is not None and (session.index, session.side) != shown:
                shown = (session.index, session.side)
                views.print_stretch(stretch, session.side, session.index + 1, len(session.routine))
            label = "paused" if session.is_paused else "hold"
            status.update(f"{label} {session.timer_seconds()}s  [dim](Ctrl-C for options)[/dim]")
            try:
                _sleep(session.speed)
                session.tick()
            except KeyboardInterrupt:
                status.stop()
                _hold_menu(session)
                status.start()


@app.command("mobility")
def mobility(
    date: DateOption = None,
    history_path: HistoryPathOption = None,
    speed: SpeedOption = 1.0,
) -> None:
    """
    Run the timed mobility routine (meant for rest days).

    Press Ctrl-C during a hold to skip, pause or quit.
    """
    if speed <= 0:
        views.print_error("--speed must be positive")
        raise typer.Exit(1)

    day = resolve_date(date)
    session = MobilitySession(
        get_store(history_path), day, feedback=views.ConsoleFeedback(), speed=speed
    )
    if not session.routine:
        views.print_error("No mobility stretches configured")
        raise typer.Exit(1)
    asyncio.run(session.load())

    if session.workout_type != "rest":
        views.print_info(f"Today is a {session.workout_type} day; mobility is meant for rest days.")
    if session.done_today:
        views.print_success(f"Mobility already done on {session.date_key}.")
        if not views.confirm_action("Run it again?"):
            raise typer.Exit(0)

    minutes = round(mobility_total_duration(session.routine) / 60)
    views.console.print(
        f"[bold]MOBILITY[/bold] - {len(session.routine)} stretches, about {minutes} min"
    )
    session.start()

    try:
        _run_mobility(session)
    except KeyboardInterrupt:
        session.quit()
        views.console.print()
        views.print_warning("Mobility routine abandoned.")
        raise typer.Exit(130)

    if session.state is MobilityState.idle:
        views.print_warning("Mobility routine abandoned.")
        return

    summary = asyncio.run(session.wait_saved())
    session.done()
    if summary is not None:
        views.print_mobility_summary(summary)
        if not summary.saved:
            raise typer.Exit(1)
