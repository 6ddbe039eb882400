"""Schedule commands: today, stats, exercises."""

import json

from rich.table import Table

from ...core.exercises import EXERCISE_REGISTRY, exercises_for_type
from ...core.mobility import load_mobility_routine, mobility_total_duration
from ...core.progression import compute_targets, previous_session_date, should_increase_difficulty
from ...core.schedule import (
    format_date_key,
    next_training_message,
    training_streak,
    week_number,
    week_progress,
    weekly_stats,
    workout_type_for_date,
)
from .. import views
from ..app import DateOption, HistoryPathOption, JsonOption, app, get_store, resolve_date


@app.command("today")
def today(
    date: DateOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the workout scheduled for a day and the target for every set.
    """
    day = resolve_date(date)
    store = get_store(history_path)
    history = store.read_history()
    week = week_number(store.read_first_session_date(), day)
    workout_type = workout_type_for_date(day)
    progress = week_progress(day, history)
    streak = training_streak(day, history)

    rows: list[views.TargetRow] = []
    for ex in exercises_for_type(workout_type):
        prev_key = previous_session_date(day, history, ex.key)
        rows.append(
            views.TargetRow(
                exercise=ex,
                targets=compute_targets(ex.key, week, day, history, ex.unit),
                last_time=history[prev_key].values_for(ex.key) if prev_key else [],
                level_up=should_increase_difficulty(ex.key, history, ex.unit),
            )
        )

    if json_out:
        print(json.dumps({
            "date": format_date_key(day),
            "workout_type": workout_type,
            "week_number": week,
            "exercises": [
                {
                    "key": r.exercise.key,
                    "name": r.exercise.name,
                    "unit": r.exercise.unit,
                    "targets": r.targets,
                    "last_time": r.last_time,
                    "increase_difficulty": r.level_up,
                }
                for r in rows
            ],
            "week_progress": {"completed": progress.completed, "total": progress.total},
            "streak": streak,
            "done_today": format_date_key(day) in history,
            "mobility_done": store.read_mobility_done(format_date_key(day)),
        }, indent=2))
        return

    views.console.print()
    if workout_type == "rest":
        views.console.print("[bold]Rest day.[/bold] Recover well.")
        views.console.print(f"Next session: {next_training_message(day)}")
        _print_mobility_hint(store.read_mobility_done(format_date_key(day)))
    else:
        views.console.print(views.format_targets_table(rows, workout_type, week))
        if format_date_key(day) in history:
            views.print_success("Already done today.")
    views.console.print(views.format_progress(progress, streak))


def _print_mobility_hint(done: bool) -> None:
    if done:
        views.print_success("Mobility done today.")
        return
    routine = load_mobility_routine()
    if routine:
        minutes = round(mobility_total_duration(routine) / 60)
        views.console.print(
            f"Mobility: {len(routine)} stretches, about {minutes} min "
            "([cyan]ppl-coach mobility[/cyan])"
        )


@app.command("stats")
def stats(
    date: DateOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show weekly volume, progress and the current streak.
    """
    day = resolve_date(date)
    history = get_store(history_path).read_history()
    progress = week_progress(day, history)
    streak = training_streak(day, history)
    weekly = weekly_stats(day, history)

    if json_out:
        print(json.dumps({
            "sessions_completed": weekly.sessions_completed,
            "total_sets": weekly.total_sets,
            "vs_last_week": weekly.vs_last_week,
            "week_progress": {"completed": progress.completed, "total": progress.total},
            "streak": streak,
        }, indent=2))
        return

    views.console.print(views.format_progress(progress, streak, weekly))


@app.command("exercises")
def list_exercises() -> None:
    """
    List every exercise the coach knows, grouped by workout type.
    """
    table = Table(title="Exercises")
    table.add_column("Type")
    table.add_column("Key", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Unit")
    for workout_type in ("push", "pull", "legs"):
        for ex in exercises_for_type(workout_type):
            table.add_row(views.styled_type(workout_type), ex.key, ex.name, ex.unit)
    views.console.print(table)
    views.console.print(f"[dim]{len(EXERCISE_REGISTRY)} exercises[/dim]")
