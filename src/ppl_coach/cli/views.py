"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workout data, and the console
implementation of the Feedback cues.
"""

from dataclasses import dataclass
from typing import Mapping

from rich.console import Console
from rich.table import Table

from ..core.exercises import ExerciseDefinition
from ..core.feedback import Feedback
from ..core.mobility import MobilityStretch
from ..core.models import (
    Comparison,
    MobilitySummary,
    SessionRecord,
    SessionSnapshot,
    SessionSummary,
    Side,
    WeeklyStats,
    WeekProgress,
    WorkoutType,
)

console = Console()

TYPE_STYLES: dict[str, str] = {
    "push": "magenta",
    "pull": "cyan",
    "legs": "green",
    "rest": "dim",
}


@dataclass
class TargetRow:
    """One exercise line of the "today" view."""

    exercise: ExerciseDefinition
    targets: list[int]
    last_time: list[int]
    level_up: bool = False


def styled_type(workout_type: str | None) -> str:
    if workout_type is None:
        return "-"
    style = TYPE_STYLES.get(workout_type, "white")
    return f"[{style}]{workout_type.upper()}[/{style}]"


def _fmt_values(values: list[int]) -> str:
    return " / ".join(str(v) for v in values) if values else "-"


def format_history_table(history: Mapping[str, SessionRecord]) -> Table:
    """
    Create a Rich table displaying session history.

    Args:
        history: date key -> record

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")

    table.add_column("Date", style="cyan")
    table.add_column("Type")
    table.add_column("Week", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Exercises")

    for date_key in sorted(history):
        record = history[date_key]
        exercises = ", ".join(
            f"{key} {_fmt_values(values)}" for key, values in record.sets.items()
        )
        table.add_row(
            date_key,
            styled_type(record.workout_type),
            str(record.week_number),
            str(record.total_sets),
            exercises or "-",
        )

    return table


def print_history(history: Mapping[str, SessionRecord]) -> None:
    """
    Print session history to console.

    Args:
        history: Records to display
    """
    if not history:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    console.print(format_history_table(history))


def format_targets_table(rows: list[TargetRow], workout_type: WorkoutType, week: int) -> Table:
    """Targets for each exercise of today's workout."""
    table = Table(title=f"{workout_type.upper()} day - week {week}")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="bold")
    table.add_column("Unit")
    table.add_column("Targets", justify="right")
    table.add_column("Last time", justify="right", style="dim")

    for i, row in enumerate(rows, 1):
        name = row.exercise.name
        if row.level_up:
            name += " [yellow](try a harder variation)[/yellow]"
        table.add_row(
            str(i),
            name,
            row.exercise.unit,
            _fmt_values(row.targets),
            _fmt_values(row.last_time),
        )
    return table


def format_progress(progress: WeekProgress, streak: int, stats: WeeklyStats | None = None) -> str:
    """
    Format this week's progress as text block.

    Returns:
        Formatted string
    """
    lines = [
        f"- This week: {progress.completed}/{progress.total} training days",
        f"- Streak: {streak} training day{'s' if streak != 1 else ''}",
    ]
    if stats is not None:
        lines.append(f"- Sets logged this week: {stats.total_sets}")
        if stats.vs_last_week is not None:
            lines.append(f"- Sessions vs last week: {stats.vs_last_week:+d}")
    return "\n".join(lines)


def print_exercise_prompt(snap: SessionSnapshot, unit: str) -> None:
    """Header shown before each set."""
    console.print()
    console.print(
        f"[bold]{snap.exercise_name}[/bold]  "
        f"set {snap.current_set + 1}/{snap.sets_per_exercise}  "
        f"target [bold]{snap.current_target}[/bold] {unit}"
    )
    if snap.previous_value is not None:
        console.print(f"  [dim]last time: {snap.previous_value}[/dim]")


_COMPARISON_TEXT: dict[str, str] = {
    "improved": "[green]up from {prev}[/green]",
    "decreased": "[red]down from {prev}[/red]",
    "same": "[dim]same as last time ({prev})[/dim]",
}


def print_comparison(comparison: Comparison) -> None:
    """One line comparing a logged set with the same set last session."""
    text = _COMPARISON_TEXT.get(comparison.status)
    if text is not None:
        console.print("  " + text.format(prev=comparison.previous_value))


def print_session_summary(summary: SessionSummary) -> None:
    """
    Print the values logged in a finished workout and whether they were saved.
    """
    record = summary.record
    table = Table(title=f"{summary.date_key} - week {record.week_number}")
    table.add_column("Exercise", style="bold")
    table.add_column("Logged", justify="right")
    for key, values in record.sets.items():
        table.add_row(key, _fmt_values(values))
    console.print(table)

    if summary.saved:
        print_success("Session saved.")
    elif summary.save_error:
        print_error(f"Session could not be saved: {summary.save_error}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")


class ConsoleFeedback(Feedback):
    """Workout cues rendered as console lines (and the terminal bell)."""

    def on_session_start(self) -> None:
        console.print("[bold cyan]Let's go.[/bold cyan]")

    def on_set_logged(self, hit_target: bool) -> None:
        if hit_target:
            console.print("  [green]Target hit[/green]")
        else:
            console.print("  [red]Below target[/red]")

    def on_countdown_tick(self, seconds_left: int) -> None:
        console.print(f"  [dim]{seconds_left}...[/dim]")

    def on_rest_complete(self) -> None:
        console.bell()
        console.print("  [bold]Rest over[/bold]")

    def on_next_exercise(self) -> None:
        console.print("  [cyan]Next exercise[/cyan]")

    def on_skip(self) -> None:
        console.print("  [dim]Rest skipped[/dim]")

    def on_session_complete(self) -> None:
        console.bell()
        console.print("[bold green]All done![/bold green]")

    def on_undo(self) -> None:
        console.print("  [yellow]Last set removed[/yellow]")

    def on_switch_side(self) -> None:
        console.bell()
        console.print("  [cyan]Switch sides[/cyan]")


def print_stretch(stretch: MobilityStretch, side: Side | None, position: int, total: int) -> None:
    """Header shown at the start of each mobility hold."""
    label = f" - {side} side" if side else ""
    console.print()
    console.print(
        f"[bold]{stretch.name}[/bold]{label}  "
        f"{position}/{total}  {stretch.duration}s"
    )
    console.print(f"  [dim]{stretch.instruction}[/dim]")


def print_mobility_summary(summary: MobilitySummary) -> None:
    """Print the outcome of a finished mobility routine."""
    minutes, seconds = divmod(summary.total_seconds, 60)
    line = f"{summary.stretches} stretches, {minutes}:{seconds:02d}"
    if summary.holds_skipped:
        line += f" ({summary.holds_skipped} holds skipped)"
    console.print(line)

    if summary.saved:
        print_success("Mobility marked done for today.")
    elif summary.save_error:
        print_error(f"Mobility could not be recorded: {summary.save_error}")
