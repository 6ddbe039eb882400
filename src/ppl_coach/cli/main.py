"""
CLI entry point using Typer.

Provides commands for the push/pull/legs coach:
- today: Show today's workout and targets
- train: Run a guided workout
- history: Display logged sessions
- stats: Weekly progress and streak
- merge: Merge history from the companion device
- delete-record: Delete a session by date
- exercises: List known exercises
- mobility: Timed stretching routine for rest days
"""

from typing import Annotated

import typer

from . import views
from .app import app, configure_logging

# Importing the command modules registers them on the shared app
from .commands.schedule import list_exercises, stats, today
from .commands.sessions import show_history
from .commands.training import mobility, train


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug diagnostics on stderr"),
    ] = False,
) -> None:
    """
    Push/pull/legs workout coach. Run without a command for interactive mode.
    """
    configure_logging(verbose)

    if ctx.invoked_subcommand is not None:
        return

    views.console.print()
    views.console.print("[bold cyan]ppl-coach[/bold cyan] - push / pull / legs coach")
    views.console.print()

    menu = {
        "1": ("today", "Show today's workout"),
        "2": ("train", "Start today's workout"),
        "3": ("history", "Show full history"),
        "4": ("stats", "Weekly stats"),
        "5": ("exercises", "List exercises"),
        "6": ("mobility", "Mobility routine"),
        "0": ("quit", "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = menu.get(choice, (None, None))[0]
    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "today":
        ctx.invoke(today)
    elif chosen == "train":
        ctx.invoke(train)
    elif chosen == "history":
        ctx.invoke(show_history)
    elif chosen == "stats":
        ctx.invoke(stats)
    elif chosen == "exercises":
        ctx.invoke(list_exercises)
    elif chosen == "mobility":
        ctx.invoke(mobility)


if __name__ == "__main__":
    app()
