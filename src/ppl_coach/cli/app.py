"""Shared Typer app object, shared option types, and store utility."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.history_store import JsonHistoryStore, get_default_history_path
from . import views

# Shared option types used across commands
HistoryPathOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to history JSON file"),
]
DateOption = Annotated[
    Optional[str],
    typer.Option("--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="ppl-coach",
    help="Guided push/pull/legs workout coach with progressive overload.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_store(history_path: Path | None) -> JsonHistoryStore:
    """Get history store from path or default location."""
    if history_path is None:
        history_path = get_default_history_path()
    return JsonHistoryStore(history_path)


def resolve_date(raw: str | None) -> date:
    """Parse a --date option, defaulting to today; exit on bad input."""
    if raw is None:
        return date.today()
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        views.print_error(f"Invalid date: {raw}. Expected YYYY-MM-DD")
        raise typer.Exit(1)


def configure_logging(verbose: bool) -> None:
    """Route library diagnostics to stderr (DEBUG with --verbose)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
