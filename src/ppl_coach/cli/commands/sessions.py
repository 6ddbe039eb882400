"""Session commands: history, delete-record, merge."""

import json
from pathlib import Path
from typing import Annotated

import typer

from ...io.serializers import ValidationError, dict_to_history, history_to_dict, validate_date
from ...io.storage import StorageError
from ...io.sync import merge_histories, sessions_to_upload
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


@app.command("history")
def show_history(
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display every logged session.
    """
    store = get_store(history_path)
    history = store.read_history()

    if json_out:
        print(json.dumps(history_to_dict(history), indent=2))
        return

    views.print_history(history)


@app.command("delete-record")
def delete_record(
    date_key: Annotated[
        str,
        typer.Argument(metavar="DATE", help="Date of the session to delete (YYYY-MM-DD)"),
    ],
    history_path: HistoryPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Remove the session logged on DATE.
    """
    try:
        validate_date(date_key)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store = get_store(history_path)
    history = store.read_history()
    record = history.get(date_key)
    if record is None:
        views.print_error(f"No session logged on {date_key}")
        raise typer.Exit(1)

    views.console.print(
        f"Session to delete: [bold]{date_key}[/bold] "
        f"({views.styled_type(record.workout_type)}, {record.total_sets} sets)"
    )

    if not force and not views.confirm_action("Delete this session?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        store.delete_session(date_key)
    except (KeyError, StorageError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted session {date_key}")


@app.command("merge")
def merge(
    other_file: Annotated[
        Path,
        typer.Argument(help="History JSON exported by the companion device"),
    ],
    history_path: HistoryPathOption = None,
) -> None:
    """
    Merge a history file from the companion device into local history.

    For dates logged on both sides, exercises are combined and the more
    recently logged record wins on conflicts.
    """
    try:
        remote = dict_to_history(json.loads(other_file.read_text()))
    except OSError as e:
        views.print_error(f"Cannot read {other_file}: {e}")
        raise typer.Exit(1)
    except (json.JSONDecodeError, ValidationError) as e:
        views.print_error(f"Invalid history file {other_file}: {e}")
        raise typer.Exit(1)

    store = get_store(history_path)
    local = store.read_history()
    upload = sessions_to_upload(local, remote)
    merged = merge_histories(local, remote)

    try:
        store.save_history(merged)
        if merged:
            store.write_first_session_date(min(merged))
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    added = len(set(merged) - set(local))
    views.print_success(f"Merged {len(remote)} remote sessions ({added} new dates)")
    if upload:
        views.print_info(f"{len(upload)} local sessions newer than the other device: {', '.join(upload)}")
