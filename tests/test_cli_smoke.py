"""
Minimal smoke tests for the ppl-coach CLI.

Tests basic functionality:
- App runs without errors
- Today's targets are shown (rich and JSON)
- A full workout can be trained and is saved
- History can be listed, merged and edited
- The mobility routine runs and marks the day done
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ppl_coach.cli.main import app
from ppl_coach.core import config as config_module
from ppl_coach.core.config import CoachConfig, SessionConfig, VolumeConfig


runner = CliRunner()

MONDAY = "2026-11-02"
SUNDAY = "2026-11-08"

# One set per exercise and near-instant pauses so a whole workout runs quickly
FAST_CONFIG = CoachConfig(
    volume=VolumeConfig(sets_before=1, sets_after=1, threshold_week=2),
    session=SessionConfig(
        rest_seconds=1,
        feedback_delay_seconds=0,
        flash_seconds=0,
        transition_seconds=0.01,
    ),
)


@pytest.fixture
def temp_history_dir(monkeypatch):
    """Create a temporary directory for test files, also used as HOME."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("HOME", tmpdir)
        yield Path(tmpdir)


@pytest.fixture
def fast_config(monkeypatch):
    monkeypatch.setattr(config_module, "_cached", FAST_CONFIG)


def _record(logged_at: str = "2026-11-02T18:00:00+00:00", **sets) -> dict:
    data = dict(sets) or {"trx_pushup": [10, 8, 8]}
    data.update({"logged_at": logged_at, "week_number": 1, "workout_type": "push"})
    return data


def _write_history(path: Path, history: dict) -> None:
    path.write_text(json.dumps(history))


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "push/pull/legs" in result.output.lower()

    def test_exercises_lists_registry(self):
        result = runner.invoke(app, ["exercises"])
        assert result.exit_code == 0
        assert "trx_pushup" in result.output
        assert "12 exercises" in result.output

    def test_today_json(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(app, ["today", "-d", MONDAY, "-p", str(history_path), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["workout_type"] == "push"
        assert data["week_number"] == 1
        assert [e["key"] for e in data["exercises"]][0] == "trx_pushup"
        assert data["exercises"][0]["targets"] == [8, 8, 8]
        assert data["week_progress"] == {"completed": 0, "total": 6}

    def test_today_uses_previous_session(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {"2026-10-29": _record(trx_pushup=[10, 8, 9])})

        result = runner.invoke(
            app, ["today", "-d", MONDAY, "-p", str(history_path), "--json"]
        )
        data = json.loads(result.output)
        pushup = data["exercises"][0]
        # avg(10, 8, 9) = 9, +1
        assert pushup["targets"][0] == 10
        assert pushup["last_time"] == [10, 8, 9]

    def test_today_rest_day(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(app, ["today", "-d", SUNDAY, "-p", str(history_path)])
        assert result.exit_code == 0
        assert "Rest day" in result.output
        assert "MONDAY 9 NOV - PUSH" in result.output
        assert "ppl-coach mobility" in result.output

    def test_invalid_date(self, temp_history_dir):
        result = runner.invoke(app, ["today", "-d", "02/11/2026"])
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_stats_json(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {
            "2026-10-27": _record(),
            "2026-11-02": _record(a=[1, 1], b=[2]),
        })
        result = runner.invoke(app, ["stats", "-d", "2026-11-03", "-p", str(history_path), "-j"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["sessions_completed"] == 1
        assert data["total_sets"] == 3
        assert data["vs_last_week"] == 0
        assert data["streak"] == 1


class TestTrain:
    """Interactive workout driven through stdin."""

    def test_full_workout_is_saved(self, temp_history_dir, fast_config):
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(
            app,
            ["train", "-d", MONDAY, "-p", str(history_path), "--speed", "100"],
            input="10\nabc\n9\n12\n8\n",
        )

        assert result.exit_code == 0, result.output
        assert "Session saved" in result.output
        assert "Not a whole number" in result.output

        saved = json.loads(history_path.read_text())
        record = saved[MONDAY]
        assert record["trx_pushup"] == [10]
        assert record["pike_pushup"] == [9]
        assert record["regular_pushup"] == [8]
        assert record["week_number"] == 1
        assert record["workout_type"] == "push"

        profile = json.loads((temp_history_dir / "profile.json").read_text())
        assert profile["first_session_date"] == MONDAY

    def test_quit_saves_nothing(self, temp_history_dir, fast_config):
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(
            app,
            ["train", "-d", MONDAY, "-p", str(history_path)],
            input="q\ny\n",
        )

        assert result.exit_code == 0
        assert "Nothing was saved" in result.output
        assert not history_path.exists()

    def test_rest_day(self, temp_history_dir, fast_config):
        result = runner.invoke(
            app, ["train", "-d", SUNDAY, "-p", str(temp_history_dir / "history.json")]
        )
        assert result.exit_code == 0
        assert "Rest day" in result.output

    def test_invalid_speed(self, temp_history_dir):
        result = runner.invoke(app, ["train", "--speed", "0"])
        assert result.exit_code == 1


class TestHistoryCommands:
    """history, delete-record and merge."""

    def test_history_json(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {"2026-11-02": _record()})

        result = runner.invoke(app, ["history", "-p", str(history_path), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["2026-11-02"]["trx_pushup"] == [10, 8, 8]

    def test_history_table(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {"2026-11-02": _record()})

        result = runner.invoke(app, ["history", "-p", str(history_path)])
        assert result.exit_code == 0
        assert "2026-11-02" in result.output

    def test_empty_history(self, temp_history_dir):
        result = runner.invoke(app, ["history", "-p", str(temp_history_dir / "history.json")])
        assert result.exit_code == 0
        assert "No sessions recorded yet" in result.output

    def test_delete_record(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {"2026-11-02": _record(), "2026-11-03": _record()})

        result = runner.invoke(
            app, ["delete-record", "2026-11-02", "-p", str(history_path), "--force"]
        )
        assert result.exit_code == 0
        assert list(json.loads(history_path.read_text())) == ["2026-11-03"]

    def test_delete_record_cancelled(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        _write_history(history_path, {"2026-11-02": _record()})

        result = runner.invoke(
            app, ["delete-record", "2026-11-02", "-p", str(history_path)], input="n\n"
        )
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert "2026-11-02" in json.loads(history_path.read_text())

    def test_delete_missing_record(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(
            app, ["delete-record", "2026-11-02", "-p", str(history_path), "-f"]
        )
        assert result.exit_code == 1

    def test_merge(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        other = temp_history_dir / "desktop.json"
        _write_history(history_path, {
            "2026-11-02": _record("2026-11-02T18:00:00+00:00", trx_pushup=[10]),
        })
        _write_history(other, {
            "2026-11-02": _record("2026-11-02T19:00:00+00:00", trx_pushup=[12], pike_pushup=[6]),
            "2026-11-03": _record("2026-11-03T19:00:00+00:00", trx_row=[9]),
        })

        result = runner.invoke(app, ["merge", str(other), "-p", str(history_path)])
        assert result.exit_code == 0, result.output

        merged = json.loads(history_path.read_text())
        assert merged["2026-11-02"]["trx_pushup"] == [12]
        assert merged["2026-11-02"]["pike_pushup"] == [6]
        assert merged["2026-11-03"]["trx_row"] == [9]

    def test_merge_invalid_file(self, temp_history_dir):
        other = temp_history_dir / "desktop.json"
        other.write_text("not json")
        result = runner.invoke(
            app, ["merge", str(other), "-p", str(temp_history_dir / "history.json")]
        )
        assert result.exit_code == 1

    def test_merge_keeps_valid_local_records(self, temp_history_dir):
        history_path = temp_history_dir / "history.json"
        other = temp_history_dir / "desktop.json"
        damaged = _record("2026-10-02T18:00:00+00:00", trx_row=[10, 9.5])
        _write_history(history_path, {"2026-10-01": _record(), "2026-10-02": damaged})
        _write_history(other, {"2026-11-03": _record("2026-11-03T19:00:00+00:00", trx_row=[9])})

        result = runner.invoke(app, ["merge", str(other), "-p", str(history_path)])
        assert result.exit_code == 0, result.output

        merged = json.loads(history_path.read_text())
        assert sorted(merged) == ["2026-10-01", "2026-11-03"]
        backup = json.loads((temp_history_dir / "history.json.bak").read_text())
        assert backup["2026-10-02"]["trx_row"] == [10, 9.5]


def _short_mobility_routine(home: Path) -> None:
    user_dir = home / ".ppl-coach"
    user_dir.mkdir(exist_ok=True)
    (user_dir / "mobility.yaml").write_text(
        "stretches:\n"
        "  - {key: hip, name: HIP FLEXOR, duration: 2, sides: true, instruction: Kneel.}\n"
        "  - {key: chest, name: CHEST OPENER, duration: 2, instruction: Lean.}\n"
    )


class TestMobility:
    """Timed stretching routine on a rest day."""

    def test_routine_marks_day_done(self, temp_history_dir):
        _short_mobility_routine(temp_history_dir)
        history_path = temp_history_dir / "history.json"
        result = runner.invoke(
            app, ["mobility", "-d", SUNDAY, "-p", str(history_path), "--speed", "10"]
        )

        assert result.exit_code == 0, result.output
        assert "HIP FLEXOR" in result.output
        assert "right side" in result.output
        assert "Mobility marked done" in result.output
        profile = json.loads((temp_history_dir / "profile.json").read_text())
        assert profile["mobility_done"] == SUNDAY

        today = runner.invoke(app, ["today", "-d", SUNDAY, "-p", str(history_path), "--json"])
        assert json.loads(today.output)["mobility_done"] is True

    def test_already_done_can_be_declined(self, temp_history_dir):
        _short_mobility_routine(temp_history_dir)
        (temp_history_dir / "profile.json").write_text(json.dumps({"mobility_done": SUNDAY}))

        result = runner.invoke(
            app,
            ["mobility", "-d", SUNDAY, "-p", str(temp_history_dir / "history.json")],
            input="n\n",
        )
        assert result.exit_code == 0
        assert "already done" in result.output

    def test_invalid_speed(self, temp_history_dir):
        result = runner.invoke(app, ["mobility", "--speed", "0"])
        assert result.exit_code == 1
