"""
Tests for record serialization and the storage adapters.
"""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest

from ppl_coach.core.models import SessionRecord
from ppl_coach.io.history_store import JsonHistoryStore
from ppl_coach.io.serializers import (
    ValidationError,
    dict_to_history,
    dict_to_record,
    parse_value,
    record_to_dict,
)
from ppl_coach.io.storage import MemoryStorage, StorageError


@pytest.fixture
def temp_history_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _record(**sets: list[int]) -> SessionRecord:
    return SessionRecord(
        sets=dict(sets) or {"trx_pushup": [10, 8, 8]},
        logged_at="2026-11-02T18:30:00+00:00",
        week_number=1,
        workout_type="push",
    )


# ===========================================================================
# serializers.py
# ===========================================================================


class TestRecordFormat:
    """Exercise keys and metadata share one flat object."""

    def test_record_to_dict(self):
        data = record_to_dict(_record(trx_pushup=[10, 8], pike_pushup=[6]))
        assert data == {
            "trx_pushup": [10, 8],
            "pike_pushup": [6],
            "logged_at": "2026-11-02T18:30:00+00:00",
            "week_number": 1,
            "workout_type": "push",
        }
        assert list(data)[:2] == ["trx_pushup", "pike_pushup"]

    def test_legacy_record_without_type(self):
        record = dict_to_record({"a": [1, 2], "logged_at": "x", "week_number": 3})
        assert record.workout_type is None
        assert record.sets == {"a": [1, 2]}
        assert "workout_type" not in record_to_dict(record)

    @pytest.mark.parametrize(
        "data",
        [
            {"a": [1], "week_number": 1},
            {"a": [1], "logged_at": "x"},
            {"a": [1], "logged_at": "x", "week_number": "1"},
            {"a": [1], "logged_at": "x", "week_number": 0},
            {"a": [-1], "logged_at": "x", "week_number": 1},
            {"a": [1.5], "logged_at": "x", "week_number": 1},
            {"a": [True], "logged_at": "x", "week_number": 1},
            {"a": "10", "logged_at": "x", "week_number": 1},
            {"a": [1], "logged_at": "x", "week_number": 1, "workout_type": "rest"},
        ],
    )
    def test_invalid_records_rejected(self, data):
        with pytest.raises(ValidationError):
            dict_to_record(data)

    def test_bad_date_key_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_history({"02/11/2026": record_to_dict(_record())})

    def test_history_must_be_object(self):
        with pytest.raises(ValidationError):
            dict_to_history([])

    def test_bad_entries_collected_when_lenient(self):
        errors: list[str] = []
        history = dict_to_history(
            {
                "2026-11-02": record_to_dict(_record()),
                "2026-11-03": {"a": [1.5], "logged_at": "x", "week_number": 1},
                "yesterday": record_to_dict(_record()),
            },
            errors,
        )
        assert list(history) == ["2026-11-02"]
        assert len(errors) == 2
        assert errors[0].startswith("2026-11-03:")


class TestParseValue:
    """Values typed at the set prompt."""

    def test_integer(self):
        assert parse_value(" 12 ") == 12
        assert parse_value("0") == 0

    @pytest.mark.parametrize("raw", ["", "  ", "abc", "7.5", "-3"])
    def test_rejected(self, raw):
        with pytest.raises(ValidationError):
            parse_value(raw)


# ===========================================================================
# storage.py
# ===========================================================================


class TestMemoryStorage:
    """Reference adapter."""

    def test_save_and_load(self):
        storage = MemoryStorage()
        asyncio.run(storage.save_session("2026-11-02", _record()))
        history = asyncio.run(storage.load_history())
        assert history["2026-11-02"].sets == {"trx_pushup": [10, 8, 8]}

    def test_loaded_history_is_a_copy(self):
        storage = MemoryStorage()
        asyncio.run(storage.save_session("2026-11-02", _record()))
        history = asyncio.run(storage.load_history())
        history["2026-11-02"].sets["trx_pushup"].append(99)
        again = asyncio.run(storage.load_history())
        assert again["2026-11-02"].sets["trx_pushup"] == [10, 8, 8]

    def test_first_session_date_first_write_wins(self):
        storage = MemoryStorage()
        asyncio.run(storage.set_first_session_date("2026-11-02"))
        asyncio.run(storage.set_first_session_date("2026-11-09"))
        assert asyncio.run(storage.get_first_session_date()) == "2026-11-02"

    def test_bad_date_key(self):
        with pytest.raises(ValidationError):
            asyncio.run(MemoryStorage().save_session("tomorrow", _record()))

    def test_mobility_marker_is_per_day(self):
        storage = MemoryStorage()
        assert not asyncio.run(storage.get_mobility_done("2026-11-08"))
        asyncio.run(storage.set_mobility_done("2026-11-08"))
        assert asyncio.run(storage.get_mobility_done("2026-11-08"))
        assert not asyncio.run(storage.get_mobility_done("2026-11-15"))


# ===========================================================================
# history_store.py
# ===========================================================================


class TestJsonHistoryStore:
    """History file plus profile.json beside it."""

    def test_missing_file_is_empty(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        assert store.read_history() == {}
        assert store.read_first_session_date() is None

    def test_write_and_read(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_session("2026-11-04", _record(trx_row=[12]))
        store.write_session("2026-11-02", _record())

        raw = json.loads(store.history_path.read_text())
        assert list(raw) == ["2026-11-02", "2026-11-04"]
        assert raw["2026-11-04"]["trx_row"] == [12]

        history = store.read_history()
        assert history["2026-11-02"].workout_type == "push"

    def test_same_date_replaced(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_session("2026-11-02", _record(a=[1]))
        store.write_session("2026-11-02", _record(b=[2]))
        assert store.read_history()["2026-11-02"].sets == {"b": [2]}

    @pytest.mark.parametrize("content", ["not json", "[1, 2]", '{"2026-11-02": {"a": [1]}}', ""])
    def test_malformed_file_is_empty(self, temp_history_dir, content):
        path = temp_history_dir / "history.json"
        path.write_text(content)
        assert JsonHistoryStore(path).read_history() == {}

    def test_bad_record_skipped_on_read(self, temp_history_dir):
        path = temp_history_dir / "history.json"
        bad = record_to_dict(_record(trx_row=[10]))
        bad["trx_row"] = [10, 9.5]
        path.write_text(json.dumps({
            "2026-10-01": record_to_dict(_record()),
            "2026-10-02": bad,
        }))

        history = JsonHistoryStore(path).read_history()
        assert list(history) == ["2026-10-01"]

    def test_save_keeps_valid_records_and_backs_up_damaged_file(self, temp_history_dir):
        path = temp_history_dir / "history.json"
        bad = record_to_dict(_record(trx_row=[10]))
        bad["trx_row"] = [10, 9.5]
        original = json.dumps({
            "2026-10-01": record_to_dict(_record()),
            "2026-10-02": bad,
        })
        path.write_text(original)
        store = JsonHistoryStore(path)

        asyncio.run(store.save_session("2026-10-05", _record()))

        assert sorted(json.loads(path.read_text())) == ["2026-10-01", "2026-10-05"]
        backup = temp_history_dir / "history.json.bak"
        assert backup.read_text() == original

    def test_unparseable_file_backed_up_before_write(self, temp_history_dir):
        path = temp_history_dir / "history.json"
        path.write_text("{ truncated")
        store = JsonHistoryStore(path)

        store.write_session("2026-11-02", _record())
        store.write_session("2026-11-03", _record())

        assert sorted(json.loads(path.read_text())) == ["2026-11-02", "2026-11-03"]
        assert (temp_history_dir / "history.json.bak").read_text() == "{ truncated"
        assert not (temp_history_dir / "history.json.bak.1").exists()

    def test_second_backup_does_not_overwrite_first(self, temp_history_dir):
        path = temp_history_dir / "history.json"
        store = JsonHistoryStore(path)
        path.write_text("first")
        store.write_session("2026-11-02", _record())
        path.write_text("second")
        store.write_session("2026-11-03", _record())

        assert (temp_history_dir / "history.json.bak").read_text() == "first"
        assert (temp_history_dir / "history.json.bak.1").read_text() == "second"

    def test_mobility_marker(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_first_session_date("2026-11-02")
        assert not store.read_mobility_done("2026-11-08")

        asyncio.run(store.set_mobility_done("2026-11-08"))
        assert asyncio.run(store.get_mobility_done("2026-11-08"))
        assert not store.read_mobility_done("2026-11-15")
        assert store.read_first_session_date() == "2026-11-02"

    def test_first_session_date(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_first_session_date("2026-11-02")
        store.write_first_session_date("2026-11-09")
        assert store.read_first_session_date() == "2026-11-02"
        assert store.profile_path == temp_history_dir / "profile.json"

    def test_delete_session(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_session("2026-11-02", _record())
        store.delete_session("2026-11-02")
        assert store.read_history() == {}
        with pytest.raises(KeyError):
            store.delete_session("2026-11-02")

    def test_clear_all(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")
        store.write_session("2026-11-02", _record())
        store.write_first_session_date("2026-11-02")
        store.clear_all()
        assert store.read_history() == {}
        assert store.read_first_session_date() is None

    def test_unwritable_location_raises(self, temp_history_dir):
        blocker = temp_history_dir / "file"
        blocker.write_text("")
        store = JsonHistoryStore(blocker / "history.json")
        with pytest.raises(StorageError):
            store.save_history({"2026-11-02": _record()})

    def test_async_adapter(self, temp_history_dir):
        store = JsonHistoryStore(temp_history_dir / "history.json")

        async def scenario():
            await store.save_session("2026-11-02", _record())
            await store.set_first_session_date("2026-11-02")
            return await store.load_history(), await store.get_first_session_date()

        history, first = asyncio.run(scenario())
        assert list(history) == ["2026-11-02"]
        assert first == "2026-11-02"
