"""Tests for the checkpoint store."""

import json
from pathlib import Path

import pytest

from checkpoint import CheckpointStore
from models import CheckpointEntry


@pytest.fixture
def store(tmp_path: Path) -> CheckpointStore:
    return CheckpointStore(tmp_path / "checkpoint.json")


class TestLoad:
    """Tests for CheckpointStore.load."""

    def test_missing_file_is_empty(self, store: CheckpointStore):
        """No file means no progress."""
        assert store.load() == {}

    def test_invalid_json_is_empty(self, store: CheckpointStore):
        """Corrupted JSON falls back to a fresh start."""
        store.checkpoint_file.write_text("{not json", encoding="utf-8")
        assert store.load() == {}

    def test_non_object_is_empty(self, store: CheckpointStore):
        """A JSON array is not a checkpoint mapping."""
        store.checkpoint_file.write_text("[1, 2, 3]", encoding="utf-8")
        assert store.load() == {}

    def test_directory_in_place_of_file_is_empty(self, store: CheckpointStore):
        """An unreadable path is treated like a missing one."""
        store.checkpoint_file.mkdir()
        assert store.load() == {}

    def test_drops_malformed_entries_only(self, store: CheckpointStore):
        """Valid entries survive next to broken ones."""
        store.checkpoint_file.write_text(
            json.dumps(
                {
                    "GOOD": {"offset": 4, "expectedTotal": 10, "lastUpdate": "t"},
                    "MISSING": {"offset": 4},
                    "NEGATIVE": {"offset": -1, "expectedTotal": 10},
                    "STRING": {"offset": "4", "expectedTotal": 10},
                    "NOT_A_DICT": 7,
                }
            ),
            encoding="utf-8",
        )

        loaded = store.load()

        assert list(loaded) == ["GOOD"]
        assert loaded["GOOD"] == CheckpointEntry(offset=4, expected_total=10, last_update="t")


class TestSave:
    """Tests for CheckpointStore.save."""

    def test_round_trips(self, store: CheckpointStore):
        """Saved entries load back unchanged."""
        checkpoints = {
            "SPARK": CheckpointEntry(offset=100, expected_total=250),
            "KAFKA": CheckpointEntry(offset=0, expected_total=0),
        }
        store.save(checkpoints)
        assert store.load() == checkpoints

    def test_file_format(self, store: CheckpointStore):
        """Entries are stored as offset/expectedTotal/lastUpdate objects."""
        store.save({"SPARK": CheckpointEntry(offset=3, expected_total=9, last_update="2024-01-01")})

        data = json.loads(store.checkpoint_file.read_text(encoding="utf-8"))

        assert data == {"SPARK": {"offset": 3, "expectedTotal": 9, "lastUpdate": "2024-01-01"}}

    def test_overwrites_previous_content(self, store: CheckpointStore):
        """The whole mapping replaces what was there."""
        store.save({"A": CheckpointEntry(offset=1, expected_total=2)})
        store.save({"B": CheckpointEntry(offset=5, expected_total=5)})
        assert list(store.load()) == ["B"]

    def test_leaves_no_temporary_files(self, store: CheckpointStore):
        """Only the checkpoint itself remains in the directory."""
        store.save({"A": CheckpointEntry(offset=1, expected_total=2)})
        assert [p.name for p in store.checkpoint_file.parent.iterdir()] == ["checkpoint.json"]

    def test_missing_directory_propagates(self, tmp_path: Path):
        """Save errors are not swallowed."""
        store = CheckpointStore(tmp_path / "nope" / "checkpoint.json")
        with pytest.raises(OSError):
            store.save({"A": CheckpointEntry(offset=1, expected_total=2)})


class TestCheckpointEntry:
    """Tests for CheckpointEntry helpers."""

    def test_is_complete(self):
        assert CheckpointEntry(offset=10, expected_total=10).is_complete
        assert not CheckpointEntry(offset=9, expected_total=10).is_complete

    def test_rejects_bool(self):
        """JSON true is not an offset."""
        with pytest.raises(ValueError):
            CheckpointEntry.from_dict({"offset": True, "expectedTotal": 3})
