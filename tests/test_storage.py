"""
Tests for the persistence collaborators.
"""

import json
from decimal import Decimal

import pytest

from expense_ledger.audit import AuditLogger
from expense_ledger.models.audit import AuditEventBuilder
from expense_ledger.models.expense import ExpenseRecord, LedgerState
from expense_ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    StorageError,
    decode_state,
    encode_state,
)


def sample_state():
    return LedgerState(
        records=[
            ExpenseRecord(id=1, value="50.00", category="Food", date="2024-01-15", description="Lunch"),
            ExpenseRecord(id=2, value="30", category="Transport", date="2024-01-16"),
        ],
        budget=Decimal("100.50"),
    )


class TestStateSerialization:
    """Tests for encode_state / decode_state."""

    @pytest.mark.parametrize("state", [LedgerState(), sample_state()])
    def test_round_trip(self, state):
        assert decode_state(encode_state(state)) == state

    def test_encoded_shape(self):
        data = json.loads(encode_state(sample_state()))
        assert data["budget"] == "100.50"
        assert data["records"][0] == {
            "id": 1,
            "value": "50.00",
            "category": "Food",
            "date": "2024-01-15",
            "description": "Lunch",
        }
        assert data["records"][1]["description"] == "N/A"

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "{not json",
            "[]",
            "42",
            '{"records": [{"id": 1, "value": -5, "category": "Food", "date": "2024-01-15"}]}',
            '{"records": [], "budget": -1}',
            '{"records": [], "budget": "1E+1000000"}',
            '{"records": [{"id": 1, "value": "1E+1000000", "category": "Food", "date": "2024-01-15"}]}',
            '{"records": [{"id": 1, "value": 1, "category": "Food", "date": "2024-01-15"},'
            ' {"id": 1, "value": 2, "category": "Food", "date": "2024-01-15"}]}',
        ],
    )
    def test_malformed_decodes_to_none(self, raw):
        assert decode_state(raw) is None

    def test_non_text_decodes_to_none(self):
        assert decode_state(42) is None

    def test_decodes_browser_payload(self):
        """Test the original browser tracker's saved state loads."""
        raw = json.dumps({
            "expenses": [
                {"id": 1705312800000, "value": 50, "category": "Alimentação",
                 "date": "2024-01-15", "description": "Almoço"},
                {"id": 1705399200000, "value": 30.5, "category": "Transporte",
                 "date": "2024-01-16", "description": ""},
            ],
            "budget": 0,
        })
        state = decode_state(raw)
        assert state is not None
        assert [r.category.value for r in state.records] == ["Food", "Transport"]
        assert state.records[1].value == Decimal("30.5")
        assert state.records[1].description == "N/A"


class TestInMemoryLedgerStorage:
    """Tests for the dict-backed slot."""

    def test_load_absent(self):
        assert InMemoryLedgerStorage().load() is None

    def test_save_then_load(self):
        storage = InMemoryLedgerStorage()
        storage.save(sample_state())
        assert storage.load() == sample_state()

    def test_save_overwrites(self):
        storage = InMemoryLedgerStorage()
        storage.save(sample_state())
        storage.save(LedgerState())
        assert storage.load() == LedgerState()

    def test_stores_json_text_under_key(self):
        storage = InMemoryLedgerStorage(key="ledger")
        storage.save(LedgerState())
        assert storage.key == "ledger"
        assert json.loads(storage.raw()) == {"records": [], "budget": "0"}


class TestJsonFileLedgerStorage:
    """Tests for the file-backed key-value store."""

    def test_missing_file_loads_none(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path / "state.json")
        assert storage.load() is None

    @pytest.mark.parametrize("state", [LedgerState(), sample_state()])
    def test_round_trip(self, tmp_path, state):
        path = tmp_path / "state.json"
        JsonFileLedgerStorage(path).save(state)
        assert JsonFileLedgerStorage(path).load() == state

    def test_file_is_key_value_object(self, tmp_path):
        path = tmp_path / "state.json"
        JsonFileLedgerStorage(path, key="appState").save(sample_state())

        slots = json.loads(path.read_text(encoding="utf-8"))
        assert list(slots) == ["appState"]
        assert isinstance(slots["appState"], str)
        assert not (tmp_path / "state.json.tmp").exists()

    def test_other_keys_preserved(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"darkMode": "true"}), encoding="utf-8")

        JsonFileLedgerStorage(path).save(sample_state())

        slots = json.loads(path.read_text(encoding="utf-8"))
        assert slots["darkMode"] == "true"
        assert "appState" in slots

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "state.json"
        JsonFileLedgerStorage(path).save(LedgerState())
        assert path.exists()

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]", '{"appState": "{broken"}'])
    def test_corrupt_file_loads_none(self, tmp_path, content):
        path = tmp_path / "state.json"
        path.write_text(content, encoding="utf-8")
        assert JsonFileLedgerStorage(path).load() is None

    def test_corrupt_file_is_replaced_on_save(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{broken", encoding="utf-8")

        storage = JsonFileLedgerStorage(path)
        storage.save(sample_state())
        assert storage.load() == sample_state()

    def test_unreadable_path_loads_none(self, tmp_path):
        assert JsonFileLedgerStorage(tmp_path).load() is None

    def test_unwritable_path_raises_storage_error(self, tmp_path):
        with pytest.raises(StorageError):
            JsonFileLedgerStorage(tmp_path).save(LedgerState())


class TestAuditStorage:
    """Tests for the in-memory audit log and the audit logger."""

    def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        for record_id in (1, 2, 3):
            storage.append_event(AuditEventBuilder.expense_removed(record_id=record_id))

        recent = storage.get_recent_events(limit=2)
        assert [e.entity_id for e in recent] == [3, 2]
        assert storage.get_recent_events(limit=0) == []

    def test_logger_without_storage(self):
        assert AuditLogger().log(AuditEventBuilder.state_started_empty()) is True

    def test_logger_survives_storage_failure(self):
        class BrokenAuditStorage(InMemoryAuditStorage):
            def append_event(self, event):
                raise RuntimeError("audit sink down")

        logger = AuditLogger(BrokenAuditStorage())
        assert logger.log(AuditEventBuilder.save_failed("disk full")) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
