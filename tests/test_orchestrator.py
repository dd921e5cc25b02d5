"""
Tests for the session flow (presentation wiring and error recovery).
"""

from decimal import Decimal

import pytest

from expense_ledger.audit import AuditLogger
from expense_ledger.ledger import Ledger
from expense_ledger.models.audit import AuditEventType
from expense_ledger.models.expense import ExpenseCategory
from expense_ledger.orchestrator import (
    SAVE_FAILED_MESSAGE,
    STALE_MESSAGE,
    ExpenseTrackerSession,
    create_session,
)
from expense_ledger.services.presentation import LedgerPresenter
from expense_ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    StorageError,
)


class RecordingPresenter(LedgerPresenter):
    """Keeps every rendered view."""

    def __init__(self):
        self.views = []

    def render(self, view):
        self.views.append(view)

    @property
    def last(self):
        return self.views[-1]


class FlakyStorage(InMemoryLedgerStorage):
    def __init__(self):
        super().__init__()
        self.fail = False

    def save(self, state):
        if self.fail:
            raise StorageError("disk full")
        super().save(state)


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def session(presenter, storage, audit_storage):
    return create_session(presenter, storage=storage, audit_storage=audit_storage)


class TestSessionStartup:
    """Tests for create_session."""

    def test_renders_initial_view(self, session, presenter):
        assert len(presenter.views) == 1
        assert presenter.last.is_empty
        assert presenter.last.summary.total_spent == Decimal("0")

    def test_restores_saved_state(self, presenter):
        storage = InMemoryLedgerStorage()
        first = create_session(RecordingPresenter(), storage=storage)
        first.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        first.set_budget("100")

        create_session(presenter, storage=storage)
        view = presenter.last
        assert len(view.records) == 1
        assert view.summary.remaining == Decimal("50.00")

    def test_default_storage_is_json_file(self, presenter, monkeypatch, tmp_path):
        from expense_ledger.config import get_settings

        monkeypatch.setenv("LEDGER_STORAGE_PATH", str(tmp_path / "ledger.json"))
        get_settings.cache_clear()
        try:
            session = create_session(presenter)
            session.add_expense("1", "Other", "2024-01-15")
            assert JsonFileLedgerStorage(tmp_path / "ledger.json").load() is not None
        finally:
            get_settings.cache_clear()

    def test_saved_budget_above_ceiling_starts_empty(self, presenter):
        storage = InMemoryLedgerStorage(slots={
            "appState": '{"records": [], "budget": "1E+1000000"}',
        })
        create_session(presenter, storage=storage)
        assert presenter.last.summary.budget_set is False

    def test_saved_sub_cent_budget_is_rounded_on_restore(self, presenter):
        storage = InMemoryLedgerStorage(slots={
            "appState": '{"records": [{"id": 1, "value": "50", "category": "Food",'
                        ' "date": "2024-01-15"}], "budget": "1E-999999"}',
        })
        create_session(presenter, storage=storage)
        summary = presenter.last.summary
        assert summary.total_spent == Decimal("50")
        assert summary.budget_set is False

    def test_restart_after_sub_cent_budget(self, presenter):
        storage = InMemoryLedgerStorage()
        first = create_session(RecordingPresenter(), storage=storage)
        first.add_expense("50", "Food", "2024-01-15")
        assert first.set_budget("1E-999999") == ""

        create_session(presenter, storage=storage)
        summary = presenter.last.summary
        assert summary.total_spent == Decimal("50")
        assert summary.budget_set is False

    def test_debug_mode_lowers_log_level(self, presenter, monkeypatch):
        from expense_ledger import orchestrator
        from expense_ledger.config import get_settings

        levels = []
        monkeypatch.setattr(orchestrator, "configure_logging", lambda level="INFO": levels.append(level))
        monkeypatch.setenv("DEBUG_MODE", "true")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        get_settings.cache_clear()
        try:
            create_session(presenter, storage=InMemoryLedgerStorage())
        finally:
            get_settings.cache_clear()
        assert levels == ["DEBUG"]

    def test_invalid_log_level_still_starts(self, presenter, monkeypatch):
        from expense_ledger import orchestrator
        from expense_ledger.config import get_settings

        levels = []
        monkeypatch.setattr(orchestrator, "configure_logging", lambda level="INFO": levels.append(level))
        monkeypatch.setenv("LOG_LEVEL", "loud")
        get_settings.cache_clear()
        try:
            create_session(presenter, storage=InMemoryLedgerStorage())
        finally:
            get_settings.cache_clear()
        assert levels == ["INFO"]
        assert presenter.last.is_empty


class TestSessionMutations:
    """Tests for the mutation handlers."""

    def test_add_renders_new_view(self, session, presenter):
        record, message = session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        assert message == ""
        assert presenter.last.records == (record,)
        assert presenter.last.by_category == {ExpenseCategory.FOOD: Decimal("50.00")}

    def test_invalid_add_returns_message(self, session, presenter):
        record, message = session.add_expense("-5", "Food", "2024-01-15")
        assert record is None
        assert "Value must be a non-negative number" in message
        assert presenter.last.is_empty
        assert len(presenter.views) == 2

    def test_update_stale_reference_rerenders(self, session, presenter, audit_storage):
        session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        renders = len(presenter.views)

        record, message = session.update_expense(424242, "1", "Food", "2024-01-15", "x")

        assert record is None
        assert message == STALE_MESSAGE
        assert len(presenter.views) == renders + 1
        assert presenter.last.summary.total_spent == Decimal("50.00")
        latest = audit_storage.get_recent_events(limit=1)[0]
        assert latest.event_type == AuditEventType.STALE_REFERENCE

    def test_update_and_remove(self, session, presenter):
        record, _ = session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        updated, message = session.update_expense(record.id, "60", "Health", "2024-01-15", "Pharmacy")
        assert message == ""
        assert presenter.last.records == (updated,)

        assert session.remove_expense(record.id) == ""
        assert presenter.last.is_empty
        assert session.remove_expense(record.id) == ""

    def test_begin_edit(self, session):
        record, _ = session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        assert session.begin_edit(record.id) == (record, "")
        assert session.begin_edit(record.id + 1) == (None, STALE_MESSAGE)

    def test_budget_updates_summary(self, session, presenter):
        session.add_expense("80", "Food", "2024-01-15")
        session.set_budget("50")
        summary = presenter.last.summary
        assert summary.over_budget is True
        assert summary.percent_of_budget == Decimal("100")

        session.set_budget("not a number")
        assert presenter.last.summary.budget_set is False

    def test_save_failure_keeps_change(self, session, presenter, storage):
        storage.fail = True
        record, message = session.add_expense("5", "Food", "2024-01-15")
        assert message == SAVE_FAILED_MESSAGE
        assert record is not None
        assert presenter.last.records == (record,)

        assert session.set_budget("10") == SAVE_FAILED_MESSAGE
        assert session.ledger.budget == Decimal("10")

        updated, message = session.update_expense(record.id, "6", "Food", "2024-01-15")
        assert message == SAVE_FAILED_MESSAGE
        assert updated.value == Decimal("6")

        assert session.remove_expense(record.id) == SAVE_FAILED_MESSAGE
        assert presenter.last.is_empty


class TestSessionFilters:
    """Tests for search and category filter state."""

    def test_search_filters_list_not_summary(self, session, presenter):
        session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        session.add_expense("30.00", "Transport", "2024-01-16", "Bus")

        view = session.set_search("lun")
        assert [r.description for r in view.records] == ["Lunch"]
        assert view.summary.total_spent == Decimal("80.00")
        assert len(view.by_category) == 2
        assert view.search_text == "lun"

    def test_filter_survives_mutations(self, session, presenter):
        session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        session.set_category_filter("Transport")
        session.add_expense("30.00", "Transport", "2024-01-16", "Bus")

        assert [r.description for r in presenter.last.records] == ["Bus"]
        assert presenter.last.category_filter == "Transport"

    def test_unknown_filter_is_rejected(self, session):
        session.set_category_filter("Food")
        view, message = session.set_category_filter("Gambling")
        assert "Unknown category" in message
        assert session.category_filter == "Food"
        assert view.category_filter == "Food"

    def test_clearing_filters(self, session):
        session.add_expense("50.00", "Food", "2024-01-15", "Lunch")
        session.set_search("zzz")
        session.set_category_filter("Health")

        session.set_search(None)
        view, _ = session.set_category_filter(None)
        assert session.category_filter == "all"
        assert len(view.records) == 1


class TestSessionWithoutFactory:
    """The session works with any ledger, persisted or not."""

    def test_plain_ledger(self, presenter):
        audit_storage = InMemoryAuditStorage()
        session = ExpenseTrackerSession(
            Ledger(),
            presenter,
            audit_logger=AuditLogger(audit_storage),
        )
        session.begin_edit(1)
        assert presenter.last.is_empty
        assert audit_storage.get_recent_events()[0].event_type == AuditEventType.STALE_REFERENCE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
