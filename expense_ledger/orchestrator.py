"""
Session Orchestrator for Expense Ledger

This module ties the ledger to a presentation layer and defines what
happens for every user action:
1. The action is applied through a Ledger operation
2. Errors are turned into messages the user can act on
3. A fresh view (filtered list, summary, category totals) is rendered

DESIGN DECISION: The session owns the search and filter state, the
ledger owns the data. A presenter only ever sees LedgerViews and
only changes anything by calling back into the session.

Error recovery:
- ValidationError: nothing changes, the message is shown inline
- NotFoundError: a stale reference, re-render from current state
- StorageError: the change stands in memory, the user is warned
"""

from typing import Any, Optional

import structlog

from expense_ledger.audit import AuditLogger, configure_logging
from expense_ledger.config import get_settings, validate_all_settings
from expense_ledger.errors import NotFoundError, ValidationError
from expense_ledger.ledger import Ledger
from expense_ledger.models.expense import (
    ALL_CATEGORIES,
    ExpenseRecord,
    LedgerView,
)
from expense_ledger.services.presentation import LedgerPresenter
from expense_ledger.services.storage import (
    AuditStorageInterface,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from expense_ledger.validation import ExpenseValidator


STALE_MESSAGE = "That expense no longer exists. The list has been refreshed."
SAVE_FAILED_MESSAGE = "Your change was kept, but it could not be saved to disk."

_logger = structlog.get_logger(__name__)


class ExpenseTrackerSession:
    """
    Orchestrates user actions against one ledger.

    Every public method ends by rendering a fresh view.
    Mutations return (record_or_None, message); an empty message means
    the action succeeded without anything to report.
    """

    def __init__(
        self,
        ledger: Ledger,
        presenter: LedgerPresenter,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._presenter = presenter
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger
        self._search_text = ""
        self._category_filter = ALL_CATEGORIES

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def category_filter(self) -> str:
        return self._category_filter

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def build_view(self) -> LedgerView:
        """Snapshot of the ledger under the current search and filter."""
        return LedgerView(
            records=tuple(self._ledger.query(self._search_text, self._category_filter)),
            summary=self._ledger.summary(),
            by_category=self._ledger.by_category(),
            search_text=self._search_text,
            category_filter=self._category_filter,
        )

    def refresh(self) -> LedgerView:
        """Render the current state."""
        view = self.build_view()
        self._presenter.render(view)
        return view

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str] = None,
    ) -> tuple[Optional[ExpenseRecord], str]:
        """Handle the "new expense" form."""
        record = None
        message = ""
        try:
            record = self._ledger.add(value, category, date, description)
        except ValidationError as e:
            message = self._validator.get_user_friendly_summary(e)
        except StorageError:
            record = self._ledger.records[-1]
            message = SAVE_FAILED_MESSAGE

        self.refresh()
        return record, message

    def begin_edit(self, record_id: int) -> tuple[Optional[ExpenseRecord], str]:
        """
        Fetch a record to prefill the edit form.

        A missing record is a stale reference: the list is re-rendered.
        """
        record = self._ledger.get(record_id)
        if record is None:
            if self._audit_logger:
                self._audit_logger.log_stale_reference(record_id, operation="edit")
            self.refresh()
            return None, STALE_MESSAGE
        return record, ""

    def update_expense(
        self,
        record_id: int,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str] = None,
    ) -> tuple[Optional[ExpenseRecord], str]:
        """Handle the edit form submission."""
        record = None
        message = ""
        try:
            record = self._ledger.update(record_id, value, category, date, description)
        except NotFoundError:
            if self._audit_logger:
                self._audit_logger.log_stale_reference(record_id, operation="update")
            message = STALE_MESSAGE
        except ValidationError as e:
            message = self._validator.get_user_friendly_summary(e)
        except StorageError:
            record = self._ledger.get(record_id)
            message = SAVE_FAILED_MESSAGE

        self.refresh()
        return record, message

    def remove_expense(self, record_id: int) -> str:
        """Handle a delete button. Unknown ids are ignored."""
        message = ""
        try:
            self._ledger.remove(record_id)
        except StorageError:
            message = SAVE_FAILED_MESSAGE

        self.refresh()
        return message

    def set_budget(self, amount: Any) -> str:
        """Handle a change of the monthly budget field."""
        message = ""
        try:
            self._ledger.set_budget(amount)
        except StorageError:
            message = SAVE_FAILED_MESSAGE

        self.refresh()
        return message

    # -------------------------------------------------------------------------
    # Search and filter
    # -------------------------------------------------------------------------

    def set_search(self, search_text: Optional[str]) -> LedgerView:
        self._search_text = search_text or ""
        return self.refresh()

    def set_category_filter(self, category_filter: Optional[str]) -> tuple[LedgerView, str]:
        """
        Change the category filter.

        An unknown category leaves the current filter in place.
        """
        wanted = category_filter or ALL_CATEGORIES
        try:
            self._ledger.query("", wanted)
        except ValidationError as e:
            return self.refresh(), self._validator.get_user_friendly_summary(e)

        self._category_filter = wanted
        return self.refresh(), ""


def create_session(
    presenter: LedgerPresenter,
    storage: Optional[LedgerStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> ExpenseTrackerSession:
    """
    Factory function to create all application components.

    Args:
        presenter: Presentation collaborator to render views
        storage: State storage; defaults to the configured JSON file
        audit_storage: Optional append-only audit log

    Returns:
        A session with the ledger restored and the first view rendered
    """
    settings = get_settings()
    status = validate_all_settings()

    if status["app"]:
        configure_logging("DEBUG" if settings.app.debug_mode else settings.app.log_level)
    else:
        configure_logging()
    for name in ("ledger", "app"):
        if not status[name]:
            _logger.warning("settings_invalid", group=name, error=status[f"{name}_error"])

    storage = storage or JsonFileLedgerStorage()
    audit_logger = AuditLogger(audit_storage)
    validator = ExpenseValidator()

    ledger = Ledger.restore(
        storage,
        validator=validator,
        audit_logger=audit_logger,
    )
    session = ExpenseTrackerSession(
        ledger,
        presenter,
        validator=validator,
        audit_logger=audit_logger,
    )
    session.refresh()
    return session
