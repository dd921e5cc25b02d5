"""
The Expense Ledger

DESIGN DECISION: The Ledger is the single owner of the expense records
and the budget. Nothing else can change them:
- Every mutation validates its input first
- The next state is computed by a pure transition
- The new state is committed, then handed to the persistence hook once

The in-memory state is authoritative. If the persistence hook fails,
the mutation has still happened; the StorageError is raised so the
caller knows the change is not yet durable.
"""

import time
from decimal import Decimal
from typing import Any, Callable, Optional

from expense_ledger.audit import AuditLogger
from expense_ledger.errors import NotFoundError, ValidationError
from expense_ledger.ledger import transitions
from expense_ledger.models.expense import (
    ALL_CATEGORIES,
    ExpenseCategory,
    ExpenseRecord,
    LedgerState,
    LedgerSummary,
    ValidationIssue,
)
from expense_ledger.queries import (
    filter_records,
    parse_category_filter,
    summarize,
    totals_by_category,
)
from expense_ledger.services.storage import LedgerStorageInterface, StorageError
from expense_ledger.validation import ExpenseValidator


PersistHook = Callable[[LedgerState], None]


class Ledger:
    """
    In-memory expense ledger.

    Operations:
    - add / update / remove / set_budget mutate and persist
    - get / query / summary / by_category are read-only
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        persist: Optional[PersistHook] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            state: Initial state; empty with budget 0 when None
            persist: Called with the new state once per mutation
            validator: Input validator; built from settings when None
            audit_logger: Receives one event per mutation or rejection
            clock: Seconds since the epoch, used to assign record ids
        """
        self._state = state if state is not None else LedgerState()
        self._persist = persist
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger
        self._clock = clock
        self._last_id = self._state.last_id

    @classmethod
    def restore(
        cls,
        storage: LedgerStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ) -> "Ledger":
        """
        Rehydrate a ledger from storage and persist back into it.

        Missing or malformed saved state starts an empty ledger.
        """
        state = storage.load()

        if audit_logger:
            if state is None:
                audit_logger.log_state_started_empty()
            else:
                audit_logger.log_state_restored(
                    record_count=len(state.records),
                    budget=str(state.budget),
                )

        return cls(
            state=state,
            persist=storage.save,
            validator=validator,
            audit_logger=audit_logger,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        """Immutable snapshot of the records and budget."""
        return self._state

    @property
    def records(self) -> tuple[ExpenseRecord, ...]:
        return self._state.records

    @property
    def budget(self) -> Decimal:
        return self._state.budget

    def __len__(self) -> int:
        return len(self._state.records)

    def get(self, record_id: int) -> Optional[ExpenseRecord]:
        """The record with record_id, or None."""
        for record in self._state.records:
            if record.id == record_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _next_id(self) -> int:
        """
        Creation time in milliseconds, bumped past the last id
        when the clock has not moved on.
        """
        candidate = int(self._clock() * 1000)
        if self._last_id is not None and candidate <= self._last_id:
            candidate = self._last_id + 1
        return candidate

    def _save(self) -> None:
        """Hand the current state to the persistence hook."""
        if self._persist is None:
            return
        try:
            self._persist(self._state)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(str(e))
            raise

    def _build(
        self,
        record_id: int,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str],
        operation: str,
    ) -> ExpenseRecord:
        try:
            return self._validator.build_record(
                record_id=record_id,
                value=value,
                category=category,
                date=date,
                description=description,
                operation=operation,
            )
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    operation=operation,
                    issues=e.issues_as_dicts(),
                    record_id=record_id if operation == "update" else None,
                )
            raise

    def add(
        self,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str] = None,
    ) -> ExpenseRecord:
        """
        Record a new expense at the end of the ledger.

        Raises:
            ValidationError: If value, category or date is invalid
            StorageError: If the record was added but could not be saved
        """
        record = self._build(self._next_id(), value, category, date, description, "add")

        self._state = transitions.append_record(self._state, record)
        self._last_id = record.id

        if self._audit_logger:
            self._audit_logger.log_expense_added(
                record_id=record.id,
                value=str(record.value),
                category=record.category.value,
            )
        self._save()
        return record

    def update(
        self,
        record_id: int,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str] = None,
    ) -> ExpenseRecord:
        """
        Replace every field of an existing expense except its id.

        The record keeps its position in the ledger.

        Raises:
            NotFoundError: If no record carries record_id
            ValidationError: If value, category or date is invalid
            StorageError: If the record was updated but could not be saved
        """
        if self.get(record_id) is None:
            raise NotFoundError(record_id)

        record = self._build(record_id, value, category, date, description, "update")
        self._state = transitions.replace_record(self._state, record)

        if self._audit_logger:
            self._audit_logger.log_expense_updated(
                record_id=record.id,
                value=str(record.value),
                category=record.category.value,
            )
        self._save()
        return record

    def remove(self, record_id: int) -> None:
        """
        Delete an expense. Deleting an unknown id is a no-op.

        Raises:
            StorageError: If the record was removed but could not be saved
        """
        new_state = transitions.drop_record(self._state, record_id)
        if new_state is self._state:
            return

        self._state = new_state
        if self._audit_logger:
            self._audit_logger.log_expense_removed(record_id=record_id)
        self._save()

    def set_budget(self, amount: Any) -> Decimal:
        """
        Set the monthly budget to max(0, amount).

        Non-numeric input becomes 0, meaning "no budget set".

        Returns:
            The budget actually stored

        Raises:
            StorageError: If the budget was set but could not be saved
        """
        budget = self._validator.coerce_budget(amount)
        self._state = transitions.with_budget(self._state, budget)

        if self._audit_logger:
            self._audit_logger.log_budget_set(
                budget=str(budget),
                requested=None if amount is None else str(amount),
            )
        self._save()
        return budget

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def query(
        self,
        search_text: Optional[str] = "",
        category_filter: Any = ALL_CATEGORIES,
    ) -> list[ExpenseRecord]:
        """
        Records whose description contains search_text (ignoring case)
        and whose category matches category_filter ("all" for any).

        Raises:
            ValidationError: If category_filter names no known category
        """
        try:
            category = parse_category_filter(category_filter)
        except ValueError as e:
            raise ValidationError(
                [ValidationIssue(
                    field="category_filter",
                    issue_type="invalid_value",
                    message=str(e),
                )],
                operation="query",
            ) from e
        return filter_records(self._state.records, search_text, category)

    def summary(self) -> LedgerSummary:
        """Total spent, remaining budget and percentage used, over all records."""
        return summarize(self._state.records, self._state.budget)

    def by_category(self) -> dict[ExpenseCategory, Decimal]:
        """Total per category in use, in first-seen order."""
        return totals_by_category(self._state.records)
