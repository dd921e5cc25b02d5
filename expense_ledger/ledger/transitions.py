"""
Pure Ledger State Transitions

Each function takes a LedgerState and returns the next one.
Nothing here persists, logs, or keeps state of its own.
"""

from decimal import Decimal

from expense_ledger.errors import NotFoundError
from expense_ledger.models.expense import ExpenseRecord, LedgerState


def append_record(state: LedgerState, record: ExpenseRecord) -> LedgerState:
    """Add a record at the end. The id must not be in use."""
    if any(existing.id == record.id for existing in state.records):
        raise ValueError(f"Record id already in use: {record.id}")
    return state.model_copy(update={"records": state.records + (record,)})


def replace_record(state: LedgerState, record: ExpenseRecord) -> LedgerState:
    """
    Swap in a new version of an existing record, keeping its position.

    Raises:
        NotFoundError: If no record carries record.id
    """
    for index, existing in enumerate(state.records):
        if existing.id == record.id:
            records = state.records[:index] + (record,) + state.records[index + 1:]
            return state.model_copy(update={"records": records})
    raise NotFoundError(record.id)


def drop_record(state: LedgerState, record_id: int) -> LedgerState:
    """Remove the record with record_id; unchanged state if there is none."""
    records = tuple(record for record in state.records if record.id != record_id)
    if len(records) == len(state.records):
        return state
    return state.model_copy(update={"records": records})


def with_budget(state: LedgerState, budget: Decimal) -> LedgerState:
    return state.model_copy(update={"budget": budget})
