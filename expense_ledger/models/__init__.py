"""
Data Models Package

This package contains all Pydantic models used in the Expense Ledger.
All data flowing through the system must conform to these schemas.
"""

from expense_ledger.models.expense import (
    ALL_CATEGORIES,
    CATEGORY_LABELS,
    DEFAULT_DESCRIPTION,
    ExpenseCategory,
    ExpenseRecord,
    LedgerState,
    LedgerSummary,
    LedgerView,
    ValidationIssue,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "ALL_CATEGORIES",
    "CATEGORY_LABELS",
    "DEFAULT_DESCRIPTION",
    "ExpenseCategory",
    "ExpenseRecord",
    "LedgerState",
    "LedgerSummary",
    "LedgerView",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
