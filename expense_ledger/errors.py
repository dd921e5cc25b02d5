"""
Ledger Errors

Both errors are recoverable by the caller:
- ValidationError blocks one mutation and is shown to the user inline
- NotFoundError means a stale reference; the caller re-renders
"""

from typing import Optional

from expense_ledger.models.expense import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Input to add/update was malformed or out of range."""

    def __init__(self, issues: list[ValidationIssue], operation: Optional[str] = None):
        self.issues = issues
        self.operation = operation
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        super().__init__(summary or "Invalid input")

    def issues_as_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


class NotFoundError(LedgerError):
    """No record carries the requested id."""

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Expense not found: {record_id}")
