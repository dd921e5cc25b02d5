"""
Two-Stage Expense Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Value parses as a finite, non-negative decimal
- Category is one of the fixed set
- Date is a real calendar date
- This catches malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Absurd amount detection
- This catches values that parse but cannot be meant

Stage 2 only runs when stage 1 passes.

Defaults are explicit rules, not silent fixes:
- An empty description becomes the configured placeholder
- An unusable budget becomes 0 ("no budget set")
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from expense_ledger.config import get_settings
from expense_ledger.errors import ValidationError
from expense_ledger.models.expense import (
    ExpenseCategory,
    ExpenseRecord,
    ValidationIssue,
    round_to_cents,
)


FIELD_MESSAGES = {
    "value": "Value must be a non-negative number",
    "category": "Category must be one of: " + ", ".join(c.value for c in ExpenseCategory),
    "date": "Date must be a valid calendar date (YYYY-MM-DD)",
    "description": "Description must be at most 500 characters",
    "id": "Record id must be a non-negative integer",
}


def _issue_type(error_type: str) -> str:
    """Map a pydantic error type onto our issue vocabulary."""
    if error_type == "missing":
        return "missing"
    if error_type.startswith(("greater_than", "less_than", "finite_number")):
        return "out_of_range"
    if error_type.startswith("string_too_long"):
        return "too_long"
    return "invalid_format"


class ExpenseValidator:
    """
    Validates raw expense input and builds ExpenseRecords.

    The ledger relies on this: no record it holds has bypassed it.
    """

    def __init__(
        self,
        default_description: Optional[str] = None,
        max_expense_value: Optional[Decimal] = None,
        max_budget: Optional[Decimal] = None,
    ):
        settings = get_settings().ledger
        self._default_description = (
            settings.default_description if default_description is None else default_description
        )
        self._max_value = settings.max_expense_value if max_expense_value is None else max_expense_value
        self._max_budget = settings.max_budget if max_budget is None else max_budget

    @property
    def default_description(self) -> str:
        return self._default_description

    def _validate_schema(
        self,
        payload: dict[str, Any],
    ) -> tuple[Optional[ExpenseRecord], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (record_or_None, list_of_issues)
        """
        try:
            return ExpenseRecord.model_validate(payload), []
        except PydanticValidationError as e:
            issues = []
            seen_fields = set()
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "record"
                if field in seen_fields:
                    continue
                seen_fields.add(field)
                if payload.get(field) is None or payload.get(field) == "":
                    issue_type = "missing"
                    message = f"{field.capitalize()} is required"
                else:
                    issue_type = _issue_type(error["type"])
                    message = FIELD_MESSAGES.get(field, error["msg"])
                issues.append(ValidationIssue(
                    field=field,
                    issue_type=issue_type,
                    message=message,
                ))
            return None, issues

    def _validate_semantic(self, record: ExpenseRecord) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues
        """
        issues = []

        if record.value > self._max_value:
            issues.append(ValidationIssue(
                field="value",
                issue_type="suspicious_value",
                message=f"Value exceeds the limit of {self._max_value:,.2f}",
            ))

        return issues

    def build_record(
        self,
        record_id: int,
        value: Any,
        category: Any,
        date: Any,
        description: Optional[str] = None,
        operation: str = "add",
    ) -> ExpenseRecord:
        """
        Run the two-stage pipeline and return the validated record.

        Raises:
            ValidationError: With every issue found
        """
        if description is None or (isinstance(description, str) and not description.strip()):
            description = self._default_description

        payload = {
            "id": record_id,
            "value": value,
            "category": category,
            "date": date,
            "description": description,
        }

        record, issues = self._validate_schema(payload)
        if record is not None:
            issues.extend(self._validate_semantic(record))

        if issues:
            raise ValidationError(issues, operation=operation)
        return record

    def coerce_budget(self, amount: Any) -> Decimal:
        """
        Budget default-substitution rule: max(0, amount).

        Anything that is not a finite number (None, bool, empty or
        non-numeric text, NaN, infinity) becomes 0, as does any
        negative amount or one above the configured ceiling.
        Fractions of a cent are rounded away.
        """
        if amount is None or isinstance(amount, bool):
            return Decimal("0")

        try:
            if isinstance(amount, Decimal):
                budget = amount
            elif isinstance(amount, float):
                budget = Decimal(str(amount))
            else:
                budget = Decimal(str(amount).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")

        if not budget.is_finite() or budget < 0 or budget > self._max_budget:
            return Decimal("0")
        return round_to_cents(budget)

    def get_user_friendly_summary(self, error: ValidationError) -> str:
        """
        Message shown inline next to the form.
        """
        lines = ["Please fix the following:"]
        for issue in error.issues:
            lines.append(f"   • {issue.message}")
        return "\n".join(lines)
