"""
Core Data Models for Expense Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the ledger invariants at runtime
2. Provide clear validation error messages
3. Serialize to the same JSON shape the browser tracker stored

DESIGN DECISION: Amounts are Decimal, never float.
Sums of many small expenses must not drift by fractions of a cent.
"""

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from expense_ledger.config import get_settings


DEFAULT_DESCRIPTION = "N/A"

# Filter value meaning "every category"
ALL_CATEGORIES = "all"

CENT = Decimal("0.01")

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amounts finer than a cent to the nearest cent, leave the rest as given."""
    if amount.as_tuple().exponent < -2:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return amount


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The stored value is the canonical English name.
    Localized labels are for display only, but are accepted on input
    so that state saved with localized labels still loads.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    LEISURE = "Leisure"
    HEALTH = "Health"
    HOUSING = "Housing"
    OTHER = "Other"

    @property
    def label(self) -> str:
        """pt-BR display label."""
        return CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, raw: Any) -> "ExpenseCategory":
        """
        Resolve a category from its value or its display label.

        Matching is case-insensitive and ignores surrounding whitespace.

        Raises:
            ValueError: If nothing matches
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"Category must be text, got {type(raw).__name__}")

        wanted = raw.strip().casefold()
        for category in cls:
            if wanted in (category.value.casefold(), category.label.casefold()):
                return category

        allowed = ", ".join(category.value for category in cls)
        raise ValueError(f"Unknown category: {raw!r}. Allowed: {allowed}")


CATEGORY_LABELS = {
    ExpenseCategory.FOOD: "Alimentação",
    ExpenseCategory.TRANSPORT: "Transporte",
    ExpenseCategory.LEISURE: "Lazer",
    ExpenseCategory.HEALTH: "Saúde",
    ExpenseCategory.HOUSING: "Moradia",
    ExpenseCategory.OTHER: "Outros",
}


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class ExpenseRecord(BaseModel):
    """
    A single expense entry.

    Records are immutable: an edit produces a new record
    carrying the same id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: int = Field(
        ...,
        ge=0,
        description="Unique record ID (creation time in milliseconds)"
    )
    value: Annotated[
        Decimal,
        Field(ge=0, allow_inf_nan=False, description="Amount spent")
    ]
    category: ExpenseCategory = Field(
        ...,
        description="Spending category"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the expense"
    )
    description: str = Field(
        default=DEFAULT_DESCRIPTION,
        max_length=500,
        description="Free-text label"
    )

    @field_validator('value', mode='before')
    @classmethod
    def normalize_value(cls, v: Any) -> Any:
        """bool is an int subclass; a checkbox is not an amount."""
        if isinstance(v, bool):
            raise ValueError("Value must be a number")
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('category', mode='before')
    @classmethod
    def resolve_category(cls, v: Any) -> ExpenseCategory:
        return ExpenseCategory.parse(v)

    @field_validator('date', mode='before')
    @classmethod
    def only_calendar_dates(cls, v: Any) -> Any:
        """Only calendar dates are stored, never timestamps."""
        if isinstance(v, dt.datetime):
            raise ValueError("Date must not carry a time component")
        if isinstance(v, str):
            v = v.strip()
            if not ISO_DATE.match(v):
                raise ValueError("Date must be an ISO date (YYYY-MM-DD)")
            return dt.date.fromisoformat(v)
        if not isinstance(v, dt.date):
            raise ValueError("Date must be an ISO date (YYYY-MM-DD)")
        return v

    @field_validator('description', mode='before')
    @classmethod
    def default_description(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_DESCRIPTION
        return v


class LedgerState(BaseModel):
    """
    The full persisted state of a ledger.

    This is the only shape the persistence collaborator sees.
    """
    model_config = ConfigDict(frozen=True)

    records: tuple[ExpenseRecord, ...] = Field(
        default=(),
        description="Records in insertion order"
    )
    budget: Annotated[
        Decimal,
        Field(ge=0, allow_inf_nan=False, description="Monthly budget, 0 means unset")
    ] = Decimal("0")

    @model_validator(mode='before')
    @classmethod
    def accept_legacy_layout(cls, data: Any) -> Any:
        """
        Accept the browser tracker's layout.

        It stored the records under "expenses" and wrote a
        missing budget as null.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "records" not in data and "expenses" in data:
            data["records"] = data.pop("expenses") or ()
        if data.get("budget") is None:
            data["budget"] = Decimal("0")
        return data

    @field_validator('budget')
    @classmethod
    def bounded_budget(cls, v: Decimal) -> Decimal:
        """A budget is a sum of money: at most the configured ceiling, in cents."""
        ceiling = get_settings().ledger.max_budget
        if v > ceiling:
            raise ValueError(f"Budget exceeds the limit of {ceiling}")
        return round_to_cents(v)

    @model_validator(mode='after')
    def validate_records(self) -> 'LedgerState':
        """Every record id must be unique and every value within the ceiling."""
        ceiling = get_settings().ledger.max_expense_value
        seen = set()
        for record in self.records:
            if record.id in seen:
                raise ValueError(f"Duplicate record id: {record.id}")
            if record.value > ceiling:
                raise ValueError(f"Record {record.id} exceeds the limit of {ceiling}")
            seen.add(record.id)
        return self

    @property
    def last_id(self) -> Optional[int]:
        """Highest id in use, None for an empty ledger."""
        if not self.records:
            return None
        return max(record.id for record in self.records)


# =============================================================================
# QUERY RESULT MODELS
# =============================================================================

class LedgerSummary(BaseModel):
    """Spending versus budget over all records."""
    model_config = ConfigDict(frozen=True)

    total_spent: Decimal = Field(
        ...,
        description="Sum of every record value"
    )
    remaining: Decimal = Field(
        ...,
        description="Budget minus total spent (negative when over budget)"
    )
    percent_of_budget: Decimal = Field(
        ...,
        ge=0,
        le=100,
        description="Share of the budget spent, capped at 100; 0 without a budget"
    )
    budget_set: bool = Field(
        ...,
        description="Is a budget configured?"
    )
    over_budget: bool = Field(
        default=False,
        description="Has spending exceeded a configured budget?"
    )


class LedgerView(BaseModel):
    """
    Everything the presentation layer needs for one redraw.

    Records are already filtered by the current search and category filter;
    the summary and the category totals always cover every record.
    """
    model_config = ConfigDict(frozen=True)

    records: tuple[ExpenseRecord, ...]
    summary: LedgerSummary
    by_category: dict[ExpenseCategory, Decimal]
    search_text: str = ""
    category_filter: str = ALL_CATEGORIES

    @property
    def is_empty(self) -> bool:
        """True when no record matches the current filters."""
        return not self.records

    @property
    def chart_series(self) -> list[tuple[str, Decimal]]:
        """(label, total) pairs in first-seen order, ready for a chart."""
        return [(category.label, total) for category, total in self.by_category.items()]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
