"""
Ledger Queries

DESIGN DECISION: Queries are pure functions over a record sequence.
They never mutate, never persist, and never look at anything but
their arguments, so the Ledger and the tests can call them freely.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from expense_ledger.models.expense import (
    ALL_CATEGORIES,
    ExpenseCategory,
    ExpenseRecord,
    LedgerSummary,
)


HUNDRED = Decimal("100")


def parse_category_filter(category_filter: object) -> Optional[ExpenseCategory]:
    """
    Resolve a category filter.

    None, empty text and the "all" sentinel mean no filtering (None).

    Raises:
        ValueError: If the filter names no known category
    """
    if category_filter is None:
        return None
    if isinstance(category_filter, str):
        if not category_filter.strip() or category_filter.strip().lower() == ALL_CATEGORIES:
            return None
    return ExpenseCategory.parse(category_filter)


def filter_records(
    records: Iterable[ExpenseRecord],
    search_text: Optional[str] = None,
    category: Optional[ExpenseCategory] = None,
) -> list[ExpenseRecord]:
    """
    Records whose description contains search_text (case-insensitive)
    and whose category matches, in their original order.
    """
    needle = (search_text or "").casefold()
    return [
        record for record in records
        if needle in record.description.casefold()
        and (category is None or record.category == category)
    ]


def total_spent(records: Iterable[ExpenseRecord]) -> Decimal:
    return sum((record.value for record in records), Decimal("0"))


def summarize(records: Sequence[ExpenseRecord], budget: Decimal) -> LedgerSummary:
    """
    Spending versus budget.

    A zero budget means no budget is set: the percentage is 0 and
    the remaining amount is simply minus the total.
    """
    spent = total_spent(records)
    budget_set = budget > 0

    if budget_set and spent >= budget:
        percent = HUNDRED
    elif budget_set:
        percent = spent / budget * HUNDRED
    else:
        percent = Decimal("0")

    return LedgerSummary(
        total_spent=spent,
        remaining=budget - spent,
        percent_of_budget=percent,
        budget_set=budget_set,
        over_budget=budget_set and spent > budget,
    )


def totals_by_category(records: Iterable[ExpenseRecord]) -> dict[ExpenseCategory, Decimal]:
    """Per-category sums, only for categories in use, in first-seen order."""
    totals: dict[ExpenseCategory, Decimal] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, Decimal("0")) + record.value
    return totals
