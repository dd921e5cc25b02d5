"""Ledger query package."""

from expense_ledger.queries.aggregates import (
    filter_records,
    parse_category_filter,
    summarize,
    total_spent,
    totals_by_category,
)

__all__ = [
    "filter_records",
    "parse_category_filter",
    "summarize",
    "total_spent",
    "totals_by_category",
]
