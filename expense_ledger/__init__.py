"""
Expense Ledger - Source Package

A personal expense tracker core: a single-user ledger of expenses
with a monthly budget, search/filter queries and a category breakdown.

DESIGN PRINCIPLES:
1. The Ledger owns its state - no ambient globals
2. Invalid input is rejected loudly, defaults are explicit
3. State transitions are pure, persistence is a hook
4. Every mutation is auditable
5. Storage and presentation are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
