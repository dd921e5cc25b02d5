"""
Abstract Presentation Interface

The ledger never draws anything. After every user action the session
hands a fresh LedgerView to a presenter, which owns the list, the
budget bar and the category chart.

A presenter must not feed data back into the ledger except through
the session's operations.
"""

from abc import ABC, abstractmethod

from expense_ledger.models.expense import LedgerView


class LedgerPresenter(ABC):
    """Renders ledger views."""

    @abstractmethod
    def render(self, view: LedgerView) -> None:
        """
        Redraw everything from the given view.

        Args:
            view: Filtered records, summary and category totals
        """
        pass
