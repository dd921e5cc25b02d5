"""Presentation collaborator interface."""

from expense_ledger.services.presentation.interface import LedgerPresenter

__all__ = ["LedgerPresenter"]
