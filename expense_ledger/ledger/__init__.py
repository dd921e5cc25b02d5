"""Ledger package."""

from expense_ledger.ledger.core import Ledger, PersistHook

__all__ = ["Ledger", "PersistHook"]
