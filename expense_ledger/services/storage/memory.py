"""
In-Memory Storage Implementations

A dict stands in for the browser's key-value store. The ledger state
is still serialized to JSON text on save, so the in-memory slot goes
through exactly the same encode/decode path as the file store.
"""

from typing import Optional

from expense_ledger.config import get_settings
from expense_ledger.models.audit import AuditEvent
from expense_ledger.models.expense import LedgerState
from expense_ledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    decode_state,
    encode_state,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed key-value slot holding the serialized ledger state."""

    def __init__(
        self,
        slots: Optional[dict[str, str]] = None,
        key: Optional[str] = None,
    ):
        """
        Args:
            slots: Pre-populated key-value contents (copied)
            key: Slot key; defaults to the configured state key
        """
        self._slots = dict(slots or {})
        self._key = key or get_settings().ledger.state_key

    @property
    def key(self) -> str:
        return self._key

    def raw(self) -> Optional[str]:
        """The stored JSON text, exactly as saved."""
        return self._slots.get(self._key)

    def save(self, state: LedgerState) -> None:
        self._slots[self._key] = encode_state(state)

    def load(self) -> Optional[LedgerState]:
        return decode_state(self._slots.get(self._key))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(self, entity_id: int) -> list[AuditEvent]:
        return [event for event in self._events if event.entity_id == entity_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        if limit <= 0:
            return []
        return list(reversed(self._events[-limit:]))
