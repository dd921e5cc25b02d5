"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger decoupled from where its state lives
2. Use in-memory storage for testing
3. Swap the JSON file for another key-value slot later

The ledger state is a single opaque blob stored under one key,
overwritten on every save. There is nothing to query.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from expense_ledger.models.audit import AuditEvent
from expense_ledger.models.expense import LedgerState


_logger = structlog.get_logger(__name__)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger state storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def save(self, state: LedgerState) -> None:
        """
        Save the ledger state, overwriting any prior value.

        Args:
            state: The state to persist

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def load(self) -> Optional[LedgerState]:
        """
        Load the saved ledger state.

        Returns:
            The state, or None if nothing is stored or the stored
            value is malformed. Never raises for bad data.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(self, entity_id: int) -> list[AuditEvent]:
        """
        Get all events for one expense record, in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


def encode_state(state: LedgerState) -> str:
    """Serialize a state to the JSON text stored under the state key."""
    return state.model_dump_json()


def decode_state(raw: Union[str, bytes, dict, None]) -> Optional[LedgerState]:
    """
    Deserialize a stored state.

    Malformed input (bad JSON, schema violations, duplicate ids)
    yields None so the caller can start empty.
    """
    if raw is None:
        return None
    if not isinstance(raw, (str, bytes, dict)):
        _logger.warning("ledger_state_malformed", error=f"unexpected {type(raw).__name__}")
        return None
    try:
        if isinstance(raw, dict):
            return LedgerState.model_validate(raw)
        return LedgerState.model_validate_json(raw)
    except (ValidationError, ValueError) as e:
        _logger.warning("ledger_state_malformed", error=str(e))
        return None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
