"""
Audit Models for Expense Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. A history of what the user changed and when
2. Debugging information when persistence goes wrong
3. Visibility into rejected input and stale references

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_REMOVED = "expense_removed"
    BUDGET_SET = "budget_set"

    # Startup
    STATE_RESTORED = "state_restored"
    STATE_STARTED_EMPTY = "state_started_empty"

    # Rejections
    VALIDATION_FAILED = "validation_failed"
    STALE_REFERENCE = "stale_reference"

    # Persistence
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # The record this event is about, if any
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the expense record this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(record_id=..., value="50.00", category="Food")
        audit_logger.log(event)
    """

    @staticmethod
    def expense_added(
        record_id: int,
        value: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_id=record_id,
            description=f"Expense added: {value} ({category})",
            details={"value": value, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        record_id: int,
        value: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_id=record_id,
            description=f"Expense updated: {value} ({category})",
            details={"value": value, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_removed(record_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REMOVED,
            entity_id=record_id,
            description="Expense removed",
            is_user_action=True,
        )

    @staticmethod
    def budget_set(budget: str, requested: Optional[str]) -> AuditEvent:
        """The requested amount is kept so coerced input stays visible."""
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            description=f"Budget set to {budget}",
            details={"budget": budget, "requested": requested},
            is_user_action=True,
        )

    @staticmethod
    def state_restored(record_count: int, budget: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_RESTORED,
            description=f"Restored {record_count} expense(s) from storage",
            details={"record_count": record_count, "budget": budget},
        )

    @staticmethod
    def state_started_empty() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_STARTED_EMPTY,
            description="No usable saved state, starting with an empty ledger",
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        record_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_id=record_id,
            description=f"Rejected invalid input for {operation}",
            details={"operation": operation, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def stale_reference(record_id: int, operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_REFERENCE,
            severity=AuditSeverity.WARNING,
            entity_id=record_id,
            description=f"{operation} targeted an expense that no longer exists",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Failed to persist ledger state",
            error_message=error_message,
        )
