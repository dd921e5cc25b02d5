"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. A traceable history of the user's changes
2. Debugging capability when saves fail
3. Visibility into rejected input

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Always writes a structured local log line
- Optionally appends to an audit storage backend
"""

import logging
from typing import Optional

import structlog

from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for user-visible history), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_expense_added(self, record_id: int, value: str, category: str) -> None:
        self.log(AuditEventBuilder.expense_added(
            record_id=record_id,
            value=value,
            category=category,
        ))

    def log_expense_updated(self, record_id: int, value: str, category: str) -> None:
        self.log(AuditEventBuilder.expense_updated(
            record_id=record_id,
            value=value,
            category=category,
        ))

    def log_expense_removed(self, record_id: int) -> None:
        self.log(AuditEventBuilder.expense_removed(record_id=record_id))

    def log_budget_set(self, budget: str, requested: Optional[str]) -> None:
        self.log(AuditEventBuilder.budget_set(budget=budget, requested=requested))

    def log_state_restored(self, record_count: int, budget: str) -> None:
        self.log(AuditEventBuilder.state_restored(
            record_count=record_count,
            budget=budget,
        ))

    def log_state_started_empty(self) -> None:
        self.log(AuditEventBuilder.state_started_empty())

    def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        record_id: Optional[int] = None,
    ) -> None:
        """Log rejected input."""
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            record_id=record_id,
        ))

    def log_stale_reference(self, record_id: int, operation: str) -> None:
        self.log(AuditEventBuilder.stale_reference(
            record_id=record_id,
            operation=operation,
        ))

    def log_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(error_message=error_message))
