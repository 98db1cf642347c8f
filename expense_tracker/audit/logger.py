"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability of each expense from creation to deletion
2. Debugging capability when storage fails
3. A recent-activity list the UI can show

The audit logger:
- Subscribes to the ledger service and logs every committed change
- Logs failures reported by the UI flows
- Never raises: a logging problem must not break a ledger operation
"""

import logging
from collections import deque
from typing import Callable, Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.models.ledger import LedgerChange, LedgerChangeType
from expense_tracker.services.ledger import LedgerService


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

PACKAGE_LOGGER = "expense_tracker"


def configure_logging(debug_mode: bool = False) -> None:
    """
    Set the level for every logger in the package.

    structlog's filter_by_level defers to these stdlib levels.
    """
    logging.basicConfig(format="%(message)s")
    level = logging.DEBUG if debug_mode else logging.INFO
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and keeps the most recent
    ones in memory for display.
    """

    def __init__(self, history_size: int = 200):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep in memory.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("expense_tracker.audit")

    def record(self, event: AuditEvent) -> None:
        """Log an audit event and add it to the recent history."""
        log_dict = event.to_log_dict()

        if event.severity is AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(self._history)
        events.reverse()
        return events[:limit]

    def attach(self, ledger: LedgerService) -> Callable[[], None]:
        """Start auditing a ledger. Returns a callable that stops it."""
        return ledger.subscribe(self.on_ledger_change)

    def on_ledger_change(self, change: LedgerChange) -> None:
        """Ledger subscriber: turn a committed change into an audit event."""
        if change.change_type is LedgerChangeType.LOADED:
            event = AuditEventBuilder.ledger_loaded(len(change.expenses))
        elif change.change_type is LedgerChangeType.EXPENSE_ADDED:
            expense_id = change.expense_ids[0]
            added = next((e for e in change.expenses if e.id == expense_id), None)
            event = AuditEventBuilder.expense_added(
                expense_id=expense_id,
                description=added.description if added else "",
                amount=str(added.amount) if added else "",
            )
        elif change.change_type is LedgerChangeType.EXPENSE_UPDATED:
            event = AuditEventBuilder.expense_updated(change.expense_ids[0])
        elif change.change_type is LedgerChangeType.EXPENSE_DELETED:
            event = AuditEventBuilder.expense_deleted(change.expense_ids[0])
        else:
            event = AuditEventBuilder.ledger_cleared(len(change.expense_ids))
        self.record(event)

    def log_load_failed(self, error_message: str) -> None:
        """Log that the stored ledger was unreadable."""
        self.record(AuditEventBuilder.ledger_load_failed(error_message))

    def log_mutation_failed(
        self,
        operation: str,
        error_message: str,
        expense_id: Optional[str] = None,
    ) -> None:
        """Log a failed add/update/delete/clear."""
        self.record(AuditEventBuilder.mutation_failed(
            operation=operation,
            error_message=error_message,
            expense_id=expense_id,
        ))

    def log_validation_failed(self, errors: dict[str, str]) -> None:
        """Log a rejected form submission."""
        self.record(AuditEventBuilder.validation_failed(errors))

    def log_payment_handoff(
        self,
        uri: str,
        launched: bool,
        reason: Optional[str] = None,
    ) -> None:
        """Log the outcome of opening a payment app."""
        self.record(AuditEventBuilder.payment_handoff(uri, launched, reason))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.record(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
