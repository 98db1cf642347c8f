"""
Audit Models for Expense Tracker

Every change to the ledger, and every failure on the way to one, is
recorded as an AuditEvent. This provides:
1. Traceability of what happened to each expense
2. Debugging information when storage misbehaves
3. A history the UI can show

DESIGN DECISION: Audit events are append-only. We never edit them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Ledger lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_LOAD_FAILED = "ledger_load_failed"

    # Mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    LEDGER_CLEARED = "ledger_cleared"
    MUTATION_FAILED = "mutation_failed"

    # Input
    VALIDATION_FAILED = "validation_failed"

    # Payments
    PAYMENT_HANDOFF = "payment_handoff"
    PAYMENT_HANDOFF_FAILED = "payment_handoff_failed"

    # System events
    SYSTEM_ERROR = "system_error"


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
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
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

    # Context - which expense is this about?
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the expense this event relates to"
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
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, "Coffee", "50.00")
        event = AuditEventBuilder.mutation_failed("add", "disk full")
    """

    @staticmethod
    def ledger_loaded(expense_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description=f"Ledger loaded with {expense_count} expenses",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def ledger_load_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            description="Stored ledger could not be read; starting empty",
            error_message=error_message,
        )

    @staticmethod
    def expense_added(expense_id: str, description: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_id=expense_id,
            description=f"Expense added: {description} - {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def expense_updated(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_id=expense_id,
            description="Expense updated",
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_id=expense_id,
            description="Expense deleted",
        )

    @staticmethod
    def ledger_cleared(removed_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            description=f"All expenses cleared ({removed_count} removed)",
            details={"removed_count": removed_count},
        )

    @staticmethod
    def mutation_failed(
        operation: str,
        error_message: str,
        expense_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_id=expense_id,
            description=f"Ledger {operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(errors: dict[str, str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Expense rejected with {len(errors)} invalid fields",
            details={"errors": errors},
        )

    @staticmethod
    def payment_handoff(uri: str, launched: bool, reason: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.PAYMENT_HANDOFF
                if launched
                else AuditEventType.PAYMENT_HANDOFF_FAILED
            ),
            severity=AuditSeverity.INFO if launched else AuditSeverity.WARNING,
            description=(
                "Handed off to payment app"
                if launched
                else "Payment app could not be opened"
            ),
            details={"uri": uri},
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
