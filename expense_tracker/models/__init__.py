"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
Every expense entering or leaving the ledger conforms to these schemas.
"""

from expense_tracker.models.expense import (
    Category,
    Expense,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
    to_minor_units,
)
from expense_tracker.models.ledger import (
    LedgerChange,
    LedgerChangeType,
    LedgerState,
    SpendingSummary,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Category",
    "Expense",
    "ExpenseDraft",
    "ValidationIssue",
    "ValidationResult",
    "to_minor_units",
    # Ledger models
    "LedgerChange",
    "LedgerChangeType",
    "LedgerState",
    "SpendingSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
