"""
Ledger State and Change Models

Models describing the ledger itself rather than a single expense:
its lifecycle state, the notification sent to subscribers after every
committed change, and the dashboard summary.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import Category, Expense


class LedgerState(str, Enum):
    """
    Lifecycle of a ledger service instance.

    UNINITIALIZED -> LOADING -> READY <-> MUTATING
    """
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    MUTATING = "mutating"


class LedgerChangeType(str, Enum):
    """What happened to the cache."""
    LOADED = "loaded"
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    LEDGER_CLEARED = "ledger_cleared"


class LedgerChange(BaseModel):
    """
    Notification delivered to subscribers after a committed change.

    `expenses` is the new snapshot, newest first.
    """
    model_config = ConfigDict(frozen=True)

    change_type: LedgerChangeType
    expense_ids: tuple[str, ...] = ()
    expenses: tuple[Expense, ...] = ()
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class SpendingSummary(BaseModel):
    """Aggregates shown on the dashboard, computed from one snapshot."""
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    expense_count: int = Field(default=0, ge=0)
    by_category: dict[Category, Decimal] = Field(
        default_factory=dict,
        description="Categories with non-zero spend, in enumeration order"
    )
    recent: tuple[Expense, ...] = ()
