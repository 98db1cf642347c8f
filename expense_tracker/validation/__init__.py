"""Expense validation package."""

from expense_tracker.validation.validator import (
    ExpenseFormValidator,
    ValidationError,
    validate_draft,
    validate_expense,
)

__all__ = [
    "ExpenseFormValidator",
    "ValidationError",
    "validate_draft",
    "validate_expense",
]
