"""
Core Data Models for Expense Tracker

These models define the strict schemas for every expense that enters
the ledger. They are designed to:
1. Enforce type safety at runtime
2. Provide clear, field-level validation messages
3. Round-trip through the persisted JSON layout unchanged
4. Be immutable, so a cached snapshot can never be edited in place

DESIGN DECISION: Amounts are Decimal quantized to two places (minor units).
Float inputs are converted through their string form so 0.1 stays 0.10
and totals never drift.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


CENT = Decimal("0.01")
DESCRIPTION_MAX_LENGTH = 200


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Supported spending categories.

    DESIGN DECISION: A closed list rather than free text keeps
    per-category totals meaningful and filtering exact.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    OTHER = "Other"

    @classmethod
    def from_label(cls, value: str) -> "Category":
        """Resolve a category from its label or member name, ignoring case."""
        if isinstance(value, cls):
            return value
        normalised = str(value).strip().lower()
        for category in cls:
            if normalised in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown category: {value}")


def to_minor_units(value: Any) -> Decimal:
    """
    Convert an amount to a Decimal with two decimal places.

    Accepts Decimal, int, float and numeric strings. Floats go through
    str() so binary noise (0.30000000000000004) is not carried over.
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Amount must be a number, got {value!r}")
    if not amount.is_finite():
        raise ValueError("Amount must be a finite number")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError("Amount is too large")


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    An expense as entered by the user, before the ledger accepts it.

    The ledger assigns id and createdAt; everything else comes from here.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount spent, currency-agnostic"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="What the money was spent on"
    )
    category: Category = Field(
        ...,
        description="Spending category"
    )
    spent_on: date = Field(
        default_factory=date.today,
        alias="date",
        description="Calendar date of the spend (user-editable)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def quantize_amount(cls, v: Any) -> Decimal:
        return to_minor_units(v)

    @field_validator('category', mode='before')
    @classmethod
    def resolve_category(cls, v: Any) -> Category:
        if isinstance(v, str):
            return Category.from_label(v)
        return v


class Expense(ExpenseDraft):
    """
    An expense recorded in the ledger.

    CRITICAL: id and created_at are assigned once, by the ledger, and
    never change. Updates replace the whole record by id.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique expense ID"
    )
    created_at: datetime = Field(
        ...,
        alias="createdAt",
        description="When the expense was recorded (UTC)"
    )

    @classmethod
    def from_draft(
        cls,
        draft: ExpenseDraft,
        expense_id: str,
        created_at: Optional[datetime] = None,
    ) -> "Expense":
        """Promote a draft to a ledger entry."""
        return cls(
            id=expense_id,
            created_at=created_at or datetime.now(timezone.utc),
            amount=draft.amount,
            description=draft.description,
            category=draft.category,
            spent_on=draft.spent_on,
        )

    @classmethod
    def from_record(cls, record: dict) -> "Expense":
        """Build an expense from its persisted form (unknown keys ignored)."""
        return cls.model_validate(record)

    def to_record(self) -> dict:
        """Convert to the persisted JSON form (amount as a decimal string)."""
        return self.model_dump(mode="json", by_alias=True)

    def revised(self, **changes: Any) -> "Expense":
        """
        Return a validated copy with user-editable fields replaced.

        Raises ValueError when asked to change id or created_at.
        """
        locked = {"id", "created_at", "createdAt"} & changes.keys()
        if locked:
            raise ValueError(f"Fields cannot be changed: {', '.join(sorted(locked))}")
        data = self.model_dump()
        data.update(changes)
        return Expense.model_validate(data)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an add-expense form.

    Errors block submission; warnings are shown but do not.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    draft: Optional[ExpenseDraft] = Field(
        default=None,
        description="The parsed draft, present when there are no errors"
    )

    @property
    def errors(self) -> dict[str, str]:
        """First error message per field, for inline form display."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
