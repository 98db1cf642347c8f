"""
Expense Validation

Validation happens at two boundaries:

FORM VALIDATION (presentation layer):
- Parses raw text from the add-expense form
- Amount must parse and be greater than zero
- Description must not be blank
- Date must be YYYY-MM-DD (defaults to today)
- Semantic warnings: far-future dates, unusually large amounts
- Warnings never block; errors always do

LEDGER VALIDATION (defensive, in the ledger service):
- Re-validates every draft or expense before it reaches storage
- The ledger is the last line of defence for data integrity, so it
  does not trust that the form ran first

IMPORTANT: Validation never silently fixes input. Amounts are rounded
to whole cents; anything else that is wrong is reported.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    Category,
    Expense,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
    to_minor_units,
)


# Python attribute -> persisted field name
_FIELD_NAMES = {
    "spent_on": "date",
    "created_at": "createdAt",
}


class ValidationError(Exception):
    """
    Input was rejected before reaching persistence.

    `issues` holds one entry per problem; `reasons` maps each field to
    its first message.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        super().__init__(f"Invalid expense ({summary})")

    @property
    def reasons(self) -> dict[str, str]:
        reasons: dict[str, str] = {}
        for issue in self.issues:
            reasons.setdefault(issue.field, issue.message)
        return reasons

    @classmethod
    def from_pydantic(cls, error: PydanticValidationError) -> "ValidationError":
        issues = []
        for detail in error.errors():
            loc = detail.get("loc") or ("expense",)
            field = _FIELD_NAMES.get(str(loc[0]), str(loc[0]))
            issues.append(ValidationIssue(
                field=field,
                issue_type=detail.get("type", "invalid_value"),
                message=detail.get("msg", "Invalid value"),
            ))
        return cls(issues)


def validate_draft(draft: Union[ExpenseDraft, Mapping[str, Any]]) -> ExpenseDraft:
    """
    Re-validate a draft (or a plain mapping) into a trusted ExpenseDraft.

    Raises:
        ValidationError: If any field is invalid
    """
    data = draft.model_dump() if isinstance(draft, ExpenseDraft) else dict(draft)
    try:
        return ExpenseDraft.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def validate_expense(expense: Union[Expense, Mapping[str, Any]]) -> Expense:
    """
    Re-validate a full expense record.

    Raises:
        ValidationError: If any field is invalid
    """
    data = expense.model_dump() if isinstance(expense, Expense) else dict(expense)
    try:
        return Expense.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


class ExpenseFormValidator:
    """
    Validates the raw add-expense form.

    Field errors use the same wording the form shows inline.
    """

    AMOUNT_INVALID = "Please enter a valid amount"
    DESCRIPTION_REQUIRED = "Description is required"
    DATE_INVALID = "Please enter the date as YYYY-MM-DD"
    CATEGORY_INVALID = "Please choose a category"

    def __init__(
        self,
        max_amount: Optional[Decimal] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        settings = get_settings().app
        self._max_amount = (
            max_amount
            if max_amount is not None
            else Decimal(str(settings.max_expense_amount))
        )
        self._future_tolerance = (
            future_date_tolerance_days
            if future_date_tolerance_days is not None
            else settings.future_date_tolerance_days
        )

    def _parse_amount(self, text: Any, issues: list[ValidationIssue]) -> Optional[Decimal]:
        if text is None or str(text).strip() == "":
            amount = None
        else:
            try:
                amount = to_minor_units(text)
            except ValueError:
                amount = None

        if amount is None or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=self.AMOUNT_INVALID,
            ))
            return None
        return amount

    def _parse_date(
        self,
        text: Any,
        today: date,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        if isinstance(text, date):
            return text
        if text is None or str(text).strip() == "":
            return today
        try:
            return date.fromisoformat(str(text).strip())
        except ValueError:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=self.DATE_INVALID,
            ))
            return None

    def _parse_category(self, value: Any, issues: list[ValidationIssue]) -> Optional[Category]:
        try:
            return Category.from_label(value)
        except ValueError:
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=self.CATEGORY_INVALID,
            ))
            return None

    def _semantic_warnings(
        self,
        amount: Decimal,
        spent_on: date,
        today: date,
    ) -> list[ValidationIssue]:
        warnings = []

        if spent_on > today + timedelta(days=self._future_tolerance):
            warnings.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({spent_on.isoformat()}) is in the future",
                severity="warning",
            ))

        if amount > self._max_amount:
            warnings.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        return warnings

    def validate(
        self,
        amount: Any,
        description: Any,
        category: Any,
        spent_on: Any = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate raw form values.

        Returns a ValidationResult carrying the parsed draft when there
        are no errors.
        """
        today = today or date.today()
        issues: list[ValidationIssue] = []

        parsed_amount = self._parse_amount(amount, issues)

        parsed_description = str(description or "").strip()
        if not parsed_description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message=self.DESCRIPTION_REQUIRED,
            ))

        parsed_category = self._parse_category(category, issues)
        parsed_date = self._parse_date(spent_on, today, issues)

        if issues:
            return ValidationResult(is_valid=False, issues=issues)

        try:
            draft = ExpenseDraft(
                amount=parsed_amount,
                description=parsed_description,
                category=parsed_category,
                spent_on=parsed_date,
            )
        except PydanticValidationError as e:
            return ValidationResult(
                is_valid=False,
                issues=ValidationError.from_pydantic(e).issues,
            )

        issues.extend(self._semantic_warnings(draft.amount, draft.spent_on, today))
        return ValidationResult(is_valid=True, issues=issues, draft=draft)

    def parse(
        self,
        amount: Any,
        description: Any,
        category: Any,
        spent_on: Any = None,
        today: Optional[date] = None,
    ) -> ExpenseDraft:
        """
        Validate raw form values and return the draft.

        Raises:
            ValidationError: If any field has an error
        """
        result = self.validate(amount, description, category, spent_on, today)
        if not result.is_valid:
            raise ValidationError(
                [issue for issue in result.issues if issue.severity == "error"]
            )
        return result.draft
