"""
Tests for form and ledger validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.models.expense import Category, ExpenseDraft
from expense_tracker.validation import (
    ExpenseFormValidator,
    ValidationError,
    validate_draft,
    validate_expense,
)


TODAY = date(2024, 1, 15)


@pytest.fixture
def validator():
    return ExpenseFormValidator(max_amount=Decimal("10000"), future_date_tolerance_days=1)


class TestFormValidator:
    """Tests for ExpenseFormValidator."""

    def test_valid_form(self, validator):
        """Test a complete form produces a draft."""
        result = validator.validate("50", "Coffee", "Food", "2024-01-15", today=TODAY)
        assert result.is_valid
        assert result.issues == []
        assert result.draft.amount == Decimal("50.00")
        assert result.draft.category is Category.FOOD
        assert result.draft.spent_on == TODAY

    def test_blank_date_means_today(self, validator):
        """Test an empty date field defaults to today."""
        result = validator.validate("5", "Bus", Category.TRANSPORT, "", today=TODAY)
        assert result.draft.spent_on == TODAY

    def test_date_object_is_accepted(self, validator):
        """Test a date value from a date picker."""
        result = validator.validate("5", "Bus", "Transport", date(2024, 1, 2), today=TODAY)
        assert result.draft.spent_on == date(2024, 1, 2)

    @pytest.mark.parametrize("amount", ["", "   ", "abc", "0", "-10", "0.001", None])
    def test_invalid_amount(self, validator, amount):
        """Test amounts that are empty, junk or not positive."""
        result = validator.validate(amount, "Coffee", "Food", today=TODAY)
        assert not result.is_valid
        assert result.errors["amount"] == ExpenseFormValidator.AMOUNT_INVALID
        assert result.draft is None

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_description_required(self, validator, description):
        """Test a blank description is an error."""
        result = validator.validate("10", description, "Food", today=TODAY)
        assert result.errors == {"description": ExpenseFormValidator.DESCRIPTION_REQUIRED}

    def test_bad_date(self, validator):
        """Test a date not in YYYY-MM-DD form."""
        result = validator.validate("10", "Lunch", "Food", "15/01/2024", today=TODAY)
        assert result.errors == {"date": ExpenseFormValidator.DATE_INVALID}

    def test_bad_category(self, validator):
        """Test a category outside the list."""
        result = validator.validate("10", "Lunch", "Groceries", today=TODAY)
        assert result.errors == {"category": ExpenseFormValidator.CATEGORY_INVALID}

    def test_all_errors_reported_together(self, validator):
        """Test every bad field is reported in one pass."""
        result = validator.validate("", "", "Nope", "tomorrow", today=TODAY)
        assert set(result.errors) == {"amount", "description", "category", "date"}

    def test_too_long_description(self, validator):
        """Test the model's length limit is reported against the field."""
        result = validator.validate("10", "x" * 201, "Food", today=TODAY)
        assert not result.is_valid
        assert "description" in result.errors

    def test_future_date_warns(self, validator):
        """Test dates past the tolerance are accepted with a warning."""
        result = validator.validate("10", "Concert", "Entertainment", "2024-02-01", today=TODAY)
        assert result.is_valid
        assert result.warnings == ["Expense date (2024-02-01) is in the future"]

    def test_tomorrow_within_tolerance(self, validator):
        """Test a date inside the tolerance gives no warning."""
        result = validator.validate("10", "Concert", "Entertainment", "2024-01-16", today=TODAY)
        assert result.warnings == []

    def test_large_amount_warns(self, validator):
        """Test unusually high amounts are flagged but allowed."""
        result = validator.validate("25000", "Laptop", "Shopping", today=TODAY)
        assert result.is_valid
        assert result.warnings == ["Amount (25,000.00) seems unusually high"]

    def test_defaults_from_settings(self):
        """Test the validator reads its thresholds from settings."""
        result = ExpenseFormValidator().validate("10", "Tea", "Food", today=TODAY)
        assert result.is_valid

    def test_parse_returns_draft(self, validator):
        """Test parse returns the draft on success."""
        draft = validator.parse("7.5", "Tea", "food", "2024-01-15", today=TODAY)
        assert draft == ExpenseDraft(
            amount=Decimal("7.50"),
            description="Tea",
            category=Category.FOOD,
            spent_on=TODAY,
        )

    def test_parse_raises_with_reasons(self, validator):
        """Test parse raises ValidationError keyed by field."""
        with pytest.raises(ValidationError) as exc_info:
            validator.parse("", "Tea", "Food", today=TODAY)
        assert exc_info.value.reasons == {"amount": ExpenseFormValidator.AMOUNT_INVALID}
        assert "amount" in str(exc_info.value)


class TestLedgerValidation:
    """Tests for the re-validation the ledger applies."""

    def test_validate_draft_passes_valid_draft(self):
        """Test a good draft passes through unchanged."""
        draft = ExpenseDraft(amount=3, description="Pen", category=Category.SHOPPING)
        assert validate_draft(draft) == draft

    def test_validate_draft_catches_constructed_models(self):
        """Test models built without validation are checked."""
        bad = ExpenseDraft.model_construct(
            amount=Decimal("1"),
            description="",
            category=Category.OTHER,
            spent_on=TODAY,
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_draft(bad)
        assert list(exc_info.value.reasons) == ["description"]

    def test_validate_expense_maps_field_names(self):
        """Test errors use persisted names for renamed fields."""
        with pytest.raises(ValidationError) as exc_info:
            validate_expense({
                "id": "a",
                "amount": "1",
                "description": "Pen",
                "category": "Shopping",
                "date": "not-a-date",
                "createdAt": "also-not-a-date",
            })
        assert set(exc_info.value.reasons) == {"date", "createdAt"}

    def test_validate_expense_missing_id(self):
        """Test an expense without an id is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_expense({
                "amount": "1",
                "description": "Pen",
                "category": "Shopping",
                "createdAt": "2024-01-15T00:00:00Z",
            })
        assert "id" in exc_info.value.reasons
