"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows the UI drives:
1. Add expense (form -> validate -> ledger)
2. Edit / delete / clear (with explicit confirmation for destructive ones)
3. Scan and pay (QR payload -> payment app -> optionally record)

DESIGN DECISION: Retry policy lives HERE, not in the ledger.
The ledger surfaces StorageIOError and never retries. These flows,
acting for the user, resubmit a failed write a bounded number of
times before giving up and reporting the error.

create_app_components() is called once per process; the single
LedgerService it builds is passed to every flow.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    DESCRIPTION_MAX_LENGTH,
    Category,
    Expense,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.ledger import SpendingSummary
from expense_tracker.services.ledger import LedgerService
from expense_tracker.services.payments import (
    HandoffResult,
    PaymentLauncher,
    ScannedCode,
    build_payment_uri,
    classify_scanned_payload,
    hand_off,
)
from expense_tracker.services.storage import (
    FileKeyValueBackend,
    InMemoryKeyValueBackend,
    KeyValueBackend,
    KeyValueLedgerStore,
    NotFoundError,
    StorageError,
    StorageIOError,
)
from expense_tracker.validation import (
    ExpenseFormValidator,
    ValidationError,
    validate_draft,
)


T = TypeVar("T")


class SubmissionResult(BaseModel):
    """Outcome of submitting the add-expense form."""

    validation: ValidationResult
    expense: Optional[Expense] = None

    @property
    def saved(self) -> bool:
        return self.expense is not None


class PaymentOutcome(BaseModel):
    """Outcome of a scan-and-pay or pay request."""

    scanned: Optional[ScannedCode] = None
    handoff: Optional[HandoffResult] = None
    expense: Optional[Expense] = None
    record_issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="Why the payment could not be recorded as an expense"
    )

    @property
    def launched(self) -> bool:
        return self.handoff is not None and self.handoff.launched


class ExpenseFlow:
    """
    Orchestrates expense entry and management for the UI.

    Flow for adding:
    1. Validate raw form values (errors returned per field)
    2. Add to the ledger, resubmitting on transient write failures
    3. Audit the outcome

    Destructive operations do nothing unless `confirmed` is True.
    """

    def __init__(
        self,
        ledger: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
        form_validator: Optional[ExpenseFormValidator] = None,
        retry_attempts: Optional[int] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        settings = get_settings().app
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._validator = form_validator or ExpenseFormValidator()
        self._retry_attempts = (
            retry_attempts
            if retry_attempts is not None
            else settings.submit_retry_attempts
        )
        self._retry_wait = (
            retry_wait
            if retry_wait is not None
            else wait_exponential(multiplier=0.2, min=0.2, max=2)
        )

    @property
    def ledger(self) -> LedgerService:
        return self._ledger

    async def _resubmit(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        expense_id: Optional[str] = None,
    ) -> T:
        """Run a ledger mutation, retrying only on StorageIOError."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(StorageIOError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await call()
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_mutation_failed(operation, str(e), expense_id)
            raise

    async def submit_expense(
        self,
        amount: Any,
        description: Any,
        category: Any,
        spent_on: Any = None,
    ) -> SubmissionResult:
        """
        Validate and record an expense from raw form values.

        Invalid input is returned, not raised. Storage failures that
        survive the retries are raised.
        """
        validation = self._validator.validate(amount, description, category, spent_on)
        if not validation.is_valid:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(validation.errors)
            return SubmissionResult(validation=validation)

        expense = await self.add_expense(validation.draft)
        return SubmissionResult(validation=validation, expense=expense)

    async def add_expense(self, draft: ExpenseDraft) -> Expense:
        return await self._resubmit("add", lambda: self._ledger.add(draft))

    async def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        """
        Edit the user-editable fields of an expense.

        Raises:
            NotFoundError: If the expense no longer exists
            ValidationError: If the edited record is invalid
        """
        existing = self._ledger.get(expense_id)
        if existing is None:
            if self._audit_logger:
                self._audit_logger.log_mutation_failed(
                    "update", f"Expense not found: {expense_id}", expense_id
                )
            raise NotFoundError(expense_id)

        try:
            revised = existing.revised(**changes)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        except ValueError as e:
            raise ValidationError([ValidationIssue(
                field="expense",
                issue_type="immutable",
                message=str(e),
            )]) from e

        return await self._resubmit(
            "update",
            lambda: self._ledger.update(revised),
            expense_id,
        )

    async def delete_expense(self, expense_id: str, confirmed: bool = False) -> bool:
        """Delete after the user confirmed. Returns whether anything was removed."""
        if not confirmed:
            return False
        return await self._resubmit(
            "delete",
            lambda: self._ledger.delete(expense_id),
            expense_id,
        )

    async def clear_all(self, confirmed: bool = False) -> int:
        """Remove every expense after the user confirmed. Returns how many."""
        if not confirmed:
            return 0
        return await self._resubmit("clear", self._ledger.clear_all)

    def dashboard(self, recent_limit: Optional[int] = None) -> SpendingSummary:
        limit = (
            recent_limit
            if recent_limit is not None
            else get_settings().app.recent_expenses_limit
        )
        return self._ledger.summary(recent_limit=limit)

    def history(self, category: Union[Category, str, None] = None) -> list[Expense]:
        return self._ledger.filter_by_category(category)


class PaymentFlow:
    """
    Orchestrates handing a payment off to a UPI app.

    The expense is recorded only when the handoff succeeded, the amount
    is known and the caller asked for it by passing a category.
    """

    def __init__(
        self,
        expense_flow: ExpenseFlow,
        launcher: PaymentLauncher,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._expense_flow = expense_flow
        self._launcher = launcher
        self._audit_logger = audit_logger
        self._settings = get_settings().payment

    async def _hand_off(self, uri: str) -> HandoffResult:
        handoff = await hand_off(self._launcher, uri)
        if self._audit_logger:
            self._audit_logger.log_payment_handoff(uri, handoff.launched, handoff.reason)
        return handoff

    @staticmethod
    def _describe(*candidates: Optional[str]) -> str:
        """First non-blank candidate, cut to the description limit."""
        for candidate in candidates:
            if candidate and candidate.strip():
                return candidate.strip()[:DESCRIPTION_MAX_LENGTH]
        return ""

    async def _record(
        self,
        outcome: PaymentOutcome,
        amount: Optional[Decimal],
        description: str,
        category: Optional[Category],
        spent_on: Optional[date] = None,
    ) -> PaymentOutcome:
        """
        Record the paid amount once the payment app has opened.

        The handoff already happened, so invalid values are reported on
        the outcome instead of raised. Storage failures still raise.
        """
        if category is None or amount is None:
            return outcome
        try:
            draft = validate_draft({
                "amount": amount,
                "description": description,
                "category": category,
                "spent_on": spent_on or date.today(),
            })
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(e.reasons)
            return outcome.model_copy(update={"record_issues": e.issues})

        expense = await self._expense_flow.add_expense(draft)
        return outcome.model_copy(update={"expense": expense})

    async def handle_scan(
        self,
        data: str,
        record_category: Optional[Category] = None,
        description: Optional[str] = None,
    ) -> PaymentOutcome:
        """Classify a scanned payload and, for UPI payments, open the payment app."""
        scanned = classify_scanned_payload(data)
        if not scanned.is_payment:
            return PaymentOutcome(scanned=scanned)

        handoff = await self._hand_off(scanned.uri)
        outcome = PaymentOutcome(scanned=scanned, handoff=handoff)
        if not handoff.launched:
            return outcome

        request = scanned.request
        payee = request.display_name or self._settings.default_payee_name
        return await self._record(
            outcome,
            amount=request.amount,
            description=self._describe(description, request.note, f"UPI payment to {payee}"),
            category=record_category,
        )

    async def pay(
        self,
        payee_address: str,
        amount: Decimal,
        description: str,
        category: Optional[Category] = None,
        payee_name: Optional[str] = None,
    ) -> PaymentOutcome:
        """
        Build a payment link, open the payment app, and record the expense.

        Raises:
            InvalidPaymentLinkError: If the payee or amount is unusable
        """
        uri = build_payment_uri(
            payee_address=payee_address,
            amount=amount,
            note=description,
            payee_name=payee_name,
            currency=self._settings.currency,
        )
        handoff = await self._hand_off(uri)
        outcome = PaymentOutcome(handoff=handoff)
        if not handoff.launched:
            return outcome

        payee = (payee_name or "").strip() or payee_address.strip()
        return await self._record(
            outcome,
            amount=amount,
            description=self._describe(description, f"UPI payment to {payee}"),
            category=category,
        )


def create_backend(use_memory: Optional[bool] = None) -> KeyValueBackend:
    """Build the key-value backend selected in settings."""
    storage_settings = get_settings().storage
    if use_memory is None:
        use_memory = storage_settings.backend == "memory"
    if use_memory:
        return InMemoryKeyValueBackend()
    return FileKeyValueBackend(storage_settings.data_dir)


def create_app_components(
    launcher: Optional[PaymentLauncher] = None,
    backend: Optional[KeyValueBackend] = None,
) -> tuple[ExpenseFlow, Optional[PaymentFlow], AuditLogger]:
    """
    Factory function to create all application components.

    The ledger is constructed but not loaded; call
    `await expense_flow.ledger.load()` before first use.

    Args:
        launcher: Platform hook for payment apps. Without one there is
                  no payment flow.
        backend: Key-value backend; defaults to the configured one.

    Returns:
        (expense_flow, payment_flow, audit_logger)
    """
    storage_settings = get_settings().storage
    store = KeyValueLedgerStore(
        backend or create_backend(),
        key=storage_settings.ledger_key,
    )
    ledger = LedgerService(store)

    audit_logger = AuditLogger()
    audit_logger.attach(ledger)

    expense_flow = ExpenseFlow(ledger, audit_logger=audit_logger)
    payment_flow = (
        PaymentFlow(expense_flow, launcher, audit_logger=audit_logger)
        if launcher is not None
        else None
    )
    return expense_flow, payment_flow, audit_logger
