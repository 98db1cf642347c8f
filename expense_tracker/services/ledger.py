"""
Ledger Service

The single in-process source of truth for the expense collection.

GUARANTEES:
- Write-through: every mutation is written to the store FIRST. The
  in-memory snapshot is replaced only after the write succeeds, so a
  failed write never leaves the cache ahead of storage.
- Serialized mutations: one asyncio.Lock per instance. A mutation runs
  to completion (store write + cache swap) before the next one starts.
- Snapshot reads: the cache is an immutable tuple that is replaced,
  never edited. Queries never block and always see either the state
  before a mutation or the state after it.
- Aggregates are computed on every call from the current snapshot,
  never memoized.

LOAD POLICY: if the stored ledger cannot be read (corrupt or I/O
failure) the service starts empty and keeps the error in `load_error`.
Availability wins over strictness: the user can keep recording
expenses, and the next successful write replaces the unreadable data.

Create one instance at process start and pass it to every consumer.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Mapping, Optional, Union
from uuid import uuid4

import structlog

from expense_tracker.models.expense import Category, Expense, ExpenseDraft
from expense_tracker.models.ledger import (
    LedgerChange,
    LedgerChangeType,
    LedgerState,
    SpendingSummary,
)
from expense_tracker.services.storage.interface import (
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from expense_tracker.validation.validator import validate_draft, validate_expense


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
ALL_CATEGORIES = "ALL"

LedgerListener = Callable[[LedgerChange], None]


def _resolve_filter(category: Union[Category, str, None]) -> Optional[Category]:
    """None or 'ALL' means no filter; anything else must be a category."""
    if category is None:
        return None
    if isinstance(category, str) and category.strip().upper() == ALL_CATEGORIES:
        return None
    return Category.from_label(category)


class LedgerService:
    """
    Owns the cached expense list and mediates every change to it.

    The cache is kept newest first.
    """

    def __init__(
        self,
        store: ExpenseStorageInterface,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._expenses: tuple[Expense, ...] = ()
        self._state = LedgerState.UNINITIALIZED
        self._load_error: Optional[StorageError] = None
        self._lock = asyncio.Lock()
        self._listeners: list[LedgerListener] = []

    @classmethod
    async def open(cls, store: ExpenseStorageInterface, **kwargs: Any) -> "LedgerService":
        """Construct a service and load it from the store."""
        service = cls(store, **kwargs)
        await service.load()
        return service

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state in (LedgerState.UNINITIALIZED, LedgerState.LOADING)

    @property
    def load_error(self) -> Optional[StorageError]:
        """The error that made the last load fall back to an empty ledger."""
        return self._load_error

    @property
    def expenses(self) -> tuple[Expense, ...]:
        """The current snapshot, newest first."""
        return self._expenses

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """
        Register a listener for committed changes.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: LedgerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(
        self,
        snapshot: tuple[Expense, ...],
        change_type: LedgerChangeType,
        expense_ids: tuple[str, ...] = (),
    ) -> None:
        self._expenses = snapshot
        change = LedgerChange(
            change_type=change_type,
            expense_ids=expense_ids,
            expenses=snapshot,
        )
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                # A broken subscriber must not undo a committed change.
                logger.exception(
                    "ledger_listener_failed",
                    change_type=change_type.value,
                )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> tuple[Expense, ...]:
        """(Re)load the cache from the store. Never raises StorageError."""
        async with self._lock:
            await self._load_locked()
        return self._expenses

    async def _load_locked(self) -> None:
        self._state = LedgerState.LOADING
        try:
            expenses = await self._store.get_all()
        except StorageError as e:
            logger.warning(
                "ledger_load_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            self._load_error = e
            expenses = []
        except BaseException:
            self._state = LedgerState.UNINITIALIZED
            raise
        else:
            self._load_error = None

        self._state = LedgerState.READY
        logger.info("ledger_loaded", count=len(expenses))
        self._commit(tuple(expenses), LedgerChangeType.LOADED)

    async def _ensure_loaded(self) -> None:
        if self._state is LedgerState.UNINITIALIZED:
            await self._load_locked()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _persist(
        self,
        operation: str,
        write: Callable[[], Awaitable[None]],
        expense_id: Optional[str] = None,
    ) -> None:
        self._state = LedgerState.MUTATING
        try:
            await write()
        except StorageError as e:
            logger.error(
                "ledger_mutation_failed",
                operation=operation,
                expense_id=expense_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            self._state = LedgerState.READY

    def _index_of(self, expense_id: str) -> Optional[int]:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        return None

    def _new_id(self) -> str:
        taken = {expense.id for expense in self._expenses}
        expense_id = self._id_factory()
        while expense_id in taken:
            expense_id = self._id_factory()
        return expense_id

    async def add(self, draft: Union[ExpenseDraft, Mapping[str, Any]]) -> Expense:
        """
        Record a new expense and return it with its id and createdAt.

        Raises:
            ValidationError: If the draft is invalid (nothing is written)
            StorageError: If the write fails (cache unchanged)
        """
        draft = validate_draft(draft)
        async with self._lock:
            await self._ensure_loaded()
            expense = Expense.from_draft(draft, self._new_id(), self._clock())
            snapshot = (expense,) + self._expenses
            await self._persist(
                "add",
                lambda: self._store.save_all(snapshot),
                expense.id,
            )
            self._commit(snapshot, LedgerChangeType.EXPENSE_ADDED, (expense.id,))

        logger.info("expense_added", expense_id=expense.id, category=expense.category.value)
        return expense

    async def delete(self, expense_id: str) -> bool:
        """
        Remove an expense by id.

        Returns False, without writing, if the id is not in the ledger.
        """
        async with self._lock:
            await self._ensure_loaded()
            if self._index_of(expense_id) is None:
                logger.debug("expense_delete_missing", expense_id=expense_id)
                return False
            snapshot = tuple(e for e in self._expenses if e.id != expense_id)
            await self._persist(
                "delete",
                lambda: self._store.save_all(snapshot),
                expense_id,
            )
            self._commit(snapshot, LedgerChangeType.EXPENSE_DELETED, (expense_id,))

        logger.info("expense_deleted", expense_id=expense_id)
        return True

    async def update(self, expense: Union[Expense, Mapping[str, Any]]) -> Expense:
        """
        Replace the expense with the same id, keeping its position and createdAt.

        Raises:
            ValidationError: If the record is invalid
            NotFoundError: If the id is not in the ledger (nothing is written)
            StorageError: If the write fails (cache unchanged)
        """
        expense = validate_expense(expense)
        async with self._lock:
            await self._ensure_loaded()
            index = self._index_of(expense.id)
            if index is None:
                raise NotFoundError(expense.id)

            existing = self._expenses[index]
            if expense.created_at != existing.created_at:
                logger.debug("expense_created_at_kept", expense_id=expense.id)
                expense = expense.model_copy(update={"created_at": existing.created_at})

            snapshot = self._expenses[:index] + (expense,) + self._expenses[index + 1:]
            await self._persist(
                "update",
                lambda: self._store.save_all(snapshot),
                expense.id,
            )
            self._commit(snapshot, LedgerChangeType.EXPENSE_UPDATED, (expense.id,))

        logger.info("expense_updated", expense_id=expense.id)
        return expense

    async def clear_all(self) -> int:
        """Remove every expense. Returns how many were removed."""
        async with self._lock:
            await self._ensure_loaded()
            removed = tuple(expense.id for expense in self._expenses)
            await self._persist("clear", self._store.clear_all)
            self._commit((), LedgerChangeType.LEDGER_CLEARED, removed)

        logger.info("ledger_cleared", removed=len(removed))
        return len(removed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, expense_id: str) -> Optional[Expense]:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    def total_spending(self) -> Decimal:
        """Sum of all amounts; exactly 0 for an empty ledger."""
        return sum((expense.amount for expense in self._expenses), ZERO)

    def spending_by_category(self, category: Union[Category, str]) -> Decimal:
        category = Category.from_label(category)
        return sum(
            (e.amount for e in self._expenses if e.category is category),
            ZERO,
        )

    def filter_by_category(
        self,
        category: Union[Category, str, None] = None,
    ) -> list[Expense]:
        """Expenses in one category (or all for None / 'ALL'), newest first."""
        wanted = _resolve_filter(category)
        snapshot = self._expenses
        if wanted is None:
            return list(snapshot)
        return [expense for expense in snapshot if expense.category is wanted]

    def recent(self, limit: int = 5) -> list[Expense]:
        return list(self._expenses[:max(limit, 0)])

    def spending_breakdown(self) -> dict[Category, Decimal]:
        """Per-category totals for categories with any spend, in enumeration order."""
        return self._breakdown(self._expenses)

    @staticmethod
    def _breakdown(snapshot: tuple[Expense, ...]) -> dict[Category, Decimal]:
        totals = {category: ZERO for category in Category}
        for expense in snapshot:
            totals[expense.category] += expense.amount
        return {category: amount for category, amount in totals.items() if amount > 0}

    def summary(self, recent_limit: int = 5) -> SpendingSummary:
        """Dashboard aggregates, all computed from the same snapshot."""
        snapshot = self._expenses
        return SpendingSummary(
            total=sum((expense.amount for expense in snapshot), ZERO),
            expense_count=len(snapshot),
            by_category=self._breakdown(snapshot),
            recent=snapshot[:max(recent_limit, 0)],
        )
