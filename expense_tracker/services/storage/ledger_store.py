"""
Key-Value Ledger Store

DESIGN DECISION: The whole expense collection is stored as one JSON
array under one key. This is what a mobile key-value API gives us:
single-key writes are atomic, multi-key transactions do not exist.

Layout of the stored value:

    [
      {"id": "...", "amount": "50.00", "description": "Coffee",
       "category": "Food", "date": "2024-01-15",
       "createdAt": "2024-01-15T09:30:00+00:00"},
      ...
    ]

Unknown keys on a record are ignored on read, so older builds can read
data written by newer ones. Numeric amounts are accepted on read.

CORRUPT DATA POLICY: get_all raises StorageReadError. This layer does
not decide to throw data away; the ledger service chooses to degrade
to an empty ledger and logs that it did.
"""

import json
from typing import Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.models.expense import Expense
from expense_tracker.services.storage.interface import (
    ExpenseStorageInterface,
    KeyValueBackend,
    NotFoundError,
    StorageReadError,
)


logger = structlog.get_logger(__name__)

DEFAULT_LEDGER_KEY = "expenses"


class KeyValueLedgerStore(ExpenseStorageInterface):
    """
    Ledger store on top of a KeyValueBackend.

    add, delete_by_id and update_by_id are get_all + change + save_all.
    They are NOT safe under concurrent callers.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = DEFAULT_LEDGER_KEY,
    ):
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def _serialize(self, expenses: Sequence[Expense]) -> str:
        return json.dumps(
            [expense.to_record() for expense in expenses],
            ensure_ascii=False,
        )

    def _deserialize(self, blob: str) -> list[Expense]:
        try:
            records = json.loads(blob)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Stored ledger is not valid JSON: {e}") from e

        if not isinstance(records, list):
            raise StorageReadError(
                f"Stored ledger must be a list, found {type(records).__name__}"
            )

        expenses = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise StorageReadError(f"Record {index} is not an object")
            try:
                expenses.append(Expense.from_record(record))
            except PydanticValidationError as e:
                raise StorageReadError(f"Record {index} is invalid: {e}") from e
        return expenses

    async def get_all(self) -> list[Expense]:
        """Read every stored expense; a missing key means an empty ledger."""
        blob = await self._backend.get_item(self._key)
        if blob is None:
            return []
        expenses = self._deserialize(blob)
        logger.debug("ledger_read", key=self._key, count=len(expenses))
        return expenses

    async def save_all(self, expenses: Sequence[Expense]) -> None:
        """Replace the stored collection."""
        await self._backend.set_item(self._key, self._serialize(expenses))
        logger.debug("ledger_written", key=self._key, count=len(expenses))

    async def add(self, expense: Expense) -> None:
        expenses = await self.get_all()
        expenses.append(expense)
        await self.save_all(expenses)

    async def delete_by_id(self, expense_id: str) -> bool:
        expenses = await self.get_all()
        remaining = [expense for expense in expenses if expense.id != expense_id]
        if len(remaining) == len(expenses):
            return False
        await self.save_all(remaining)
        return True

    async def update_by_id(self, expense: Expense) -> None:
        expenses = await self.get_all()
        for index, existing in enumerate(expenses):
            if existing.id == expense.id:
                expenses[index] = expense
                await self.save_all(expenses)
                return
        raise NotFoundError(expense.id)

    async def clear_all(self) -> None:
        """Remove the storage key; a later get_all returns []."""
        await self._backend.remove_item(self._key)
        logger.debug("ledger_removed", key=self._key)
