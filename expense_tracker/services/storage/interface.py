"""
Abstract Storage Interfaces

DESIGN DECISION: Two layers, both abstract.

1. KeyValueBackend - the platform key-value API (one string per key).
   Swappable: a file per key on disk, or a dict in memory for tests.
2. ExpenseStorageInterface - the ledger store, which keeps the whole
   expense collection as ONE serialized blob under ONE key.

The store offers no isolation between its read-modify-write
operations (add, delete_by_id, update_by_id). Two concurrent callers
can each read the same state and the last write wins. The ledger
service above serializes every mutation, so this is never observed
through it.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from expense_tracker.models.expense import Expense


class KeyValueBackend(ABC):
    """
    Abstract string key-value store.

    Implementations must make a single set_item atomic from the caller's
    point of view: a reader sees the old value or the new one, never a mix.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under key.

        Returns:
            The stored text, or None if the key does not exist

        Raises:
            StorageReadError: If the stored text cannot be decoded
            StorageIOError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageIOError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """
        Remove key. Removing a missing key is not an error.

        Raises:
            StorageIOError: If the removal fails
        """
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for the durable expense collection.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_all(self) -> list[Expense]:
        """
        Read every stored expense, in stored order.

        Returns:
            The stored expenses, or an empty list if nothing was ever saved

        Raises:
            StorageReadError: If stored data exists but cannot be decoded
            StorageIOError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_all(self, expenses: Sequence[Expense]) -> None:
        """
        Replace the stored collection with expenses.

        Raises:
            StorageIOError: If the write fails
        """
        pass

    @abstractmethod
    async def add(self, expense: Expense) -> None:
        """
        Append one expense to the stored collection.

        Raises:
            StorageReadError, StorageIOError
        """
        pass

    @abstractmethod
    async def delete_by_id(self, expense_id: str) -> bool:
        """
        Remove the expense with this id.

        Returns:
            True if a record was removed, False if none matched
            (nothing is written in that case)
        """
        pass

    @abstractmethod
    async def update_by_id(self, expense: Expense) -> None:
        """
        Replace the stored record that has expense.id.

        Raises:
            NotFoundError: If no record has that id (nothing is written)
            StorageReadError, StorageIOError
        """
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        """
        Remove the stored collection entirely.

        Raises:
            StorageIOError: If the removal fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data exists but is unreadable or corrupt."""
    pass


class StorageIOError(StorageError):
    """The underlying device or platform API failed."""
    pass


class NotFoundError(StorageError):
    """An operation referenced an expense id that is not in the ledger."""

    def __init__(self, expense_id: str):
        super().__init__(f"Expense not found: {expense_id}")
        self.expense_id = expense_id
