"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger is one JSON blob in a local key-value store; the backend is
swappable (file per key, or in-memory).
"""

from expense_tracker.services.storage.interface import (
    ExpenseStorageInterface,
    KeyValueBackend,
    NotFoundError,
    StorageError,
    StorageIOError,
    StorageReadError,
)
from expense_tracker.services.storage.backends import (
    FileKeyValueBackend,
    InMemoryKeyValueBackend,
)
from expense_tracker.services.storage.ledger_store import (
    DEFAULT_LEDGER_KEY,
    KeyValueLedgerStore,
)

__all__ = [
    # Interfaces
    "ExpenseStorageInterface",
    "KeyValueBackend",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StorageIOError",
    "StorageReadError",
    # Implementations
    "DEFAULT_LEDGER_KEY",
    "FileKeyValueBackend",
    "InMemoryKeyValueBackend",
    "KeyValueLedgerStore",
]
