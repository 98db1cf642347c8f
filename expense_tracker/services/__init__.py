"""Services package."""

from expense_tracker.services.ledger import LedgerListener, LedgerService
from expense_tracker.services.payments import (
    HandoffResult,
    InvalidPaymentLinkError,
    PaymentError,
    PaymentLaunchError,
    PaymentLauncher,
    ScanOutcome,
    ScannedCode,
    UpiPaymentRequest,
    build_payment_uri,
    classify_scanned_payload,
    hand_off,
)
from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    FileKeyValueBackend,
    InMemoryKeyValueBackend,
    KeyValueBackend,
    KeyValueLedgerStore,
    NotFoundError,
    StorageError,
    StorageIOError,
    StorageReadError,
)

__all__ = [
    # Ledger
    "LedgerListener",
    "LedgerService",
    # Payments
    "HandoffResult",
    "InvalidPaymentLinkError",
    "PaymentError",
    "PaymentLaunchError",
    "PaymentLauncher",
    "ScanOutcome",
    "ScannedCode",
    "UpiPaymentRequest",
    "build_payment_uri",
    "classify_scanned_payload",
    "hand_off",
    # Storage
    "ExpenseStorageInterface",
    "FileKeyValueBackend",
    "InMemoryKeyValueBackend",
    "KeyValueBackend",
    "KeyValueLedgerStore",
    "NotFoundError",
    "StorageError",
    "StorageIOError",
    "StorageReadError",
]
