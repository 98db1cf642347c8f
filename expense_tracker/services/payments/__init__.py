"""Payment handoff services package."""

from expense_tracker.services.payments.launcher import (
    HandoffResult,
    PaymentLaunchError,
    PaymentLauncher,
    hand_off,
)
from expense_tracker.services.payments.upi import (
    InvalidPaymentLinkError,
    PaymentError,
    ScanOutcome,
    ScannedCode,
    UpiPaymentRequest,
    build_payment_uri,
    classify_scanned_payload,
    parse_payment_request,
)

__all__ = [
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
    "parse_payment_request",
]
