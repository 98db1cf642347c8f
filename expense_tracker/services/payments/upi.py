"""
UPI Payment Links

Handles the two ends of a UPI deep link:
1. Classifying text decoded from a scanned QR code
2. Building a `upi://pay` link from amount, note and recipient

Only `upi://pay` links are payments. Other `upi://` links (mandates,
collect requests) are recognised but refused, and anything else is
not a UPI code at all.

The ledger never sees these links. A payment becomes an expense only
when the caller decides to record it after a successful handoff.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from pydantic import BaseModel, Field

from expense_tracker.models.expense import to_minor_units


UPI_SCHEME = "upi://"
UPI_PAY_PREFIX = "upi://pay"


class PaymentError(Exception):
    """Base exception for payment handoff errors."""
    pass


class InvalidPaymentLinkError(PaymentError):
    """A payment link could not be built from the given values."""
    pass


class ScanOutcome(str, Enum):
    """What a scanned QR payload turned out to be."""
    PAYMENT = "payment"
    UNSUPPORTED_UPI = "unsupported_upi"
    NOT_UPI = "not_upi"


SCAN_MESSAGES = {
    ScanOutcome.PAYMENT: "UPI payment detected. Opening payment app...",
    ScanOutcome.UNSUPPORTED_UPI: (
        "This UPI QR code format is not supported for payments. "
        "Please use a standard UPI payment QR code."
    ),
    ScanOutcome.NOT_UPI: (
        "This is not a UPI payment QR code. Please scan a valid UPI QR code."
    ),
}


class UpiPaymentRequest(BaseModel):
    """Parameters carried by a `upi://pay` link. All of them are optional on the wire."""

    payee_address: Optional[str] = Field(default=None, description="pa: payee VPA")
    payee_name: Optional[str] = Field(default=None, description="pn: payee name")
    amount: Optional[Decimal] = Field(default=None, description="am: amount")
    note: Optional[str] = Field(default=None, description="tn: transaction note")
    currency: Optional[str] = Field(default=None, description="cu: currency code")

    @property
    def display_name(self) -> Optional[str]:
        return self.payee_name or self.payee_address


class ScannedCode(BaseModel):
    """Classification of one scanned payload."""

    outcome: ScanOutcome
    raw: str
    uri: Optional[str] = Field(
        default=None,
        description="Cleaned link, present for payments"
    )
    request: Optional[UpiPaymentRequest] = None

    @property
    def is_payment(self) -> bool:
        return self.outcome is ScanOutcome.PAYMENT

    @property
    def message(self) -> str:
        return SCAN_MESSAGES[self.outcome]


def clean_payload(data: str) -> str:
    """Drop every whitespace character; scanners often add stray ones."""
    return "".join(data.split())


def _first(params: dict[str, list[str]], name: str) -> Optional[str]:
    values = params.get(name)
    if not values:
        return None
    value = values[0].strip()
    return value or None


def parse_payment_request(uri: str) -> UpiPaymentRequest:
    """Read the query parameters of a `upi://pay` link. Bad amounts are dropped."""
    params = parse_qs(urlsplit(uri).query)

    amount = None
    raw_amount = _first(params, "am")
    if raw_amount is not None:
        try:
            amount = to_minor_units(raw_amount)
        except ValueError:
            amount = None
        if amount is not None and amount <= 0:
            amount = None

    return UpiPaymentRequest(
        payee_address=_first(params, "pa"),
        payee_name=_first(params, "pn"),
        amount=amount,
        note=_first(params, "tn"),
        currency=_first(params, "cu"),
    )


def classify_scanned_payload(data: str) -> ScannedCode:
    """
    Decide what a scanned payload is.

    Payment links are returned cleaned and parsed.
    """
    cleaned = clean_payload(data or "")

    if cleaned.startswith(UPI_PAY_PREFIX):
        return ScannedCode(
            outcome=ScanOutcome.PAYMENT,
            raw=data,
            uri=cleaned,
            request=parse_payment_request(cleaned),
        )
    if cleaned.startswith(UPI_SCHEME):
        return ScannedCode(outcome=ScanOutcome.UNSUPPORTED_UPI, raw=data)
    return ScannedCode(outcome=ScanOutcome.NOT_UPI, raw=data)


def build_payment_uri(
    payee_address: str,
    amount: Optional[Decimal] = None,
    note: Optional[str] = None,
    payee_name: Optional[str] = None,
    currency: str = "INR",
) -> str:
    """
    Build a `upi://pay` deep link.

    Raises:
        InvalidPaymentLinkError: If the payee is blank or the amount is not positive
    """
    payee_address = (payee_address or "").strip()
    if not payee_address or "@" not in payee_address:
        raise InvalidPaymentLinkError(
            f"Payee address must look like name@bank, got {payee_address!r}"
        )

    params = [("pa", payee_address)]
    if payee_name and payee_name.strip():
        params.append(("pn", payee_name.strip()))
    if amount is not None:
        try:
            amount = to_minor_units(amount)
        except ValueError as e:
            raise InvalidPaymentLinkError(str(e)) from e
        if amount <= 0:
            raise InvalidPaymentLinkError("Amount must be greater than zero")
        params.append(("am", f"{amount:.2f}"))
    if note and note.strip():
        params.append(("tn", note.strip()))
    params.append(("cu", currency))

    query = urlencode(params, safe="@", quote_via=quote)
    return f"{UPI_PAY_PREFIX}?{query}"
