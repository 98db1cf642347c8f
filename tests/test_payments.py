"""
Tests for UPI link handling and the payment app handoff.
"""

from decimal import Decimal

import pytest

from conftest import FakeLauncher
from expense_tracker.services.payments import (
    InvalidPaymentLinkError,
    ScanOutcome,
    build_payment_uri,
    classify_scanned_payload,
    hand_off,
    parse_payment_request,
)
from expense_tracker.services.payments.launcher import (
    LAUNCH_FAILED_MESSAGE,
    NO_APP_MESSAGE,
)


class TestClassifyScannedPayload:
    """Tests for classifying scanned QR text."""

    def test_payment_link(self):
        """Test a standard upi://pay code."""
        scanned = classify_scanned_payload(
            "upi://pay?pa=shop@okbank&pn=Corner%20Cafe&am=120.50&tn=Lunch&cu=INR"
        )
        assert scanned.outcome is ScanOutcome.PAYMENT
        assert scanned.is_payment
        assert scanned.message == "UPI payment detected. Opening payment app..."
        assert scanned.request.payee_address == "shop@okbank"
        assert scanned.request.payee_name == "Corner Cafe"
        assert scanned.request.amount == Decimal("120.50")
        assert scanned.request.note == "Lunch"
        assert scanned.request.currency == "INR"

    def test_whitespace_is_removed(self):
        """Test stray whitespace from the scanner is dropped everywhere."""
        scanned = classify_scanned_payload("  upi://pay?pa=shop@okbank\n&am=10 \t")
        assert scanned.is_payment
        assert scanned.uri == "upi://pay?pa=shop@okbank&am=10"
        assert scanned.raw == "  upi://pay?pa=shop@okbank\n&am=10 \t"

    def test_other_upi_links_are_unsupported(self):
        """Test upi:// links that are not payments."""
        scanned = classify_scanned_payload("upi://mandate?pa=shop@okbank")
        assert scanned.outcome is ScanOutcome.UNSUPPORTED_UPI
        assert not scanned.is_payment
        assert scanned.uri is None
        assert "not supported" in scanned.message

    @pytest.mark.parametrize("payload", ["https://example.com", "hello", "", "UPI://PAY?pa=a@b"])
    def test_not_upi(self, payload):
        """Test anything without the upi:// scheme."""
        scanned = classify_scanned_payload(payload)
        assert scanned.outcome is ScanOutcome.NOT_UPI
        assert scanned.message == (
            "This is not a UPI payment QR code. Please scan a valid UPI QR code."
        )

    def test_payment_without_amount(self):
        """Test payee-only codes are payments with no amount."""
        scanned = classify_scanned_payload("upi://pay?pa=friend@upi")
        assert scanned.is_payment
        assert scanned.request.amount is None
        assert scanned.request.display_name == "friend@upi"


class TestParsePaymentRequest:
    """Tests for reading upi://pay parameters."""

    @pytest.mark.parametrize("amount", ["abc", "0", "-5", ""])
    def test_unusable_amounts_are_dropped(self, amount):
        """Test bad amounts come back as None."""
        request = parse_payment_request(f"upi://pay?pa=a@b&am={amount}")
        assert request.amount is None

    def test_plus_decodes_to_space(self):
        """Test form-encoded spaces in the note."""
        request = parse_payment_request("upi://pay?pa=a@b&tn=Team+lunch")
        assert request.note == "Team lunch"


class TestBuildPaymentUri:
    """Tests for building upi://pay links."""

    def test_full_link(self):
        """Test all parameters, in order, percent-encoded."""
        uri = build_payment_uri(
            payee_address="shop@okbank",
            amount=Decimal("120.5"),
            note="Lunch with team",
            payee_name="Cafe",
        )
        assert uri == "upi://pay?pa=shop@okbank&pn=Cafe&am=120.50&tn=Lunch%20with%20team&cu=INR"

    def test_minimal_link(self):
        """Test a payee-only link."""
        assert build_payment_uri("friend@upi") == "upi://pay?pa=friend@upi&cu=INR"

    def test_round_trips_through_classifier(self):
        """Test a built link is recognised as a payment with the same values."""
        uri = build_payment_uri("shop@okbank", Decimal("99.99"), "Tea & snacks", "Chai Point")
        request = classify_scanned_payload(uri).request
        assert request.amount == Decimal("99.99")
        assert request.note == "Tea & snacks"
        assert request.payee_name == "Chai Point"

    @pytest.mark.parametrize("payee", ["", "   ", "no-at-sign", None])
    def test_invalid_payee(self, payee):
        """Test payees that are not VPAs are refused."""
        with pytest.raises(InvalidPaymentLinkError):
            build_payment_uri(payee, Decimal("10"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), "abc"])
    def test_invalid_amount(self, amount):
        """Test zero, negative and junk amounts are refused."""
        with pytest.raises(InvalidPaymentLinkError):
            build_payment_uri("shop@okbank", amount)


class TestHandOff:
    """Tests for handing a link to the payment app."""

    async def test_launches(self):
        """Test a successful handoff."""
        launcher = FakeLauncher()
        result = await hand_off(launcher, "upi://pay?pa=a@b")
        assert result.launched
        assert result.reason is None
        assert launcher.opened == ["upi://pay?pa=a@b"]

    async def test_no_app_installed(self):
        """Test the message when no app can handle the link."""
        launcher = FakeLauncher(installed=False)
        result = await hand_off(launcher, "upi://pay?pa=a@b")
        assert not result.launched
        assert result.reason == NO_APP_MESSAGE
        assert launcher.opened == []

    async def test_launch_failure(self):
        """Test a platform failure is reported, not raised."""
        launcher = FakeLauncher(broken=True)
        result = await hand_off(launcher, "upi://pay?pa=a@b")
        assert not result.launched
        assert result.reason == LAUNCH_FAILED_MESSAGE
