"""
Payment App Handoff

The payment launcher is a platform collaborator: given a complete
deep link it asks the OS to open whichever installed app handles it.
We only define the contract and the handoff step that reports back,
so the caller can decide whether to also record the expense.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from pydantic import BaseModel

from expense_tracker.services.payments.upi import PaymentError


logger = structlog.get_logger(__name__)

NO_APP_MESSAGE = "No UPI app found. Please install GPay, PhonePe, or Paytm."
LAUNCH_FAILED_MESSAGE = "Failed to open payment app. The QR code might be invalid."


class PaymentLaunchError(PaymentError):
    """The platform refused or failed to open the link."""
    pass


class PaymentLauncher(ABC):
    """Platform hook that opens deep links in another app."""

    @abstractmethod
    async def can_open(self, uri: str) -> bool:
        """Is any installed app able to handle this link?"""
        pass

    @abstractmethod
    async def open(self, uri: str) -> None:
        """
        Hand the link to the platform.

        Raises:
            PaymentLaunchError: If the handoff fails
        """
        pass


class HandoffResult(BaseModel):
    """Whether the payment app was opened, and why not if it wasn't."""

    uri: str
    launched: bool
    reason: Optional[str] = None


async def hand_off(launcher: PaymentLauncher, uri: str) -> HandoffResult:
    """Try to open uri in a payment app. Launch failures are reported, not raised."""
    try:
        if not await launcher.can_open(uri):
            logger.info("payment_app_missing", uri=uri)
            return HandoffResult(uri=uri, launched=False, reason=NO_APP_MESSAGE)
        await launcher.open(uri)
    except PaymentLaunchError as e:
        logger.warning("payment_launch_failed", uri=uri, error=str(e))
        return HandoffResult(uri=uri, launched=False, reason=LAUNCH_FAILED_MESSAGE)

    logger.info("payment_app_opened", uri=uri)
    return HandoffResult(uri=uri, launched=True)
