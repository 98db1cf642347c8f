"""
Shared fixtures.

No test touches the real data directory: ledgers run on in-memory
backends, and file-backend tests use pytest's tmp_path.
"""

import itertools
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from expense_tracker.models.expense import Category, ExpenseDraft
from expense_tracker.services.ledger import LedgerService
from expense_tracker.services.payments import PaymentLaunchError, PaymentLauncher
from expense_tracker.services.storage import (
    InMemoryKeyValueBackend,
    KeyValueLedgerStore,
    StorageIOError,
)


FIXED_NOW = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


class FlakyBackend(InMemoryKeyValueBackend):
    """
    In-memory backend that fails on demand.

    fail_writes: number of upcoming writes/removes to fail (-1 = all of them)
    fail_reads: fail every read while True
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__(initial)
        self.fail_writes = 0
        self.fail_reads = False
        self.write_count = 0

    def _maybe_fail(self) -> None:
        if self.fail_writes:
            if self.fail_writes > 0:
                self.fail_writes -= 1
            raise StorageIOError("disk full")

    async def get_item(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise StorageIOError("device unavailable")
        return await super().get_item(key)

    async def set_item(self, key: str, value: str) -> None:
        self._maybe_fail()
        self.write_count += 1
        await super().set_item(key, value)

    async def remove_item(self, key: str) -> None:
        self._maybe_fail()
        self.write_count += 1
        await super().remove_item(key)


class FakeLauncher(PaymentLauncher):
    """Payment launcher that records what it was asked to open."""

    def __init__(self, installed: bool = True, broken: bool = False):
        self.installed = installed
        self.broken = broken
        self.opened: list[str] = []

    async def can_open(self, uri: str) -> bool:
        return self.installed

    async def open(self, uri: str) -> None:
        if self.broken:
            raise PaymentLaunchError("activity not found")
        self.opened.append(uri)


def make_draft(
    amount="50.00",
    description="Coffee",
    category=Category.FOOD,
    spent_on=date(2024, 1, 15),
) -> ExpenseDraft:
    return ExpenseDraft(
        amount=Decimal(str(amount)),
        description=description,
        category=category,
        spent_on=spent_on,
    )


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"exp-{next(counter):03d}"


@pytest.fixture
def backend() -> FlakyBackend:
    return FlakyBackend()


@pytest.fixture
def store(backend) -> KeyValueLedgerStore:
    return KeyValueLedgerStore(backend)


@pytest.fixture
def ledger(store) -> LedgerService:
    """An unloaded ledger with predictable ids and timestamps."""
    return LedgerService(store, id_factory=sequential_ids(), clock=lambda: FIXED_NOW)


@pytest.fixture
async def loaded_ledger(ledger) -> LedgerService:
    await ledger.load()
    return ledger
