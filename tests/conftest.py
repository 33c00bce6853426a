"""
Pytest configuration and fixtures.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.domain.entities import (
    Account,
    Bill,
    Customer,
    Invoice,
    JournalEntry,
    JournalEntryLine,
    LedgerSnapshot,
    Vendor,
)
from app.domain.value_objects import AccountType, CashFlowCategory


class SnapshotFactory:
    """Builds small ledgers: accounts first, then balanced postings."""

    def __init__(self):
        self.accounts: list[Account] = []
        self.entries: list[JournalEntry] = []
        self.lines: list[JournalEntryLine] = []
        self.customers: list[Customer] = []
        self.vendors: list[Vendor] = []
        self.invoices: list[Invoice] = []
        self.bills: list[Bill] = []

    def account(self, account_id, name, account_type, subtype=None, category=None, number=None):
        self.accounts.append(
            Account(
                id=account_id,
                name=name,
                account_type=AccountType(account_type),
                subtype=subtype,
                cash_flow_category=CashFlowCategory(category) if category else None,
                account_number=number,
            )
        )
        return self

    def post(self, when, description, debits, credits, reference=None, entry_id=None, memos=None):
        entry_id = entry_id or f"je-{len(self.entries) + 1:03d}"
        if isinstance(when, str):
            when = datetime.fromisoformat(when)
        elif not isinstance(when, datetime):
            when = datetime(when.year, when.month, when.day)
        self.entries.append(JournalEntry(id=entry_id, transaction_date=when, description=description, reference=reference))
        memos = memos or {}
        for account_id, amount in debits.items():
            self._line(entry_id, account_id, debit=Decimal(str(amount)), description=memos.get(account_id))
        for account_id, amount in credits.items():
            self._line(entry_id, account_id, credit=Decimal(str(amount)), description=memos.get(account_id))
        return self

    def _line(self, entry_id, account_id, debit=Decimal("0"), credit=Decimal("0"), description=None):
        self.lines.append(
            JournalEntryLine(
                id=f"{entry_id}-{len(self.lines) + 1:03d}",
                journal_entry_id=entry_id,
                account_id=account_id,
                debit=debit,
                credit=credit,
                description=description,
            )
        )

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot.from_records(
            accounts=self.accounts,
            entries=self.entries,
            lines=self.lines,
            customers=self.customers,
            vendors=self.vendors,
            invoices=self.invoices,
            bills=self.bills,
        )


def chart_of_accounts(factory: SnapshotFactory) -> SnapshotFactory:
    return (
        factory.account("cash", "Business Checking", "Asset", subtype="Bank", number="1000")
        .account("ar", "Accounts Receivable", "Asset", subtype="Receivable", number="1100")
        .account("equip", "Equipment", "Asset", subtype="FixedAsset", number="1500")
        .account("accdep", "Accumulated Depreciation", "Asset", subtype="FixedAsset", number="1590")
        .account("ap", "Accounts Payable", "Liability", subtype="Payable", number="2000")
        .account("loan", "Bank Loan", "Liability", subtype="LongTermLiability", number="2500")
        .account("capital", "Owner Capital", "Equity", number="3000")
        .account("sales", "Service Revenue", "Revenue", number="4000")
        .account("rent", "Rent Expense", "Expense", number="6000")
        .account("depexp", "Depreciation Expense", "Expense", number="6100")
    )


def january_activity(factory: SnapshotFactory) -> SnapshotFactory:
    return (
        factory.post(date(2024, 1, 1), "Owner investment", {"cash": 10000}, {"capital": 10000}, reference="JE-1")
        .post(date(2024, 1, 5), "Buy equipment", {"equip": 4000}, {"cash": 4000}, reference="JE-2")
        .post(date(2024, 1, 10), "Invoice client", {"ar": 3000}, {"sales": 3000}, reference="JE-3")
        .post(date(2024, 1, 15), "Client payment", {"cash": 1000}, {"ar": 1000}, reference="JE-4")
        .post(date(2024, 1, 20), "January rent", {"rent": 500}, {"ap": 500}, reference="JE-5")
        .post(date(2024, 1, 25), "Depreciation", {"depexp": 200}, {"accdep": 200}, reference="JE-6")
        .post(date(2024, 1, 28), "Loan proceeds", {"cash": 5000}, {"loan": 5000}, reference="JE-7")
    )


@pytest.fixture
def factory() -> SnapshotFactory:
    return SnapshotFactory()


@pytest.fixture
def sample_factory() -> SnapshotFactory:
    return january_activity(chart_of_accounts(SnapshotFactory()))


@pytest.fixture
def sample_snapshot(sample_factory) -> LedgerSnapshot:
    return sample_factory.snapshot()


@pytest.fixture
def empty_snapshot() -> LedgerSnapshot:
    return LedgerSnapshot.empty()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 1, 31, 9, 30)
