"""
Domain Layer - Value objects for the ledger reporting engine.
Pure Python, no I/O: amounts are Decimal, dates are naive calendar values.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import NewType

AccountId = NewType("AccountId", str)
EntryId = NewType("EntryId", str)

ZERO = Decimal("0")
TOLERANCE = Decimal("0.01")


class AccountType(str, Enum):
    """Account types, in statement precedence order."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class NormalSide(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


class StatementGroup(str, Enum):
    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSES = "Expenses"


class CashFlowCategory(str, Enum):
    OPERATING = "Operating"
    INVESTING = "Investing"
    FINANCING = "Financing"


class ClassificationSource(str, Enum):
    """Where a classification came from: a tag on the account or a name/subtype guess."""
    EXPLICIT = "explicit"
    HEURISTIC = "heuristic"


class RowKind(str, Enum):
    HEADER = "header"
    LINE = "line"
    SUBTOTAL = "subtotal"
    TOTAL = "total"


class AgingBucket(str, Enum):
    CURRENT = "Current"
    DAYS_1_30 = "1-30"
    DAYS_31_60 = "31-60"
    DAYS_61_90 = "61-90"
    DAYS_90_PLUS = "90+"

    @classmethod
    def for_days_past_due(cls, days: int) -> "AgingBucket":
        if days <= 0:
            return cls.CURRENT
        if days <= 30:
            return cls.DAYS_1_30
        if days <= 60:
            return cls.DAYS_31_60
        if days <= 90:
            return cls.DAYS_61_90
        return cls.DAYS_90_PLUS


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial-balance"
    BALANCE_SHEET = "balance-sheet"
    PROFIT_AND_LOSS = "profit-and-loss"
    CASH_FLOW = "cash-flow"
    GENERAL_LEDGER = "general-ledger"
    TRANSACTION_DETAIL = "transaction-detail"
    AR_AGING = "ar-aging"
    AP_AGING = "ap-aging"


TERMINAL_DOCUMENT_STATUSES = frozenset({"paid", "cancelled", "voided"})


def money(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce an amount to Decimal. Floats go through str() so 0.1 stays 0.1."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def is_zero(amount: Decimal) -> bool:
    return abs(amount) < TOLERANCE


def amounts_equal(left: Decimal, right: Decimal) -> bool:
    return is_zero(left - right)


@dataclass(frozen=True, slots=True)
class ReportRow:
    """
    Value Object - One presentation row of a report.
    Only the columns relevant to the report are filled in.
    """
    label: str
    kind: RowKind = RowKind.LINE
    indent: int = 0
    amount: Decimal | None = None
    debit: Decimal | None = None
    credit: Decimal | None = None
    balance: Decimal | None = None
    transaction_date: date | None = None
    reference: str | None = None
    memo: str | None = None
    account_id: str | None = None
    journal_entry_id: str | None = None
    counterparty_id: str | None = None
    buckets: dict[AgingBucket, Decimal] | None = None
