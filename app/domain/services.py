"""
Domain Services - Classification, period filtering and balance aggregation
shared by every report builder.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from app.core.logging import get_logger

from .entities import Account, JournalEntryLine, LedgerSnapshot
from .exceptions import InvalidReportRequest, LedgerConfigurationError
from .value_objects import (
    ZERO,
    AccountType,
    CashFlowCategory,
    NormalSide,
    StatementGroup,
)

logger = get_logger(__name__)

AccountPredicate = Callable[[Account], bool]

_DATE_PATTERN = re.compile(
    r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})"
    r"(?:[T ](\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d+))?)?)?"
)

END_OF_DAY = time.max


def _decompose(value: str) -> tuple[int, ...]:
    match = _DATE_PATTERN.match(value)
    if not match:
        raise InvalidReportRequest(f"Invalid date: {value!r}")
    year, month, day, hour, minute, second, fraction = match.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    return int(year), int(month), int(day), int(hour or 0), int(minute or 0), int(second or 0), micro


def parse_calendar_date(value: date | datetime | str) -> date:
    """
    Calendar date of a value, by explicit year/month/day decomposition.
    Timezone suffixes are ignored: "2024-01-31T23:30:00Z" is January 31st.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        year, month, day, *_ = _decompose(value)
        try:
            return date(year, month, day)
        except ValueError as exc:
            raise InvalidReportRequest(f"Invalid date: {value!r}") from exc
    raise InvalidReportRequest(f"Unsupported date value: {value!r}")


def to_local_instant(value: date | datetime | str) -> datetime:
    """Naive wall-clock instant of a value; aware datetimes keep their wall clock."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime(*_decompose(value))
        except ValueError as exc:
            raise InvalidReportRequest(f"Invalid date: {value!r}") from exc
    raise InvalidReportRequest(f"Unsupported date value: {value!r}")


class AccountClassifier:
    """
    Service - Normal balance side and statement placement per account type.
    Unmapped types are a configuration error, never defaulted.
    """

    _NORMAL_SIDES = {
        AccountType.ASSET: NormalSide.DEBIT,
        AccountType.EXPENSE: NormalSide.DEBIT,
        AccountType.LIABILITY: NormalSide.CREDIT,
        AccountType.EQUITY: NormalSide.CREDIT,
        AccountType.REVENUE: NormalSide.CREDIT,
    }

    _GROUPS = {
        AccountType.ASSET: StatementGroup.ASSETS,
        AccountType.LIABILITY: StatementGroup.LIABILITIES,
        AccountType.EQUITY: StatementGroup.EQUITY,
        AccountType.REVENUE: StatementGroup.REVENUE,
        AccountType.EXPENSE: StatementGroup.EXPENSES,
    }

    _PRECEDENCE = {account_type: index for index, account_type in enumerate(AccountType)}

    @staticmethod
    def parse_type(raw: "AccountType | str | None") -> AccountType:
        if isinstance(raw, AccountType):
            return raw
        if raw:
            for account_type in AccountType:
                if account_type.value.lower() == str(raw).strip().lower():
                    return account_type
        raise LedgerConfigurationError(f"Unknown account type: {raw!r}")

    @staticmethod
    def parse_cash_flow_category(raw: "CashFlowCategory | str | None") -> CashFlowCategory | None:
        if raw is None or isinstance(raw, CashFlowCategory):
            return raw
        if not str(raw).strip():
            return None
        for category in CashFlowCategory:
            if category.value.lower() == str(raw).strip().lower():
                return category
        raise LedgerConfigurationError(f"Unknown cash flow category: {raw!r}")

    @classmethod
    def normal_side(cls, account_type: AccountType) -> NormalSide:
        try:
            return cls._NORMAL_SIDES[account_type]
        except KeyError:
            raise LedgerConfigurationError(f"Unmapped account type: {account_type!r}") from None

    @classmethod
    def statement_group(cls, account_type: AccountType) -> StatementGroup:
        try:
            return cls._GROUPS[account_type]
        except KeyError:
            raise LedgerConfigurationError(f"Unmapped account type: {account_type!r}") from None

    @classmethod
    def is_debit_normal(cls, account_type: AccountType) -> bool:
        return cls.normal_side(account_type) is NormalSide.DEBIT

    @classmethod
    def signed_balance(cls, account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
        """Balance expressed so that it is positive on the account's normal side."""
        if cls.is_debit_normal(account_type):
            return debit - credit
        return credit - debit

    @classmethod
    def sort_key(cls, account: Account) -> tuple:
        """Statement-group precedence, then name; id keeps the order total."""
        return (cls._PRECEDENCE[account.account_type], account.name.casefold(), account.name, account.id)


@dataclass(frozen=True, slots=True)
class PeriodFilter:
    """
    Inclusive instant range built from calendar dates.
    start is midnight of the start date, end is the last microsecond of the end date.
    """
    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def between(cls, start_date: date | str, end_date: date | str) -> "PeriodFilter":
        start_day = parse_calendar_date(start_date)
        end_day = parse_calendar_date(end_date)
        if start_day > end_day:
            raise InvalidReportRequest(f"Start date {start_day} is after end date {end_day}")
        return cls(start=datetime.combine(start_day, time.min), end=datetime.combine(end_day, END_OF_DAY))

    @classmethod
    def as_of(cls, end_date: date | str) -> "PeriodFilter":
        return cls(end=datetime.combine(parse_calendar_date(end_date), END_OF_DAY))

    @classmethod
    def before(cls, start_date: date | str) -> "PeriodFilter":
        """Everything strictly before midnight of start_date."""
        midnight = datetime.combine(parse_calendar_date(start_date), time.min)
        return cls(end=midnight - timedelta(microseconds=1))

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    __call__ = contains


@dataclass(slots=True)
class AccountTotals:
    """Raw debit and credit sums of one account; never netted while folding."""
    debit_total: Decimal = ZERO
    credit_total: Decimal = ZERO

    def add(self, line: JournalEntryLine) -> None:
        self.debit_total += line.debit
        self.credit_total += line.credit

    @property
    def net(self) -> Decimal:
        return self.debit_total - self.credit_total

    def signed(self, account_type: AccountType) -> Decimal:
        return AccountClassifier.signed_balance(account_type, self.debit_total, self.credit_total)

    def __add__(self, other: "AccountTotals") -> "AccountTotals":
        return AccountTotals(self.debit_total + other.debit_total, self.credit_total + other.credit_total)


class BalanceAggregator:
    """
    Service - Folds journal lines into per-account debit/credit totals.
    Summation is order independent, so partial results can be merged.
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot

    def lines_in(self, period: PeriodFilter) -> list[JournalEntryLine]:
        selected = []
        undated = 0
        for line in self.snapshot.lines:
            moment = self.snapshot.entry_date(line)
            if moment is None:
                undated += 1
            elif period.contains(moment):
                selected.append(line)
        if undated:
            logger.warning("ledger.unknown_entry", lines=undated)
        return selected

    def aggregate(
        self,
        lines: Iterable[JournalEntryLine],
        account_filter: AccountPredicate | None = None,
    ) -> dict[str, AccountTotals]:
        totals: dict[str, AccountTotals] = {}
        for line in lines:
            if account_filter is not None:
                account = self.snapshot.account(line.account_id)
                if account is None or not account_filter(account):
                    continue
            totals.setdefault(line.account_id, AccountTotals()).add(line)
        return totals

    def cumulative(self, cutoff: date | str, account_filter: AccountPredicate | None = None) -> dict[str, AccountTotals]:
        return self.aggregate(self.lines_in(PeriodFilter.as_of(cutoff)), account_filter)

    def period(
        self,
        start: date | str,
        end: date | str,
        account_filter: AccountPredicate | None = None,
    ) -> dict[str, AccountTotals]:
        return self.aggregate(self.lines_in(PeriodFilter.between(start, end)), account_filter)

    def before(self, start: date | str, account_filter: AccountPredicate | None = None) -> dict[str, AccountTotals]:
        return self.aggregate(self.lines_in(PeriodFilter.before(start)), account_filter)

    @staticmethod
    def merge(*partials: dict[str, AccountTotals]) -> dict[str, AccountTotals]:
        merged: dict[str, AccountTotals] = {}
        for partial in partials:
            for account_id, totals in partial.items():
                merged[account_id] = merged.get(account_id, AccountTotals()) + totals
        return merged

    def known_accounts(self, totals: dict[str, AccountTotals]) -> list[tuple[Account, AccountTotals]]:
        """Pair totals with their accounts, dropping (and logging) unknown account ids."""
        pairs = []
        for account_id, account_totals in totals.items():
            account = self.snapshot.account(account_id)
            if account is None:
                logger.warning("ledger.unknown_account", account_id=account_id)
                continue
            pairs.append((account, account_totals))
        return pairs


class ILedgerSnapshotSource(ABC):
    """Repository boundary - supplies one consistent snapshot per report run."""

    @abstractmethod
    def load_snapshot(self) -> LedgerSnapshot:
        ...
