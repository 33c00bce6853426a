"""
Domain Services - Financial statement builders.
Each builder is a pure transform over a LedgerSnapshot; out-of-balance books
are reported on the result, never raised.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.core.logging import get_logger

from .entities import Account, JournalEntry, JournalEntryLine, LedgerSnapshot
from .services import (
    AccountClassifier,
    BalanceAggregator,
    PeriodFilter,
    parse_calendar_date,
)
from .value_objects import (
    ZERO,
    AccountType,
    ReportRow,
    RowKind,
    StatementGroup,
    amounts_equal,
    is_zero,
)

logger = get_logger(__name__)

INCOME_STATEMENT_GROUPS = frozenset({StatementGroup.REVENUE, StatementGroup.EXPENSES})


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def _nonzero(amount: Decimal) -> Decimal | None:
    return amount if amount != 0 else None


@dataclass(frozen=True, slots=True)
class AccountBalanceLine:
    account: Account
    balance: Decimal


# --------------------------------------------------------------------------
# Trial Balance
# --------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TrialBalanceLine:
    account: Account
    debit: Decimal
    credit: Decimal


@dataclass
class TrialBalanceReport:
    as_of: date
    lines: list[TrialBalanceLine]
    total_debits: Decimal
    total_credits: Decimal
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @property
    def is_balanced(self) -> bool:
        return amounts_equal(self.total_debits, self.total_credits)

    def summary(self) -> dict[str, Decimal]:
        return {
            "total_debits": self.total_debits,
            "total_credits": self.total_credits,
            "difference": self.difference,
        }


class TrialBalanceBuilder:
    """
    Service - Trial Balance as of a date.
    Net balances land in the column of the side they fall on; the totals
    must agree within tolerance or the report says so.
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.aggregator = BalanceAggregator(snapshot)

    @staticmethod
    def split_columns(account_type: AccountType, net: Decimal) -> tuple[Decimal, Decimal]:
        if AccountClassifier.is_debit_normal(account_type):
            return (net, ZERO) if net >= 0 else (ZERO, -net)
        return (ZERO, -net) if net <= 0 else (net, ZERO)

    def build(self, as_of: date | str) -> TrialBalanceReport:
        as_of = parse_calendar_date(as_of)
        totals = self.aggregator.cumulative(as_of)

        lines = []
        for account, account_totals in self.aggregator.known_accounts(totals):
            debit, credit = self.split_columns(account.account_type, account_totals.net)
            if debit == 0 and credit == 0:
                continue
            lines.append(TrialBalanceLine(account=account, debit=debit, credit=credit))
        lines.sort(key=lambda line: AccountClassifier.sort_key(line.account))

        total_debits = sum((line.debit for line in lines), ZERO)
        total_credits = sum((line.credit for line in lines), ZERO)

        rows = [
            ReportRow(
                label=line.account.name,
                debit=_nonzero(line.debit),
                credit=_nonzero(line.credit),
                account_id=line.account.id,
                reference=line.account.account_number,
                memo=line.account.account_type.value,
            )
            for line in lines
        ]
        if lines:
            rows.append(ReportRow(label="Totals", kind=RowKind.TOTAL, debit=total_debits, credit=total_credits))

        report = TrialBalanceReport(
            as_of=as_of,
            lines=lines,
            total_debits=total_debits,
            total_credits=total_credits,
            rows=rows,
        )
        if not report.is_balanced:
            report.warnings.append(
                f"Trial balance is out of balance by {_fmt(report.difference)}: "
                f"debits {_fmt(total_debits)}, credits {_fmt(total_credits)}."
            )
            logger.warning("trial_balance.out_of_balance", as_of=str(as_of), difference=str(report.difference))
        return report


# --------------------------------------------------------------------------
# Balance Sheet
# --------------------------------------------------------------------------

@dataclass
class BalanceSheetReport:
    as_of: date
    assets: list[AccountBalanceLine]
    liabilities: list[AccountBalanceLine]
    equity: list[AccountBalanceLine]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    retained_earnings: Decimal
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity + self.retained_earnings

    @property
    def difference(self) -> Decimal:
        return self.total_assets - self.total_liabilities_and_equity

    @property
    def is_balanced(self) -> bool:
        return is_zero(self.difference)

    def summary(self) -> dict[str, Decimal]:
        return {
            "total_assets": self.total_assets,
            "total_liabilities": self.total_liabilities,
            "total_equity": self.total_equity,
            "retained_earnings": self.retained_earnings,
            "total_liabilities_and_equity": self.total_liabilities_and_equity,
            "difference": self.difference,
        }


class BalanceSheetBuilder:
    """
    Service - Balance Sheet as of a date.
    Revenue and expense activity up to the date is folded into equity as
    retained earnings.
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.aggregator = BalanceAggregator(snapshot)

    def build(self, as_of: date | str) -> BalanceSheetReport:
        as_of = parse_calendar_date(as_of)
        totals = self.aggregator.cumulative(as_of)

        sections: dict[StatementGroup, list[AccountBalanceLine]] = defaultdict(list)
        retained_earnings = ZERO
        for account, account_totals in self.aggregator.known_accounts(totals):
            balance = account_totals.signed(account.account_type)
            group = AccountClassifier.statement_group(account.account_type)
            if group is StatementGroup.REVENUE:
                retained_earnings += balance
            elif group is StatementGroup.EXPENSES:
                retained_earnings -= balance
            elif balance != 0:
                sections[group].append(AccountBalanceLine(account, balance))
        for lines in sections.values():
            lines.sort(key=lambda line: AccountClassifier.sort_key(line.account))

        assets = sections[StatementGroup.ASSETS]
        liabilities = sections[StatementGroup.LIABILITIES]
        equity = sections[StatementGroup.EQUITY]
        total_assets = sum((line.balance for line in assets), ZERO)
        total_liabilities = sum((line.balance for line in liabilities), ZERO)
        total_equity = sum((line.balance for line in equity), ZERO)

        report = BalanceSheetReport(
            as_of=as_of,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            retained_earnings=retained_earnings,
            rows=[],
        )
        if assets or liabilities or equity or retained_earnings != 0:
            report.rows = self._rows(report)
        if not report.is_balanced:
            report.warnings.append(
                f"The balance sheet is out of balance. Assets ({_fmt(total_assets)}) do not equal "
                f"Liabilities + Equity ({_fmt(report.total_liabilities_and_equity)})."
            )
            logger.warning("balance_sheet.out_of_balance", as_of=str(as_of), difference=str(report.difference))
        return report

    @classmethod
    def _rows(cls, report: BalanceSheetReport) -> list[ReportRow]:
        rows = [ReportRow(label="ASSETS", kind=RowKind.HEADER)]
        rows.extend(cls._account_rows(report.assets))
        rows.append(ReportRow(label="Total Assets", kind=RowKind.SUBTOTAL, amount=report.total_assets))
        rows.append(ReportRow(label="LIABILITIES", kind=RowKind.HEADER))
        rows.extend(cls._account_rows(report.liabilities))
        rows.append(ReportRow(label="Total Liabilities", kind=RowKind.SUBTOTAL, amount=report.total_liabilities))
        rows.append(ReportRow(label="EQUITY", kind=RowKind.HEADER))
        rows.extend(cls._account_rows(report.equity))
        if report.retained_earnings != 0:
            rows.append(ReportRow(label="Retained Earnings", indent=1, amount=report.retained_earnings))
        rows.append(
            ReportRow(
                label="Total Equity",
                kind=RowKind.SUBTOTAL,
                amount=report.total_equity + report.retained_earnings,
            )
        )
        rows.append(
            ReportRow(
                label="Total Liabilities & Equity",
                kind=RowKind.TOTAL,
                amount=report.total_liabilities_and_equity,
            )
        )
        return rows

    @staticmethod
    def _account_rows(lines: list[AccountBalanceLine]) -> list[ReportRow]:
        return [
            ReportRow(label=line.account.name, indent=1, amount=line.balance, account_id=line.account.id)
            for line in lines
        ]


# --------------------------------------------------------------------------
# Profit & Loss
# --------------------------------------------------------------------------

@dataclass
class ProfitAndLossReport:
    start_date: date
    end_date: date
    revenue: list[AccountBalanceLine]
    expenses: list[AccountBalanceLine]
    total_revenue: Decimal
    total_expenses: Decimal
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    def summary(self) -> dict[str, Decimal]:
        return {
            "total_revenue": self.total_revenue,
            "total_expenses": self.total_expenses,
            "net_income": self.net_income,
        }


class ProfitAndLossBuilder:
    """
    Service - Profit & Loss over a period (not cumulative).
    Accounts that round to zero are hidden but still counted in the totals.
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.aggregator = BalanceAggregator(snapshot)

    def build(self, start_date: date | str, end_date: date | str) -> ProfitAndLossReport:
        start_date, end_date = parse_calendar_date(start_date), parse_calendar_date(end_date)
        totals = self.aggregator.period(
            start_date,
            end_date,
            lambda account: AccountClassifier.statement_group(account.account_type) in INCOME_STATEMENT_GROUPS,
        )

        revenue: list[AccountBalanceLine] = []
        expenses: list[AccountBalanceLine] = []
        total_revenue = total_expenses = ZERO
        for account, account_totals in self.aggregator.known_accounts(totals):
            balance = account_totals.signed(account.account_type)
            if AccountClassifier.statement_group(account.account_type) is StatementGroup.REVENUE:
                total_revenue += balance
                target = revenue
            else:
                total_expenses += balance
                target = expenses
            if not is_zero(balance):
                target.append(AccountBalanceLine(account, balance))
        revenue.sort(key=lambda line: AccountClassifier.sort_key(line.account))
        expenses.sort(key=lambda line: AccountClassifier.sort_key(line.account))

        rows = []
        if revenue or expenses or total_revenue != 0 or total_expenses != 0:
            rows.append(ReportRow(label="Revenue", kind=RowKind.HEADER))
            rows.extend(
                ReportRow(label=line.account.name, indent=1, amount=line.balance, account_id=line.account.id)
                for line in revenue
            )
            rows.append(ReportRow(label="Total Revenue", kind=RowKind.SUBTOTAL, amount=total_revenue))
            rows.append(ReportRow(label="Expenses", kind=RowKind.HEADER))
            rows.extend(
                ReportRow(label=line.account.name, indent=1, amount=line.balance, account_id=line.account.id)
                for line in expenses
            )
            rows.append(ReportRow(label="Total Expenses", kind=RowKind.SUBTOTAL, amount=total_expenses))
            rows.append(ReportRow(label="Net Income", kind=RowKind.TOTAL, amount=total_revenue - total_expenses))

        return ProfitAndLossReport(
            start_date=start_date,
            end_date=end_date,
            revenue=revenue,
            expenses=expenses,
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            rows=rows,
        )


# --------------------------------------------------------------------------
# General Ledger
# --------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LedgerTransaction:
    line: JournalEntryLine
    entry: JournalEntry
    balance: Decimal

    @property
    def description(self) -> str:
        if self.line.description:
            return f"{self.entry.description} - {self.line.description}"
        return self.entry.description


@dataclass
class LedgerAccountGroup:
    account: Account
    beginning_balance: Decimal
    transactions: list[LedgerTransaction]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def ending_balance(self) -> Decimal:
        return self.transactions[-1].balance if self.transactions else self.beginning_balance


@dataclass
class GeneralLedgerReport:
    start_date: date
    end_date: date
    groups: list[LedgerAccountGroup]
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, Decimal]:
        return {
            "total_debits": sum((group.total_debits for group in self.groups), ZERO),
            "total_credits": sum((group.total_credits for group in self.groups), ZERO),
        }


def _select_accounts(
    snapshot: LedgerSnapshot,
    account_id: str | None,
    account_type: "AccountType | str | None",
) -> list[Account]:
    if account_id:
        account = snapshot.account(account_id)
        return [account] if account else []
    accounts = list(snapshot.accounts)
    if account_type:
        wanted = AccountClassifier.parse_type(account_type)
        accounts = [account for account in accounts if account.account_type is wanted]
    return sorted(accounts, key=AccountClassifier.sort_key)


class GeneralLedgerBuilder:
    """
    Service - General Ledger with running balances.
    Lines are walked chronologically; same-day ties go by entry reference
    (or entry id when there is none).
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot
        self.aggregator = BalanceAggregator(snapshot)

    def build(
        self,
        start_date: date | str,
        end_date: date | str,
        account_id: str | None = None,
        account_type: "AccountType | str | None" = None,
    ) -> GeneralLedgerReport:
        period = PeriodFilter.between(start_date, end_date)
        start_date, end_date = period.start.date(), period.end.date()
        accounts = _select_accounts(self.snapshot, account_id, account_type)
        opening = self.aggregator.before(start_date)

        period_lines: dict[str, list[tuple[JournalEntry, JournalEntryLine]]] = defaultdict(list)
        for line in self.aggregator.lines_in(period):
            period_lines[line.account_id].append((self.snapshot.entry(line.journal_entry_id), line))

        groups = []
        for account in accounts:
            beginning = opening[account.id].signed(account.account_type) if account.id in opening else ZERO
            entries = sorted(
                period_lines.get(account.id, []),
                key=lambda pair: (pair[0].transaction_date, pair[0].reference or pair[0].id, pair[1].id),
            )
            if not entries and is_zero(beginning):
                continue

            running = beginning
            transactions = []
            total_debits = total_credits = ZERO
            for entry, line in entries:
                running += AccountClassifier.signed_balance(account.account_type, line.debit, line.credit)
                total_debits += line.debit
                total_credits += line.credit
                transactions.append(LedgerTransaction(line=line, entry=entry, balance=running))
            groups.append(
                LedgerAccountGroup(
                    account=account,
                    beginning_balance=beginning,
                    transactions=transactions,
                    total_debits=total_debits,
                    total_credits=total_credits,
                )
            )

        logger.debug("general_ledger.built", accounts=len(groups))
        return GeneralLedgerReport(
            start_date=start_date,
            end_date=end_date,
            groups=groups,
            rows=self._rows(groups),
        )

    @staticmethod
    def _rows(groups: list[LedgerAccountGroup]) -> list[ReportRow]:
        rows = []
        for group in groups:
            account = group.account
            rows.append(
                ReportRow(
                    label=f"{account.name} ({account.account_type.value})",
                    kind=RowKind.HEADER,
                    account_id=account.id,
                )
            )
            rows.append(ReportRow(label="Beginning Balance", indent=1, balance=group.beginning_balance))
            for transaction in group.transactions:
                rows.append(
                    ReportRow(
                        label=transaction.description,
                        indent=1,
                        debit=_nonzero(transaction.line.debit),
                        credit=_nonzero(transaction.line.credit),
                        balance=transaction.balance,
                        transaction_date=transaction.entry.transaction_date.date(),
                        reference=transaction.entry.number,
                        account_id=account.id,
                        journal_entry_id=transaction.entry.id,
                    )
                )
            rows.append(
                ReportRow(
                    label="Totals and Ending Balance",
                    kind=RowKind.SUBTOTAL,
                    debit=_nonzero(group.total_debits),
                    credit=_nonzero(group.total_credits),
                    balance=group.ending_balance,
                    account_id=account.id,
                )
            )
        return rows


# --------------------------------------------------------------------------
# Transaction Detail by Account
# --------------------------------------------------------------------------

@dataclass
class TransactionDetailGroup:
    account: Account
    items: list[tuple[JournalEntry, JournalEntryLine]]

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for _, line in self.items), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for _, line in self.items), ZERO)


@dataclass
class TransactionDetailReport:
    start_date: date
    end_date: date
    groups: list[TransactionDetailGroup]
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def grand_total_debits(self) -> Decimal:
        return sum((group.total_debits for group in self.groups), ZERO)

    @property
    def grand_total_credits(self) -> Decimal:
        return sum((group.total_credits for group in self.groups), ZERO)

    def summary(self) -> dict[str, Decimal]:
        return {"total_debits": self.grand_total_debits, "total_credits": self.grand_total_credits}


class TransactionDetailBuilder:
    """Service - Period lines grouped by account, without running balances."""

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot
        self.aggregator = BalanceAggregator(snapshot)

    def build(
        self,
        start_date: date | str,
        end_date: date | str,
        account_id: str | None = None,
    ) -> TransactionDetailReport:
        period = PeriodFilter.between(start_date, end_date)

        by_account: dict[str, list[tuple[JournalEntry, JournalEntryLine]]] = defaultdict(list)
        for line in self.aggregator.lines_in(period):
            if account_id and line.account_id != account_id:
                continue
            by_account[line.account_id].append((self.snapshot.entry(line.journal_entry_id), line))

        groups = []
        for acct_id, items in by_account.items():
            account = self.snapshot.account(acct_id)
            if account is None:
                logger.warning("ledger.unknown_account", account_id=acct_id)
                continue
            items.sort(key=lambda pair: pair[0].transaction_date)
            groups.append(TransactionDetailGroup(account=account, items=items))
        groups.sort(key=lambda group: AccountClassifier.sort_key(group.account))

        rows = []
        for group in groups:
            rows.append(ReportRow(label=group.account.name, kind=RowKind.HEADER, account_id=group.account.id))
            for entry, line in group.items:
                rows.append(
                    ReportRow(
                        label=entry.description,
                        indent=1,
                        debit=_nonzero(line.debit),
                        credit=_nonzero(line.credit),
                        transaction_date=entry.transaction_date.date(),
                        reference=entry.number,
                        memo=line.description or "",
                        account_id=group.account.id,
                        journal_entry_id=entry.id,
                    )
                )
            rows.append(
                ReportRow(
                    label=f"Total for {group.account.name}",
                    kind=RowKind.SUBTOTAL,
                    debit=group.total_debits,
                    credit=group.total_credits,
                    account_id=group.account.id,
                )
            )
        report = TransactionDetailReport(
            start_date=period.start.date(),
            end_date=period.end.date(),
            groups=groups,
            rows=rows,
        )
        if groups:
            rows.append(
                ReportRow(
                    label="Grand Total",
                    kind=RowKind.TOTAL,
                    debit=report.grand_total_debits,
                    credit=report.grand_total_credits,
                )
            )
        return report
