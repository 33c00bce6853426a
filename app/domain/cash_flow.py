"""
Domain Services - Statement of Cash Flows (indirect method).

Accounts are classified in two tiers: an explicit CashFlowCategory tag wins,
otherwise subtype/name heuristics are tried in Operating, Investing,
Financing order. Every line item records which tier produced it.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.core.logging import get_logger

from .entities import Account, LedgerSnapshot
from .services import AccountClassifier, AccountTotals, BalanceAggregator, PeriodFilter
from .value_objects import (
    ZERO,
    AccountType,
    CashFlowCategory,
    ClassificationSource,
    ReportRow,
    RowKind,
    is_zero,
)

logger = get_logger(__name__)

CASH_SUBTYPES = frozenset({"bank", "cash"})
CASH_KEYWORDS = ("cash", "checking", "savings")
DEPRECIATION_KEYWORDS = ("depreciation", "amortization")
CONTRA_KEYWORDS = ("accumulated depreciation", "accumulated amortization")

OPERATING_ASSET_SUBTYPES = frozenset({"receivable", "accountsreceivable", "inventory", "othercurrentasset", "prepaidexpense"})
OPERATING_LIABILITY_SUBTYPES = frozenset({"payable", "accountspayable", "creditcard", "othercurrentliability", "accruedliability"})
INVESTING_ASSET_SUBTYPES = frozenset({"fixedasset", "investment", "otherasset"})
INVESTING_KEYWORDS = ("equipment", "vehicle", "building", "property", "investment")
FINANCING_LIABILITY_SUBTYPES = frozenset({"longtermliability", "notespayable", "loan"})
FINANCING_KEYWORDS = ("loan", "note", "mortgage")
DRAW_KEYWORDS = ("draw", "distribution")
RETAINED_KEYWORD = "retained"


def _subtype(account: Account) -> str:
    return (account.subtype or "").replace(" ", "").lower()


def _mentions(account: Account, keywords: tuple[str, ...]) -> bool:
    name = account.lowered_name
    return any(keyword in name for keyword in keywords)


@dataclass(frozen=True, slots=True)
class Classification:
    category: CashFlowCategory | None
    source: ClassificationSource | None
    reason: str
    excluded: bool = False


class CashFlowClassifier:
    """
    Service - Decides which cash-flow section an account's balance change belongs to.
    """

    @staticmethod
    def cash_source(account: Account) -> ClassificationSource | None:
        """
        Tier of evidence that an account holds cash, or None if it does not.
        The name is only consulted when the account has neither a subtype nor
        a cash flow category.
        """
        subtype = _subtype(account)
        if subtype in CASH_SUBTYPES:
            return ClassificationSource.EXPLICIT
        if subtype or account.cash_flow_category is not None:
            return None
        if account.account_type is AccountType.ASSET and _mentions(account, CASH_KEYWORDS):
            return ClassificationSource.HEURISTIC
        return None

    @staticmethod
    def is_depreciation_expense(account: Account) -> bool:
        return account.account_type is AccountType.EXPENSE and _mentions(account, DEPRECIATION_KEYWORDS)

    @staticmethod
    def is_contra_asset(account: Account) -> bool:
        return _mentions(account, CONTRA_KEYWORDS)

    def classify(self, account: Account) -> Classification:
        if account.account_type in (AccountType.REVENUE, AccountType.EXPENSE):
            return Classification(None, None, "income statement account, reflected in net income", excluded=True)
        if self.is_contra_asset(account):
            return Classification(None, None, "contra account, offset by the depreciation add-back", excluded=True)
        if account.account_type is AccountType.EQUITY and RETAINED_KEYWORD in account.lowered_name:
            return Classification(None, None, "retained earnings, reflected in net income", excluded=True)

        if account.cash_flow_category is not None:
            return Classification(account.cash_flow_category, ClassificationSource.EXPLICIT, "cash flow category tag")

        heuristic = self._infer(account)
        if heuristic is not None:
            return Classification(heuristic, ClassificationSource.HEURISTIC, "inferred from type, subtype and name")
        return Classification(None, None, "no cash flow category")

    @staticmethod
    def _infer(account: Account) -> CashFlowCategory | None:
        subtype = _subtype(account)
        is_asset = account.account_type is AccountType.ASSET
        is_liability = account.account_type is AccountType.LIABILITY

        if (is_asset and subtype in OPERATING_ASSET_SUBTYPES) or (
            is_liability and subtype in OPERATING_LIABILITY_SUBTYPES
        ):
            return CashFlowCategory.OPERATING
        if is_asset and (subtype in INVESTING_ASSET_SUBTYPES or _mentions(account, INVESTING_KEYWORDS)):
            return CashFlowCategory.INVESTING
        if account.account_type is AccountType.EQUITY or (
            is_liability and (subtype in FINANCING_LIABILITY_SUBTYPES or _mentions(account, FINANCING_KEYWORDS))
        ):
            return CashFlowCategory.FINANCING
        return None


@dataclass(frozen=True, slots=True)
class CashFlowItem:
    label: str
    amount: Decimal
    account: Account
    category: CashFlowCategory
    source: ClassificationSource
    beginning_balance: Decimal
    ending_balance: Decimal

    @property
    def change(self) -> Decimal:
        return self.ending_balance - self.beginning_balance


@dataclass(frozen=True, slots=True)
class UnclassifiedChange:
    account: Account
    change: Decimal
    cash_impact: Decimal


@dataclass
class CashFlowReport:
    start_date: date
    end_date: date
    net_income: Decimal
    depreciation_adjustment: Decimal
    operating_items: list[CashFlowItem]
    investing_items: list[CashFlowItem]
    financing_items: list[CashFlowItem]
    beginning_cash: Decimal
    ending_cash: Decimal
    cash_accounts: list[tuple[Account, ClassificationSource]] = field(default_factory=list)
    unclassified: list[UnclassifiedChange] = field(default_factory=list)
    rows: list[ReportRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def net_operating_cash_flow(self) -> Decimal:
        return self.net_income + self.depreciation_adjustment + sum((i.amount for i in self.operating_items), ZERO)

    @property
    def net_investing_cash_flow(self) -> Decimal:
        return sum((item.amount for item in self.investing_items), ZERO)

    @property
    def net_financing_cash_flow(self) -> Decimal:
        return sum((item.amount for item in self.financing_items), ZERO)

    @property
    def net_cash_change(self) -> Decimal:
        return self.net_operating_cash_flow + self.net_investing_cash_flow + self.net_financing_cash_flow

    @property
    def actual_cash_change(self) -> Decimal:
        return self.ending_cash - self.beginning_cash

    @property
    def difference(self) -> Decimal:
        return self.net_cash_change - self.actual_cash_change

    @property
    def is_reconciled(self) -> bool:
        return is_zero(self.difference)

    @property
    def heuristic_items(self) -> list[CashFlowItem]:
        items = self.operating_items + self.investing_items + self.financing_items
        return [item for item in items if item.source is ClassificationSource.HEURISTIC]

    def summary(self) -> dict[str, Decimal]:
        return {
            "net_income": self.net_income,
            "depreciation_adjustment": self.depreciation_adjustment,
            "net_operating_cash_flow": self.net_operating_cash_flow,
            "net_investing_cash_flow": self.net_investing_cash_flow,
            "net_financing_cash_flow": self.net_financing_cash_flow,
            "net_cash_change": self.net_cash_change,
            "beginning_cash": self.beginning_cash,
            "ending_cash": self.ending_cash,
            "actual_cash_change": self.actual_cash_change,
            "difference": self.difference,
        }


def _by_impact(items: list[CashFlowItem]) -> list[CashFlowItem]:
    return sorted(items, key=lambda item: (-abs(item.amount), item.label))


class CashFlowStatementBuilder:
    """
    Service - Statement of Cash Flows for a period, reconciled against the
    actual movement of the cash accounts.
    """

    def __init__(self, snapshot: LedgerSnapshot, classifier: CashFlowClassifier | None = None):
        self.snapshot = snapshot
        self.aggregator = BalanceAggregator(snapshot)
        self.classifier = classifier or CashFlowClassifier()

    def build(self, start_date: date | str, end_date: date | str) -> CashFlowReport:
        period = PeriodFilter.between(start_date, end_date)
        start_date, end_date = period.start.date(), period.end.date()
        opening = self.aggregator.before(start_date)
        closing = self.aggregator.cumulative(end_date)
        activity = self.aggregator.aggregate(self.aggregator.lines_in(period))

        accounts = sorted(self.snapshot.accounts, key=AccountClassifier.sort_key)
        cash_accounts = []
        for account in accounts:
            source = self.classifier.cash_source(account)
            if source is not None:
                cash_accounts.append((account, source))
        cash_ids = {account.id for account, _ in cash_accounts}

        beginning_cash = sum((opening[a.id].net for a, _ in cash_accounts if a.id in opening), ZERO)
        ending_cash = sum((closing[a.id].net for a, _ in cash_accounts if a.id in closing), ZERO)

        net_income = depreciation = ZERO
        for account, totals in self.aggregator.known_accounts(activity):
            if account.account_type is AccountType.REVENUE:
                net_income += totals.signed(AccountType.REVENUE)
            elif account.account_type is AccountType.EXPENSE:
                net_income -= totals.signed(AccountType.EXPENSE)
                if self.classifier.is_depreciation_expense(account):
                    depreciation += totals.net

        sections: dict[CashFlowCategory, list[CashFlowItem]] = {category: [] for category in CashFlowCategory}
        unclassified = []
        for account in accounts:
            if account.id in cash_ids:
                continue
            beginning = self._signed(opening.get(account.id), account)
            ending = self._signed(closing.get(account.id), account)
            change = ending - beginning
            if is_zero(change):
                continue

            classification = self.classifier.classify(account)
            if classification.category is None:
                if not classification.excluded:
                    unclassified.append(UnclassifiedChange(account, change, self._impact(account, change)))
                continue

            amount, label = self._line(account, classification.category, change)
            sections[classification.category].append(
                CashFlowItem(
                    label=label,
                    amount=amount,
                    account=account,
                    category=classification.category,
                    source=classification.source,
                    beginning_balance=beginning,
                    ending_balance=ending,
                )
            )

        report = CashFlowReport(
            start_date=start_date,
            end_date=end_date,
            net_income=net_income,
            depreciation_adjustment=depreciation,
            operating_items=_by_impact(sections[CashFlowCategory.OPERATING]),
            investing_items=_by_impact(sections[CashFlowCategory.INVESTING]),
            financing_items=_by_impact(sections[CashFlowCategory.FINANCING]),
            beginning_cash=beginning_cash,
            ending_cash=ending_cash,
            cash_accounts=cash_accounts,
            unclassified=unclassified,
        )
        if self._has_activity(report):
            report.rows = self._rows(report)
        if not report.is_reconciled:
            report.warnings.append(self._reconciliation_warning(report))
            logger.warning(
                "cash_flow.unreconciled",
                start=str(start_date),
                end=str(end_date),
                difference=str(report.difference),
                unclassified=[change.account.id for change in unclassified],
            )
        return report

    @staticmethod
    def _signed(totals: AccountTotals | None, account: Account) -> Decimal:
        return totals.signed(account.account_type) if totals is not None else ZERO

    @staticmethod
    def _impact(account: Account, change: Decimal) -> Decimal:
        """An asset increase consumes cash; a liability or equity increase provides it."""
        return -change if account.account_type is AccountType.ASSET else change

    def _line(self, account: Account, category: CashFlowCategory, change: Decimal) -> tuple[Decimal, str]:
        impact = self._impact(account, change)
        if category is CashFlowCategory.OPERATING:
            return impact, f"Change in {account.name}"
        if category is CashFlowCategory.INVESTING:
            return impact, f"Purchase of {account.name}" if impact < 0 else f"Sale of {account.name}"
        if account.account_type is AccountType.EQUITY:
            if _mentions(account, DRAW_KEYWORDS):
                return -abs(change), "Owner Withdrawals/Distributions"
            return change, "Capital Contribution" if change > 0 else "Capital Distribution"
        return impact, f"Proceeds from {account.name}" if impact > 0 else f"Repayment of {account.name}"

    @staticmethod
    def _has_activity(report: CashFlowReport) -> bool:
        return bool(
            report.operating_items
            or report.investing_items
            or report.financing_items
            or report.unclassified
            or report.net_income
            or report.depreciation_adjustment
            or report.beginning_cash
            or report.ending_cash
        )

    @staticmethod
    def _reconciliation_warning(report: CashFlowReport) -> str:
        message = (
            f"The calculated net change in cash ({report.net_cash_change:,.2f}) does not match "
            f"the actual change in cash accounts ({report.actual_cash_change:,.2f}). This may indicate "
            f"transactions that need to be categorized or accounts that need CashFlowCategory assignment."
        )
        if report.unclassified:
            names = ", ".join(f"{c.account.name} ({c.cash_impact:,.2f})" for c in report.unclassified)
            message += f" Unclassified balance changes: {names}."
        return message

    @staticmethod
    def _rows(report: CashFlowReport) -> list[ReportRow]:
        rows = [
            ReportRow(label="CASH FLOWS FROM OPERATING ACTIVITIES", kind=RowKind.HEADER),
            ReportRow(label="Net Income", indent=1, amount=report.net_income),
            ReportRow(label="Adjustments to reconcile net income to net cash:", indent=1),
        ]
        if not is_zero(report.depreciation_adjustment):
            rows.append(ReportRow(label="Depreciation & Amortization", indent=2, amount=report.depreciation_adjustment))
        if report.operating_items:
            rows.append(ReportRow(label="Changes in operating assets and liabilities:", indent=1))
            rows.extend(_item_rows(report.operating_items, indent=2))
        rows.append(
            ReportRow(
                label="Net cash provided by operating activities",
                kind=RowKind.SUBTOTAL,
                amount=report.net_operating_cash_flow,
            )
        )

        rows.append(ReportRow(label="CASH FLOWS FROM INVESTING ACTIVITIES", kind=RowKind.HEADER))
        rows.extend(_item_rows(report.investing_items, indent=1) or [ReportRow(label="No investing activities", indent=1)])
        rows.append(
            ReportRow(
                label="Net cash used in investing activities",
                kind=RowKind.SUBTOTAL,
                amount=report.net_investing_cash_flow,
            )
        )

        rows.append(ReportRow(label="CASH FLOWS FROM FINANCING ACTIVITIES", kind=RowKind.HEADER))
        rows.extend(_item_rows(report.financing_items, indent=1) or [ReportRow(label="No financing activities", indent=1)])
        rows.append(
            ReportRow(
                label="Net cash provided by financing activities",
                kind=RowKind.SUBTOTAL,
                amount=report.net_financing_cash_flow,
            )
        )

        rows.append(ReportRow(label="NET INCREASE (DECREASE) IN CASH", kind=RowKind.TOTAL, amount=report.net_cash_change))
        rows.append(ReportRow(label="Cash at beginning of period", indent=1, amount=report.beginning_cash))
        rows.append(ReportRow(label="CASH AT END OF PERIOD", kind=RowKind.TOTAL, amount=report.ending_cash))
        return rows


def _item_rows(items: list[CashFlowItem], indent: int) -> list[ReportRow]:
    return [
        ReportRow(label=item.label, indent=indent, amount=item.amount, account_id=item.account.id, memo=item.source.value)
        for item in items
    ]
