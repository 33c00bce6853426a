"""
Domain Services - Accounts Receivable / Accounts Payable aging summaries.
Independent of the ledger aggregator: works on invoices and bills only.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from app.core.logging import get_logger

from .entities import Bill, Customer, Invoice, LedgerSnapshot, Vendor
from .services import parse_calendar_date
from .value_objects import TOLERANCE, ZERO, AgingBucket, ReportRow, RowKind

logger = get_logger(__name__)


class AgingKind(str, Enum):
    RECEIVABLES = "receivables"
    PAYABLES = "payables"


def days_past_due(due_date: date | str, as_of: date | str) -> int:
    """Whole calendar days between the due date and as_of; negative when not yet due."""
    return (parse_calendar_date(as_of) - parse_calendar_date(due_date)).days


def _empty_buckets() -> dict[AgingBucket, Decimal]:
    return {bucket: ZERO for bucket in AgingBucket}


@dataclass
class CounterpartyAging:
    counterparty_id: str
    name: str
    buckets: dict[AgingBucket, Decimal] = field(default_factory=_empty_buckets)
    document_count: int = 0

    @property
    def total(self) -> Decimal:
        return sum(self.buckets.values(), ZERO)

    def apply(self, bucket: AgingBucket, amount: Decimal) -> None:
        self.buckets[bucket] += amount
        self.document_count += 1


@dataclass
class AgingReport:
    kind: AgingKind
    as_of: date
    counterparties: list[CounterpartyAging]
    totals: dict[AgingBucket, Decimal]
    rows: list[ReportRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum(self.totals.values(), ZERO)

    def summary(self) -> dict[str, Decimal]:
        summary = {bucket.value: amount for bucket, amount in self.totals.items()}
        summary["Total"] = self.total
        return summary


class AgingSummaryBuilder:
    """
    Service - Buckets outstanding documents by days past due as of a date.
    Paid, cancelled and voided documents are not outstanding.
    """

    def __init__(self, snapshot: LedgerSnapshot, kind: AgingKind):
        self.kind = kind
        if kind is AgingKind.RECEIVABLES:
            self.documents: Iterable[Invoice | Bill] = snapshot.invoices
            self.counterparties: dict[str, Customer | Vendor] = {c.id: c for c in snapshot.customers}
        else:
            self.documents = snapshot.bills
            self.counterparties = {v.id: v for v in snapshot.vendors}

    def build(self, as_of: date | str) -> AgingReport:
        as_of = parse_calendar_date(as_of)

        aging: dict[str, CounterpartyAging] = {}
        for document in self.documents:
            if not document.is_outstanding():
                continue
            counterparty = self.counterparties.get(document.counterparty_id)
            if counterparty is None:
                logger.warning(
                    "aging.unknown_counterparty",
                    kind=self.kind.value,
                    document_id=document.id,
                    counterparty_id=document.counterparty_id,
                )
                continue
            bucket = AgingBucket.for_days_past_due(days_past_due(document.due_date, as_of))
            entry = aging.get(counterparty.id)
            if entry is None:
                entry = aging[counterparty.id] = CounterpartyAging(counterparty.id, counterparty.name)
            entry.apply(bucket, document.total_amount)

        result = sorted(
            (item for item in aging.values() if item.total >= TOLERANCE),
            key=lambda item: (item.name.casefold(), item.name, item.counterparty_id),
        )
        totals = _empty_buckets()
        for item in result:
            for bucket, amount in item.buckets.items():
                totals[bucket] += amount

        rows = [
            ReportRow(label=item.name, amount=item.total, buckets=dict(item.buckets), counterparty_id=item.counterparty_id)
            for item in result
        ]
        if result:
            rows.append(ReportRow(label="Total", kind=RowKind.TOTAL, amount=sum(totals.values(), ZERO), buckets=dict(totals)))

        logger.debug("aging.built", kind=self.kind.value, counterparties=len(result))
        return AgingReport(kind=self.kind, as_of=as_of, counterparties=result, totals=totals, rows=rows)
