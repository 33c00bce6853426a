"""
API DTOs - Ledger snapshot input and report output.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

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
from app.domain.services import AccountClassifier, parse_calendar_date, to_local_instant
from app.domain.value_objects import ReportRow, ReportType, money

DateLike = datetime | date | str


class AccountDTO(BaseModel):
    """DTO - Chart of accounts entry."""
    id: str
    name: str
    account_type: str = Field(..., description="Asset, Liability, Equity, Revenue or Expense")
    subtype: str | None = Field(None, description="Bank, Cash, Receivable, FixedAsset, ...")
    cash_flow_category: str | None = Field(None, description="Operating, Investing or Financing")
    account_number: str | None = None

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> Account:
        return Account(
            id=self.id,
            name=self.name,
            account_type=AccountClassifier.parse_type(self.account_type),
            subtype=self.subtype,
            cash_flow_category=AccountClassifier.parse_cash_flow_category(self.cash_flow_category),
            account_number=self.account_number,
        )


class JournalEntryDTO(BaseModel):
    """DTO - Journal entry header."""
    id: str
    transaction_date: DateLike = Field(..., description="YYYY-MM-DD, optionally with a time part")
    description: str = ""
    reference: str | None = None

    def to_domain(self) -> JournalEntry:
        return JournalEntry(
            id=self.id,
            transaction_date=to_local_instant(self.transaction_date),
            description=self.description,
            reference=self.reference,
        )


class JournalEntryLineDTO(BaseModel):
    """DTO - Journal entry line."""
    id: str
    journal_entry_id: str
    account_id: str
    debit: Decimal = Field(Decimal("0"), ge=0)
    credit: Decimal = Field(Decimal("0"), ge=0)
    description: str | None = None

    def to_domain(self) -> JournalEntryLine:
        return JournalEntryLine(
            id=self.id,
            journal_entry_id=self.journal_entry_id,
            account_id=self.account_id,
            debit=money(self.debit),
            credit=money(self.credit),
            description=self.description,
        )


class CounterpartyDTO(BaseModel):
    """DTO - Customer or vendor."""
    id: str
    name: str


class InvoiceDTO(BaseModel):
    """DTO - Customer invoice."""
    id: str
    customer_id: str
    due_date: DateLike
    total_amount: Decimal
    status: str
    invoice_number: str | None = None
    issue_date: DateLike | None = None

    def to_domain(self) -> Invoice:
        return Invoice(
            id=self.id,
            customer_id=self.customer_id,
            due_date=parse_calendar_date(self.due_date),
            total_amount=money(self.total_amount),
            status=self.status,
            invoice_number=self.invoice_number,
            issue_date=parse_calendar_date(self.issue_date) if self.issue_date else None,
        )


class BillDTO(BaseModel):
    """DTO - Vendor bill."""
    id: str
    vendor_id: str
    due_date: DateLike
    total_amount: Decimal
    status: str
    bill_number: str | None = None
    bill_date: DateLike | None = None

    def to_domain(self) -> Bill:
        return Bill(
            id=self.id,
            vendor_id=self.vendor_id,
            due_date=parse_calendar_date(self.due_date),
            total_amount=money(self.total_amount),
            status=self.status,
            bill_number=self.bill_number,
            bill_date=parse_calendar_date(self.bill_date) if self.bill_date else None,
        )


class LedgerSnapshotDTO(BaseModel):
    """DTO - Everything one report run reads, supplied by the caller."""
    accounts: list[AccountDTO] = []
    journal_entries: list[JournalEntryDTO] = []
    journal_entry_lines: list[JournalEntryLineDTO] = []
    customers: list[CounterpartyDTO] = []
    vendors: list[CounterpartyDTO] = []
    invoices: list[InvoiceDTO] = []
    bills: list[BillDTO] = []

    def to_domain(self) -> LedgerSnapshot:
        return LedgerSnapshot.from_records(
            accounts=[a.to_domain() for a in self.accounts],
            entries=[e.to_domain() for e in self.journal_entries],
            lines=[line.to_domain() for line in self.journal_entry_lines],
            customers=[Customer(id=c.id, name=c.name) for c in self.customers],
            vendors=[Vendor(id=v.id, name=v.name) for v in self.vendors],
            invoices=[i.to_domain() for i in self.invoices],
            bills=[b.to_domain() for b in self.bills],
        )


class ReportRequest(BaseModel):
    """DTO - Which report to run and over what dates / filters."""
    report_type: ReportType
    start_date: date | None = Field(None, description="Period start (inclusive)")
    end_date: date | None = Field(None, description="Period end (inclusive)")
    as_of: date | None = Field(None, description="Cutoff date for as-of reports")
    account_id: str | None = Field(None, description="General ledger / transaction detail account")
    account_type: str | None = Field(None, description="General ledger account type filter")


class ReportRowDTO(BaseModel):
    """DTO - One presentation row."""
    label: str
    kind: str
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
    buckets: dict[str, Decimal] | None = None

    @classmethod
    def from_row(cls, row: ReportRow) -> "ReportRowDTO":
        return cls(
            label=row.label,
            kind=row.kind.value,
            indent=row.indent,
            amount=row.amount,
            debit=row.debit,
            credit=row.credit,
            balance=row.balance,
            transaction_date=row.transaction_date,
            reference=row.reference,
            memo=row.memo,
            account_id=row.account_id,
            journal_entry_id=row.journal_entry_id,
            counterparty_id=row.counterparty_id,
            buckets={bucket.value: amount for bucket, amount in row.buckets.items()} if row.buckets else None,
        )


class ReportResponseDTO(BaseModel):
    """DTO - Report result: rows, named totals and data-quality status."""
    report_type: ReportType
    generated_at: datetime
    parameters: dict[str, Any]
    rows: list[ReportRowDTO]
    summary: dict[str, Decimal]
    is_balanced: bool | None = Field(None, description="Balance / reconciliation check, when the report has one")
    warnings: list[str] = []
