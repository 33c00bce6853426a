"""
Infrastructure - SQLModel database models for the ledger the reports read.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel


def _new_id() -> str:
    return str(uuid4())


class Account(SQLModel, table=True):
    """Chart of accounts entry."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    account_number: str | None = Field(default=None, index=True)
    name: str
    account_type: str  # Asset, Liability, Equity, Revenue, Expense
    subtype: str | None = None  # Bank, Cash, Receivable, Payable, FixedAsset, ...
    cash_flow_category: str | None = None  # Operating, Investing, Financing
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    journal_lines: list["JournalEntryLine"] = Relationship(back_populates="account")


class JournalEntry(SQLModel, table=True):
    """Journal entry header."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    transaction_date: datetime = Field(index=True)
    reference: str | None = Field(default=None, index=True)
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)

    lines: list["JournalEntryLine"] = Relationship(back_populates="journal_entry")


class JournalEntryLine(SQLModel, table=True):
    """One debit or credit against an account."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    journal_entry_id: str = Field(foreign_key="journalentry.id", index=True)
    account_id: str = Field(foreign_key="account.id", index=True)
    debit: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2)
    description: str | None = None

    journal_entry: "JournalEntry" = Relationship(back_populates="lines")
    account: "Account" = Relationship(back_populates="journal_lines")


class Customer(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)

    invoices: list["Invoice"] = Relationship(back_populates="customer")


class Vendor(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)

    bills: list["Bill"] = Relationship(back_populates="vendor")


class Invoice(SQLModel, table=True):
    """Customer invoice."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    customer_id: str = Field(foreign_key="customer.id", index=True)
    invoice_number: str | None = None
    issue_date: date | None = None
    due_date: date = Field(index=True)
    total_amount: Decimal = Field(max_digits=18, decimal_places=2)
    status: str = "open"  # draft, open, partial, overdue, paid, cancelled, voided

    customer: "Customer" = Relationship(back_populates="invoices")


class Bill(SQLModel, table=True):
    """Vendor bill."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    vendor_id: str = Field(foreign_key="vendor.id", index=True)
    bill_number: str | None = None
    bill_date: date | None = None
    due_date: date = Field(index=True)
    total_amount: Decimal = Field(max_digits=18, decimal_places=2)
    status: str = "open"

    vendor: "Vendor" = Relationship(back_populates="bills")
