"""
Domain Entities - Read-only ledger records handed to the report engine.
The surrounding application owns their lifecycle; the engine never mutates them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .value_objects import (
    TERMINAL_DOCUMENT_STATUSES,
    ZERO,
    AccountId,
    AccountType,
    CashFlowCategory,
    EntryId,
)


@dataclass(frozen=True, slots=True)
class Account:
    """Entity - Chart of accounts entry."""
    id: AccountId
    name: str
    account_type: AccountType
    subtype: str | None = None
    cash_flow_category: CashFlowCategory | None = None
    account_number: str | None = None

    @property
    def lowered_name(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class JournalEntry:
    """
    Entity - One balanced accounting event.
    transaction_date is a naive local instant; see services.to_local_instant.
    """
    id: EntryId
    transaction_date: datetime
    description: str = ""
    reference: str | None = None

    @property
    def number(self) -> str:
        return self.reference or self.id[:8]


@dataclass(frozen=True, slots=True)
class JournalEntryLine:
    """Entity - Debit/credit against one account inside a journal entry."""
    id: str
    journal_entry_id: EntryId
    account_id: AccountId
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None


@dataclass(frozen=True, slots=True)
class Customer:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Vendor:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Invoice:
    """Entity - Customer invoice, used only by the AR aging summary."""
    id: str
    customer_id: str
    due_date: date
    total_amount: Decimal
    status: str
    invoice_number: str | None = None
    issue_date: date | None = None

    @property
    def counterparty_id(self) -> str:
        return self.customer_id

    def is_outstanding(self) -> bool:
        return self.status.lower() not in TERMINAL_DOCUMENT_STATUSES


@dataclass(frozen=True, slots=True)
class Bill:
    """Entity - Vendor bill, used only by the AP aging summary."""
    id: str
    vendor_id: str
    due_date: date
    total_amount: Decimal
    status: str
    bill_number: str | None = None
    bill_date: date | None = None

    @property
    def counterparty_id(self) -> str:
        return self.vendor_id

    def is_outstanding(self) -> bool:
        return self.status.lower() not in TERMINAL_DOCUMENT_STATUSES


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Immutable snapshot of everything one report run may read.
    Lookup maps are built once in __post_init__.
    """
    accounts: tuple[Account, ...] = ()
    entries: tuple[JournalEntry, ...] = ()
    lines: tuple[JournalEntryLine, ...] = ()
    customers: tuple[Customer, ...] = ()
    vendors: tuple[Vendor, ...] = ()
    invoices: tuple[Invoice, ...] = ()
    bills: tuple[Bill, ...] = ()
    account_map: dict[str, Account] = field(init=False, repr=False, compare=False)
    entry_map: dict[str, JournalEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_map", {a.id: a for a in self.accounts})
        object.__setattr__(self, "entry_map", {e.id: e for e in self.entries})

    @classmethod
    def from_records(
        cls,
        accounts=(),
        entries=(),
        lines=(),
        customers=(),
        vendors=(),
        invoices=(),
        bills=(),
    ) -> "LedgerSnapshot":
        return cls(
            accounts=tuple(accounts),
            entries=tuple(entries),
            lines=tuple(lines),
            customers=tuple(customers),
            vendors=tuple(vendors),
            invoices=tuple(invoices),
            bills=tuple(bills),
        )

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        return cls()

    def account(self, account_id: str) -> Account | None:
        return self.account_map.get(account_id)

    def entry(self, entry_id: str) -> JournalEntry | None:
        return self.entry_map.get(entry_id)

    def entry_date(self, line: JournalEntryLine) -> datetime | None:
        entry = self.entry_map.get(line.journal_entry_id)
        return entry.transaction_date if entry else None
