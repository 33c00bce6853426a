"""
Integration fixtures - in-memory SQLite database seeded with a small ledger.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.database import init_db
from app.infrastructure.database import models


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def seeded_session_factory(session_factory):
    with session_factory() as session:
        session.add_all(
            [
                models.Account(id="cash", name="Operating Account", account_type="Asset", subtype="Bank"),
                models.Account(id="ar", name="Accounts Receivable", account_type="Asset", subtype="Receivable"),
                models.Account(id="capital", name="Owner Capital", account_type="equity"),
                models.Account(id="sales", name="Consulting Revenue", account_type="Revenue"),
                models.Customer(id="c1", name="Globex"),
                models.Vendor(id="v1", name="Initech"),
            ]
        )
        session.flush()
        session.add_all(
            [
                models.JournalEntry(id="je1", transaction_date=datetime(2024, 1, 2, 9, 0), reference="JE-1",
                                    description="Owner investment"),
                models.JournalEntry(id="je2", transaction_date=datetime(2024, 1, 31, 23, 30), reference="JE-2",
                                    description="Invoice Globex"),
                models.JournalEntry(id="je3", transaction_date=datetime(2024, 2, 1, 0, 0), reference="JE-3",
                                    description="Globex pays"),
            ]
        )
        session.flush()
        session.add_all(
            [
                models.JournalEntryLine(id="l1", journal_entry_id="je1", account_id="cash", debit=Decimal("5000")),
                models.JournalEntryLine(id="l2", journal_entry_id="je1", account_id="capital", credit=Decimal("5000")),
                models.JournalEntryLine(id="l3", journal_entry_id="je2", account_id="ar", debit=Decimal("1200")),
                models.JournalEntryLine(id="l4", journal_entry_id="je2", account_id="sales", credit=Decimal("1200")),
                models.JournalEntryLine(id="l5", journal_entry_id="je3", account_id="cash", debit=Decimal("1200")),
                models.JournalEntryLine(id="l6", journal_entry_id="je3", account_id="ar", credit=Decimal("1200")),
                models.Invoice(id="i1", customer_id="c1", due_date=date(2024, 1, 15), total_amount=Decimal("1200"),
                               status="open", invoice_number="INV-1"),
                models.Bill(id="b1", vendor_id="v1", due_date=date(2024, 3, 1), total_amount=Decimal("300"),
                            status="open", bill_number="B-1"),
            ]
        )
        session.commit()
    return session_factory
