"""Infrastructure layer."""

from app.infrastructure.database import SessionLocal, init_db
from app.infrastructure.database.models import (
    Account,
    Bill,
    Customer,
    Invoice,
    JournalEntry,
    JournalEntryLine,
    Vendor,
)
from app.infrastructure.repositories import SqlLedgerSnapshotRepository
