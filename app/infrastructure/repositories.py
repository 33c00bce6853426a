"""
Infrastructure - Loads a ledger snapshot from the database.
"""

from collections.abc import Callable

from sqlalchemy.orm import Session

from app.application.dto.report_dto import (
    AccountDTO,
    BillDTO,
    CounterpartyDTO,
    InvoiceDTO,
    JournalEntryDTO,
    JournalEntryLineDTO,
    LedgerSnapshotDTO,
)
from app.core.logging import get_logger
from app.domain.entities import LedgerSnapshot
from app.domain.services import ILedgerSnapshotSource
from app.infrastructure.database import models

logger = get_logger(__name__)


class SqlLedgerSnapshotRepository(ILedgerSnapshotSource):
    """
    Repository - Reads every ledger table in one session and hands back an
    immutable snapshot, so a report never sees a half-applied write.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load_snapshot(self) -> LedgerSnapshot:
        with self.session_factory() as session:
            dto = LedgerSnapshotDTO(
                accounts=_load(session, models.Account, AccountDTO),
                journal_entries=_load(session, models.JournalEntry, JournalEntryDTO),
                journal_entry_lines=_load(session, models.JournalEntryLine, JournalEntryLineDTO),
                customers=_load(session, models.Customer, CounterpartyDTO),
                vendors=_load(session, models.Vendor, CounterpartyDTO),
                invoices=_load(session, models.Invoice, InvoiceDTO),
                bills=_load(session, models.Bill, BillDTO),
            )
        snapshot = dto.to_domain()
        logger.debug(
            "snapshot.loaded",
            accounts=len(snapshot.accounts),
            entries=len(snapshot.entries),
            lines=len(snapshot.lines),
        )
        return snapshot


def _load(session: Session, model, dto_class) -> list:
    return [dto_class.model_validate(row, from_attributes=True) for row in session.query(model).all()]
