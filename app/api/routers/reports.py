"""
API Routers - Financial report endpoints.
"""

from datetime import date

from fastapi import APIRouter, Body, Depends, Path, Query

from app.application.dto.report_dto import LedgerSnapshotDTO, ReportRequest, ReportResponseDTO
from app.application.report_service import ReportService
from app.domain.services import ILedgerSnapshotSource
from app.domain.value_objects import ReportType
from app.infrastructure.database import SessionLocal
from app.infrastructure.repositories import SqlLedgerSnapshotRepository

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def get_snapshot_source() -> ILedgerSnapshotSource:
    """Dependency - Snapshot source backed by the application database."""
    return SqlLedgerSnapshotRepository(SessionLocal)


def get_report_service() -> ReportService:
    """Dependency - Report service using the wall clock."""
    return ReportService()


def get_report_request(
    report_type: ReportType = Path(..., description="Which report to run"),
    start_date: date | None = Query(None, description="Period start (inclusive); defaults to the first of the month"),
    end_date: date | None = Query(None, description="Period end (inclusive); defaults to today"),
    as_of: date | None = Query(None, description="Cutoff for trial balance, balance sheet and aging"),
    account_id: str | None = Query(None, description="General ledger / transaction detail account"),
    account_type: str | None = Query(None, description="General ledger account type filter"),
) -> ReportRequest:
    return ReportRequest(
        report_type=report_type,
        start_date=start_date,
        end_date=end_date,
        as_of=as_of,
        account_id=account_id,
        account_type=account_type,
    )


@router.get("/{report_type}", response_model=ReportResponseDTO)
def get_report(
    request: ReportRequest = Depends(get_report_request),
    source: ILedgerSnapshotSource = Depends(get_snapshot_source),
    service: ReportService = Depends(get_report_service),
):
    """
    Run a report over the ledger stored in the application database.
    """
    return service.run(request, source.load_snapshot()).to_dto()


@router.post("/{report_type}", response_model=ReportResponseDTO)
def run_report(
    snapshot: LedgerSnapshotDTO = Body(..., description="Accounts, journal entries, lines and documents"),
    request: ReportRequest = Depends(get_report_request),
    service: ReportService = Depends(get_report_service),
):
    """
    Run a report over a ledger snapshot supplied in the request body.
    No database access.
    """
    return service.run(request, snapshot.to_domain()).to_dto()
