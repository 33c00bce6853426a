"""Application layer - Use cases and DTOs."""

from app.application.dto.report_dto import (
    LedgerSnapshotDTO,
    ReportRequest,
    ReportResponseDTO,
    ReportRowDTO,
)
from app.application.report_service import ReportEnvelope, ReportService
