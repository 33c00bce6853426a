"""
Application Service - Runs one report request against one ledger snapshot.
The clock is injected so default ranges and "generated at" stamps are
deterministic under test.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from app.application.dto.report_dto import ReportRequest, ReportResponseDTO, ReportRowDTO
from app.core.logging import get_logger
from app.domain.aging import AgingKind, AgingSummaryBuilder
from app.domain.cash_flow import CashFlowStatementBuilder
from app.domain.entities import LedgerSnapshot
from app.domain.exceptions import LedgerConfigurationError
from app.domain.statements import (
    BalanceSheetBuilder,
    GeneralLedgerBuilder,
    ProfitAndLossBuilder,
    TransactionDetailBuilder,
    TrialBalanceBuilder,
)
from app.domain.value_objects import ReportType

logger = get_logger(__name__)

AS_OF_REPORTS = frozenset({ReportType.TRIAL_BALANCE, ReportType.BALANCE_SHEET, ReportType.AR_AGING, ReportType.AP_AGING})


@dataclass(frozen=True)
class ReportEnvelope:
    report_type: ReportType
    generated_at: datetime
    parameters: dict[str, Any]
    report: Any

    @property
    def is_balanced(self) -> bool | None:
        for attribute in ("is_balanced", "is_reconciled"):
            value = getattr(self.report, attribute, None)
            if value is not None:
                return value
        return None

    def to_dto(self) -> ReportResponseDTO:
        return ReportResponseDTO(
            report_type=self.report_type,
            generated_at=self.generated_at,
            parameters=self.parameters,
            rows=[ReportRowDTO.from_row(row) for row in self.report.rows],
            summary=self.report.summary(),
            is_balanced=self.is_balanced,
            warnings=list(self.report.warnings),
        )


class ReportService:
    """
    Service - Resolves request defaults and dispatches to the report builders.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def resolve_parameters(self, request: ReportRequest, today: date) -> dict[str, Any]:
        if request.report_type in AS_OF_REPORTS:
            return {"as_of": request.as_of or request.end_date or today}
        end_date = request.end_date or today
        start_date = request.start_date or end_date.replace(day=1)
        parameters: dict[str, Any] = {"start_date": start_date, "end_date": end_date}
        if request.report_type in (ReportType.GENERAL_LEDGER, ReportType.TRANSACTION_DETAIL):
            parameters["account_id"] = request.account_id
        if request.report_type is ReportType.GENERAL_LEDGER:
            parameters["account_type"] = request.account_type
        return parameters

    def run(self, request: ReportRequest, snapshot: LedgerSnapshot) -> ReportEnvelope:
        now = self.clock()
        parameters = self.resolve_parameters(request, now.date())
        log = logger.bind(report_type=request.report_type.value, **{k: str(v) for k, v in parameters.items()})
        log.info("report.started", lines=len(snapshot.lines), accounts=len(snapshot.accounts))

        handler = self._handlers().get(request.report_type)
        if handler is None:
            raise LedgerConfigurationError(f"Unsupported report type: {request.report_type!r}")
        report = handler(snapshot, **parameters)

        log.info("report.completed", rows=len(report.rows), warnings=len(report.warnings))
        return ReportEnvelope(
            report_type=request.report_type,
            generated_at=now,
            parameters=parameters,
            report=report,
        )

    @staticmethod
    def _handlers() -> dict[ReportType, Callable[..., Any]]:
        return {
            ReportType.TRIAL_BALANCE: lambda s, as_of: TrialBalanceBuilder(s).build(as_of),
            ReportType.BALANCE_SHEET: lambda s, as_of: BalanceSheetBuilder(s).build(as_of),
            ReportType.PROFIT_AND_LOSS: lambda s, start_date, end_date: ProfitAndLossBuilder(s).build(
                start_date, end_date
            ),
            ReportType.CASH_FLOW: lambda s, start_date, end_date: CashFlowStatementBuilder(s).build(
                start_date, end_date
            ),
            ReportType.GENERAL_LEDGER: lambda s, start_date, end_date, account_id, account_type: (
                GeneralLedgerBuilder(s).build(start_date, end_date, account_id=account_id, account_type=account_type)
            ),
            ReportType.TRANSACTION_DETAIL: lambda s, start_date, end_date, account_id: (
                TransactionDetailBuilder(s).build(start_date, end_date, account_id=account_id)
            ),
            ReportType.AR_AGING: lambda s, as_of: AgingSummaryBuilder(s, AgingKind.RECEIVABLES).build(as_of),
            ReportType.AP_AGING: lambda s, as_of: AgingSummaryBuilder(s, AgingKind.PAYABLES).build(as_of),
        }
