"""
Unit tests - Report service: request defaults, dispatch and response DTOs.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.application.dto.report_dto import LedgerSnapshotDTO, ReportRequest
from app.application.report_service import ReportService
from app.domain.exceptions import LedgerConfigurationError
from app.domain.value_objects import AccountType, ReportType


class TestRequestDefaults:
    """Test default date ranges from the injected clock."""

    def test_period_defaults_to_month_to_date(self, fixed_clock):
        """Period reports default to the first of the month through today."""
        envelope = ReportService(fixed_clock).run(ReportRequest(report_type=ReportType.PROFIT_AND_LOSS), _empty())
        assert envelope.parameters == {"start_date": date(2024, 1, 1), "end_date": date(2024, 1, 31)}
        assert envelope.generated_at == datetime(2024, 1, 31, 9, 30)

    def test_as_of_defaults_to_today(self, fixed_clock):
        """As-of reports default to today."""
        envelope = ReportService(fixed_clock).run(ReportRequest(report_type=ReportType.TRIAL_BALANCE), _empty())
        assert envelope.parameters == {"as_of": date(2024, 1, 31)}

    def test_explicit_dates_win(self, fixed_clock):
        """Supplied dates are used as given."""
        request = ReportRequest(
            report_type=ReportType.GENERAL_LEDGER,
            start_date=date(2023, 7, 1),
            end_date=date(2023, 9, 30),
            account_id="cash",
        )
        envelope = ReportService(fixed_clock).run(request, _empty())
        assert envelope.parameters["start_date"] == date(2023, 7, 1)
        assert envelope.parameters["account_id"] == "cash"


class TestDispatch:
    """Test that every report type runs."""

    @pytest.mark.parametrize("report_type", list(ReportType))
    def test_every_report_type(self, sample_snapshot, fixed_clock, report_type):
        """Each report type produces rows, a summary and a status."""
        envelope = ReportService(fixed_clock).run(ReportRequest(report_type=report_type), sample_snapshot)
        response = envelope.to_dto()
        assert response.report_type is report_type
        assert isinstance(response.summary, dict)

    def test_balance_status(self, sample_snapshot, fixed_clock):
        """Balance and reconciliation checks are surfaced on the response."""
        service = ReportService(fixed_clock)
        assert service.run(ReportRequest(report_type=ReportType.BALANCE_SHEET), sample_snapshot).to_dto().is_balanced
        assert service.run(ReportRequest(report_type=ReportType.CASH_FLOW), sample_snapshot).to_dto().is_balanced
        assert service.run(ReportRequest(report_type=ReportType.AR_AGING), sample_snapshot).to_dto().is_balanced is None

    def test_response_rows(self, sample_snapshot, fixed_clock):
        """Rows are converted with their kind and amounts."""
        response = ReportService(fixed_clock).run(
            ReportRequest(report_type=ReportType.TRIAL_BALANCE), sample_snapshot
        ).to_dto()
        assert response.rows[-1].kind == "total"
        assert response.summary["total_debits"] == Decimal("18700")


class TestSnapshotDTO:
    """Test converting request payloads to a snapshot."""

    def test_to_domain(self):
        """Types are parsed and dates normalised."""
        snapshot = LedgerSnapshotDTO(
            accounts=[{"id": "cash", "name": "Cash", "account_type": "asset", "subtype": "Cash"}],
            journal_entries=[{"id": "je1", "transaction_date": "2024-01-31T23:30:00Z", "description": "Late"}],
            journal_entry_lines=[{"id": "l1", "journal_entry_id": "je1", "account_id": "cash", "debit": "10.50"}],
            invoices=[
                {"id": "i1", "customer_id": "c1", "due_date": "2024-02-15", "total_amount": 10, "status": "open"}
            ],
        ).to_domain()
        assert snapshot.account("cash").account_type is AccountType.ASSET
        assert snapshot.entry("je1").transaction_date == datetime(2024, 1, 31, 23, 30)
        assert snapshot.lines[0].debit == Decimal("10.50")
        assert snapshot.invoices[0].due_date == date(2024, 2, 15)

    def test_unknown_account_type(self):
        """An unmapped account type stops the snapshot from being built."""
        dto = LedgerSnapshotDTO(accounts=[{"id": "x", "name": "X", "account_type": "Contra"}])
        with pytest.raises(LedgerConfigurationError):
            dto.to_domain()

    def test_negative_amounts_rejected(self):
        """Line amounts are non-negative."""
        with pytest.raises(ValidationError):
            LedgerSnapshotDTO(
                journal_entry_lines=[{"id": "l1", "journal_entry_id": "je1", "account_id": "cash", "debit": "-1"}]
            )


def _empty():
    return LedgerSnapshotDTO().to_domain()
