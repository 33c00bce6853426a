"""Domain layer - Pure Python ledger reporting engine."""

from app.domain.aging import AgingKind, AgingReport, AgingSummaryBuilder, days_past_due
from app.domain.cash_flow import CashFlowClassifier, CashFlowReport, CashFlowStatementBuilder
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
from app.domain.exceptions import InvalidReportRequest, LedgerConfigurationError
from app.domain.services import (
    AccountClassifier,
    AccountTotals,
    BalanceAggregator,
    ILedgerSnapshotSource,
    PeriodFilter,
    parse_calendar_date,
    to_local_instant,
)
from app.domain.statements import (
    BalanceSheetBuilder,
    BalanceSheetReport,
    GeneralLedgerBuilder,
    GeneralLedgerReport,
    ProfitAndLossBuilder,
    ProfitAndLossReport,
    TransactionDetailBuilder,
    TransactionDetailReport,
    TrialBalanceBuilder,
    TrialBalanceReport,
)
from app.domain.value_objects import (
    TOLERANCE,
    AccountType,
    AgingBucket,
    CashFlowCategory,
    ClassificationSource,
    NormalSide,
    ReportRow,
    ReportType,
    RowKind,
    StatementGroup,
    money,
)
