"""
Main FastAPI application - Ledger aggregation and financial statements.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routers import reports
from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.domain.exceptions import LedgerConfigurationError
from app.domain.value_objects import ReportType
from app.infrastructure.database import init_db

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging(settings.log_level, json_logs=settings.log_json)
    init_db()
    logger.info("app.started", app_env=settings.app_env)
    yield


app = FastAPI(
    title=settings.app_name,
    description="""
## Ledger Reporting API

### Reports:
- **Trial Balance** as of a date
- **Balance Sheet** with retained earnings folded into equity
- **Profit & Loss** over a period
- **Statement of Cash Flows** (indirect method) with cash reconciliation
- **General Ledger** with running balances
- **Transaction Detail by Account**
- **AR / AP Aging** summaries

### Rules:
- Double-entry: total debits equal total credits within 0.01
- Data-quality problems are reported in the result, not raised
    """,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports.router)


@app.get("/")
def root():
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "reports": [report_type.value for report_type in ReportType],
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(LedgerConfigurationError)
async def ledger_configuration_error_handler(request: Request, exc: LedgerConfigurationError):
    """Handle unmapped account types and unsupported reports."""
    logger.warning("request.ledger_configuration_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)}
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
