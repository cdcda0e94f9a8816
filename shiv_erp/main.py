"""
Main FastAPI application - Shiv Furnitures accounting core.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from shiv_erp.api.routers import billing, masters, orders, reports
from shiv_erp.core.config import settings
from shiv_erp.core.log import configure_logging
from shiv_erp.domain.exceptions import (
    CalculationInconsistencyError,
    DependencyFailureError,
    DomainError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from shiv_erp.infrastructure.database import init_db, seed_default_accounts

ERROR_STATUS = [
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (InvalidInputError, 422),
    (CalculationInconsistencyError, 422),
    (DependencyFailureError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging(settings)
    problems = settings.validate()
    if problems:
        for problem in problems:
            logger.error(f"Configuration error: {problem}")
        raise RuntimeError(f"Invalid configuration: {'; '.join(problems)}")
    init_db()
    seed_default_accounts()
    yield


app = FastAPI(
    title="Shiv Furnitures ERP API",
    description="""
## Accounting core for a furniture business

### Features:
- **Orders**: sales and purchase orders with GST calculation and running numbers
- **Billing**: vendor bills and customer invoices, from orders or entered directly
- **Payments**: cash/bank payments with amount due kept in step
- **Reports**: stock valuation, profit & loss, balance sheet, dashboard
- **Master data**: contacts, products, taxes, chart of accounts, stock ledger

### Rules:
- Status changes follow a closed transition table
- Only draft documents can be edited
- A bill and its order's billed status are committed together
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

app.include_router(orders.purchase_orders)
app.include_router(orders.sales_orders)
app.include_router(billing.vendor_bills)
app.include_router(billing.customer_invoices)
app.include_router(reports.router)
app.include_router(masters.router)
app.include_router(masters.taxes_router)


@app.get("/")
def root():
    return {
        "name": "Shiv Furnitures ERP API",
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "database": settings.database_type}


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Map domain errors to HTTP status codes."""
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={**exc.details, "detail": exc.message}
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
