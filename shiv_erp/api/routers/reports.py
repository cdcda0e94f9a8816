"""
API Routers - Financial reports endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from shiv_erp.api.dependencies import get_uow
from shiv_erp.application.dto.report_dto import (
    BalanceSheetDTO,
    DashboardDTO,
    ProfitAndLossDTO,
    StockReportDTO,
)
from shiv_erp.application.reporting_service import ReportingService, parse_date_range
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.domain.value_objects import DateRange

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def report_period(
    from_: date | None = Query(None, alias="from", description="Start date (inclusive)"),
    to: date | None = Query(None, description="End date (inclusive)"),
    on_date: date | None = Query(None, alias="date", description="Single day"),
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1900, le=9999),
) -> DateRange:
    """Dependency - Report window from ?date, ?month&year, ?year or ?from&to."""
    return parse_date_range(from_=from_, to=to, on_date=on_date, month=month, year=year)


@router.get("/stock", response_model=StockReportDTO)
def get_stock_report(uow: IUnitOfWork = Depends(get_uow)):
    """On-hand quantity (In - Out) and valuation at purchase price, by product."""
    return StockReportDTO.model_validate(ReportingService(uow).stock_report())


@router.get("/profit-and-loss", response_model=ProfitAndLossDTO)
def get_profit_and_loss(
    period: DateRange = Depends(report_period),
    uow: IUnitOfWork = Depends(get_uow),
):
    """
    Profit & Loss over confirmed invoices (income) and bills (expense),
    grouped by the account booked on each line.
    """
    return ProfitAndLossDTO.model_validate(ReportingService(uow).profit_and_loss(period))


@router.get("/balance-sheet", response_model=BalanceSheetDTO)
def get_balance_sheet(
    period: DateRange = Depends(report_period),
    uow: IUnitOfWork = Depends(get_uow),
):
    """
    Balance sheet: bank, cash and debtors against creditors and net profit.

    `check` is assets minus liabilities rounded to 2 places.
    """
    return BalanceSheetDTO.model_validate(ReportingService(uow).balance_sheet(period))


@router.get("/dashboard", response_model=DashboardDTO)
def get_dashboard(
    period: str = Query("30d", description="7d, 30d, 90d, 1y or all"),
    uow: IUnitOfWork = Depends(get_uow),
):
    return DashboardDTO.model_validate(ReportingService(uow).dashboard_summary(period))
