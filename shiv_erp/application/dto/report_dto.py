"""
API DTOs - Stock valuation, P&L, balance sheet and dashboard.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PeriodDTO(BaseModel):
    start: date | None
    end: date | None

    model_config = ConfigDict(from_attributes=True)


class StockRowDTO(BaseModel):
    product_id: int
    product_name: str
    on_hand: Decimal
    purchase_price: Decimal
    stock_value: Decimal

    model_config = ConfigDict(from_attributes=True)


class StockReportDTO(BaseModel):
    """DTO - On-hand quantity and valuation per product."""
    rows: list[StockRowDTO]
    total_qty: Decimal
    total_value: Decimal

    model_config = ConfigDict(from_attributes=True)


class AccountAmountDTO(BaseModel):
    account_name: str
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class ProfitAndLossDTO(BaseModel):
    """DTO - Income and expense grouped by account."""
    incomes: list[AccountAmountDTO]
    expenses: list[AccountAmountDTO]
    income_total: Decimal
    expense_total: Decimal
    net_profit_by_account: Decimal
    period: PeriodDTO

    model_config = ConfigDict(from_attributes=True)


class BalanceSheetDTO(BaseModel):
    """
    DTO - Balance sheet.

    Two net profit figures are reported: by document totals (which balances
    the sheet) and by account (the P&L figure). `discrepancy` is their difference.
    """
    bank: Decimal
    cash: Decimal
    debtors: Decimal
    creditors: Decimal
    net_profit_by_totals: Decimal
    net_profit_by_account: Decimal
    discrepancy: Decimal
    assets_total: Decimal
    liabilities_total: Decimal
    check: Decimal
    balanced: bool
    equation: str = "Assets == Liabilities"
    period: PeriodDTO

    model_config = ConfigDict(from_attributes=True)


class TimeBucketsDTO(BaseModel):
    last_24_hours: Decimal
    last_7_days: Decimal
    last_30_days: Decimal
    change_24h: Decimal
    change_7d: Decimal

    model_config = ConfigDict(from_attributes=True)


class ChartPointDTO(BaseModel):
    month: str
    sales: int
    purchases: int

    model_config = ConfigDict(from_attributes=True)


class RecentTransactionDTO(BaseModel):
    id: str
    type: str
    description: str
    date: date
    category: str
    amount: Decimal
    status: str
    reference: str
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class DashboardDTO(BaseModel):
    """DTO - Dashboard summary."""
    period: str
    total_revenue: Decimal
    active_clients: int
    growth_rate: Decimal
    total_invoice: TimeBucketsDTO
    total_purchase: TimeBucketsDTO
    total_payment: TimeBucketsDTO
    chart_data: list[ChartPointDTO]
    recent_transactions: list[RecentTransactionDTO]

    model_config = ConfigDict(from_attributes=True)
