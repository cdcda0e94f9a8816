"""
Reporting - stock valuation, profit & loss, balance sheet and dashboard.

Reports are read-only scans over confirmed bills/invoices and the stock
ledger. Nothing is cached; every call reads the current state.
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.domain.entities import BillingDocument
from shiv_erp.domain.exceptions import InvalidInputError
from shiv_erp.domain.value_objects import (
    ZERO,
    AccountType,
    BillingKind,
    BillingStatus,
    ContactType,
    DateRange,
    OrderLine,
    PaymentStatus,
    StockMovement,
    round2,
)

HUNDRED = Decimal("100")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}


# ---------------------------------------------------------------------------
# Report shapes
# ---------------------------------------------------------------------------

@dataclass
class StockRow:
    product_id: int
    product_name: str
    on_hand: Decimal
    purchase_price: Decimal
    stock_value: Decimal


@dataclass
class StockReport:
    rows: list[StockRow] = field(default_factory=list)
    total_qty: Decimal = ZERO
    total_value: Decimal = ZERO


@dataclass
class AccountAmount:
    account_name: str
    amount: Decimal


@dataclass
class ProfitAndLoss:
    incomes: list[AccountAmount]
    expenses: list[AccountAmount]
    income_total: Decimal
    expense_total: Decimal
    net_profit_by_account: Decimal
    period: DateRange


@dataclass
class BalanceSheet:
    """
    Assets (bank, cash, debtors) against liabilities (creditors, net profit).

    net_profit_by_totals is what balances the sheet; net_profit_by_account is
    the P&L figure for the same period, reported alongside with the difference.
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
    period: DateRange

    @property
    def balanced(self) -> bool:
        return abs(self.check) <= Decimal("0.01")


@dataclass
class TimeBuckets:
    last_24_hours: Decimal = ZERO
    last_7_days: Decimal = ZERO
    last_30_days: Decimal = ZERO
    change_24h: Decimal = ZERO
    change_7d: Decimal = ZERO


@dataclass
class ChartPoint:
    month: str
    sales: int
    purchases: int


@dataclass
class RecentTransaction:
    id: str
    type: str
    description: str
    date: date
    category: str
    amount: Decimal
    status: str
    reference: str
    balance: Decimal


@dataclass
class DashboardSummary:
    period: str
    total_revenue: Decimal
    active_clients: int
    growth_rate: Decimal
    total_invoice: TimeBuckets
    total_purchase: TimeBuckets
    total_payment: TimeBuckets
    chart_data: list[ChartPoint]
    recent_transactions: list[RecentTransaction]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_date_range(
    from_: date | None = None,
    to: date | None = None,
    on_date: date | None = None,
    month: int | None = None,
    year: int | None = None,
    today: date | None = None,
) -> DateRange:
    """
    Build the report window.

    A single `on_date` wins, then `month`/`year` (a whole calendar month, or a
    whole year when only `year` is given), then the plain `from_`/`to` bounds.
    """
    if on_date:
        return DateRange(on_date, on_date)
    if month is not None or year is not None:
        year = year or (today or date.today()).year
        if month is None:
            return DateRange(date(year, 1, 1), date(year, 12, 31))
        if not 1 <= month <= 12:
            raise InvalidInputError("month must be between 1 and 12", field="month")
        start = date(year, month, 1)
        return DateRange(start, _month_end(start))
    if from_ and to and from_ > to:
        raise InvalidInputError("'from' must not be after 'to'", field="from")
    return DateRange(from_, to)


def _month_end(first: date) -> date:
    if first.month == 12:
        return date(first.year, 12, 31)
    return date(first.year, first.month + 1, 1) - timedelta(days=1)


def line_amount(line: OrderLine) -> Decimal:
    """Stored lineTotal, or quantity x unitPrice x (1 + taxRate/100) when absent."""
    if line.line_total is not None:
        return line.line_total
    return line.quantity * (line.unit_price or ZERO) * (1 + line.tax_rate / HUNDRED)


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    if previous == 0:
        return HUNDRED if current > 0 else ZERO
    return round2((current - previous) / previous * HUNDRED)


def _sum(values) -> Decimal:
    return sum(values, ZERO)


def _whole(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ReportingService:
    """Service - Read-only financial reports."""

    def __init__(self, uow: IUnitOfWork, clock: Callable[[], date] = date.today):
        self.uow = uow
        self.clock = clock

    def stock_report(self) -> StockReport:
        with self.uow as uow:
            entries = uow.stock.list_all()
            quantities: dict[int, Decimal] = defaultdict(lambda: ZERO)
            for entry in entries:
                if entry.type == StockMovement.IN:
                    quantities[entry.product_id] += entry.quantity
                else:
                    quantities[entry.product_id] -= entry.quantity
            products = uow.products.get_many(quantities)

        report = StockReport()
        for product_id, on_hand in quantities.items():
            product = products.get(product_id)
            price = product.purchase_price if product else ZERO
            report.rows.append(
                StockRow(
                    product_id=product_id,
                    product_name=product.name if product else f"#{product_id}",
                    on_hand=on_hand,
                    purchase_price=price,
                    stock_value=round2(on_hand * price),
                )
            )
        report.rows.sort(key=lambda r: r.product_name.lower())
        report.total_qty = _sum(r.on_hand for r in report.rows)
        report.total_value = _sum(r.stock_value for r in report.rows)
        return report

    def profit_and_loss(self, period: DateRange | None = None) -> ProfitAndLoss:
        period = period or DateRange()
        with self.uow as uow:
            invoices, bills = self._confirmed(uow, period)
            return self._profit_and_loss(uow, invoices, bills, period)

    def balance_sheet(self, period: DateRange | None = None) -> BalanceSheet:
        period = period or DateRange()
        with self.uow as uow:
            invoices, bills = self._confirmed(uow, period)
            pnl = self._profit_and_loss(uow, invoices, bills, period)

        bank = _sum(i.paid_bank for i in invoices) - _sum(b.paid_bank for b in bills)
        cash = _sum(i.paid_cash for i in invoices) - _sum(b.paid_cash for b in bills)
        debtors = _sum(i.amount_due for i in invoices)
        creditors = _sum(b.amount_due for b in bills)
        net_profit = _sum(i.total_amount for i in invoices) - _sum(b.total_amount for b in bills)

        assets = bank + cash + debtors
        liabilities = creditors + net_profit
        sheet = BalanceSheet(
            bank=round2(bank),
            cash=round2(cash),
            debtors=round2(debtors),
            creditors=round2(creditors),
            net_profit_by_totals=round2(net_profit),
            net_profit_by_account=pnl.net_profit_by_account,
            discrepancy=round2(net_profit - pnl.net_profit_by_account),
            assets_total=round2(assets),
            liabilities_total=round2(liabilities),
            check=round2(assets - liabilities),
            period=period,
        )
        if not sheet.balanced:
            logger.warning(f"Balance sheet out of balance by {sheet.check}")
        if sheet.discrepancy != 0:
            logger.info(
                f"Net profit by totals {sheet.net_profit_by_totals} differs from "
                f"account-grouped {sheet.net_profit_by_account} by {sheet.discrepancy}"
            )
        return sheet

    def dashboard_summary(self, period: str = "30d") -> DashboardSummary:
        period = (period or "30d").lower()
        if period != "all" and period not in PERIOD_DAYS:
            raise InvalidInputError(
                f"Unknown period '{period}', expected one of 7d, 30d, 90d, 1y, all", field="period"
            )
        today = self.clock()

        with self.uow as uow:
            invoices = uow.billing[BillingKind.CUSTOMER_INVOICE].list_by_status(BillingStatus.CONFIRMED)
            bills = uow.billing[BillingKind.VENDOR_BILL].list_by_status(BillingStatus.CONFIRMED)
            active_clients = uow.contacts.count_active([ContactType.CUSTOMER, ContactType.BOTH])
            recent = self._recent_transactions(uow)

        revenue, growth = self._revenue_and_growth(invoices, period, today)

        paid_in = self._buckets(invoices, lambda d: d.paid_total, today)
        paid_out = self._buckets(bills, lambda d: d.paid_total, today)
        net_payments = TimeBuckets(
            last_24_hours=max(paid_in.last_24_hours - paid_out.last_24_hours, ZERO),
            last_7_days=max(paid_in.last_7_days - paid_out.last_7_days, ZERO),
            last_30_days=max(paid_in.last_30_days - paid_out.last_30_days, ZERO),
            change_24h=paid_in.change_24h - paid_out.change_24h,
            change_7d=paid_in.change_7d - paid_out.change_7d,
        )

        return DashboardSummary(
            period=period,
            total_revenue=revenue,
            active_clients=active_clients,
            growth_rate=growth,
            total_invoice=self._buckets(invoices, lambda d: d.total_amount, today),
            total_purchase=self._buckets(bills, lambda d: d.total_amount, today),
            total_payment=net_payments,
            chart_data=self._monthly_chart(invoices, bills, today),
            recent_transactions=recent,
        )

    # ------------------------------------------------------------------

    def _confirmed(self, uow: IUnitOfWork, period: DateRange):
        invoices = uow.billing[BillingKind.CUSTOMER_INVOICE].list_by_status(BillingStatus.CONFIRMED, period)
        bills = uow.billing[BillingKind.VENDOR_BILL].list_by_status(BillingStatus.CONFIRMED, period)
        return invoices, bills

    def _profit_and_loss(
        self,
        uow: IUnitOfWork,
        invoices: list[BillingDocument],
        bills: list[BillingDocument],
        period: DateRange,
    ) -> ProfitAndLoss:
        income_lines = [line for doc in invoices for line in doc.items if line.account_id]
        expense_lines = [line for doc in bills for line in doc.items if line.account_id]
        accounts = uow.accounts.get_many(line.account_id for line in income_lines + expense_lines)

        def group(lines: list[OrderLine], account_type: AccountType) -> list[AccountAmount]:
            sums: dict[str, Decimal] = defaultdict(lambda: ZERO)
            for line in lines:
                account = accounts.get(line.account_id)
                # lines booked to inactive or mismatched accounts are left out
                if account is None or account.type != account_type:
                    continue
                sums[account.account_name] += line_amount(line)
            return [
                AccountAmount(account_name=name, amount=round2(amount))
                for name, amount in sorted(sums.items(), key=lambda kv: kv[0].lower())
            ]

        incomes = group(income_lines, AccountType.INCOME)
        expenses = group(expense_lines, AccountType.EXPENSE)
        income_total = _sum(r.amount for r in incomes)
        expense_total = _sum(r.amount for r in expenses)
        return ProfitAndLoss(
            incomes=incomes,
            expenses=expenses,
            income_total=income_total,
            expense_total=expense_total,
            net_profit_by_account=round2(income_total - expense_total),
            period=period,
        )

    def _revenue_and_growth(self, invoices: list[BillingDocument], period: str, today: date):
        if period == "all":
            return round2(_sum(i.total_amount for i in invoices)), ZERO

        days = PERIOD_DAYS[period]
        start = today - timedelta(days=days)
        previous_start = start - timedelta(days=days)
        revenue = _sum(i.total_amount for i in invoices if i.invoice_date >= start)
        previous = _sum(
            i.total_amount for i in invoices if previous_start <= i.invoice_date < start
        )
        return round2(revenue), percent_change(revenue, previous)

    def _buckets(
        self,
        documents: list[BillingDocument],
        amount: Callable[[BillingDocument], Decimal],
        today: date,
    ) -> TimeBuckets:
        def total(start: date, end: date) -> Decimal:
            return _sum(amount(d) for d in documents if start <= d.invoice_date < end)

        tomorrow = today + timedelta(days=1)
        yesterday = today - timedelta(days=1)
        week_start = today - timedelta(days=7)
        previous_week_start = week_start - timedelta(days=7)
        month_start = today - timedelta(days=30)

        last_24 = total(today, tomorrow)
        previous_24 = total(yesterday, today)
        last_7 = total(week_start, today)
        previous_7 = total(previous_week_start, week_start)
        return TimeBuckets(
            last_24_hours=round2(last_24),
            last_7_days=round2(last_7),
            last_30_days=round2(total(month_start, today)),
            change_24h=percent_change(last_24, previous_24),
            change_7d=percent_change(last_7, previous_7),
        )

    def _monthly_chart(
        self,
        invoices: list[BillingDocument],
        bills: list[BillingDocument],
        today: date,
    ) -> list[ChartPoint]:
        months = []
        year, month = today.year, today.month
        for _ in range(12):
            months.append((year, month))
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        months.reverse()

        sales: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        purchases: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        for doc in invoices:
            sales[(doc.invoice_date.year, doc.invoice_date.month)] += doc.total_amount
        for doc in bills:
            purchases[(doc.invoice_date.year, doc.invoice_date.month)] += doc.total_amount

        return [
            ChartPoint(
                month=f"{MONTH_NAMES[m - 1]} {str(y)[-2:]}",
                sales=_whole(sales[(y, m)]),
                purchases=_whole(purchases[(y, m)]),
            )
            for y, m in months
        ]

    def _recent_transactions(self, uow: IUnitOfWork, limit: int = 10) -> list[RecentTransaction]:
        invoices = uow.billing[BillingKind.CUSTOMER_INVOICE].recent(BillingStatus.CONFIRMED, limit)
        bills = uow.billing[BillingKind.VENDOR_BILL].recent(BillingStatus.CONFIRMED, limit)
        contacts = uow.contacts.get_many(d.counterparty_id for d in invoices + bills)

        def transaction(doc: BillingDocument) -> RecentTransaction:
            is_invoice = doc.kind == BillingKind.CUSTOMER_INVOICE
            contact = contacts.get(doc.counterparty_id)
            return RecentTransaction(
                id=f"{'INV' if is_invoice else 'BILL'}-{doc.id}",
                type="income" if is_invoice else "expense",
                description=f"{'Invoice' if is_invoice else 'Vendor Bill'} #{doc.number}",
                date=doc.invoice_date,
                category=contact.name if contact else ("Customer" if is_invoice else "Vendor"),
                amount=doc.total_amount,
                status="completed" if doc.payment_status == PaymentStatus.PAID else "pending",
                reference=doc.reference or "",
                balance=doc.amount_due,
            )

        merged = [transaction(d) for d in invoices + bills]
        merged.sort(key=lambda t: t.date, reverse=True)
        return merged[:limit]
