"""
Domain Services - Business logic that operates on multiple entities.
GST tax calculation, document numbering and HSN-based rate suggestions.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal

from .entities import (
    BillingDocument,
    ChartOfAccount,
    Contact,
    Order,
    Product,
    StockLedgerEntry,
    Tax,
)
from .exceptions import InvalidInputError
from .value_objects import (
    AccountType,
    BillingKind,
    BillingStatus,
    ContactType,
    DateRange,
    GSTRateSuggestion,
    LineTaxResult,
    OrderKind,
    OrderLine,
    OrderStatus,
    OrderTotals,
    TaxApplicability,
    TaxCategory,
    TaxDetail,
    TaxValidationResult,
    round2,
)

TOLERANCE = Decimal("0.01")


class ICounterRepository(ABC):

    @abstractmethod
    def allocate(self, key: str) -> int:
        """Read-or-create the row for key, increment it and return the new seq."""


class ITaxRepository(ABC):

    @abstractmethod
    def get(self, tax_id: int) -> Tax | None:
        ...

    @abstractmethod
    def add(self, tax: Tax) -> Tax:
        ...

    @abstractmethod
    def list(self, applicable_on: TaxApplicability | None = None) -> list[Tax]:
        ...


class IProductRepository(ABC):

    @abstractmethod
    def get(self, product_id: int) -> Product | None:
        ...

    @abstractmethod
    def get_many(self, product_ids: Iterable[int]) -> dict[int, Product]:
        ...

    @abstractmethod
    def add(self, product: Product) -> Product:
        ...

    @abstractmethod
    def list(self, q: str | None = None) -> list[Product]:
        ...


class IContactRepository(ABC):

    @abstractmethod
    def get(self, contact_id: int) -> Contact | None:
        ...

    @abstractmethod
    def get_many(self, contact_ids: Iterable[int]) -> dict[int, Contact]:
        ...

    @abstractmethod
    def add(self, contact: Contact) -> Contact:
        ...

    @abstractmethod
    def list(
        self,
        q: str | None = None,
        contact_type: ContactType | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 100,
    ) -> tuple[list[Contact], int]:
        ...

    @abstractmethod
    def count_active(self, types: Iterable[ContactType]) -> int:
        ...


class IChartOfAccountRepository(ABC):

    @abstractmethod
    def get(self, account_id: int) -> ChartOfAccount | None:
        ...

    @abstractmethod
    def get_many(self, account_ids: Iterable[int], active_only: bool = True) -> dict[int, ChartOfAccount]:
        ...

    @abstractmethod
    def add(self, account: ChartOfAccount) -> ChartOfAccount:
        ...

    @abstractmethod
    def list(self, account_type: AccountType | None = None) -> list[ChartOfAccount]:
        ...

    @abstractmethod
    def first_active(self, account_type: AccountType) -> ChartOfAccount | None:
        ...


class IOrderRepository(ABC):

    @abstractmethod
    def get(self, order_id: int, for_update: bool = False) -> Order | None:
        """for_update locks the row until the unit of work ends."""
        ...

    @abstractmethod
    def add(self, order: Order) -> Order:
        ...

    @abstractmethod
    def save(self, order: Order) -> Order:
        """
        Write back an order read at version - 1.
        Raises ConcurrentUpdateError when the stored version has moved on.
        """

    @abstractmethod
    def number_exists(self, number: str) -> bool:
        ...

    @abstractmethod
    def list(
        self,
        status: OrderStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Order], int]:
        ...


class IBillingRepository(ABC):

    @abstractmethod
    def get(self, document_id: int, for_update: bool = False) -> BillingDocument | None:
        ...

    @abstractmethod
    def add(self, document: BillingDocument) -> BillingDocument:
        ...

    @abstractmethod
    def save(self, document: BillingDocument) -> BillingDocument:
        """Same version check as IOrderRepository.save."""

    @abstractmethod
    def number_exists(self, number: str) -> bool:
        ...

    @abstractmethod
    def list(
        self,
        status: BillingStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[BillingDocument], int]:
        ...

    @abstractmethod
    def list_by_status(
        self, status: BillingStatus, period: DateRange | None = None
    ) -> list[BillingDocument]:
        ...

    @abstractmethod
    def recent(self, status: BillingStatus, limit: int = 10) -> list[BillingDocument]:
        ...


class IStockLedgerRepository(ABC):

    @abstractmethod
    def add(self, entry: StockLedgerEntry) -> StockLedgerEntry:
        ...

    @abstractmethod
    def list_all(self) -> list[StockLedgerEntry]:
        ...


def check_tax_references(line: OrderLine, line_index: int | None = None) -> None:
    """A line may reference taxes through `tax` or `taxIds`, never both."""
    if line.tax_id is not None and line.tax_ids:
        raise InvalidInputError(
            "line specifies both `tax` and `taxIds`",
            field="items" if line_index is None else f"items[{line_index}]",
        )


class TaxCalculationService:
    """
    Service - GST calculation over order lines.
    Percentage taxes apply to the line subtotal, fixed taxes once per line.
    """

    def calculate_line_tax(self, line: OrderLine, taxes: list[Tax]) -> LineTaxResult:
        check_tax_references(line)
        subtotal = line.quantity * (line.unit_price or Decimal("0"))
        result = LineTaxResult(line=line, subtotal=subtotal)

        for tax in taxes:
            amount = tax.amount_for(subtotal)
            category = TaxCategory.from_tax_name(tax.name)
            result.tax_amount += amount
            result.breakdown.add(category, amount)
            result.tax_details.append(
                TaxDetail(
                    tax_id=tax.id,
                    tax_name=tax.name,
                    tax_rate=tax.value,
                    tax_method=tax.method,
                    tax_amount=amount,
                    category=category,
                )
            )

        result.total_amount = result.subtotal + result.tax_amount
        return result

    def calculate_order_tax(
        self,
        lines: list[tuple[OrderLine, list[Tax]]],
        order_kind: OrderKind = OrderKind.SALES,
    ) -> OrderTotals:
        totals = OrderTotals()
        expected = _applicability_for(order_kind)

        for line, taxes in lines:
            line_result = self.calculate_line_tax(line, taxes)
            totals.subtotal += line_result.subtotal
            totals.tax_amount += line_result.tax_amount
            totals.breakdown.merge(line_result.breakdown)
            totals.lines.append(line_result)
            for tax in taxes:
                if tax.applicable_on != expected:
                    totals.warnings.append(
                        f"Tax '{tax.name}' applies on {tax.applicable_on.value}, "
                        f"used on a {order_kind.value.lower()} document"
                    )

        totals.total_amount = totals.subtotal + totals.tax_amount
        return self._round(totals)

    def validate_tax_calculation(self, totals: OrderTotals) -> TaxValidationResult:
        errors = []
        warnings = list(totals.warnings)

        expected_total = totals.subtotal + totals.tax_amount
        if abs(expected_total - totals.total_amount) > TOLERANCE:
            errors.append("Total amount calculation mismatch")

        if totals.subtotal < 0:
            errors.append("Negative subtotal")
        if totals.tax_amount < 0:
            errors.append("Negative tax amount")

        if abs(totals.breakdown.total() - totals.tax_amount) > TOLERANCE:
            warnings.append("Tax breakdown sum does not match total tax amount")

        return TaxValidationResult(
            is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings)
        )

    def _round(self, totals: OrderTotals) -> OrderTotals:
        totals.subtotal = round2(totals.subtotal)
        totals.tax_amount = round2(totals.tax_amount)
        totals.total_amount = round2(totals.total_amount)
        totals.breakdown = totals.breakdown.rounded()
        for line in totals.lines:
            line.subtotal = round2(line.subtotal)
            line.tax_amount = round2(line.tax_amount)
            line.total_amount = round2(line.total_amount)
            line.breakdown = line.breakdown.rounded()
            line.tax_details = [
                TaxDetail(
                    tax_id=d.tax_id,
                    tax_name=d.tax_name,
                    tax_rate=d.tax_rate,
                    tax_method=d.tax_method,
                    tax_amount=round2(d.tax_amount),
                    category=d.category,
                )
                for d in line.tax_details
            ]
        return totals


def _applicability_for(kind: OrderKind) -> TaxApplicability:
    return TaxApplicability.SALES if kind == OrderKind.SALES else TaxApplicability.PURCHASE


def format_purchase_order_number(seq: int) -> str:
    return f"PO{seq:05d}"


def format_sales_order_number(seq: int) -> str:
    return f"SO{seq:05d}"


def yearly_formatter(prefix: str, year: int) -> Callable[[int], str]:
    def _format(seq: int) -> str:
        return f"{prefix}/{year}/{seq:04d}"
    return _format


class DocumentNumberingService:
    """
    Service - Running document numbers.
    Orders use one series per kind; bills and invoices restart every calendar year.
    """

    ORDER_SERIES = {
        OrderKind.PURCHASE: ("po", format_purchase_order_number),
        OrderKind.SALES: ("so", format_sales_order_number),
    }

    BILLING_SERIES = {
        BillingKind.VENDOR_BILL: ("vb", "Bill"),
        BillingKind.CUSTOMER_INVOICE: ("ci", "INV"),
    }

    def __init__(self, counter_repo: ICounterRepository):
        self.counter_repo = counter_repo

    def next_number(self, series_key: str, formatter: Callable[[int], str]) -> str:
        seq = self.counter_repo.allocate(series_key)
        return formatter(seq)

    def next_order_number(self, kind: OrderKind) -> str:
        key, formatter = self.ORDER_SERIES[kind]
        return self.next_number(key, formatter)

    def next_billing_number(self, kind: BillingKind, on_date: date) -> str:
        key_prefix, number_prefix = self.BILLING_SERIES[kind]
        year = on_date.year
        return self.next_number(f"{key_prefix}-{year}", yearly_formatter(number_prefix, year))


class GSTRateService:
    """
    Service - GST rate suggestions from HSN code prefixes or product category.
    Suggestions only; taxes applied to documents always come from Tax records.
    """

    RATE_DESCRIPTIONS = {
        Decimal("0"): "Exempt",
        Decimal("5"): "Essential items",
        Decimal("12"): "Standard items",
        Decimal("18"): "Most goods and services",
        Decimal("28"): "Luxury items",
    }

    HSN_PREFIX_RATES = [
        (("10", "11", "07", "08"), Decimal("5")),
        (("61", "62", "63"), Decimal("12")),
        (("87", "85", "90"), Decimal("28")),
    ]

    CATEGORY_KEYWORDS = [
        (("food", "grain", "essential"), Decimal("5")),
        (("textile", "clothing"), Decimal("12")),
        (("luxury", "automobile", "tobacco"), Decimal("28")),
    ]

    DESCRIPTION_CATEGORIES = [
        (("food", "grain", "rice", "wheat"), "Food & Agriculture"),
        (("textile", "clothing", "fabric"), "Textiles"),
        (("furniture", "chair", "table"), "Furniture"),
        (("electronic", "computer", "mobile"), "Electronics"),
    ]

    DEFAULT_RATE = Decimal("18")

    def by_hsn_code(self, hsn_code: str | None) -> GSTRateSuggestion:
        code = str(hsn_code or "").strip()
        if code:
            for prefixes, rate in self.HSN_PREFIX_RATES:
                if code.startswith(prefixes):
                    return self._split(rate)
        return self._split(self.DEFAULT_RATE)

    def by_category(self, category: str | None) -> GSTRateSuggestion:
        lowered = str(category or "").lower()
        for keywords, rate in self.CATEGORY_KEYWORDS:
            if any(k in lowered for k in keywords):
                return self._split(rate)
        return self._split(self.DEFAULT_RATE)

    def category_from_description(self, description: str | None) -> str:
        lowered = str(description or "").lower()
        for keywords, category in self.DESCRIPTION_CATEGORIES:
            if any(k in lowered for k in keywords):
                return category
        return "General"

    def _split(self, igst: Decimal) -> GSTRateSuggestion:
        half = igst / 2
        return GSTRateSuggestion(
            cgst=half,
            sgst=half,
            igst=igst,
            description=self.RATE_DESCRIPTIONS.get(igst, ""),
        )
