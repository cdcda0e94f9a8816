"""
Domain Layer - Pure Python value objects for orders, billing and GST.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce numbers, numeric strings and None to Decimal."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except ArithmeticError:
        return default


def round2(value: Decimal) -> Decimal:
    """Round half away from zero at two decimal places."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderKind(str, Enum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"


class OrderStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    BILLED = "billed"


class OrderAction(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    BILL = "bill"
    REVERT_TO_DRAFT = "revert_to_draft"


class BillingKind(str, Enum):
    VENDOR_BILL = "VENDOR_BILL"
    CUSTOMER_INVOICE = "CUSTOMER_INVOICE"

    @property
    def order_kind(self) -> OrderKind:
        if self == BillingKind.VENDOR_BILL:
            return OrderKind.PURCHASE
        return OrderKind.SALES

    @property
    def label(self) -> str:
        return "Vendor Bill" if self == BillingKind.VENDOR_BILL else "Customer Invoice"


class BillingStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BillingAction(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"


class PaymentMode(str, Enum):
    CASH = "Cash"
    BANK = "Bank"


class PaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class TaxMethod(str, Enum):
    PERCENTAGE = "Percentage"
    FIXED = "Fixed"


class TaxApplicability(str, Enum):
    SALES = "Sales"
    PURCHASE = "Purchase"


class TaxCategory(str, Enum):
    """GST bucket selected by substring match on the tax name."""
    CGST = "cgst"
    SGST = "sgst"
    IGST = "igst"
    CESS = "cess"
    OTHER = "other"

    @classmethod
    def from_tax_name(cls, name: str | None) -> "TaxCategory":
        lowered = (name or "").lower()
        for category in (cls.CGST, cls.SGST, cls.IGST, cls.CESS):
            if category.value in lowered:
                return category
        return cls.OTHER


class ContactType(str, Enum):
    CUSTOMER = "Customer"
    VENDOR = "Vendor"
    BOTH = "Both"


class AccountType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"


class StockMovement(str, Enum):
    IN = "In"
    OUT = "Out"


@dataclass(frozen=True, slots=True)
class OrderLine:
    """Line item embedded in orders, bills and invoices."""
    product_id: int | None = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal | None = None
    tax_id: int | None = None
    tax_ids: tuple[int, ...] = ()
    tax_rate: Decimal = ZERO
    product_name: str | None = None
    hsn_code: str | None = None
    account_id: int | None = None
    line_total: Decimal | None = None

    def referenced_tax_ids(self) -> list[int]:
        ids = [self.tax_id] if self.tax_id is not None else []
        return ids + list(self.tax_ids)

    def with_defaults(self, **changes: Any) -> "OrderLine":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": self.product_id,
            "quantity": str(self.quantity),
            "unitPrice": None if self.unit_price is None else str(self.unit_price),
            "tax": self.tax_id,
            "taxIds": list(self.tax_ids),
            "taxRate": str(self.tax_rate),
            "productName": self.product_name,
            "hsnCode": self.hsn_code,
            "account": self.account_id,
            "lineTotal": None if self.line_total is None else str(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderLine":
        unit_price = data.get("unitPrice")
        line_total = data.get("lineTotal")
        return cls(
            product_id=data.get("product"),
            quantity=to_decimal(data.get("quantity"), Decimal("1")),
            unit_price=None if unit_price is None else to_decimal(unit_price),
            tax_id=data.get("tax"),
            tax_ids=tuple(data.get("taxIds") or ()),
            tax_rate=to_decimal(data.get("taxRate")),
            product_name=data.get("productName"),
            hsn_code=data.get("hsnCode"),
            account_id=data.get("account"),
            line_total=None if line_total is None else to_decimal(line_total),
        )


@dataclass(slots=True)
class TaxBreakdown:
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    cess: Decimal = ZERO
    other: Decimal = ZERO

    def add(self, category: TaxCategory, amount: Decimal) -> None:
        setattr(self, category.value, getattr(self, category.value) + amount)

    def merge(self, other: "TaxBreakdown") -> None:
        for category in TaxCategory:
            self.add(category, getattr(other, category.value))

    def total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst + self.cess + self.other

    def rounded(self) -> "TaxBreakdown":
        return TaxBreakdown(*(round2(getattr(self, c.value)) for c in TaxCategory))

    def as_dict(self) -> dict[str, Decimal]:
        return {c.value: getattr(self, c.value) for c in TaxCategory}


@dataclass(frozen=True, slots=True)
class TaxDetail:
    tax_id: int
    tax_name: str
    tax_rate: Decimal
    tax_method: TaxMethod
    tax_amount: Decimal
    category: TaxCategory


@dataclass(slots=True)
class LineTaxResult:
    line: OrderLine
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    breakdown: TaxBreakdown = field(default_factory=TaxBreakdown)
    tax_details: list[TaxDetail] = field(default_factory=list)


@dataclass(slots=True)
class OrderTotals:
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    breakdown: TaxBreakdown = field(default_factory=TaxBreakdown)
    lines: list[LineTaxResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TaxValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GSTRateSuggestion:
    """Suggested GST split; never applied automatically."""
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    description: str = ""


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive date window; either bound may be open."""
    start: date | None = None
    end: date | None = None
