"""
Domain Entities - Orders, billing documents and the master data they reference.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal

from .exceptions import InvalidInputError, InvalidStateError
from .state_machine import next_billing_status, next_order_status
from .value_objects import (
    ZERO,
    AccountType,
    BillingAction,
    BillingKind,
    BillingStatus,
    ContactType,
    OrderAction,
    OrderKind,
    OrderLine,
    OrderStatus,
    PaymentMode,
    PaymentStatus,
    StockMovement,
    TaxApplicability,
    TaxMethod,
    round2,
    utcnow,
)


@dataclass
class Tax:
    name: str
    method: TaxMethod
    value: Decimal
    applicable_on: TaxApplicability = TaxApplicability.SALES
    id: int | None = None
    is_active: bool = True

    def amount_for(self, base: Decimal) -> Decimal:
        if self.method == TaxMethod.PERCENTAGE:
            return base * self.value / Decimal("100")
        return self.value


@dataclass
class Product:
    name: str
    sales_price: Decimal = ZERO
    purchase_price: Decimal = ZERO
    hsn_code: str | None = None
    category: str | None = None
    id: int | None = None
    is_active: bool = True

    def default_price(self, kind: OrderKind) -> Decimal:
        return self.sales_price if kind == OrderKind.SALES else self.purchase_price


@dataclass
class Contact:
    name: str
    type: ContactType
    email: str | None = None
    mobile: str | None = None
    gst_no: str | None = None
    id: int | None = None
    is_active: bool = True

    def can_trade_as(self, kind: OrderKind) -> bool:
        if self.type == ContactType.BOTH:
            return True
        if kind == OrderKind.SALES:
            return self.type == ContactType.CUSTOMER
        return self.type == ContactType.VENDOR


@dataclass
class ChartOfAccount:
    account_name: str
    type: AccountType
    id: int | None = None
    is_active: bool = True


@dataclass
class StockLedgerEntry:
    product_id: int
    type: StockMovement
    quantity: Decimal
    id: int | None = None
    entry_date: date | None = None
    reference: str | None = None


@dataclass
class Order:
    """
    Sales or purchase order. Status changes only through the transition table.
    """
    kind: OrderKind
    number: str
    counterparty_id: int
    items: list[OrderLine] = field(default_factory=list)
    status: OrderStatus = OrderStatus.DRAFT
    reference: str | None = None
    order_date: date = field(default_factory=date.today)
    total_amount: Decimal = ZERO
    id: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    version: int = 1

    def can_modify(self) -> bool:
        return self.status == OrderStatus.DRAFT

    def apply(self, action: OrderAction) -> "Order":
        return replace(
            self,
            status=next_order_status(self.kind, self.status, action),
            updated_at=utcnow(),
            version=self.version + 1,
        )

    def revise(self, **changes) -> "Order":
        if not self.can_modify():
            raise InvalidStateError(
                f"Only draft orders can be updated (status '{self.status.value}')",
                status=self.status.value,
            )
        return replace(self, updated_at=utcnow(), version=self.version + 1, **changes)

    @property
    def billing_kind(self) -> BillingKind:
        if self.kind == OrderKind.SALES:
            return BillingKind.CUSTOMER_INVOICE
        return BillingKind.VENDOR_BILL


@dataclass
class BillingDocument:
    """
    Vendor bill or customer invoice.
    amount_due is kept equal to total_amount - paid_cash - paid_bank.
    """
    kind: BillingKind
    number: str
    counterparty_id: int
    items: list[OrderLine] = field(default_factory=list)
    invoice_date: date = field(default_factory=date.today)
    due_date: date | None = None
    status: BillingStatus = BillingStatus.DRAFT
    source_order_id: int | None = None
    reference: str | None = None
    total_amount: Decimal = ZERO
    untaxed_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    amount_due: Decimal = ZERO
    paid_cash: Decimal = ZERO
    paid_bank: Decimal = ZERO
    id: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    version: int = 1

    @property
    def paid_total(self) -> Decimal:
        return self.paid_cash + self.paid_bank

    @property
    def payment_status(self) -> PaymentStatus:
        if self.paid_total <= 0:
            return PaymentStatus.UNPAID if self.amount_due > 0 else PaymentStatus.PAID
        return PaymentStatus.PAID if self.amount_due <= 0 else PaymentStatus.PARTIAL

    def can_modify(self) -> bool:
        return self.status == BillingStatus.DRAFT

    def apply(self, action: BillingAction) -> "BillingDocument":
        return replace(
            self,
            status=next_billing_status(self.status, action),
            updated_at=utcnow(),
            version=self.version + 1,
        )

    def revise(self, **changes) -> "BillingDocument":
        if not self.can_modify():
            raise InvalidStateError(
                f"Only draft documents can be updated (status '{self.status.value}')",
                status=self.status.value,
            )
        revised = replace(self, updated_at=utcnow(), version=self.version + 1, **changes)
        return revised.with_totals(revised.total_amount, revised.untaxed_amount, revised.tax_amount)

    def with_totals(self, total: Decimal, untaxed: Decimal, tax: Decimal) -> "BillingDocument":
        return replace(
            self,
            total_amount=total,
            untaxed_amount=untaxed,
            tax_amount=tax,
            amount_due=round2(total - self.paid_total),
        )

    def add_payment(self, mode: PaymentMode, amount: Decimal) -> "BillingDocument":
        if self.status != BillingStatus.CONFIRMED:
            raise InvalidStateError(
                "Only confirmed documents can be paid", status=self.status.value
            )
        if amount <= 0 or amount != round2(amount):
            raise InvalidInputError("Invalid amount", field="amount")
        if amount > self.amount_due:
            raise InvalidInputError(
                f"Payment {amount} exceeds amount due {self.amount_due}", field="amount"
            )
        paid_cash = self.paid_cash + amount if mode == PaymentMode.CASH else self.paid_cash
        paid_bank = self.paid_bank + amount if mode == PaymentMode.BANK else self.paid_bank
        return replace(
            self,
            paid_cash=paid_cash,
            paid_bank=paid_bank,
            amount_due=round2(self.total_amount - paid_cash - paid_bank),
            updated_at=utcnow(),
            version=self.version + 1,
        )
