"""
Infrastructure - SQLModel database models.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from shiv_erp.domain.value_objects import utcnow


class Counter(SQLModel, table=True):
    """Document number series (po, so, vb-2025, ci-2025, ...)."""

    id: int | None = Field(default=None, primary_key=True)
    key: str = Field(unique=True, index=True)
    seq: int = 0


class Tax(SQLModel, table=True):
    """Tax master."""

    id: int | None = Field(default=None, primary_key=True)
    name: str
    method: str = "Percentage"  # Percentage, Fixed
    value: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=4)
    applicable_on: str = "Sales"  # Sales, Purchase
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Product(SQLModel, table=True):
    """Product master."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    sales_price: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    purchase_price: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    hsn_code: str | None = None
    category: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Contact(SQLModel, table=True):
    """Customers and vendors."""

    id: int | None = Field(default=None, primary_key=True)
    name: str
    type: str = Field(index=True)  # Customer, Vendor, Both
    email: str | None = None
    mobile: str | None = None
    gst_no: str | None = None
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ChartOfAccount(SQLModel, table=True):
    """Chart of accounts."""

    id: int | None = Field(default=None, primary_key=True)
    account_name: str
    type: str = Field(index=True)  # Income, Expense, Asset, Liability, Equity
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class StockLedger(SQLModel, table=True):
    """Stock movements (In/Out)."""

    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    type: str  # In, Out
    quantity: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=3)
    entry_date: date | None = None
    reference: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class OrderBase(SQLModel):
    number: str = Field(unique=True, index=True)
    counterparty_id: int = Field(foreign_key="contact.id", index=True)
    items: list = Field(default_factory=list, sa_type=JSON)
    status: str = Field(default="draft", index=True)  # draft, confirmed, cancelled, billed
    reference: str | None = None
    order_date: date = Field(default_factory=date.today)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 1


class SalesOrder(OrderBase, table=True):
    """Sales order."""

    id: int | None = Field(default=None, primary_key=True)


class PurchaseOrder(OrderBase, table=True):
    """Purchase order."""

    id: int | None = Field(default=None, primary_key=True)


class BillingBase(SQLModel):
    number: str = Field(unique=True, index=True)
    counterparty_id: int = Field(foreign_key="contact.id", index=True)
    source_order_id: int | None = Field(default=None, index=True)
    items: list = Field(default_factory=list, sa_type=JSON)
    invoice_date: date = Field(default_factory=date.today, index=True)
    due_date: date | None = None
    status: str = Field(default="draft", index=True)  # draft, confirmed, cancelled
    reference: str | None = None
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    untaxed_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    amount_due: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    paid_cash: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    paid_bank: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 1


class VendorBill(BillingBase, table=True):
    """Vendor bill."""

    id: int | None = Field(default=None, primary_key=True)


class CustomerInvoice(BillingBase, table=True):
    """Customer invoice."""

    id: int | None = Field(default=None, primary_key=True)
