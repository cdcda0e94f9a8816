"""
API DTOs - Vendor bills, customer invoices and payments.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from shiv_erp.application.dto.order_dto import OrderLineDTO, OrderLineResponseDTO
from shiv_erp.domain.value_objects import (
    BillingKind,
    BillingStatus,
    OrderLine,
    PaymentStatus,
)


class BillingCreateDTO(BaseModel):
    """DTO - Draft bill or invoice entered directly."""
    counterparty_id: int | None = Field(None, description="Vendor (bill) or customer (invoice)")
    items: list[OrderLineDTO] = Field(default_factory=list)
    invoice_date: date | None = None
    due_date: date | None = Field(None, description="Defaults to invoice date + DEFAULT_DUE_DAYS")
    reference: str | None = Field(None, max_length=200)
    source_order_id: int | None = None
    number: str | None = Field(None, description="Explicit number; generated when omitted")

    def domain_items(self) -> list[OrderLine]:
        return [item.to_domain() for item in self.items]


class BillingUpdateDTO(BaseModel):
    """DTO - Patch a draft bill or invoice."""
    counterparty_id: int | None = None
    items: list[OrderLineDTO] | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    reference: str | None = Field(None, max_length=200)

    def domain_items(self) -> list[OrderLine] | None:
        if self.items is None:
            return None
        return [item.to_domain() for item in self.items]


class PaymentDTO(BaseModel):
    """DTO - Register a payment against a confirmed document."""
    mode: str = Field(..., description="Cash or Bank")
    amount: Decimal = Field(..., description="Must be positive and not exceed the amount due")

    model_config = ConfigDict(json_schema_extra={
        "example": {"mode": "Bank", "amount": 118}
    })


class BillingResponseDTO(BaseModel):
    id: int
    kind: BillingKind
    number: str
    counterparty_id: int
    source_order_id: int | None
    items: list[OrderLineResponseDTO]
    invoice_date: date
    due_date: date | None
    status: BillingStatus
    reference: str | None
    total_amount: Decimal
    untaxed_amount: Decimal
    tax_amount: Decimal
    amount_due: Decimal
    paid_cash: Decimal
    paid_bank: Decimal
    paid_total: Decimal
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)


class BillingPageDTO(BaseModel):
    page: int
    limit: int
    total: int
    items: list[BillingResponseDTO]

    model_config = ConfigDict(from_attributes=True)
