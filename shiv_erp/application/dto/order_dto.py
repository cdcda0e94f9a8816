"""
API DTOs - Orders, order lines and tax breakdowns.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from shiv_erp.domain.value_objects import (
    OrderKind,
    OrderLine,
    OrderStatus,
    OrderTotals,
    TaxCategory,
    TaxMethod,
)


class OrderLineDTO(BaseModel):
    """DTO - Order line as entered."""
    product_id: int | None = Field(None, description="Product")
    quantity: Decimal = Field(Decimal("1"), ge=0, description="Quantity; 0 means 1")
    unit_price: Decimal | None = Field(None, ge=0, description="Defaults to the product price")
    tax_id: int | None = Field(None, description="Single tax")
    tax_ids: list[int] = Field(default_factory=list, description="Several taxes (not together with tax_id)")
    tax_rate: Decimal = Field(Decimal("0"), ge=0, description="Informational rate %")
    product_name: str | None = None
    hsn_code: str | None = None
    account_id: int | None = Field(None, description="Chart of accounts entry for P&L")

    def to_domain(self) -> OrderLine:
        return OrderLine(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_id=self.tax_id,
            tax_ids=tuple(self.tax_ids),
            tax_rate=self.tax_rate,
            product_name=self.product_name,
            hsn_code=self.hsn_code,
            account_id=self.account_id,
        )


class OrderLineResponseDTO(BaseModel):
    product_id: int | None
    quantity: Decimal
    unit_price: Decimal | None
    tax_id: int | None
    tax_ids: list[int]
    tax_rate: Decimal
    product_name: str | None
    hsn_code: str | None
    account_id: int | None
    line_total: Decimal | None

    model_config = ConfigDict(from_attributes=True)


class OrderCreateDTO(BaseModel):
    """DTO - Create a sales or purchase order."""
    counterparty_id: int | None = Field(None, description="Customer (sales) or vendor (purchase)")
    items: list[OrderLineDTO] = Field(default_factory=list)
    reference: str | None = Field(None, max_length=200)
    order_date: date | None = None
    number: str | None = Field(None, description="Explicit number; generated when omitted")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "counterparty_id": 1,
            "reference": "Showroom restock",
            "items": [{"product_id": 1, "quantity": 2, "tax_id": 1}],
        }
    })

    def domain_items(self) -> list[OrderLine]:
        return [item.to_domain() for item in self.items]


class OrderUpdateDTO(BaseModel):
    """DTO - Patch a draft order; omitted fields are kept."""
    counterparty_id: int | None = None
    items: list[OrderLineDTO] | None = None
    reference: str | None = Field(None, max_length=200)
    order_date: date | None = None

    def domain_items(self) -> list[OrderLine] | None:
        if self.items is None:
            return None
        return [item.to_domain() for item in self.items]


class OrderResponseDTO(BaseModel):
    id: int
    kind: OrderKind
    number: str
    counterparty_id: int
    items: list[OrderLineResponseDTO]
    status: OrderStatus
    reference: str | None
    order_date: date
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)


class OrderPageDTO(BaseModel):
    page: int
    limit: int
    total: int
    items: list[OrderResponseDTO]

    model_config = ConfigDict(from_attributes=True)


class BillFromOrderDTO(BaseModel):
    """DTO - Options when billing a confirmed order."""
    invoice_date: date | None = None
    due_date: date | None = None
    reference: str | None = None


class TaxDetailDTO(BaseModel):
    tax_id: int | None
    tax_name: str
    tax_rate: Decimal
    tax_method: TaxMethod
    tax_amount: Decimal
    category: TaxCategory

    model_config = ConfigDict(from_attributes=True)


class LineTaxDTO(BaseModel):
    product_id: int | None
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    breakdown: dict[str, Decimal]
    tax_details: list[TaxDetailDTO]


class TaxBreakdownDTO(BaseModel):
    """DTO - Tax calculation result for an order."""
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    breakdown: dict[str, Decimal]
    lines: list[LineTaxDTO]
    warnings: list[str]

    @classmethod
    def from_totals(cls, totals: OrderTotals) -> "TaxBreakdownDTO":
        return cls(
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            breakdown=totals.breakdown.as_dict(),
            lines=[
                LineTaxDTO(
                    product_id=result.line.product_id,
                    subtotal=result.subtotal,
                    tax_amount=result.tax_amount,
                    total_amount=result.total_amount,
                    breakdown=result.breakdown.as_dict(),
                    tax_details=[TaxDetailDTO.model_validate(d) for d in result.tax_details],
                )
                for result in totals.lines
            ],
            warnings=list(totals.warnings),
        )
