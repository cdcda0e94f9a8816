"""
API DTOs - Master data: contacts, products, taxes, accounts, stock ledger.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from shiv_erp.domain.value_objects import (
    AccountType,
    ContactType,
    StockMovement,
    TaxApplicability,
    TaxMethod,
)


class ContactCreateDTO(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: ContactType = Field(..., description="Customer, Vendor or Both")
    email: str | None = None
    mobile: str | None = None
    gst_no: str | None = Field(None, description="GSTIN")
    is_active: bool = True


class ContactResponseDTO(BaseModel):
    id: int
    name: str
    type: ContactType
    email: str | None
    mobile: str | None
    gst_no: str | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ContactPageDTO(BaseModel):
    page: int
    limit: int
    total: int
    items: list[ContactResponseDTO]

    model_config = ConfigDict(from_attributes=True)


class ProductCreateDTO(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sales_price: Decimal = Field(Decimal("0"), ge=0)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    hsn_code: str | None = Field(None, max_length=20)
    category: str | None = None


class ProductResponseDTO(BaseModel):
    id: int
    name: str
    sales_price: Decimal
    purchase_price: Decimal
    hsn_code: str | None
    category: str | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TaxCreateDTO(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="e.g. 'IGST 18%'")
    method: TaxMethod
    value: Decimal = Field(..., ge=0)
    applicable_on: TaxApplicability = TaxApplicability.SALES


class TaxResponseDTO(BaseModel):
    id: int
    name: str
    method: TaxMethod
    value: Decimal
    applicable_on: TaxApplicability
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class AccountCreateDTO(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=200)
    type: AccountType
    is_active: bool = True


class AccountResponseDTO(BaseModel):
    id: int
    account_name: str
    type: AccountType
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class StockEntryCreateDTO(BaseModel):
    product_id: int
    type: StockMovement = Field(..., description="In or Out")
    quantity: Decimal = Field(..., gt=0)
    entry_date: date | None = None
    reference: str | None = None


class StockEntryResponseDTO(BaseModel):
    id: int
    product_id: int
    type: StockMovement
    quantity: Decimal
    entry_date: date | None
    reference: str | None

    model_config = ConfigDict(from_attributes=True)


class GSTSuggestionDTO(BaseModel):
    """DTO - Suggested GST split; informational only."""
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    description: str
    category: str | None = None

    model_config = ConfigDict(from_attributes=True)
