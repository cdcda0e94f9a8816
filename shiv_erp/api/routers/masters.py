"""
API Routers - Master data and GST rate suggestions.
"""

from fastapi import APIRouter, Depends, Query, status

from shiv_erp.api.dependencies import get_uow
from shiv_erp.application.dto.master_dto import (
    AccountCreateDTO,
    AccountResponseDTO,
    ContactCreateDTO,
    ContactPageDTO,
    ContactResponseDTO,
    GSTSuggestionDTO,
    ProductCreateDTO,
    ProductResponseDTO,
    StockEntryCreateDTO,
    StockEntryResponseDTO,
    TaxCreateDTO,
    TaxResponseDTO,
)
from shiv_erp.application.master_data_service import MasterDataService
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.domain.services import GSTRateService
from shiv_erp.domain.value_objects import AccountType, ContactType, TaxApplicability

router = APIRouter(prefix="/api/v1/master", tags=["Master data"])
taxes_router = APIRouter(prefix="/api/v1/taxes", tags=["Taxes"])


def master_data(uow: IUnitOfWork = Depends(get_uow)) -> MasterDataService:
    return MasterDataService(uow)


# Contacts

@router.post("/contacts", response_model=ContactResponseDTO, status_code=status.HTTP_201_CREATED)
def create_contact(dto: ContactCreateDTO, service: MasterDataService = Depends(master_data)):
    contact = service.create_contact(
        dto.name,
        dto.type,
        email=dto.email,
        mobile=dto.mobile,
        gst_no=dto.gst_no,
        is_active=dto.is_active,
    )
    return ContactResponseDTO.model_validate(contact)


@router.get("/contacts", response_model=ContactPageDTO)
def list_contacts(
    q: str | None = Query(None, description="Substring of name or email"),
    contact_type: ContactType | None = Query(None, alias="type"),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: MasterDataService = Depends(master_data),
):
    result = service.list_contacts(
        q=q, contact_type=contact_type, is_active=is_active, page=page, limit=limit
    )
    return ContactPageDTO.model_validate(result)


@router.get("/contacts/{contact_id}", response_model=ContactResponseDTO)
def get_contact(contact_id: int, service: MasterDataService = Depends(master_data)):
    return ContactResponseDTO.model_validate(service.get_contact(contact_id))


# Products

@router.post("/products", response_model=ProductResponseDTO, status_code=status.HTTP_201_CREATED)
def create_product(dto: ProductCreateDTO, service: MasterDataService = Depends(master_data)):
    product = service.create_product(
        dto.name,
        sales_price=dto.sales_price,
        purchase_price=dto.purchase_price,
        hsn_code=dto.hsn_code,
        category=dto.category,
    )
    return ProductResponseDTO.model_validate(product)


@router.get("/products", response_model=list[ProductResponseDTO])
def list_products(
    q: str | None = Query(None), service: MasterDataService = Depends(master_data)
):
    return [ProductResponseDTO.model_validate(p) for p in service.list_products(q)]


@router.get("/products/{product_id}", response_model=ProductResponseDTO)
def get_product(product_id: int, service: MasterDataService = Depends(master_data)):
    return ProductResponseDTO.model_validate(service.get_product(product_id))


# Taxes

@router.post("/taxes", response_model=TaxResponseDTO, status_code=status.HTTP_201_CREATED)
def create_tax(dto: TaxCreateDTO, service: MasterDataService = Depends(master_data)):
    tax = service.create_tax(dto.name, dto.method, dto.value, dto.applicable_on)
    return TaxResponseDTO.model_validate(tax)


@router.get("/taxes", response_model=list[TaxResponseDTO])
def list_taxes(
    applicable_on: TaxApplicability | None = Query(None),
    service: MasterDataService = Depends(master_data),
):
    return [TaxResponseDTO.model_validate(t) for t in service.list_taxes(applicable_on)]


@router.get("/taxes/{tax_id}", response_model=TaxResponseDTO)
def get_tax(tax_id: int, service: MasterDataService = Depends(master_data)):
    return TaxResponseDTO.model_validate(service.get_tax(tax_id))


# Chart of accounts

@router.post("/accounts", response_model=AccountResponseDTO, status_code=status.HTTP_201_CREATED)
def create_account(dto: AccountCreateDTO, service: MasterDataService = Depends(master_data)):
    account = service.create_account(dto.account_name, dto.type, dto.is_active)
    return AccountResponseDTO.model_validate(account)


@router.get("/accounts", response_model=list[AccountResponseDTO])
def list_accounts(
    account_type: AccountType | None = Query(None, alias="type"),
    service: MasterDataService = Depends(master_data),
):
    return [AccountResponseDTO.model_validate(a) for a in service.list_accounts(account_type)]


@router.get("/accounts/{account_id}", response_model=AccountResponseDTO)
def get_account(account_id: int, service: MasterDataService = Depends(master_data)):
    return AccountResponseDTO.model_validate(service.get_account(account_id))


# Stock ledger

@router.post(
    "/stock-ledger", response_model=StockEntryResponseDTO, status_code=status.HTTP_201_CREATED
)
def record_stock(dto: StockEntryCreateDTO, service: MasterDataService = Depends(master_data)):
    entry = service.record_stock(
        dto.product_id, dto.type, dto.quantity, entry_date=dto.entry_date, reference=dto.reference
    )
    return StockEntryResponseDTO.model_validate(entry)


@router.get("/stock-ledger", response_model=list[StockEntryResponseDTO])
def list_stock(service: MasterDataService = Depends(master_data)):
    return [StockEntryResponseDTO.model_validate(e) for e in service.list_stock()]


@taxes_router.get("/gst-suggestion", response_model=GSTSuggestionDTO)
def suggest_gst_rate(
    hsn_code: str | None = Query(None, description="HSN code; prefix decides the rate"),
    category: str | None = Query(None, description="Product category keyword"),
    description: str | None = Query(None, description="Free text used to guess a category"),
):
    """
    Suggest a GST split (cgst = sgst = igst / 2).

    Informational only: documents are always taxed from Tax records.
    """
    gst = GSTRateService()
    if hsn_code:
        suggestion = gst.by_hsn_code(hsn_code)
    else:
        suggestion = gst.by_category(category)
    guessed = gst.category_from_description(description) if description else category
    return GSTSuggestionDTO(
        cgst=suggestion.cgst,
        sgst=suggestion.sgst,
        igst=suggestion.igst,
        description=suggestion.description,
        category=guessed,
    )
