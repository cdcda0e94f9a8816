"""
API Routers - Vendor bills and customer invoices.
"""

from fastapi import APIRouter, Depends, Query, status

from shiv_erp.api.dependencies import get_settings, get_uow
from shiv_erp.application.billing_service import BillingService
from shiv_erp.application.dto.billing_dto import (
    BillingCreateDTO,
    BillingPageDTO,
    BillingResponseDTO,
    BillingUpdateDTO,
    PaymentDTO,
)
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import Settings
from shiv_erp.domain.value_objects import BillingKind, BillingStatus


def build_billing_router(kind: BillingKind, path: str, tag: str) -> APIRouter:
    router = APIRouter(prefix=f"/api/v1/{path}", tags=[tag])

    def service(
        uow: IUnitOfWork = Depends(get_uow),
        settings: Settings = Depends(get_settings),
    ) -> BillingService:
        return BillingService(uow, settings)

    @router.post("", response_model=BillingResponseDTO, status_code=status.HTTP_201_CREATED)
    def create_document(dto: BillingCreateDTO, billing: BillingService = Depends(service)):
        """Create a draft document; lines without an account get the default one."""
        document = billing.create(
            kind,
            counterparty_id=dto.counterparty_id,
            items=dto.domain_items(),
            invoice_date=dto.invoice_date,
            due_date=dto.due_date,
            reference=dto.reference,
            source_order_id=dto.source_order_id,
            number=dto.number,
        )
        return BillingResponseDTO.model_validate(document)

    @router.get("", response_model=BillingPageDTO)
    def list_documents(
        status_filter: BillingStatus | None = Query(None, alias="status"),
        counterparty_id: int | None = Query(None),
        q: str | None = Query(None, description="Substring of the document number"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        billing: BillingService = Depends(service),
    ):
        result = billing.list(
            kind, status=status_filter, counterparty_id=counterparty_id, q=q, page=page, limit=limit
        )
        return BillingPageDTO.model_validate(result)

    @router.get("/{document_id}", response_model=BillingResponseDTO)
    def get_document(document_id: int, billing: BillingService = Depends(service)):
        return BillingResponseDTO.model_validate(billing.get(kind, document_id))

    @router.put("/{document_id}", response_model=BillingResponseDTO)
    def update_document(
        document_id: int, dto: BillingUpdateDTO, billing: BillingService = Depends(service)
    ):
        document = billing.update(
            kind,
            document_id,
            counterparty_id=dto.counterparty_id,
            items=dto.domain_items(),
            invoice_date=dto.invoice_date,
            due_date=dto.due_date,
            reference=dto.reference,
        )
        return BillingResponseDTO.model_validate(document)

    @router.post("/{document_id}/confirm", response_model=BillingResponseDTO)
    def confirm_document(document_id: int, billing: BillingService = Depends(service)):
        return BillingResponseDTO.model_validate(billing.confirm(kind, document_id))

    @router.post("/{document_id}/cancel", response_model=BillingResponseDTO)
    def cancel_document(document_id: int, billing: BillingService = Depends(service)):
        return BillingResponseDTO.model_validate(billing.cancel(kind, document_id))

    @router.post("/{document_id}/payments", response_model=BillingResponseDTO)
    def add_payment(document_id: int, dto: PaymentDTO, billing: BillingService = Depends(service)):
        """
        Register a Cash or Bank payment.

        amount_due is recomputed in the same update; overpayment is rejected.
        """
        document = billing.add_payment(kind, document_id, dto.mode, dto.amount)
        return BillingResponseDTO.model_validate(document)

    return router


vendor_bills = build_billing_router(BillingKind.VENDOR_BILL, "vendor-bills", "Vendor bills")
customer_invoices = build_billing_router(
    BillingKind.CUSTOMER_INVOICE, "customer-invoices", "Customer invoices"
)
