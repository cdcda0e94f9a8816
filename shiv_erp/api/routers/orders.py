"""
API Routers - Sales orders and purchase orders.

Both order kinds expose the same endpoints; only purchase orders can be
reverted to draft.
"""

from fastapi import APIRouter, Depends, Query, status

from shiv_erp.api.dependencies import get_settings, get_uow
from shiv_erp.application.billing_service import BillingService
from shiv_erp.application.dto.billing_dto import BillingResponseDTO
from shiv_erp.application.dto.order_dto import (
    BillFromOrderDTO,
    OrderCreateDTO,
    OrderPageDTO,
    OrderResponseDTO,
    OrderUpdateDTO,
    TaxBreakdownDTO,
)
from shiv_erp.application.order_service import OrderService
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import Settings
from shiv_erp.domain.value_objects import OrderKind, OrderStatus


def build_order_router(kind: OrderKind, path: str, tag: str) -> APIRouter:
    router = APIRouter(prefix=f"/api/v1/{path}", tags=[tag])

    def service(
        uow: IUnitOfWork = Depends(get_uow),
        settings: Settings = Depends(get_settings),
    ) -> OrderService:
        return OrderService(uow, kind, settings)

    @router.post("", response_model=OrderResponseDTO, status_code=status.HTTP_201_CREATED)
    def create_order(dto: OrderCreateDTO, orders: OrderService = Depends(service)):
        """
        Create a draft order.

        - Line prices default to the product's sales/purchase price
        - The number is generated from the running series unless given
        """
        order = orders.create(
            counterparty_id=dto.counterparty_id,
            items=dto.domain_items(),
            reference=dto.reference,
            order_date=dto.order_date,
            number=dto.number,
        )
        return OrderResponseDTO.model_validate(order)

    @router.get("", response_model=OrderPageDTO)
    def list_orders(
        status_filter: OrderStatus | None = Query(None, alias="status"),
        counterparty_id: int | None = Query(None, description="Customer or vendor"),
        q: str | None = Query(None, description="Substring of number or reference"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        orders: OrderService = Depends(service),
    ):
        result = orders.list(
            status=status_filter, counterparty_id=counterparty_id, q=q, page=page, limit=limit
        )
        return OrderPageDTO.model_validate(result)

    @router.get("/{order_id}", response_model=OrderResponseDTO)
    def get_order(order_id: int, orders: OrderService = Depends(service)):
        return OrderResponseDTO.model_validate(orders.get(order_id))

    @router.get("/{order_id}/taxes", response_model=TaxBreakdownDTO)
    def get_order_taxes(order_id: int, orders: OrderService = Depends(service)):
        """Tax breakdown (CGST/SGST/IGST/cess/other) of the stored lines."""
        return TaxBreakdownDTO.from_totals(orders.tax_breakdown(order_id))

    @router.put("/{order_id}", response_model=OrderResponseDTO)
    def update_order(order_id: int, dto: OrderUpdateDTO, orders: OrderService = Depends(service)):
        """Update a draft order; totals are recomputed."""
        order = orders.update(
            order_id,
            counterparty_id=dto.counterparty_id,
            items=dto.domain_items(),
            reference=dto.reference,
            order_date=dto.order_date,
        )
        return OrderResponseDTO.model_validate(order)

    @router.post("/{order_id}/confirm", response_model=OrderResponseDTO)
    def confirm_order(order_id: int, orders: OrderService = Depends(service)):
        return OrderResponseDTO.model_validate(orders.confirm(order_id))

    @router.post("/{order_id}/cancel", response_model=OrderResponseDTO)
    def cancel_order(order_id: int, orders: OrderService = Depends(service)):
        return OrderResponseDTO.model_validate(orders.cancel(order_id))

    if kind == OrderKind.PURCHASE:
        @router.post("/{order_id}/draft", response_model=OrderResponseDTO)
        def revert_order_to_draft(order_id: int, orders: OrderService = Depends(service)):
            return OrderResponseDTO.model_validate(orders.revert_to_draft(order_id))

    @router.post(
        "/{order_id}/bill",
        response_model=BillingResponseDTO,
        status_code=status.HTTP_201_CREATED,
    )
    def bill_order(
        order_id: int,
        dto: BillFromOrderDTO | None = None,
        uow: IUnitOfWork = Depends(get_uow),
        settings: Settings = Depends(get_settings),
    ):
        """
        Create the vendor bill / customer invoice for a confirmed order.

        The document is created confirmed and the order becomes billed in
        the same transaction.
        """
        dto = dto or BillFromOrderDTO()
        document = BillingService(uow, settings).create_from_order(
            kind,
            order_id,
            invoice_date=dto.invoice_date,
            due_date=dto.due_date,
            reference=dto.reference,
        )
        return BillingResponseDTO.model_validate(document)

    return router


purchase_orders = build_order_router(OrderKind.PURCHASE, "purchase-orders", "Purchase orders")
sales_orders = build_order_router(OrderKind.SALES, "sales-orders", "Sales orders")
