"""
Use cases - Sales orders and purchase orders.
"""
from __future__ import annotations

from datetime import date

from loguru import logger

from shiv_erp.application.enrichment import LineEnricher
from shiv_erp.application.pagination import Page, parse_pagination
from shiv_erp.application.pricing import DocumentPricer
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import Settings, settings as default_settings
from shiv_erp.domain.entities import Contact, Order
from shiv_erp.domain.exceptions import InvalidInputError, NotFoundError
from shiv_erp.domain.services import DocumentNumberingService, TaxCalculationService
from shiv_erp.domain.state_machine import order_label
from shiv_erp.domain.value_objects import (
    OrderAction,
    OrderKind,
    OrderLine,
    OrderStatus,
    OrderTotals,
)


def require_counterparty(uow: IUnitOfWork, counterparty_id: int | None, kind: OrderKind) -> Contact:
    """The counterparty must exist and be a customer (sales) or vendor (purchase)."""
    role = "customer" if kind == OrderKind.SALES else "vendor"
    if counterparty_id is None:
        raise InvalidInputError(f"A {role} is required", field=role)
    contact = uow.contacts.get(counterparty_id)
    if contact is None:
        raise NotFoundError("Contact", counterparty_id)
    if not contact.can_trade_as(kind):
        raise InvalidInputError(
            f"Contact {contact.name} is a {contact.type.value}, not a {role}", field=role
        )
    return contact


class OrderService:
    """
    Service - Draft, confirm, cancel and revise orders of one kind.

    Totals are recomputed on create/update only; confirm and cancel never
    touch amounts.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        kind: OrderKind,
        settings: Settings | None = None,
        calculator: TaxCalculationService | None = None,
    ):
        self.uow = uow
        self.kind = kind
        self.settings = settings or default_settings
        self.calculator = calculator or TaxCalculationService()

    @property
    def label(self) -> str:
        return order_label(self.kind)

    def create(
        self,
        counterparty_id: int | None,
        items: list[OrderLine],
        reference: str | None = None,
        order_date: date | None = None,
        number: str | None = None,
    ) -> Order:
        with self.uow as uow:
            require_counterparty(uow, counterparty_id, self.kind)
            lines, totals = self._pricer(uow).price(items, self.kind)

            repo = uow.orders[self.kind]
            if number:
                if repo.number_exists(number):
                    raise InvalidInputError(f"{self.label} number {number} already exists", field="number")
            else:
                number = DocumentNumberingService(uow.counters).next_order_number(self.kind)

            order = repo.add(
                Order(
                    kind=self.kind,
                    number=number,
                    counterparty_id=counterparty_id,
                    items=lines,
                    status=OrderStatus.DRAFT,
                    reference=reference,
                    order_date=order_date or date.today(),
                    total_amount=totals.total_amount,
                )
            )
            uow.commit()

        logger.info(f"{self.label} {order.number} created (total {order.total_amount})")
        return order

    def update(
        self,
        order_id: int,
        counterparty_id: int | None = None,
        items: list[OrderLine] | None = None,
        reference: str | None = None,
        order_date: date | None = None,
    ) -> Order:
        with self.uow as uow:
            repo = uow.orders[self.kind]
            order = self._get(uow, order_id, for_update=True)
            if not order.can_modify():
                # fail before any lookups
                order.revise()

            if counterparty_id is not None:
                require_counterparty(uow, counterparty_id, self.kind)
            lines, totals = self._pricer(uow).price(
                order.items if items is None else items, self.kind
            )

            order = repo.save(
                order.revise(
                    counterparty_id=counterparty_id or order.counterparty_id,
                    items=lines,
                    reference=order.reference if reference is None else reference,
                    order_date=order_date or order.order_date,
                    total_amount=totals.total_amount,
                )
            )
            uow.commit()

        logger.info(f"{self.label} {order.number} updated (total {order.total_amount})")
        return order

    def confirm(self, order_id: int) -> Order:
        return self._transition(order_id, OrderAction.CONFIRM)

    def cancel(self, order_id: int) -> Order:
        return self._transition(order_id, OrderAction.CANCEL)

    def revert_to_draft(self, order_id: int) -> Order:
        return self._transition(order_id, OrderAction.REVERT_TO_DRAFT)

    def get(self, order_id: int) -> Order:
        with self.uow as uow:
            return self._get(uow, order_id)

    def list(
        self,
        status: OrderStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Order]:
        page, limit, offset = parse_pagination(page, limit)
        with self.uow as uow:
            items, total = uow.orders[self.kind].list(
                status=status,
                counterparty_id=counterparty_id,
                q=(q or "").strip() or None,
                offset=offset,
                limit=limit,
            )
        return Page(page=page, limit=limit, total=total, items=items)

    def tax_breakdown(self, order_id: int) -> OrderTotals:
        """Current tax breakdown of a stored order."""
        with self.uow as uow:
            order = self._get(uow, order_id)
            return self._pricer(uow).recompute(order.items, self.kind)

    def _transition(self, order_id: int, action: OrderAction) -> Order:
        with self.uow as uow:
            order = self._get(uow, order_id, for_update=True)
            previous = order.status
            order = uow.orders[self.kind].save(order.apply(action))
            uow.commit()

        logger.info(f"{self.label} {order.number}: {previous.value} -> {order.status.value}")
        return order

    def _get(self, uow: IUnitOfWork, order_id: int, for_update: bool = False) -> Order:
        order = uow.orders[self.kind].get(order_id, for_update=for_update)
        if order is None:
            raise NotFoundError(self.label, order_id)
        return order

    def _pricer(self, uow: IUnitOfWork) -> DocumentPricer:
        return DocumentPricer(
            LineEnricher(uow, self.settings.policy),
            self.calculator,
            self.settings.strict_tax_validation,
        )
