"""
Use cases - Vendor bills and customer invoices.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

from loguru import logger

from shiv_erp.application.enrichment import LineEnricher
from shiv_erp.application.order_service import require_counterparty
from shiv_erp.application.pagination import Page, parse_pagination
from shiv_erp.application.pricing import DocumentPricer
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import Settings, settings as default_settings
from shiv_erp.domain.entities import BillingDocument
from shiv_erp.domain.exceptions import ConcurrentUpdateError, InvalidInputError, NotFoundError
from shiv_erp.domain.services import DocumentNumberingService, TaxCalculationService
from shiv_erp.domain.state_machine import order_label
from shiv_erp.domain.value_objects import (
    AccountType,
    BillingAction,
    BillingKind,
    BillingStatus,
    OrderAction,
    OrderKind,
    OrderLine,
    PaymentMode,
    round2,
    to_decimal,
)

PAYMENT_ATTEMPTS = 3

DEFAULT_ACCOUNT_TYPES = {
    BillingKind.VENDOR_BILL: AccountType.EXPENSE,
    BillingKind.CUSTOMER_INVOICE: AccountType.INCOME,
}


class BillingService:
    """
    Service - Billing conversion, direct billing documents and payments.

    A bill created from an order is written together with the order's
    billed status in one transaction; if either write fails neither is kept.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        settings: Settings | None = None,
        calculator: TaxCalculationService | None = None,
    ):
        self.uow = uow
        self.settings = settings or default_settings
        self.calculator = calculator or TaxCalculationService()

    def create_from_order(
        self,
        order_kind: OrderKind,
        order_id: int,
        invoice_date: date | None = None,
        due_date: date | None = None,
        reference: str | None = None,
    ) -> BillingDocument:
        with self.uow as uow:
            order = uow.orders[order_kind].get(order_id, for_update=True)
            if order is None:
                raise NotFoundError(order_label(order_kind), order_id)

            # raises InvalidState unless the order is confirmed
            billed_order = order.apply(OrderAction.BILL)
            kind = order.billing_kind

            default_account = uow.accounts.first_active(DEFAULT_ACCOUNT_TYPES[kind])
            items = [
                line if line.account_id is not None or default_account is None
                else replace(line, account_id=default_account.id)
                for line in order.items
            ]
            totals = self._pricer(uow).recompute(items, order_kind)

            invoice_date = invoice_date or date.today()
            document = BillingDocument(
                kind=kind,
                number=DocumentNumberingService(uow.counters).next_billing_number(kind, invoice_date),
                counterparty_id=order.counterparty_id,
                items=items,
                invoice_date=invoice_date,
                due_date=due_date or self._default_due_date(invoice_date),
                status=BillingStatus.CONFIRMED,
                source_order_id=order.id,
                reference=reference if reference is not None else order.number,
            ).with_totals(totals.total_amount, totals.subtotal, totals.tax_amount)

            try:
                uow.orders[order_kind].save(billed_order)
                document = uow.billing[kind].add(document)
                uow.commit()
            except Exception as e:
                logger.error(f"Billing {order.number} rolled back: {e}")
                raise

        logger.info(
            f"{kind.label} {document.number} created from {order.number} "
            f"(total {document.total_amount})"
        )
        return document

    def create(
        self,
        kind: BillingKind,
        counterparty_id: int | None,
        items: list[OrderLine],
        invoice_date: date | None = None,
        due_date: date | None = None,
        reference: str | None = None,
        source_order_id: int | None = None,
        number: str | None = None,
    ) -> BillingDocument:
        """Draft document entered directly, without a source order."""
        with self.uow as uow:
            require_counterparty(uow, counterparty_id, kind.order_kind)
            lines, totals = self._price(uow, kind, items)

            repo = uow.billing[kind]
            invoice_date = invoice_date or date.today()
            if number:
                if repo.number_exists(number):
                    raise InvalidInputError(f"{kind.label} number {number} already exists", field="number")
            else:
                number = DocumentNumberingService(uow.counters).next_billing_number(kind, invoice_date)

            document = repo.add(
                BillingDocument(
                    kind=kind,
                    number=number,
                    counterparty_id=counterparty_id,
                    items=lines,
                    invoice_date=invoice_date,
                    due_date=due_date or self._default_due_date(invoice_date),
                    status=BillingStatus.DRAFT,
                    source_order_id=source_order_id,
                    reference=reference,
                ).with_totals(totals.total_amount, totals.subtotal, totals.tax_amount)
            )
            uow.commit()

        logger.info(f"{kind.label} {document.number} drafted (total {document.total_amount})")
        return document

    def update(
        self,
        kind: BillingKind,
        document_id: int,
        counterparty_id: int | None = None,
        items: list[OrderLine] | None = None,
        invoice_date: date | None = None,
        due_date: date | None = None,
        reference: str | None = None,
    ) -> BillingDocument:
        with self.uow as uow:
            document = self._get(uow, kind, document_id, for_update=True)
            if not document.can_modify():
                document.revise()

            if counterparty_id is not None:
                require_counterparty(uow, counterparty_id, kind.order_kind)
            lines, totals = self._price(uow, kind, document.items if items is None else items)

            document = uow.billing[kind].save(
                document.revise(
                    counterparty_id=counterparty_id or document.counterparty_id,
                    items=lines,
                    invoice_date=invoice_date or document.invoice_date,
                    due_date=due_date or document.due_date,
                    reference=document.reference if reference is None else reference,
                    total_amount=totals.total_amount,
                    untaxed_amount=totals.subtotal,
                    tax_amount=totals.tax_amount,
                )
            )
            uow.commit()

        logger.info(f"{kind.label} {document.number} updated (total {document.total_amount})")
        return document

    def confirm(self, kind: BillingKind, document_id: int) -> BillingDocument:
        return self._transition(kind, document_id, BillingAction.CONFIRM)

    def cancel(self, kind: BillingKind, document_id: int) -> BillingDocument:
        return self._transition(kind, document_id, BillingAction.CANCEL)

    def add_payment(
        self,
        kind: BillingKind,
        document_id: int,
        mode: PaymentMode | str,
        amount: Decimal | str | int | float,
    ) -> BillingDocument:
        try:
            mode = PaymentMode(mode)
        except ValueError:
            raise InvalidInputError("Invalid mode", field="mode") from None
        amount = to_decimal(amount)
        if amount <= 0 or amount != round2(amount):
            raise InvalidInputError("Invalid amount", field="amount")

        for attempt in range(1, PAYMENT_ATTEMPTS + 1):
            try:
                with self.uow as uow:
                    document = self._get(uow, kind, document_id, for_update=True)
                    document = uow.billing[kind].save(document.add_payment(mode, amount))
                    uow.commit()
                break
            except ConcurrentUpdateError:
                if attempt == PAYMENT_ATTEMPTS:
                    raise
                logger.warning(f"{kind.label} {document_id} changed while paying, retrying ({attempt})")

        logger.info(
            f"{kind.label} {document.number}: {mode.value} payment {amount}, "
            f"due {document.amount_due}"
        )
        return document

    def get(self, kind: BillingKind, document_id: int) -> BillingDocument:
        with self.uow as uow:
            return self._get(uow, kind, document_id)

    def list(
        self,
        kind: BillingKind,
        status: BillingStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[BillingDocument]:
        page, limit, offset = parse_pagination(page, limit)
        with self.uow as uow:
            items, total = uow.billing[kind].list(
                status=status,
                counterparty_id=counterparty_id,
                q=(q or "").strip() or None,
                offset=offset,
                limit=limit,
            )
        return Page(page=page, limit=limit, total=total, items=items)

    def _transition(self, kind: BillingKind, document_id: int, action: BillingAction) -> BillingDocument:
        with self.uow as uow:
            document = self._get(uow, kind, document_id, for_update=True)
            previous = document.status
            document = uow.billing[kind].save(document.apply(action))
            uow.commit()

        logger.info(f"{kind.label} {document.number}: {previous.value} -> {document.status.value}")
        return document

    def _get(
        self, uow: IUnitOfWork, kind: BillingKind, document_id: int, for_update: bool = False
    ) -> BillingDocument:
        document = uow.billing[kind].get(document_id, for_update=for_update)
        if document is None:
            raise NotFoundError(kind.label, document_id)
        return document

    def _price(self, uow: IUnitOfWork, kind: BillingKind, items: list[OrderLine]):
        account = uow.accounts.first_active(DEFAULT_ACCOUNT_TYPES[kind])
        return self._pricer(uow).price(items, kind.order_kind, account.id if account else None)

    def _pricer(self, uow: IUnitOfWork) -> DocumentPricer:
        return DocumentPricer(
            LineEnricher(uow, self.settings.policy),
            self.calculator,
            self.settings.strict_tax_validation,
        )

    def _default_due_date(self, invoice_date: date) -> date:
        return invoice_date + timedelta(days=self.settings.default_due_days)
