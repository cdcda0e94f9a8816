"""
Integration tests - Order lifecycle and billing conversion against SQLite.
"""

from datetime import date
from decimal import Decimal

import pytest

from shiv_erp.application.billing_service import BillingService
from shiv_erp.application.order_service import OrderService
from shiv_erp.domain.exceptions import (
    DependencyFailureError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from shiv_erp.domain.value_objects import (
    BillingKind,
    BillingStatus,
    OrderKind,
    OrderLine,
    OrderStatus,
)
from shiv_erp.infrastructure.database import models
from shiv_erp.infrastructure.repositories import SqlBillingRepository

BILL_DATE = date(2025, 6, 10)


@pytest.fixture
def purchases(uow, settings) -> OrderService:
    return OrderService(uow, OrderKind.PURCHASE, settings)


@pytest.fixture
def sales(uow, settings) -> OrderService:
    return OrderService(uow, OrderKind.SALES, settings)


@pytest.fixture
def billing(uow, settings) -> BillingService:
    return BillingService(uow, settings)


def chair_items(master, quantity="2", tax=None):
    return [
        OrderLine(
            product_id=master.chair.id,
            quantity=Decimal(quantity),
            tax_id=(tax or master.igst_purchase).id,
        )
    ]


class TestCreateOrder:

    def test_purchase_order_priced_from_master_data(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))

        assert order.number == "PO00001"
        assert order.status == OrderStatus.DRAFT
        assert order.total_amount == Decimal("236.00")
        line = order.items[0]
        assert line.unit_price == Decimal("100")
        assert line.product_name == "Office Chair"
        assert line.hsn_code == "940130"
        assert line.line_total == Decimal("236.00")

    def test_tax_breakdown(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        totals = purchases.tax_breakdown(order.id)
        assert totals.subtotal == Decimal("200.00")
        assert totals.tax_amount == Decimal("36.00")
        assert totals.breakdown.igst == Decimal("36.00")
        assert totals.breakdown.cgst == Decimal("0.00")

    def test_sales_order_with_split_gst(self, master, sales):
        items = [
            OrderLine(
                product_id=master.table.id,
                quantity=Decimal("1"),
                tax_ids=(master.cgst.id, master.sgst.id),
            )
        ]
        order = sales.create(master.customer.id, items, reference="Showroom walk-in")
        assert order.number == "SO00001"
        assert order.total_amount == Decimal("37760.00")
        assert order.items[0].tax_rate == Decimal("18")

    def test_continues_existing_counter(self, master, purchases, session_factory):
        with session_factory() as db:
            db.add(models.Counter(key="po", seq=7))
            db.commit()
        assert purchases.create(master.vendor.id, chair_items(master)).number == "PO00008"
        assert purchases.create(master.vendor.id, chair_items(master)).number == "PO00009"

    def test_explicit_number_kept(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master), number="PO-MANUAL-1")
        assert order.number == "PO-MANUAL-1"
        # series untouched
        assert purchases.create(master.vendor.id, chair_items(master)).number == "PO00001"

    def test_duplicate_number_rejected(self, master, purchases):
        purchases.create(master.vendor.id, chair_items(master), number="PO-DUP")
        with pytest.raises(InvalidInputError, match="already exists"):
            purchases.create(master.vendor.id, chair_items(master), number="PO-DUP")

    def test_counterparty_required(self, master, purchases):
        with pytest.raises(InvalidInputError, match="A vendor is required"):
            purchases.create(None, chair_items(master))

    def test_unknown_counterparty(self, master, purchases):
        with pytest.raises(NotFoundError):
            purchases.create(999, chair_items(master))

    def test_customer_cannot_be_vendor(self, master, purchases):
        with pytest.raises(InvalidInputError, match="not a vendor"):
            purchases.create(master.customer.id, chair_items(master))

    def test_contact_of_both_types_accepted(self, master, purchases, sales):
        assert purchases.create(master.both.id, chair_items(master)).counterparty_id == master.both.id
        assert sales.create(master.both.id, chair_items(master, tax=master.igst_sales)).number == "SO00001"

    def test_dual_tax_fields_rejected(self, master, purchases):
        items = [OrderLine(product_id=master.chair.id, tax_id=master.cgst.id, tax_ids=(master.sgst.id,))]
        with pytest.raises(InvalidInputError, match="both"):
            purchases.create(master.vendor.id, items)


class TestEnrichmentPolicy:

    def test_degrade_keeps_order_with_defaults(self, master, purchases):
        items = [
            OrderLine(product_id=999, quantity=Decimal("1"), unit_price=Decimal("50")),
            OrderLine(product_id=master.chair.id, quantity=Decimal("1"), tax_id=999),
        ]
        order = purchases.create(master.vendor.id, items)
        assert order.total_amount == Decimal("150.00")
        assert order.items[0].product_name is None

    def test_strict_aborts_without_consuming_number(self, master, uow, strict_settings, purchases):
        strict = OrderService(uow, OrderKind.PURCHASE, strict_settings)
        with pytest.raises(DependencyFailureError) as exc:
            strict.create(master.vendor.id, [OrderLine(product_id=999)])
        assert exc.value.entity == "Product"

        with pytest.raises(DependencyFailureError):
            strict.create(master.vendor.id, [OrderLine(product_id=master.chair.id, tax_id=999)])

        assert purchases.create(master.vendor.id, chair_items(master)).number == "PO00001"


class TestOrderLifecycle:

    def test_update_draft_reprices(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        updated = purchases.update(order.id, items=chair_items(master, quantity="3"), reference="Rush")
        assert updated.total_amount == Decimal("354.00")
        assert updated.reference == "Rush"
        assert updated.version == order.version + 1

    def test_update_confirmed_rejected(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)
        with pytest.raises(InvalidStateError, match="Only draft orders can be updated"):
            purchases.update(order.id, items=chair_items(master, quantity="5"))
        assert purchases.get(order.id).total_amount == Decimal("236.00")

    def test_confirm_does_not_touch_amounts(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        confirmed = purchases.confirm(order.id)
        assert confirmed.status == OrderStatus.CONFIRMED
        assert confirmed.total_amount == order.total_amount
        assert confirmed.items == order.items

    def test_confirm_twice_rejected(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)
        with pytest.raises(InvalidStateError, match="Only draft Purchase Order can be confirmed"):
            purchases.confirm(order.id)

    def test_sales_order_cannot_be_cancelled_once_confirmed(self, master, sales):
        order = sales.create(master.customer.id, chair_items(master, tax=master.igst_sales))
        sales.confirm(order.id)
        with pytest.raises(InvalidStateError):
            sales.cancel(order.id)
        with pytest.raises(InvalidStateError):
            sales.revert_to_draft(order.id)

    def test_purchase_order_revert_and_edit(self, master, purchases):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)
        purchases.cancel(order.id)
        reverted = purchases.revert_to_draft(order.id)
        assert reverted.status == OrderStatus.DRAFT
        assert purchases.update(order.id, items=chair_items(master, quantity="1")).total_amount == Decimal("118.00")

    def test_unknown_order(self, master, purchases):
        with pytest.raises(NotFoundError, match="Purchase Order not found"):
            purchases.get(42)

    def test_list_pages_and_filters(self, master, purchases):
        for _ in range(3):
            purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(1)

        page = purchases.list(page=1, limit=2)
        assert page.total == 3
        assert len(page.items) == 2

        confirmed = purchases.list(status=OrderStatus.CONFIRMED)
        assert [o.number for o in confirmed.items] == ["PO00001"]

        assert purchases.list(q="00002").total == 1
        assert purchases.list(counterparty_id=master.customer.id).total == 0


class TestBillFromOrder:

    def test_vendor_bill_from_confirmed_order(self, master, purchases, billing):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)

        bill = billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)

        assert bill.kind == BillingKind.VENDOR_BILL
        assert bill.number == "Bill/2025/0001"
        assert bill.status == BillingStatus.CONFIRMED
        assert bill.total_amount == Decimal("236.00")
        assert bill.untaxed_amount == Decimal("200.00")
        assert bill.tax_amount == Decimal("36.00")
        assert bill.amount_due == Decimal("236.00")
        assert bill.source_order_id == order.id
        assert bill.reference == order.number
        assert bill.due_date == date(2025, 7, 10)
        assert purchases.get(order.id).status == OrderStatus.BILLED

    def test_bill_lines_booked_to_default_expense_account(self, master, purchases, billing):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)
        bill = billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)

        with billing.uow as uow:
            booked = uow.accounts.get(bill.items[0].account_id)
        assert booked.account_name == "Purchase Expense"

    def test_customer_invoice_from_sales_order(self, master, sales, billing):
        order = sales.create(master.customer.id, chair_items(master, tax=master.igst_sales))
        sales.confirm(order.id)
        invoice = billing.create_from_order(
            OrderKind.SALES, order.id, invoice_date=date(2025, 6, 15), reference="Counter sale"
        )
        assert invoice.number == "INV/2025/0001"
        assert invoice.total_amount == Decimal("354.00")
        assert invoice.reference == "Counter sale"

    def test_draft_order_cannot_be_billed(self, master, purchases, billing):
        order = purchases.create(master.vendor.id, chair_items(master))
        with pytest.raises(InvalidStateError, match="Only confirmed Purchase Order can be billed"):
            billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)

    def test_billed_order_is_terminal(self, master, purchases, billing):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)
        billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)

        with pytest.raises(InvalidStateError):
            billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)
        with pytest.raises(InvalidStateError):
            purchases.confirm(order.id)
        with pytest.raises(InvalidStateError):
            purchases.cancel(order.id)

    def test_unknown_order(self, master, billing):
        with pytest.raises(NotFoundError, match="Sales Order not found"):
            billing.create_from_order(OrderKind.SALES, 7)

    def test_failed_bill_write_rolls_back_everything(self, master, purchases, billing, session_factory, monkeypatch):
        order = purchases.create(master.vendor.id, chair_items(master))
        purchases.confirm(order.id)

        def broken_add(self, document):
            raise RuntimeError("disk full")

        with monkeypatch.context() as patch:
            patch.setattr(SqlBillingRepository, "add", broken_add)
            with pytest.raises(RuntimeError, match="disk full"):
                billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)

        assert purchases.get(order.id).status == OrderStatus.CONFIRMED
        with session_factory() as db:
            assert db.query(models.Counter).filter(models.Counter.key == "vb-2025").count() == 0
            assert db.query(models.VendorBill).count() == 0

        bill = billing.create_from_order(OrderKind.PURCHASE, order.id, invoice_date=BILL_DATE)
        assert bill.number == "Bill/2025/0001"
