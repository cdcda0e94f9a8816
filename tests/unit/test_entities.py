"""
Unit tests - Order and billing document behaviour.
"""

from datetime import date
from decimal import Decimal

import pytest

from shiv_erp.domain.entities import BillingDocument, Contact, Order, Product
from shiv_erp.domain.exceptions import InvalidInputError, InvalidStateError
from shiv_erp.domain.value_objects import (
    BillingAction,
    BillingKind,
    BillingStatus,
    ContactType,
    OrderAction,
    OrderKind,
    OrderLine,
    OrderStatus,
    PaymentMode,
    PaymentStatus,
)


@pytest.fixture
def draft_order() -> Order:
    return Order(
        kind=OrderKind.PURCHASE,
        number="PO00001",
        counterparty_id=1,
        items=[OrderLine(product_id=1, quantity=Decimal("2"), unit_price=Decimal("100"))],
        total_amount=Decimal("200"),
    )


@pytest.fixture
def confirmed_bill() -> BillingDocument:
    return BillingDocument(
        kind=BillingKind.VENDOR_BILL,
        number="Bill/2025/0001",
        counterparty_id=1,
        invoice_date=date(2025, 6, 1),
        status=BillingStatus.CONFIRMED,
    ).with_totals(Decimal("236.00"), Decimal("200.00"), Decimal("36.00"))


class TestOrder:

    def test_apply_bumps_version(self, draft_order):
        confirmed = draft_order.apply(OrderAction.CONFIRM)
        assert confirmed.status == OrderStatus.CONFIRMED
        assert confirmed.version == draft_order.version + 1
        assert draft_order.status == OrderStatus.DRAFT

    def test_apply_does_not_touch_amounts(self, draft_order):
        confirmed = draft_order.apply(OrderAction.CONFIRM)
        assert confirmed.total_amount == draft_order.total_amount
        assert confirmed.items == draft_order.items

    def test_revise_draft(self, draft_order):
        revised = draft_order.revise(reference="Showroom")
        assert revised.reference == "Showroom"
        assert revised.version == 2

    def test_revise_confirmed_rejected(self, draft_order):
        confirmed = draft_order.apply(OrderAction.CONFIRM)
        with pytest.raises(InvalidStateError, match="Only draft orders can be updated"):
            confirmed.revise(reference="late change")

    def test_billing_kind(self, draft_order):
        assert draft_order.billing_kind == BillingKind.VENDOR_BILL
        sales = Order(kind=OrderKind.SALES, number="SO00001", counterparty_id=2)
        assert sales.billing_kind == BillingKind.CUSTOMER_INVOICE


class TestBillingDocument:
    """Payments keep amount_due = total - paid_cash - paid_bank."""

    def test_with_totals_sets_amount_due(self, confirmed_bill):
        assert confirmed_bill.amount_due == Decimal("236.00")
        assert confirmed_bill.payment_status == PaymentStatus.UNPAID

    def test_partial_payment(self, confirmed_bill):
        paid = confirmed_bill.add_payment(PaymentMode.BANK, Decimal("100"))
        assert paid.paid_bank == Decimal("100")
        assert paid.paid_cash == 0
        assert paid.amount_due == Decimal("136.00")
        assert paid.payment_status == PaymentStatus.PARTIAL

    def test_full_payment_in_two_modes(self, confirmed_bill):
        paid = confirmed_bill.add_payment(PaymentMode.CASH, Decimal("36"))
        paid = paid.add_payment(PaymentMode.BANK, Decimal("200"))
        assert paid.amount_due == Decimal("0.00")
        assert paid.paid_total == Decimal("236")
        assert paid.payment_status == PaymentStatus.PAID
        assert paid.total_amount == paid.paid_cash + paid.paid_bank + paid.amount_due

    def test_overpayment_rejected(self, confirmed_bill):
        with pytest.raises(InvalidInputError, match="exceeds amount due"):
            confirmed_bill.add_payment(PaymentMode.CASH, Decimal("236.01"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.001"), Decimal("10.005")])
    def test_invalid_amount_rejected(self, confirmed_bill, amount):
        with pytest.raises(InvalidInputError, match="Invalid amount"):
            confirmed_bill.add_payment(PaymentMode.CASH, amount)

    def test_draft_cannot_be_paid(self):
        draft = BillingDocument(
            kind=BillingKind.CUSTOMER_INVOICE, number="INV/2025/0001", counterparty_id=1
        ).with_totals(Decimal("100"), Decimal("100"), Decimal("0"))
        with pytest.raises(InvalidStateError, match="Only confirmed documents can be paid"):
            draft.add_payment(PaymentMode.BANK, Decimal("10"))

    def test_cancelled_cannot_be_paid(self, confirmed_bill):
        cancelled = confirmed_bill.apply(BillingAction.CANCEL)
        with pytest.raises(InvalidStateError):
            cancelled.add_payment(PaymentMode.BANK, Decimal("10"))

    def test_revise_recomputes_amount_due(self):
        draft = BillingDocument(
            kind=BillingKind.CUSTOMER_INVOICE, number="INV/2025/0002", counterparty_id=1
        ).with_totals(Decimal("100"), Decimal("100"), Decimal("0"))
        revised = draft.revise(total_amount=Decimal("118"), tax_amount=Decimal("18"))
        assert revised.amount_due == Decimal("118.00")

    def test_revise_confirmed_rejected(self, confirmed_bill):
        with pytest.raises(InvalidStateError):
            confirmed_bill.revise(reference="x")


class TestMasterEntities:

    def test_product_default_price_by_side(self):
        product = Product(name="Office Chair", sales_price=Decimal("150"), purchase_price=Decimal("100"))
        assert product.default_price(OrderKind.SALES) == Decimal("150")
        assert product.default_price(OrderKind.PURCHASE) == Decimal("100")

    @pytest.mark.parametrize(
        "contact_type,sales,purchase",
        [
            (ContactType.CUSTOMER, True, False),
            (ContactType.VENDOR, False, True),
            (ContactType.BOTH, True, True),
        ],
    )
    def test_contact_trade_side(self, contact_type, sales, purchase):
        contact = Contact(name="X", type=contact_type)
        assert contact.can_trade_as(OrderKind.SALES) is sales
        assert contact.can_trade_as(OrderKind.PURCHASE) is purchase


class TestOrderLine:

    def test_json_round_trip_keeps_camel_case_keys(self):
        line = OrderLine(
            product_id=3,
            quantity=Decimal("2"),
            unit_price=Decimal("4500.00"),
            tax_ids=(1, 2),
            tax_rate=Decimal("18"),
            account_id=7,
            line_total=Decimal("10620.00"),
        )
        data = line.to_dict()
        assert data["unitPrice"] == "4500.00"
        assert data["taxIds"] == [1, 2]
        assert data["lineTotal"] == "10620.00"
        assert OrderLine.from_dict(data) == line

    def test_from_dict_defaults(self):
        line = OrderLine.from_dict({"product": 1})
        assert line.quantity == Decimal("1")
        assert line.unit_price is None
        assert line.tax_ids == ()


def test_timestamps_are_timezone_aware():
    order = Order(kind=OrderKind.PURCHASE, number="PO00001", counterparty_id=1)
    assert order.created_at.tzinfo is not None
    assert order.apply(OrderAction.CONFIRM).updated_at.utcoffset().total_seconds() == 0
