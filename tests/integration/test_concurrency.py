"""
Integration tests - Overlapping requests against a file-backed SQLite database.

Each test runs a second request to completion inside the first request's
read, so the first one writes on top of data that has already moved on.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine

from shiv_erp.application.billing_service import BillingService
from shiv_erp.application.order_service import OrderService
from shiv_erp.domain.exceptions import (
    ConcurrentUpdateError,
    InvalidInputError,
    InvalidStateError,
)
from shiv_erp.domain.value_objects import (
    BillingKind,
    OrderAction,
    OrderKind,
    OrderLine,
    OrderStatus,
    PaymentMode,
    PaymentStatus,
)
from shiv_erp.infrastructure.database import init_db, models
from shiv_erp.infrastructure.repositories import (
    SqlBillingRepository,
    SqlOrderRepository,
    SqlUnitOfWork,
)

BILL_DATE = date(2025, 6, 10)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'shiv_erp.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def confirmed_po(master, session_factory, settings):
    purchases = OrderService(SqlUnitOfWork(session_factory), OrderKind.PURCHASE, settings)
    order = purchases.create(
        master.vendor.id,
        [OrderLine(product_id=master.chair.id, quantity=Decimal("2"), tax_id=master.igst_purchase.id)],
    )
    return purchases.confirm(order.id)


def run_inside_first_get(monkeypatch, repository: type, action) -> None:
    """Run action once, right after the first row read through repository."""
    original = repository.get
    pending = [action]

    def get(self, entity_id, for_update=False):
        found = original(self, entity_id, for_update=for_update)
        if pending:
            pending.pop()()
        return found

    monkeypatch.setattr(repository, "get", get)


class TestVersionCheck:

    def test_stale_save_rejected(self, confirmed_po, session_factory):
        with SqlUnitOfWork(session_factory) as uow:
            repo = uow.orders[OrderKind.PURCHASE]
            stale = repo.get(confirmed_po.id)
            repo.save(stale.apply(OrderAction.BILL))
            with pytest.raises(ConcurrentUpdateError, match="changed by another request"):
                repo.save(stale.apply(OrderAction.CANCEL))

    def test_saved_version_increments(self, confirmed_po, session_factory, settings):
        purchases = OrderService(SqlUnitOfWork(session_factory), OrderKind.PURCHASE, settings)
        reverted = purchases.revert_to_draft(confirmed_po.id)
        assert reverted.version == confirmed_po.version + 1
        assert purchases.get(confirmed_po.id).version == reverted.version


class TestOverlappingBilling:

    def test_second_bill_for_same_order_rejected(self, confirmed_po, session_factory, settings, monkeypatch):
        first = BillingService(SqlUnitOfWork(session_factory), settings)
        second = BillingService(SqlUnitOfWork(session_factory), settings)
        winners = []
        run_inside_first_get(
            monkeypatch,
            SqlOrderRepository,
            lambda: winners.append(
                second.create_from_order(OrderKind.PURCHASE, confirmed_po.id, invoice_date=BILL_DATE)
            ),
        )

        with pytest.raises(InvalidStateError, match="changed by another request"):
            first.create_from_order(OrderKind.PURCHASE, confirmed_po.id, invoice_date=BILL_DATE)

        assert [b.number for b in winners] == ["Bill/2025/0001"]
        with session_factory() as db:
            bills = db.query(models.VendorBill).all()
            assert [(b.number, b.source_order_id) for b in bills] == [("Bill/2025/0001", confirmed_po.id)]
            counter = db.query(models.Counter).filter(models.Counter.key == "vb-2025").one()
            assert counter.seq == 1
            order = db.get(models.PurchaseOrder, confirmed_po.id)
            assert order.status == OrderStatus.BILLED.value

    def test_overlapping_transition_rejected(self, confirmed_po, session_factory, settings, monkeypatch):
        purchases = OrderService(SqlUnitOfWork(session_factory), OrderKind.PURCHASE, settings)
        billing = BillingService(SqlUnitOfWork(session_factory), settings)
        run_inside_first_get(
            monkeypatch,
            SqlOrderRepository,
            lambda: billing.create_from_order(OrderKind.PURCHASE, confirmed_po.id, invoice_date=BILL_DATE),
        )

        with pytest.raises(ConcurrentUpdateError):
            purchases.cancel(confirmed_po.id)

        monkeypatch.undo()
        assert purchases.get(confirmed_po.id).status == OrderStatus.BILLED


class TestOverlappingPayments:

    @pytest.fixture
    def bill(self, confirmed_po, session_factory, settings):
        billing = BillingService(SqlUnitOfWork(session_factory), settings)
        return billing.create_from_order(OrderKind.PURCHASE, confirmed_po.id, invoice_date=BILL_DATE)

    def test_both_payments_count(self, bill, session_factory, settings, monkeypatch):
        first = BillingService(SqlUnitOfWork(session_factory), settings)
        second = BillingService(SqlUnitOfWork(session_factory), settings)
        run_inside_first_get(
            monkeypatch,
            SqlBillingRepository,
            lambda: second.add_payment(BillingKind.VENDOR_BILL, bill.id, PaymentMode.CASH, Decimal("100")),
        )

        paid = first.add_payment(BillingKind.VENDOR_BILL, bill.id, PaymentMode.BANK, Decimal("50"))

        assert paid.paid_cash == Decimal("100")
        assert paid.paid_bank == Decimal("50")
        assert paid.amount_due == Decimal("86.00")
        assert paid.payment_status == PaymentStatus.PARTIAL
        assert paid.total_amount == paid.paid_cash + paid.paid_bank + paid.amount_due

    def test_retry_rechecks_amount_due(self, bill, session_factory, settings, monkeypatch):
        first = BillingService(SqlUnitOfWork(session_factory), settings)
        second = BillingService(SqlUnitOfWork(session_factory), settings)
        run_inside_first_get(
            monkeypatch,
            SqlBillingRepository,
            lambda: second.add_payment(BillingKind.VENDOR_BILL, bill.id, PaymentMode.CASH, Decimal("200")),
        )

        with pytest.raises(InvalidInputError, match="exceeds amount due"):
            first.add_payment(BillingKind.VENDOR_BILL, bill.id, PaymentMode.BANK, Decimal("100"))

        monkeypatch.undo()
        stored = first.get(BillingKind.VENDOR_BILL, bill.id)
        assert stored.paid_cash == Decimal("200")
        assert stored.paid_bank == Decimal("0")
        assert stored.amount_due == Decimal("36.00")

    def test_gives_up_after_repeated_conflicts(self, bill, session_factory, settings, monkeypatch):
        billing = BillingService(SqlUnitOfWork(session_factory), settings)

        def always_stale(self, document):
            raise ConcurrentUpdateError(self.kind.label, document.number)

        monkeypatch.setattr(SqlBillingRepository, "save", always_stale)
        with pytest.raises(ConcurrentUpdateError):
            billing.add_payment(BillingKind.VENDOR_BILL, bill.id, PaymentMode.CASH, Decimal("10"))
