"""
Infrastructure - SQLAlchemy implementations of the domain repositories.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session, sessionmaker

from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.domain.entities import (
    BillingDocument,
    ChartOfAccount,
    Contact,
    Order,
    Product,
    StockLedgerEntry,
    Tax,
)
from shiv_erp.domain.exceptions import ConcurrentUpdateError
from shiv_erp.domain.services import (
    IBillingRepository,
    IChartOfAccountRepository,
    IContactRepository,
    ICounterRepository,
    IOrderRepository,
    IProductRepository,
    IStockLedgerRepository,
    ITaxRepository,
)
from shiv_erp.domain.state_machine import order_label
from shiv_erp.domain.value_objects import (
    AccountType,
    BillingKind,
    BillingStatus,
    ContactType,
    DateRange,
    OrderKind,
    OrderLine,
    OrderStatus,
    StockMovement,
    TaxApplicability,
    TaxMethod,
    to_decimal,
)
from shiv_erp.infrastructure.database import SessionLocal
from shiv_erp.infrastructure.database import models


class SqlCounterRepository(ICounterRepository):

    def __init__(self, db: Session):
        self.db = db

    def allocate(self, key: str) -> int:
        row = (
            self.db.query(models.Counter)
            .filter(models.Counter.key == key)
            .with_for_update()
            .first()
        )
        if row is None:
            row = models.Counter(key=key, seq=0)
            self.db.add(row)
        row.seq += 1
        self.db.flush()
        return row.seq


def _tax_to_domain(row: models.Tax) -> Tax:
    return Tax(
        id=row.id,
        name=row.name,
        method=TaxMethod(row.method),
        value=to_decimal(row.value),
        applicable_on=TaxApplicability(row.applicable_on),
        is_active=row.is_active,
    )


class SqlTaxRepository(ITaxRepository):

    def __init__(self, db: Session):
        self.db = db

    def get(self, tax_id: int) -> Tax | None:
        row = self.db.get(models.Tax, tax_id)
        return _tax_to_domain(row) if row else None

    def add(self, tax: Tax) -> Tax:
        row = models.Tax(
            name=tax.name,
            method=tax.method.value,
            value=tax.value,
            applicable_on=tax.applicable_on.value,
            is_active=tax.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return _tax_to_domain(row)

    def list(self, applicable_on: TaxApplicability | None = None) -> list[Tax]:
        query = self.db.query(models.Tax)
        if applicable_on:
            query = query.filter(models.Tax.applicable_on == applicable_on.value)
        return [_tax_to_domain(r) for r in query.order_by(models.Tax.name).all()]


def _product_to_domain(row: models.Product) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        sales_price=to_decimal(row.sales_price),
        purchase_price=to_decimal(row.purchase_price),
        hsn_code=row.hsn_code,
        category=row.category,
        is_active=row.is_active,
    )


class SqlProductRepository(IProductRepository):

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Product | None:
        row = self.db.get(models.Product, product_id)
        return _product_to_domain(row) if row else None

    def get_many(self, product_ids: Iterable[int]) -> dict[int, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.db.query(models.Product).filter(models.Product.id.in_(ids)).all()
        return {r.id: _product_to_domain(r) for r in rows}

    def add(self, product: Product) -> Product:
        row = models.Product(
            name=product.name,
            sales_price=product.sales_price,
            purchase_price=product.purchase_price,
            hsn_code=product.hsn_code,
            category=product.category,
            is_active=product.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return _product_to_domain(row)

    def list(self, q: str | None = None) -> list[Product]:
        query = self.db.query(models.Product)
        if q:
            query = query.filter(models.Product.name.like(f"%{q}%"))
        return [_product_to_domain(r) for r in query.order_by(models.Product.name).all()]


def _contact_to_domain(row: models.Contact) -> Contact:
    return Contact(
        id=row.id,
        name=row.name,
        type=ContactType(row.type),
        email=row.email,
        mobile=row.mobile,
        gst_no=row.gst_no,
        is_active=row.is_active,
    )


class SqlContactRepository(IContactRepository):

    def __init__(self, db: Session):
        self.db = db

    def get(self, contact_id: int) -> Contact | None:
        row = self.db.get(models.Contact, contact_id)
        return _contact_to_domain(row) if row else None

    def get_many(self, contact_ids: Iterable[int]) -> dict[int, Contact]:
        ids = [i for i in set(contact_ids) if i is not None]
        if not ids:
            return {}
        rows = self.db.query(models.Contact).filter(models.Contact.id.in_(ids)).all()
        return {r.id: _contact_to_domain(r) for r in rows}

    def add(self, contact: Contact) -> Contact:
        row = models.Contact(
            name=contact.name,
            type=contact.type.value,
            email=contact.email,
            mobile=contact.mobile,
            gst_no=contact.gst_no,
            is_active=contact.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return _contact_to_domain(row)

    def list(
        self,
        q: str | None = None,
        contact_type: ContactType | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 100,
    ) -> tuple[list[Contact], int]:
        query = self.db.query(models.Contact)
        if contact_type:
            query = query.filter(models.Contact.type == contact_type.value)
        if is_active is not None:
            query = query.filter(models.Contact.is_active == is_active)
        if q:
            query = query.filter(
                or_(models.Contact.name.like(f"%{q}%"), models.Contact.email.like(f"%{q}%"))
            )
        total = query.count()
        rows = (
            query.order_by(models.Contact.created_at.desc(), models.Contact.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [_contact_to_domain(r) for r in rows], total

    def count_active(self, types: Iterable[ContactType]) -> int:
        return (
            self.db.query(models.Contact)
            .filter(
                models.Contact.is_active.is_(True),
                models.Contact.type.in_([t.value for t in types]),
            )
            .count()
        )


def _account_to_domain(row: models.ChartOfAccount) -> ChartOfAccount:
    return ChartOfAccount(
        id=row.id,
        account_name=row.account_name,
        type=AccountType(row.type),
        is_active=row.is_active,
    )


class SqlChartOfAccountRepository(IChartOfAccountRepository):

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: int) -> ChartOfAccount | None:
        row = self.db.get(models.ChartOfAccount, account_id)
        return _account_to_domain(row) if row else None

    def get_many(self, account_ids: Iterable[int], active_only: bool = True) -> dict[int, ChartOfAccount]:
        ids = [i for i in set(account_ids) if i is not None]
        if not ids:
            return {}
        query = self.db.query(models.ChartOfAccount).filter(models.ChartOfAccount.id.in_(ids))
        if active_only:
            query = query.filter(models.ChartOfAccount.is_active.is_(True))
        return {r.id: _account_to_domain(r) for r in query.all()}

    def add(self, account: ChartOfAccount) -> ChartOfAccount:
        row = models.ChartOfAccount(
            account_name=account.account_name,
            type=account.type.value,
            is_active=account.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return _account_to_domain(row)

    def list(self, account_type: AccountType | None = None) -> list[ChartOfAccount]:
        query = self.db.query(models.ChartOfAccount)
        if account_type:
            query = query.filter(models.ChartOfAccount.type == account_type.value)
        return [_account_to_domain(r) for r in query.order_by(models.ChartOfAccount.account_name).all()]

    def first_active(self, account_type: AccountType) -> ChartOfAccount | None:
        row = (
            self.db.query(models.ChartOfAccount)
            .filter(
                models.ChartOfAccount.type == account_type.value,
                models.ChartOfAccount.is_active.is_(True),
            )
            .order_by(models.ChartOfAccount.id)
            .first()
        )
        return _account_to_domain(row) if row else None


class SqlStockLedgerRepository(IStockLedgerRepository):

    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: StockLedgerEntry) -> StockLedgerEntry:
        row = models.StockLedger(
            product_id=entry.product_id,
            type=entry.type.value,
            quantity=entry.quantity,
            entry_date=entry.entry_date,
            reference=entry.reference,
        )
        self.db.add(row)
        self.db.flush()
        return self._to_domain(row)

    def list_all(self) -> list[StockLedgerEntry]:
        return [self._to_domain(r) for r in self.db.query(models.StockLedger).all()]

    @staticmethod
    def _to_domain(row: models.StockLedger) -> StockLedgerEntry:
        return StockLedgerEntry(
            id=row.id,
            product_id=row.product_id,
            type=StockMovement(row.type),
            quantity=to_decimal(row.quantity),
            entry_date=row.entry_date,
            reference=row.reference,
        )


def _lines_to_json(lines: list[OrderLine]) -> list[dict[str, Any]]:
    return [line.to_dict() for line in lines]


def _lines_from_json(raw: list[dict[str, Any]] | None) -> list[OrderLine]:
    return [OrderLine.from_dict(item) for item in (raw or [])]


def _update_versioned(db: Session, model: type, entity, values: dict[str, Any], label: str) -> None:
    """UPDATE ... WHERE version = entity.version - 1, so a stale write matches no row."""
    matched = (
        db.query(model)
        .filter(model.id == entity.id, model.version == entity.version - 1)
        .update(values, synchronize_session=False)
    )
    if matched != 1:
        raise ConcurrentUpdateError(label, entity.number)


class SqlOrderRepository(IOrderRepository):
    """Sales and purchase orders share one implementation over different tables."""

    def __init__(self, db: Session, model: type[models.OrderBase], kind: OrderKind):
        self.db = db
        self.model = model
        self.kind = kind

    def get(self, order_id: int, for_update: bool = False) -> Order | None:
        row = self.db.get(self.model, order_id, with_for_update=for_update)
        return self._to_domain(row) if row else None

    def add(self, order: Order) -> Order:
        row = self.model(**self._values(order))
        row.created_at = order.created_at
        self.db.add(row)
        self.db.flush()
        return self._to_domain(row)

    def save(self, order: Order) -> Order:
        _update_versioned(self.db, self.model, order, self._values(order), order_label(self.kind))
        return self._to_domain(self.db.get(self.model, order.id, populate_existing=True))

    def number_exists(self, number: str) -> bool:
        return self.db.query(self.model).filter(self.model.number == number).count() > 0

    def list(
        self,
        status: OrderStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Order], int]:
        query = self.db.query(self.model)
        if status:
            query = query.filter(self.model.status == status.value)
        if counterparty_id:
            query = query.filter(self.model.counterparty_id == counterparty_id)
        if q:
            query = query.filter(
                or_(self.model.number.like(f"%{q}%"), self.model.reference.like(f"%{q}%"))
            )
        total = query.count()
        rows = (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_domain(r) for r in rows], total

    @staticmethod
    def _values(order: Order) -> dict[str, Any]:
        return {
            "number": order.number,
            "counterparty_id": order.counterparty_id,
            "items": _lines_to_json(order.items),
            "status": order.status.value,
            "reference": order.reference,
            "order_date": order.order_date,
            "total_amount": order.total_amount,
            "updated_at": order.updated_at,
            "version": order.version,
        }

    def _to_domain(self, row: models.OrderBase) -> Order:
        return Order(
            id=row.id,
            kind=self.kind,
            number=row.number,
            counterparty_id=row.counterparty_id,
            items=_lines_from_json(row.items),
            status=OrderStatus(row.status),
            reference=row.reference,
            order_date=row.order_date,
            total_amount=to_decimal(row.total_amount),
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
        )


class SqlBillingRepository(IBillingRepository):
    """Vendor bills and customer invoices."""

    def __init__(self, db: Session, model: type[models.BillingBase], kind: BillingKind):
        self.db = db
        self.model = model
        self.kind = kind

    def get(self, document_id: int, for_update: bool = False) -> BillingDocument | None:
        row = self.db.get(self.model, document_id, with_for_update=for_update)
        return self._to_domain(row) if row else None

    def add(self, document: BillingDocument) -> BillingDocument:
        row = self.model(**self._values(document))
        row.created_at = document.created_at
        self.db.add(row)
        self.db.flush()
        return self._to_domain(row)

    def save(self, document: BillingDocument) -> BillingDocument:
        _update_versioned(self.db, self.model, document, self._values(document), self.kind.label)
        return self._to_domain(self.db.get(self.model, document.id, populate_existing=True))

    def number_exists(self, number: str) -> bool:
        return self.db.query(self.model).filter(self.model.number == number).count() > 0

    def list(
        self,
        status: BillingStatus | None = None,
        counterparty_id: int | None = None,
        q: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[BillingDocument], int]:
        query = self.db.query(self.model)
        if status:
            query = query.filter(self.model.status == status.value)
        if counterparty_id:
            query = query.filter(self.model.counterparty_id == counterparty_id)
        if q:
            query = query.filter(self.model.number.like(f"%{q}%"))
        total = query.count()
        rows = (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_domain(r) for r in rows], total

    def list_by_status(
        self, status: BillingStatus, period: DateRange | None = None
    ) -> list[BillingDocument]:
        query = self.db.query(self.model).filter(self.model.status == status.value)
        if period and period.start:
            query = query.filter(self.model.invoice_date >= period.start)
        if period and period.end:
            query = query.filter(self.model.invoice_date <= period.end)
        return [self._to_domain(r) for r in query.all()]

    def recent(self, status: BillingStatus, limit: int = 10) -> list[BillingDocument]:
        rows = (
            self.db.query(self.model)
            .filter(self.model.status == status.value)
            .order_by(self.model.invoice_date.desc(), self.model.id.desc())
            .limit(limit)
            .all()
        )
        return [self._to_domain(r) for r in rows]

    @staticmethod
    def _values(document: BillingDocument) -> dict[str, Any]:
        return {
            "number": document.number,
            "counterparty_id": document.counterparty_id,
            "source_order_id": document.source_order_id,
            "items": _lines_to_json(document.items),
            "invoice_date": document.invoice_date,
            "due_date": document.due_date,
            "status": document.status.value,
            "reference": document.reference,
            "total_amount": document.total_amount,
            "untaxed_amount": document.untaxed_amount,
            "tax_amount": document.tax_amount,
            "amount_due": document.amount_due,
            "paid_cash": document.paid_cash,
            "paid_bank": document.paid_bank,
            "updated_at": document.updated_at,
            "version": document.version,
        }

    def _to_domain(self, row: models.BillingBase) -> BillingDocument:
        return BillingDocument(
            id=row.id,
            kind=self.kind,
            number=row.number,
            counterparty_id=row.counterparty_id,
            source_order_id=row.source_order_id,
            items=_lines_from_json(row.items),
            invoice_date=row.invoice_date,
            due_date=row.due_date,
            status=BillingStatus(row.status),
            reference=row.reference,
            total_amount=to_decimal(row.total_amount),
            untaxed_amount=to_decimal(row.untaxed_amount),
            tax_amount=to_decimal(row.tax_amount),
            amount_due=to_decimal(row.amount_due),
            paid_cash=to_decimal(row.paid_cash),
            paid_bank=to_decimal(row.paid_bank),
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
        )


class SqlUnitOfWork(IUnitOfWork):
    """Opens one session per `with` block; every repository shares it."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self.session_factory = session_factory or SessionLocal
        self.session: Session | None = None

    def __enter__(self) -> "SqlUnitOfWork":
        self.session = self.session_factory()
        self.counters = SqlCounterRepository(self.session)
        self.taxes = SqlTaxRepository(self.session)
        self.products = SqlProductRepository(self.session)
        self.contacts = SqlContactRepository(self.session)
        self.accounts = SqlChartOfAccountRepository(self.session)
        self.stock = SqlStockLedgerRepository(self.session)
        self.orders = {
            OrderKind.SALES: SqlOrderRepository(self.session, models.SalesOrder, OrderKind.SALES),
            OrderKind.PURCHASE: SqlOrderRepository(self.session, models.PurchaseOrder, OrderKind.PURCHASE),
        }
        self.billing = {
            BillingKind.VENDOR_BILL: SqlBillingRepository(
                self.session, models.VendorBill, BillingKind.VENDOR_BILL
            ),
            BillingKind.CUSTOMER_INVOICE: SqlBillingRepository(
                self.session, models.CustomerInvoice, BillingKind.CUSTOMER_INVOICE
            ),
        }
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        super().__exit__(exc_type, exc, tb)
        self.session.close()
        self.session = None

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
