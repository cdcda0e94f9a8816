"""
Use cases - Contacts, products, taxes, chart of accounts and stock movements.
"""

from datetime import date
from decimal import Decimal

from loguru import logger

from shiv_erp.application.pagination import Page, parse_pagination
from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.domain.entities import (
    ChartOfAccount,
    Contact,
    Product,
    StockLedgerEntry,
    Tax,
)
from shiv_erp.domain.exceptions import InvalidInputError, NotFoundError
from shiv_erp.domain.value_objects import (
    AccountType,
    ContactType,
    StockMovement,
    TaxApplicability,
    TaxMethod,
)


class MasterDataService:

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    # Contacts

    def create_contact(
        self,
        name: str,
        contact_type: ContactType,
        email: str | None = None,
        mobile: str | None = None,
        gst_no: str | None = None,
        is_active: bool = True,
    ) -> Contact:
        if not (name or "").strip():
            raise InvalidInputError("Contact name is required", field="name")
        with self.uow as uow:
            contact = uow.contacts.add(
                Contact(
                    name=name.strip(),
                    type=contact_type,
                    email=email,
                    mobile=mobile,
                    gst_no=gst_no,
                    is_active=is_active,
                )
            )
            uow.commit()
        logger.info(f"Contact {contact.name} ({contact.type.value}) created")
        return contact

    def get_contact(self, contact_id: int) -> Contact:
        with self.uow as uow:
            contact = uow.contacts.get(contact_id)
        if contact is None:
            raise NotFoundError("Contact", contact_id)
        return contact

    def list_contacts(
        self,
        q: str | None = None,
        contact_type: ContactType | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Contact]:
        page, limit, offset = parse_pagination(page, limit)
        with self.uow as uow:
            items, total = uow.contacts.list(
                q=(q or "").strip() or None,
                contact_type=contact_type,
                is_active=is_active,
                offset=offset,
                limit=limit,
            )
        return Page(page=page, limit=limit, total=total, items=items)

    # Products

    def create_product(
        self,
        name: str,
        sales_price: Decimal = Decimal("0"),
        purchase_price: Decimal = Decimal("0"),
        hsn_code: str | None = None,
        category: str | None = None,
    ) -> Product:
        if not (name or "").strip():
            raise InvalidInputError("Product name is required", field="name")
        if sales_price < 0 or purchase_price < 0:
            raise InvalidInputError("Prices cannot be negative", field="price")
        with self.uow as uow:
            product = uow.products.add(
                Product(
                    name=name.strip(),
                    sales_price=sales_price,
                    purchase_price=purchase_price,
                    hsn_code=hsn_code,
                    category=category,
                )
            )
            uow.commit()
        logger.info(f"Product {product.name} created")
        return product

    def get_product(self, product_id: int) -> Product:
        with self.uow as uow:
            product = uow.products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def list_products(self, q: str | None = None) -> list[Product]:
        with self.uow as uow:
            return uow.products.list((q or "").strip() or None)

    # Taxes

    def create_tax(
        self,
        name: str,
        method: TaxMethod,
        value: Decimal,
        applicable_on: TaxApplicability = TaxApplicability.SALES,
    ) -> Tax:
        if not (name or "").strip():
            raise InvalidInputError("Tax name is required", field="name")
        if value < 0:
            raise InvalidInputError("Tax value cannot be negative", field="value")
        with self.uow as uow:
            tax = uow.taxes.add(
                Tax(name=name.strip(), method=method, value=value, applicable_on=applicable_on)
            )
            uow.commit()
        logger.info(f"Tax {tax.name} ({tax.method.value} {tax.value}) created")
        return tax

    def get_tax(self, tax_id: int) -> Tax:
        with self.uow as uow:
            tax = uow.taxes.get(tax_id)
        if tax is None:
            raise NotFoundError("Tax", tax_id)
        return tax

    def list_taxes(self, applicable_on: TaxApplicability | None = None) -> list[Tax]:
        with self.uow as uow:
            return uow.taxes.list(applicable_on)

    # Chart of accounts

    def create_account(
        self, account_name: str, account_type: AccountType, is_active: bool = True
    ) -> ChartOfAccount:
        if not (account_name or "").strip():
            raise InvalidInputError("Account name is required", field="accountName")
        with self.uow as uow:
            account = uow.accounts.add(
                ChartOfAccount(account_name=account_name.strip(), type=account_type, is_active=is_active)
            )
            uow.commit()
        logger.info(f"Account {account.account_name} ({account.type.value}) created")
        return account

    def get_account(self, account_id: int) -> ChartOfAccount:
        with self.uow as uow:
            account = uow.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def list_accounts(self, account_type: AccountType | None = None) -> list[ChartOfAccount]:
        with self.uow as uow:
            return uow.accounts.list(account_type)

    # Stock ledger

    def record_stock(
        self,
        product_id: int,
        movement: StockMovement,
        quantity: Decimal,
        entry_date: date | None = None,
        reference: str | None = None,
    ) -> StockLedgerEntry:
        if quantity <= 0:
            raise InvalidInputError("Quantity must be positive", field="quantity")
        with self.uow as uow:
            if uow.products.get(product_id) is None:
                raise NotFoundError("Product", product_id)
            entry = uow.stock.add(
                StockLedgerEntry(
                    product_id=product_id,
                    type=movement,
                    quantity=quantity,
                    entry_date=entry_date or date.today(),
                    reference=reference,
                )
            )
            uow.commit()
        logger.info(f"Stock {movement.value} {quantity} of product {product_id}")
        return entry

    def list_stock(self) -> list[StockLedgerEntry]:
        with self.uow as uow:
            return uow.stock.list_all()
