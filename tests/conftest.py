"""
Pytest configuration and fixtures.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shiv_erp.application.master_data_service import MasterDataService
from shiv_erp.core.config import Settings
from shiv_erp.domain.entities import Tax
from shiv_erp.domain.value_objects import (
    ContactType,
    OrderLine,
    TaxApplicability,
    TaxMethod,
)
from shiv_erp.infrastructure.database import init_db, seed_default_accounts
from shiv_erp.infrastructure.repositories import SqlUnitOfWork


def make_settings(**overrides) -> Settings:
    values = dict(
        database_type="sqlite",
        database_path=":memory:",
        log_level="DEBUG",
        log_file=None,
        enrichment_policy="degrade",
        default_due_days=30,
        strict_tax_validation=True,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def strict_settings() -> Settings:
    return make_settings(enrichment_policy="strict")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def uow(session_factory) -> SqlUnitOfWork:
    return SqlUnitOfWork(session_factory)


@pytest.fixture
def master(session_factory, uow) -> SimpleNamespace:
    """Default chart of accounts plus a small furniture catalogue."""
    seed_default_accounts(session_factory)
    service = MasterDataService(uow)

    customer = service.create_contact("Nimesh Pathak", ContactType.CUSTOMER)
    vendor = service.create_contact("Gujarat Timber Traders", ContactType.VENDOR)
    both = service.create_contact("Azure Furniture Mart", ContactType.BOTH)
    inactive = service.create_contact("Closed Account Ltd", ContactType.CUSTOMER, is_active=False)

    chair = service.create_product(
        "Office Chair",
        sales_price=Decimal("150"),
        purchase_price=Decimal("100"),
        hsn_code="940130",
        category="Furniture",
    )
    table = service.create_product(
        "Teak Dining Table",
        sales_price=Decimal("32000"),
        purchase_price=Decimal("2500"),
        hsn_code="940360",
        category="Furniture",
    )

    igst_purchase = service.create_tax(
        "IGST 18%", TaxMethod.PERCENTAGE, Decimal("18"), TaxApplicability.PURCHASE
    )
    igst_sales = service.create_tax(
        "IGST 18% Output", TaxMethod.PERCENTAGE, Decimal("18"), TaxApplicability.SALES
    )
    cgst = service.create_tax("CGST 9%", TaxMethod.PERCENTAGE, Decimal("9"), TaxApplicability.SALES)
    sgst = service.create_tax("SGST 9%", TaxMethod.PERCENTAGE, Decimal("9"), TaxApplicability.SALES)
    packing = service.create_tax("Packing Charge", TaxMethod.FIXED, Decimal("150"), TaxApplicability.SALES)

    return SimpleNamespace(
        customer=customer,
        vendor=vendor,
        both=both,
        inactive=inactive,
        chair=chair,
        table=table,
        igst_purchase=igst_purchase,
        igst_sales=igst_sales,
        cgst=cgst,
        sgst=sgst,
        packing=packing,
    )


@pytest.fixture
def igst_18() -> Tax:
    return Tax(
        id=1,
        name="IGST 18%",
        method=TaxMethod.PERCENTAGE,
        value=Decimal("18"),
        applicable_on=TaxApplicability.PURCHASE,
    )


@pytest.fixture
def cgst_9() -> Tax:
    return Tax(id=2, name="CGST 9%", method=TaxMethod.PERCENTAGE, value=Decimal("9"))


@pytest.fixture
def sgst_9() -> Tax:
    return Tax(id=3, name="SGST 9%", method=TaxMethod.PERCENTAGE, value=Decimal("9"))


@pytest.fixture
def packing_charge() -> Tax:
    return Tax(id=4, name="Packing Charge", method=TaxMethod.FIXED, value=Decimal("150"))


@pytest.fixture
def chair_line() -> OrderLine:
    return OrderLine(product_id=1, quantity=Decimal("2"), unit_price=Decimal("100"), tax_id=1)
