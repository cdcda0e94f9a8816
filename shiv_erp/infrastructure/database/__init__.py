"""
Database initialization and session management.
"""

from pathlib import Path

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from shiv_erp.core.config import settings
from shiv_erp.infrastructure.database.models import (
    ChartOfAccount,
    Contact,
    Counter,
    CustomerInvoice,
    Product,
    PurchaseOrder,
    SalesOrder,
    StockLedger,
    Tax,
    VendorBill,
)

DATABASE_URL = settings.database_url()

if "sqlite" in DATABASE_URL:
    engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Initialize database - create all tables."""
    bind = bind or engine
    if bind.url.get_backend_name() == "sqlite" and bind.url.database not in (None, "", ":memory:"):
        Path(bind.url.database).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind=bind)
    logger.info(f"Database schema ready ({bind.url.get_backend_name()})")


DEFAULT_ACCOUNTS = [
    ("Sales Income", "Income"),
    ("Service Income", "Income"),
    ("Purchase Expense", "Expense"),
    ("Freight & Transport", "Expense"),
    ("Cash A/c", "Asset"),
    ("Bank A/c", "Asset"),
    ("Debtors A/c", "Asset"),
    ("Creditors A/c", "Liability"),
    ("Capital A/c", "Equity"),
]


def seed_default_accounts(session_factory: sessionmaker = SessionLocal) -> int:
    """Seed the default chart of accounts; existing names are left untouched."""
    db = session_factory()
    try:
        existing = {name for (name,) in db.query(ChartOfAccount.account_name).all()}
        created = 0
        for name, acc_type in DEFAULT_ACCOUNTS:
            if name in existing:
                continue
            db.add(ChartOfAccount(account_name=name, type=acc_type, is_active=True))
            created += 1
        db.commit()
        logger.info(f"Seeded {created} default accounts")
        return created
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
    seed_default_accounts()
    print("Database initialized successfully!")
