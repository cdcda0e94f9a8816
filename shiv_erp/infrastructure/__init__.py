"""Infrastructure layer."""

from shiv_erp.infrastructure.database import SessionLocal, init_db, seed_default_accounts
from shiv_erp.infrastructure.repositories import SqlUnitOfWork
