"""
FastAPI dependencies - unit of work and settings.
"""

from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import Settings, settings
from shiv_erp.infrastructure.database import SessionLocal
from shiv_erp.infrastructure.repositories import SqlUnitOfWork


def get_uow() -> IUnitOfWork:
    """Dependency - Fresh unit of work bound to the application database."""
    return SqlUnitOfWork(SessionLocal)


def get_settings() -> Settings:
    return settings
