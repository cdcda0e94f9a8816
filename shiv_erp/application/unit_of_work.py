"""
Unit of work - one transaction per multi-entity mutation.
"""

from abc import ABC, abstractmethod

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
from shiv_erp.domain.value_objects import BillingKind, OrderKind


class IUnitOfWork(ABC):
    """
    Repositories bound to a single transaction.

    Usage:
        with uow:
            number = numbering.next_order_number(kind)
            uow.orders[kind].add(order)
            uow.commit()

    Leaving the block without commit() discards every write made inside it.
    """

    counters: ICounterRepository
    taxes: ITaxRepository
    products: IProductRepository
    contacts: IContactRepository
    accounts: IChartOfAccountRepository
    stock: IStockLedgerRepository
    orders: dict[OrderKind, IOrderRepository]
    billing: dict[BillingKind, IBillingRepository]

    def __enter__(self) -> "IUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...
