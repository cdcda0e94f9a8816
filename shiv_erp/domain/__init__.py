"""Domain layer - Pure Python business logic."""

from shiv_erp.domain.entities import (
    BillingDocument,
    ChartOfAccount,
    Contact,
    Order,
    Product,
    StockLedgerEntry,
    Tax,
)
from shiv_erp.domain.exceptions import (
    CalculationInconsistencyError,
    DependencyFailureError,
    DomainError,
    InvalidInputError,
    ConcurrentUpdateError,
    InvalidStateError,
    NotFoundError,
)
from shiv_erp.domain.services import (
    DocumentNumberingService,
    GSTRateService,
    TaxCalculationService,
)
from shiv_erp.domain.value_objects import (
    BillingKind,
    BillingStatus,
    OrderKind,
    OrderLine,
    OrderStatus,
    OrderTotals,
    PaymentMode,
)
