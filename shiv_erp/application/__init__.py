"""Application layer - Use cases and DTOs."""

from shiv_erp.application.billing_service import BillingService
from shiv_erp.application.master_data_service import MasterDataService
from shiv_erp.application.order_service import OrderService
from shiv_erp.application.pagination import Page
from shiv_erp.application.reporting_service import ReportingService, parse_date_range
from shiv_erp.application.unit_of_work import IUnitOfWork
