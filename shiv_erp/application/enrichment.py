"""
Line enrichment - resolves product defaults and tax records for order lines.

Lookups that fail are collected per line as DependencyFailureError instead of
being raised on the spot; `apply_policy` makes the single proceed/abort
decision for the whole document.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from shiv_erp.application.unit_of_work import IUnitOfWork
from shiv_erp.core.config import EnrichmentPolicy
from shiv_erp.domain.entities import Product, Tax
from shiv_erp.domain.exceptions import DependencyFailureError, InvalidInputError
from shiv_erp.domain.services import check_tax_references
from shiv_erp.domain.value_objects import (
    ZERO,
    OrderKind,
    OrderLine,
    TaxMethod,
)


@dataclass
class LineEnrichment:
    index: int
    line: OrderLine
    taxes: list[Tax] = field(default_factory=list)
    failures: list[DependencyFailureError] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failures)


class LineEnricher:

    def __init__(self, uow: IUnitOfWork, policy: EnrichmentPolicy = EnrichmentPolicy.DEGRADE):
        self.uow = uow
        self.policy = policy

    def enrich(
        self,
        lines: list[OrderLine],
        kind: OrderKind,
        default_account_id: int | None = None,
    ) -> list[LineEnrichment]:
        """Fill prices, names, HSN codes, tax rates and accounts from master data."""
        results = []
        for index, line in enumerate(lines):
            self._validate(line, index)
            enrichment = LineEnrichment(index=index, line=line)

            product = self._lookup_product(line, enrichment)
            changes = {}
            if line.quantity == 0:
                changes["quantity"] = Decimal("1")
            if line.unit_price is None:
                changes["unit_price"] = product.default_price(kind) if product else ZERO
            if product:
                if not line.product_name:
                    changes["product_name"] = product.name
                if not line.hsn_code and product.hsn_code:
                    changes["hsn_code"] = product.hsn_code
            if line.account_id is None and default_account_id is not None:
                changes["account_id"] = default_account_id

            enrichment.taxes = self._lookup_taxes(line, enrichment)
            if line.tax_rate == 0 and enrichment.taxes:
                changes["tax_rate"] = sum(
                    (t.value for t in enrichment.taxes if t.method == TaxMethod.PERCENTAGE), ZERO
                )

            enrichment.line = line.with_defaults(**changes) if changes else line
            results.append(enrichment)
        return results

    def resolve_taxes(self, lines: list[OrderLine]) -> list[LineEnrichment]:
        """Tax lookups only; products are not re-validated."""
        results = []
        for index, line in enumerate(lines):
            check_tax_references(line, index)
            enrichment = LineEnrichment(index=index, line=line)
            enrichment.taxes = self._lookup_taxes(line, enrichment)
            results.append(enrichment)
        return results

    def apply_policy(self, enrichments: list[LineEnrichment]) -> list[LineEnrichment]:
        failures = [f for e in enrichments for f in e.failures]
        if not failures:
            return enrichments
        if self.policy == EnrichmentPolicy.STRICT:
            raise failures[0]
        for failure in failures:
            logger.warning(f"Line {failure.line_index}: {failure.message}; continuing with defaults")
        return enrichments

    def _validate(self, line: OrderLine, index: int) -> None:
        check_tax_references(line, index)
        if line.quantity < 0:
            raise InvalidInputError("Quantity cannot be negative", field=f"items[{index}].quantity")
        if line.unit_price is not None and line.unit_price < 0:
            raise InvalidInputError("Unit price cannot be negative", field=f"items[{index}].unitPrice")

    def _lookup_product(self, line: OrderLine, enrichment: LineEnrichment) -> Product | None:
        if line.product_id is None:
            return None
        try:
            product = self.uow.products.get(line.product_id)
        except Exception as e:
            enrichment.failures.append(
                DependencyFailureError("Product", line.product_id, str(e), enrichment.index)
            )
            return None
        if product is None:
            enrichment.failures.append(
                DependencyFailureError("Product", line.product_id, "not found", enrichment.index)
            )
        return product

    def _lookup_taxes(self, line: OrderLine, enrichment: LineEnrichment) -> list[Tax]:
        taxes = []
        for tax_id in line.referenced_tax_ids():
            try:
                tax = self.uow.taxes.get(tax_id)
            except Exception as e:
                enrichment.failures.append(
                    DependencyFailureError("Tax", tax_id, str(e), enrichment.index)
                )
                continue
            if tax is None:
                enrichment.failures.append(
                    DependencyFailureError("Tax", tax_id, "not found", enrichment.index)
                )
                continue
            taxes.append(tax)
        return taxes
