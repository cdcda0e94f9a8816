"""
Pricing pipeline shared by orders and billing documents.
"""

from dataclasses import replace

from loguru import logger

from shiv_erp.application.enrichment import LineEnricher
from shiv_erp.domain.exceptions import CalculationInconsistencyError
from shiv_erp.domain.services import TaxCalculationService
from shiv_erp.domain.value_objects import OrderKind, OrderLine, OrderTotals


class DocumentPricer:

    def __init__(
        self,
        enricher: LineEnricher,
        calculator: TaxCalculationService,
        strict_validation: bool = True,
    ):
        self.enricher = enricher
        self.calculator = calculator
        self.strict_validation = strict_validation

    def price(
        self,
        lines: list[OrderLine],
        kind: OrderKind,
        default_account_id: int | None = None,
    ) -> tuple[list[OrderLine], OrderTotals]:
        """Enrich lines from master data and compute totals; lines get their lineTotal."""
        enrichments = self.enricher.apply_policy(
            self.enricher.enrich(lines, kind, default_account_id)
        )
        totals = self._calculate([(e.line, e.taxes) for e in enrichments], kind)
        priced = [
            replace(result.line, line_total=result.total_amount) for result in totals.lines
        ]
        return priced, totals

    def recompute(self, lines: list[OrderLine], kind: OrderKind) -> OrderTotals:
        """Totals for lines taken as they are (tax records are still looked up)."""
        enrichments = self.enricher.apply_policy(self.enricher.resolve_taxes(lines))
        return self._calculate([(e.line, e.taxes) for e in enrichments], kind)

    def _calculate(self, lines, kind: OrderKind) -> OrderTotals:
        totals = self.calculator.calculate_order_tax(lines, kind)
        validation = self.calculator.validate_tax_calculation(totals)
        for warning in validation.warnings:
            logger.warning(f"Tax calculation: {warning}")
        if not validation.is_valid:
            logger.error(f"Tax calculation failed reconciliation: {', '.join(validation.errors)}")
            if self.strict_validation:
                raise CalculationInconsistencyError(validation)
        return totals
