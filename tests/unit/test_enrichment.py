"""
Unit tests - Line enrichment from product and tax master data.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from shiv_erp.application.enrichment import LineEnricher
from shiv_erp.application.pricing import DocumentPricer
from shiv_erp.core.config import EnrichmentPolicy
from shiv_erp.domain.entities import Product
from shiv_erp.domain.exceptions import DependencyFailureError, InvalidInputError
from shiv_erp.domain.services import TaxCalculationService
from shiv_erp.domain.value_objects import OrderKind, OrderLine


class FakeLookup:
    """Dictionary-backed repository; ids in `broken` raise like a dropped connection."""

    def __init__(self, rows: dict, broken: tuple = ()):
        self.rows = rows
        self.broken = broken

    def get(self, entity_id):
        if entity_id in self.broken:
            raise ConnectionError("connection reset")
        return self.rows.get(entity_id)


@pytest.fixture
def chair() -> Product:
    return Product(
        id=1,
        name="Office Chair",
        sales_price=Decimal("150"),
        purchase_price=Decimal("100"),
        hsn_code="940130",
    )


@pytest.fixture
def fake_uow(chair, igst_18, cgst_9, sgst_9):
    return SimpleNamespace(
        products=FakeLookup({1: chair}, broken=(13,)),
        taxes=FakeLookup({1: igst_18, 2: cgst_9, 3: sgst_9}, broken=(66,)),
    )


class TestEnrich:

    def test_defaults_from_product(self, fake_uow):
        enricher = LineEnricher(fake_uow)
        [result] = enricher.enrich([OrderLine(product_id=1, quantity=Decimal("2"), tax_id=1)], OrderKind.PURCHASE)
        assert result.line.unit_price == Decimal("100")
        assert result.line.product_name == "Office Chair"
        assert result.line.hsn_code == "940130"
        assert result.line.tax_rate == Decimal("18")
        assert not result.degraded

    def test_sales_side_uses_sales_price(self, fake_uow):
        [result] = LineEnricher(fake_uow).enrich([OrderLine(product_id=1)], OrderKind.SALES)
        assert result.line.unit_price == Decimal("150")

    def test_explicit_values_kept(self, fake_uow):
        line = OrderLine(product_id=1, unit_price=Decimal("95"), product_name="Chair (floor model)")
        [result] = LineEnricher(fake_uow).enrich([line], OrderKind.PURCHASE)
        assert result.line.unit_price == Decimal("95")
        assert result.line.product_name == "Chair (floor model)"

    def test_zero_quantity_becomes_one(self, fake_uow):
        [result] = LineEnricher(fake_uow).enrich([OrderLine(product_id=1, quantity=Decimal("0"))], OrderKind.SALES)
        assert result.line.quantity == Decimal("1")

    def test_default_account_applied(self, fake_uow):
        [result] = LineEnricher(fake_uow).enrich([OrderLine(product_id=1)], OrderKind.SALES, default_account_id=7)
        assert result.line.account_id == 7

    def test_tax_rate_sums_percentages_only(self, fake_uow, packing_charge):
        fake_uow.taxes.rows[4] = packing_charge
        line = OrderLine(product_id=1, tax_ids=(2, 3, 4))
        [result] = LineEnricher(fake_uow).enrich([line], OrderKind.SALES)
        assert result.line.tax_rate == Decimal("18")
        assert len(result.taxes) == 3

    def test_negative_quantity_rejected(self, fake_uow):
        with pytest.raises(InvalidInputError, match="Quantity cannot be negative") as exc:
            LineEnricher(fake_uow).enrich(
                [OrderLine(product_id=1), OrderLine(product_id=1, quantity=Decimal("-1"))],
                OrderKind.SALES,
            )
        assert exc.value.field == "items[1].quantity"

    def test_dual_tax_fields_rejected(self, fake_uow):
        with pytest.raises(InvalidInputError):
            LineEnricher(fake_uow).enrich([OrderLine(product_id=1, tax_id=1, tax_ids=(2,))], OrderKind.SALES)


class TestLookupFailures:
    """Failures are collected per line, then one policy decision is made."""

    def test_missing_product_collected(self, fake_uow):
        [result] = LineEnricher(fake_uow).enrich([OrderLine(product_id=999)], OrderKind.SALES)
        assert result.degraded
        assert result.line.unit_price == Decimal("0")
        assert result.failures[0].entity == "Product"
        assert result.failures[0].reason == "not found"

    def test_lookup_exception_collected(self, fake_uow):
        [result] = LineEnricher(fake_uow).enrich(
            [OrderLine(product_id=13, unit_price=Decimal("10"), tax_id=66)], OrderKind.SALES
        )
        assert [f.entity for f in result.failures] == ["Product", "Tax"]
        assert "connection reset" in result.failures[1].reason
        assert result.taxes == []

    def test_degrade_proceeds(self, fake_uow):
        enricher = LineEnricher(fake_uow, EnrichmentPolicy.DEGRADE)
        enrichments = enricher.enrich([OrderLine(product_id=999, tax_id=1)], OrderKind.SALES)
        assert enricher.apply_policy(enrichments) == enrichments

    def test_strict_raises_first_failure(self, fake_uow):
        enricher = LineEnricher(fake_uow, EnrichmentPolicy.STRICT)
        enrichments = enricher.enrich(
            [OrderLine(product_id=1), OrderLine(product_id=999)], OrderKind.SALES
        )
        with pytest.raises(DependencyFailureError) as exc:
            enricher.apply_policy(enrichments)
        assert exc.value.line_index == 1
        assert exc.value.details["entity"] == "Product"


class TestDocumentPricer:

    def test_price_sets_line_totals(self, fake_uow):
        pricer = DocumentPricer(LineEnricher(fake_uow), TaxCalculationService())
        lines, totals = pricer.price([OrderLine(product_id=1, quantity=Decimal("2"), tax_id=1)], OrderKind.PURCHASE)
        assert lines[0].line_total == Decimal("236.00")
        assert totals.subtotal == Decimal("200.00")
        assert totals.tax_amount == Decimal("36.00")
        assert totals.total_amount == Decimal("236.00")

    def test_degraded_line_priced_without_tax(self, fake_uow):
        pricer = DocumentPricer(LineEnricher(fake_uow), TaxCalculationService())
        lines, totals = pricer.price(
            [OrderLine(product_id=1, unit_price=Decimal("50"), tax_id=999)], OrderKind.SALES
        )
        assert totals.tax_amount == Decimal("0.00")
        assert lines[0].line_total == Decimal("50.00")

    def test_recompute_keeps_lines_as_given(self, fake_uow):
        pricer = DocumentPricer(LineEnricher(fake_uow), TaxCalculationService())
        line = OrderLine(product_id=1, quantity=Decimal("3"), unit_price=Decimal("10"), tax_ids=(2, 3))
        totals = pricer.recompute([line], OrderKind.SALES)
        assert totals.subtotal == Decimal("30.00")
        assert totals.breakdown.cgst == Decimal("2.70")
        assert totals.breakdown.sgst == Decimal("2.70")
        assert totals.total_amount == Decimal("35.40")
