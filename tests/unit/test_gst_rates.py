"""
Unit tests - GST rate suggestions.
"""

from decimal import Decimal

import pytest

from shiv_erp.domain.services import GSTRateService


@pytest.fixture
def gst() -> GSTRateService:
    return GSTRateService()


class TestHsnSuggestion:

    @pytest.mark.parametrize(
        "hsn_code,rate",
        [
            ("1006", Decimal("5")),
            ("1101", Decimal("5")),
            ("0703", Decimal("5")),
            ("0801", Decimal("5")),
            ("6109", Decimal("12")),
            ("6203", Decimal("12")),
            ("6302", Decimal("12")),
            ("8703", Decimal("28")),
            ("8517", Decimal("28")),
            ("9018", Decimal("28")),
            ("940360", Decimal("18")),
            ("", Decimal("18")),
            (None, Decimal("18")),
        ],
    )
    def test_rate_by_prefix(self, gst, hsn_code, rate):
        assert gst.by_hsn_code(hsn_code).igst == rate

    def test_split_is_half_and_half(self, gst):
        suggestion = gst.by_hsn_code("6109")
        assert suggestion.cgst == Decimal("6")
        assert suggestion.sgst == Decimal("6")
        assert suggestion.cgst + suggestion.sgst == suggestion.igst
        assert suggestion.description == "Standard items"


class TestCategorySuggestion:

    @pytest.mark.parametrize(
        "category,rate",
        [
            ("Food grains", Decimal("5")),
            ("Textile", Decimal("12")),
            ("Luxury furniture", Decimal("28")),
            ("Furniture", Decimal("18")),
            (None, Decimal("18")),
        ],
    )
    def test_rate_by_category(self, gst, category, rate):
        assert gst.by_category(category).igst == rate

    def test_category_from_description(self, gst):
        assert gst.category_from_description("Teak dining table") == "Furniture"
        assert gst.category_from_description("Cotton fabric roll") == "Textiles"
        assert gst.category_from_description("Brass hinge") == "General"
