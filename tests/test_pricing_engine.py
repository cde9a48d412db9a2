"""
Tests for the pricing engine.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from geoprice.geo.country_resolver import CountryResolver
from geoprice.geo.models import CountrySelection, VisitorContext
from geoprice.pricing.pricing_engine import PricingEngine, PricingTables, Product
from tests.fixtures.geo_mocks import ErrorProvider, StaticProvider, UncallableProvider


def visitor(country: str | None = None, ip: str = "203.0.113.7") -> VisitorContext:
    selection = CountrySelection(country=country, selected_at=datetime.now()) if country else None
    return VisitorContext(remote_addr=ip, selection=selection)


class TestDisplayPrice:
    """Tests for display and line item prices."""

    def test_override_times_rate(self, make_engine, base_price) -> None:
        engine = make_engine()
        product = Product(product_id="42", base_price=base_price)

        assert engine.display_price(product, visitor("CA")) == Decimal("13.0")

    def test_no_override_keeps_base_price(self, make_engine, base_price) -> None:
        engine = make_engine()
        product = Product(product_id="7", base_price=base_price)

        assert engine.display_price(product, visitor("CA")) == Decimal("8")

    def test_zero_override_keeps_base_price(self, make_engine, base_price) -> None:
        engine = make_engine()

        assert engine.line_item_price("42", base_price, visitor("GB")) == Decimal("8")

    def test_unresolved_visitor_gets_base_price(self, make_engine, base_price) -> None:
        engine = make_engine()

        assert engine.line_item_price("42", base_price, visitor()) == Decimal("8")

    def test_geolocated_visitor(self, make_engine, base_price) -> None:
        engine = make_engine(StaticProvider("CA"))
        ctx = visitor()

        assert engine.line_item_price("42", base_price, ctx) == Decimal("13.0")
        assert ctx.selection_changed is True

    def test_provider_error_falls_back_to_base_price(self, make_engine, base_price) -> None:
        engine = make_engine(ErrorProvider())

        assert engine.line_item_price("42", base_price, visitor()) == Decimal("8")

    def test_selection_beats_geolocation(self, make_engine, base_price) -> None:
        engine = make_engine(UncallableProvider())

        assert engine.line_item_price("42", base_price, visitor("CA")) == Decimal("13.0")


class TestCurrency:
    def test_mapped_currency(self, make_engine) -> None:
        assert make_engine().effective_currency(visitor("GB")) == "GBP"

    def test_unmapped_country_uses_store_currency(self, make_engine) -> None:
        assert make_engine().effective_currency(visitor("FR")) == "USD"

    def test_unresolved_uses_store_currency(self, make_engine) -> None:
        assert make_engine().effective_currency(visitor()) == "USD"

    def test_custom_store_currency(self, tables: PricingTables) -> None:
        engine = PricingEngine(tables, CountryResolver(), store_currency="EUR")

        assert engine.effective_currency(visitor("FR")) == "EUR"


class TestPresentation:
    def test_country_css(self, make_engine) -> None:
        assert make_engine().effective_css(visitor("US")) == ".header { color: red; }"

    def test_other_country_gets_fallback(self, make_engine) -> None:
        assert make_engine().effective_css(visitor("CA")) == ".header { color: grey; }"

    def test_unresolved_gets_fallback(self, make_engine) -> None:
        assert make_engine().effective_css(visitor()) == ".header { color: grey; }"

    def test_postcode_label(self, make_engine) -> None:
        engine = make_engine()

        assert engine.postcode_label(visitor("US")) == "Zipcode"
        assert engine.postcode_label(visitor("CA")) == "Postcode"

    def test_available_countries(self, make_engine) -> None:
        assert make_engine().available_countries() == ["US", "CA", "GB"]


class TestShippingCountry:
    def test_resolved(self, make_engine) -> None:
        assert make_engine().shipping_country(visitor("CA")) == "CA"

    def test_unresolved(self, make_engine) -> None:
        assert make_engine().shipping_country(visitor()) is None


class TestPriceQuote:
    def test_quote(self, make_engine, base_price) -> None:
        quote = make_engine().price_quote(Product("42", base_price), visitor("CA"))

        assert quote["country"] == "CA"
        assert quote["base_price"] == Decimal("8")
        assert quote["price"] == Decimal("13.0")
        assert quote["currency"] == "CAD"
        assert "13.00" in quote["formatted"]

    def test_store_currency_formatting(self, make_engine) -> None:
        assert make_engine().format_price(Decimal("8")) == "$8.00"

    def test_empty_tables_pass_everything_through(self, base_price) -> None:
        """Malformed configuration behaves like no configuration."""
        engine = PricingEngine(
            PricingTables.from_raw("{bad", "nope", "[]", None),
            CountryResolver(),
        )
        ctx = visitor("CA")

        assert engine.display_price(Product("42", base_price), ctx) == Decimal("8")
        assert engine.effective_currency(ctx) == "USD"
        assert engine.effective_css(ctx) == ""

    @pytest.mark.parametrize("country", ["US", "CA", "GB", "FR"])
    def test_repeated_calls_agree(self, make_engine, base_price, country) -> None:
        engine = make_engine()
        ctx = visitor(country)

        first = engine.line_item_price("42", base_price, ctx)
        second = engine.line_item_price("42", base_price, ctx)

        assert first == second
