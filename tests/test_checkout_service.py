"""
Tests for cart, order line and shipping destination recompute.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from geoprice.geo.models import CountrySelection, VisitorContext
from geoprice.services.checkout_service import (
    Cart,
    CheckoutService,
    CustomerAddress,
    LineItem,
    OrderLine,
)


def visitor(country: str | None = None) -> VisitorContext:
    selection = CountrySelection(country=country, selected_at=datetime.now()) if country else None
    return VisitorContext(remote_addr="203.0.113.7", selection=selection)


@pytest.fixture
def service(make_engine) -> CheckoutService:
    return CheckoutService(make_engine())


class TestRecalculateCart:
    """Tests for cart recompute."""

    def test_lines_are_priced_independently(self, service: CheckoutService) -> None:
        cart = Cart(
            items=[
                LineItem(product_id="42", base_price=Decimal("8"), quantity=2),
                LineItem(product_id="7", base_price=Decimal("5")),
            ]
        )

        service.recalculate_cart(cart, visitor("CA"))

        assert cart.items[0].unit_price == Decimal("13.0")
        assert cart.items[0].line_total == Decimal("26.0")
        assert cart.items[1].unit_price == Decimal("5")
        assert cart.subtotal == Decimal("31.0")
        assert cart.total == Decimal("31.0")

    def test_discount_is_subtracted(self, service: CheckoutService) -> None:
        cart = Cart(items=[LineItem("42", Decimal("8"))], discount=Decimal("3"))

        service.recalculate_cart(cart, visitor("CA"))

        assert cart.total == Decimal("10.0")

    def test_total_never_negative(self, service: CheckoutService) -> None:
        cart = Cart(items=[LineItem("7", Decimal("5"))], discount=Decimal("20"))

        service.recalculate_cart(cart, visitor("CA"))

        assert cart.total == Decimal("0")

    def test_recompute_is_idempotent(self, service: CheckoutService) -> None:
        """Recomputing starts from base prices, never from the last result."""
        cart = Cart(items=[LineItem("42", Decimal("8"))])
        ctx = visitor("CA")

        service.recalculate_cart(cart, ctx)
        service.recalculate_cart(cart, ctx)

        assert cart.items[0].unit_price == Decimal("13.0")

    def test_unresolved_visitor_pays_base_price(self, service: CheckoutService) -> None:
        cart = Cart(items=[LineItem("42", Decimal("8"), quantity=3)])

        service.recalculate_cart(cart, visitor())

        assert cart.subtotal == Decimal("24")

    def test_empty_cart(self, service: CheckoutService) -> None:
        cart = service.recalculate_cart(Cart(), visitor("CA"))

        assert cart.subtotal == Decimal("0")
        assert cart.total == Decimal("0")


class TestOrderLineAmounts:
    def test_override_line(self, service: CheckoutService) -> None:
        line = OrderLine(product_id="42", base_price=Decimal("8"), quantity=2, discount=Decimal("1"))

        result = service.order_line_amounts(line, visitor("CA"))

        assert result.subtotal == Decimal("26.0")
        assert result.total == Decimal("25.0")
        assert result.discount == Decimal("1")

    def test_original_line_is_untouched(self, service: CheckoutService) -> None:
        line = OrderLine(product_id="42", base_price=Decimal("8"))

        service.order_line_amounts(line, visitor("CA"))

        assert line.subtotal == Decimal("0")

    def test_no_override_uses_base_price(self, service: CheckoutService) -> None:
        result = service.order_line_amounts(OrderLine("7", Decimal("5"), quantity=2), visitor("CA"))

        assert result.subtotal == Decimal("10")


class TestShippingDestination:
    def test_resolved_country_is_pushed(self, service: CheckoutService) -> None:
        address = CustomerAddress(billing_country="US", shipping_country="US")

        result = service.apply_shipping_destination(address, visitor("CA"))

        assert result.billing_country == "CA"
        assert result.shipping_country == "CA"
        assert result.reload_checkout is True

    def test_unresolved_leaves_address_alone(self, service: CheckoutService) -> None:
        address = CustomerAddress(billing_country="US", shipping_country="DE")

        result = service.apply_shipping_destination(address, visitor())

        assert result.billing_country == "US"
        assert result.shipping_country == "DE"
        assert result.reload_checkout is False
