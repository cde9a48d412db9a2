"""
Checkout service.

Applies country pricing at the cart and order seams of the host shop:
- Cart and mini-cart line recompute on every totals recalculation
- Order line subtotal/total recompute
- Shipping destination push for shipping-zone selection
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from geoprice.geo.models import VisitorContext
from geoprice.pricing.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class LineItem:
    """A cart line. ``unit_price`` is written by the recompute."""

    product_id: str
    base_price: Decimal
    quantity: int = 1
    unit_price: Optional[Decimal] = None

    @property
    def line_total(self) -> Decimal:
        price = self.unit_price if self.unit_price is not None else self.base_price
        return price * self.quantity


@dataclass
class Cart:
    """Cart with line items and computed totals."""

    items: list[LineItem] = field(default_factory=list)
    discount: Decimal = ZERO
    subtotal: Decimal = ZERO
    total: Decimal = ZERO


@dataclass
class OrderLine:
    """An order line as stored by the host shop."""

    product_id: str
    base_price: Decimal
    quantity: int = 1
    discount: Decimal = ZERO
    subtotal: Decimal = ZERO
    total: Decimal = ZERO


@dataclass
class CustomerAddress:
    """Billing/shipping destination in the customer's checkout session."""

    billing_country: Optional[str] = None
    shipping_country: Optional[str] = None
    reload_checkout: bool = False


class CheckoutService:
    """
    Runs the pricing engine over carts, orders and checkout addresses.

    Attributes:
        engine: Pricing engine bound to the current configuration.
    """

    def __init__(self, engine: PricingEngine) -> None:
        self.engine = engine

    def recalculate_cart(self, cart: Cart, ctx: VisitorContext) -> Cart:
        """
        Recompute every line price from scratch, then the cart totals.

        Lines are independent; the same routine serves the mini cart.

        Args:
            cart: Cart to update in place.
            ctx: Visitor context.

        Returns:
            Cart: The same cart, updated.
        """
        for item in cart.items:
            item.unit_price = self.engine.line_item_price(item.product_id, item.base_price, ctx)

        cart.subtotal = sum((item.line_total for item in cart.items), ZERO)
        cart.total = max(cart.subtotal - cart.discount, ZERO)

        logger.debug(
            f"Recalculated cart: {len(cart.items)} lines, subtotal={cart.subtotal}, total={cart.total}"
        )
        return cart

    def order_line_amounts(self, line: OrderLine, ctx: VisitorContext) -> OrderLine:
        """
        Recompute an order line's subtotal and total.

        The line discount is kept; the unit price comes from the engine.

        Returns:
            OrderLine: A new line with recomputed amounts.
        """
        unit_price = self.engine.line_item_price(line.product_id, line.base_price, ctx)
        subtotal = unit_price * line.quantity
        total = max(subtotal - line.discount, ZERO)
        return replace(line, subtotal=subtotal, total=total)

    def apply_shipping_destination(
        self,
        address: CustomerAddress,
        ctx: VisitorContext,
    ) -> CustomerAddress:
        """
        Point billing and shipping at the resolved country.

        When no country resolves the address is left untouched.
        """
        country = self.engine.shipping_country(ctx)
        if country is None:
            return address

        address.billing_country = country
        address.shipping_country = country
        # Ask the shop to redo shipping zone/rate selection
        address.reload_checkout = True
        logger.info(f"Shipping destination set to {country}")
        return address
