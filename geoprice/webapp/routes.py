"""
FastAPI routes for the geoprice web application.

Handles:
- Country selection (sticky cookie)
- Price, currency, shipping country and postcode label lookups
- Country CSS injection and the country switcher
- Cart and order line recompute, shipping destination push
- Admin settings for the pricing tables
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from geoprice.geo.models import VisitorContext
from geoprice.pricing.pricing_engine import PricingEngine, Product
from geoprice.services.checkout_service import (
    Cart,
    CheckoutService,
    CustomerAddress,
    LineItem,
    OrderLine,
)
from geoprice.storage.settings_store import (
    clear_api_key,
    get_settings,
    get_store,
    has_api_key,
    set_api_key,
    update_settings,
)
from geoprice.utils.config_loader import AppConfig
from geoprice.webapp.exceptions import CountrySelectionError
from geoprice.webapp.helpers import (
    get_app_config,
    get_checkout_service,
    get_engine,
    get_visitor,
)
from geoprice.webapp.schemas import (
    AddressRequest,
    AddressResponse,
    CartLineResponse,
    CartRequest,
    CartResponse,
    CurrencyResponse,
    OrderLineRequest,
    OrderLineResponse,
    PostcodeLabelResponse,
    PriceResponse,
    SettingsResponse,
    SettingsUpdate,
    ShippingCountryResponse,
)

logger = logging.getLogger(__name__)

templates_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))

router = APIRouter()


# ============================================================================
# Country selection and display
# ============================================================================


@router.post("/set-country")
async def set_country(
    country: str = Form(""),
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    """Store the visitor's explicit country choice (cookie written by middleware)."""
    selected = engine.resolver.select(ctx, country)
    if selected is None:
        raise CountrySelectionError(country)
    return {"country": selected}


@router.get("/api/price/{product_id}", response_model=PriceResponse)
async def product_price(
    product_id: str,
    base_price: Decimal = Query(..., ge=0),
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    """Resolved display price for one catalog product."""
    quote = engine.price_quote(Product(product_id=product_id, base_price=base_price), ctx)
    return PriceResponse(**quote)


@router.get("/api/currency", response_model=CurrencyResponse)
async def currency(
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    return CurrencyResponse(
        country=engine.resolve_country(ctx),
        currency=engine.effective_currency(ctx),
    )


@router.get("/api/shipping-country", response_model=ShippingCountryResponse)
async def shipping_country(
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    return ShippingCountryResponse(country=engine.shipping_country(ctx))


@router.get("/api/postcode-label", response_model=PostcodeLabelResponse)
async def postcode_label(
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    return PostcodeLabelResponse(
        country=engine.resolve_country(ctx),
        label=engine.postcode_label(ctx),
    )


@router.get("/country-css", response_class=HTMLResponse)
async def country_css(
    request: Request,
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    """``<style>`` block with the visitor's CSS override (HTML-escaped)."""
    return templates.TemplateResponse(
        request,
        "country_css.html",
        {"css": engine.effective_css(ctx)},
    )


@router.get("/country-switcher", response_class=HTMLResponse)
async def country_switcher(
    request: Request,
    ctx: VisitorContext = Depends(get_visitor),
    engine: PricingEngine = Depends(get_engine),
):
    """Clickable list of configured countries posting to /set-country."""
    return templates.TemplateResponse(
        request,
        "country_switcher.html",
        {
            "countries": engine.available_countries(),
            "current": engine.resolve_country(ctx),
        },
    )


# ============================================================================
# Cart / order / checkout hooks
# ============================================================================


@router.post("/api/cart/recalculate", response_model=CartResponse)
async def recalculate_cart(
    body: CartRequest,
    ctx: VisitorContext = Depends(get_visitor),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Recompute every cart line price and the totals."""
    cart = Cart(
        items=[
            LineItem(product_id=line.product_id, base_price=line.base_price, quantity=line.quantity)
            for line in body.items
        ],
        discount=body.discount,
    )
    service.recalculate_cart(cart, ctx)

    return CartResponse(
        country=service.engine.resolve_country(ctx),
        currency=service.engine.effective_currency(ctx),
        items=[
            CartLineResponse(
                product_id=item.product_id,
                quantity=item.quantity,
                base_price=item.base_price,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
            for item in cart.items
        ],
        subtotal=cart.subtotal,
        total=cart.total,
    )


@router.post("/api/order/line-amounts", response_model=OrderLineResponse)
async def order_line_amounts(
    body: OrderLineRequest,
    ctx: VisitorContext = Depends(get_visitor),
    service: CheckoutService = Depends(get_checkout_service),
):
    line = service.order_line_amounts(
        OrderLine(
            product_id=body.product_id,
            base_price=body.base_price,
            quantity=body.quantity,
            discount=body.discount,
        ),
        ctx,
    )
    return OrderLineResponse(
        product_id=line.product_id,
        quantity=line.quantity,
        subtotal=line.subtotal,
        total=line.total,
    )


@router.post("/api/checkout/shipping", response_model=AddressResponse)
async def checkout_shipping(
    body: AddressRequest,
    ctx: VisitorContext = Depends(get_visitor),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Push the resolved country into the checkout billing/shipping fields."""
    address = service.apply_shipping_destination(
        CustomerAddress(
            billing_country=body.billing_country,
            shipping_country=body.shipping_country,
        ),
        ctx,
    )
    return AddressResponse(
        billing_country=address.billing_country,
        shipping_country=address.shipping_country,
        reload_checkout=address.reload_checkout,
    )


# ============================================================================
# Admin settings
# ============================================================================


def _settings_response(config: AppConfig) -> SettingsResponse:
    settings = get_settings()
    return SettingsResponse(
        exchange_rates=settings.exchange_rates,
        currency_map=settings.currency_map,
        country_css=settings.country_css,
        price_overrides=settings.price_overrides,
        geolocation_configured=has_api_key(config.geolocation.api_key_env),
    )


@router.get("/settings", response_model=SettingsResponse)
async def read_settings(config: AppConfig = Depends(get_app_config)):
    return _settings_response(config)


@router.post("/settings", response_model=SettingsResponse)
async def save_settings(
    body: SettingsUpdate,
    config: AppConfig = Depends(get_app_config),
):
    """Update the pricing tables; omitted fields are kept."""
    changes = body.model_dump(exclude_none=True, exclude={"geolocation_api_key"})
    if changes:
        update_settings(**changes)

    if body.geolocation_api_key is not None:
        if body.geolocation_api_key:
            set_api_key(body.geolocation_api_key)
        else:
            clear_api_key()

    logger.info(f"Settings updated: {sorted(changes)}")
    return _settings_response(config)


@router.post("/settings/products/{product_id}/prices", response_model=SettingsResponse)
async def save_product_prices(
    product_id: str,
    fields: Dict[str, Any] = Body(...),
    config: AppConfig = Depends(get_app_config),
):
    """Save ``_price_<CC>`` fields for a product (configured countries only)."""
    submitted = {key: value for key, value in fields.items() if value is not None}
    get_store().save_product_prices(product_id, submitted)
    return _settings_response(config)
