"""
Pydantic models for request/response bodies in the web application.

Provides request validation with sensible defaults and constraints.
"""

import json
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PriceResponse(BaseModel):
    """Resolved display price for a product."""

    product_id: str
    country: Optional[str] = None
    base_price: Decimal
    price: Decimal
    currency: str
    formatted: str


class CurrencyResponse(BaseModel):
    country: Optional[str] = None
    currency: str


class ShippingCountryResponse(BaseModel):
    country: Optional[str] = None


class PostcodeLabelResponse(BaseModel):
    country: Optional[str] = None
    label: str


class CartLineRequest(BaseModel):
    """A single cart line sent for recompute."""

    product_id: str = Field(..., min_length=1)
    base_price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class CartRequest(BaseModel):
    items: List[CartLineRequest] = Field(default_factory=list)
    discount: Decimal = Field(Decimal("0"), ge=0)


class CartLineResponse(BaseModel):
    product_id: str
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    line_total: Decimal


class CartResponse(BaseModel):
    country: Optional[str] = None
    currency: str
    items: List[CartLineResponse]
    subtotal: Decimal
    total: Decimal


class OrderLineRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    base_price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    discount: Decimal = Field(Decimal("0"), ge=0)


class OrderLineResponse(BaseModel):
    product_id: str
    quantity: int
    subtotal: Decimal
    total: Decimal


class AddressRequest(BaseModel):
    """Checkout address fields the shipping push may overwrite."""

    billing_country: Optional[str] = None
    shipping_country: Optional[str] = None


class AddressResponse(BaseModel):
    billing_country: Optional[str] = None
    shipping_country: Optional[str] = None
    reload_checkout: bool = False


class SettingsUpdate(BaseModel):
    """
    Admin update of the pricing configuration.

    The table fields are JSON text as authored by the admin and must decode
    to a JSON object. Omitted fields are left unchanged.
    """

    model_config = ConfigDict(extra="ignore")

    exchange_rates: Optional[str] = Field(None, description='e.g. {"US": 1, "CA": 1.25}')
    currency_map: Optional[str] = Field(None, description='e.g. {"US": "USD", "CA": "CAD"}')
    country_css: Optional[str] = Field(None, description='e.g. {"US": ".header {}", "others_css": ""}')
    geolocation_api_key: Optional[str] = Field(None, description="ipinfo.io token; empty string clears it")

    @field_validator("exchange_rates", "currency_map", "country_css")
    @classmethod
    def must_be_json_object(cls, v):
        """Reject blobs that are not JSON objects."""
        if v is None:
            return v
        try:
            data = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"must be valid JSON: {e}")
        if not isinstance(data, dict):
            raise ValueError("must be a JSON object")
        return v

    @field_validator("geolocation_api_key")
    @classmethod
    def strip_api_key(cls, v):
        """Strip whitespace from the credential."""
        if v is None:
            return None
        return v.strip()


class SettingsResponse(BaseModel):
    """Current configuration. The credential itself is never returned."""

    exchange_rates: str
    currency_map: str
    country_css: str
    price_overrides: Dict[str, Dict[str, str]]
    geolocation_configured: bool
