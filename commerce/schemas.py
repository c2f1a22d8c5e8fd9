"""
Pydantic schemas for the commerce API.

Filters are bound from query parameters; payloads from request bodies.
None of them carry a tenant id: the tenant always comes from the
authorized request context.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


# ============ Products ============

class ProductFilters(BaseModel):
    """
    Query filters for product listing.

    Client-facing statuses (draft, published, proposed, rejected) are mapped
    onto stored statuses by the service.
    """
    status: Optional[str] = Field(None, description="draft | published | proposed | rejected or a stored status")
    min_price: Optional[int] = Field(None, ge=0, description="Minimum price in minor units")
    max_price: Optional[int] = Field(None, ge=0, description="Maximum price in minor units")
    in_stock: Optional[bool] = None
    is_digital: Optional[bool] = None
    created_after: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    q: Optional[str] = Field(None, max_length=200, description="Search title, description and SKU")
    order_by: Literal["created_at", "updated_at", "title", "price_amount"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    sku: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    status: str = Field("draft", description="Client-facing or stored status")
    price_amount: int = Field(0, ge=0)
    price_currency: str = Field("USD", min_length=3, max_length=3)
    quantity_available: int = Field(0, ge=0)
    is_digital: bool = False
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("price_currency")
    def normalize_currency(cls, v):
        return v.upper()


# ============ Orders ============

class OrderFilters(BaseModel):
    """Query filters for order listing"""
    status: Optional[str] = Field(None, description="pending | confirmed | processing | shipped | delivered | cancelled | returned")
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    customer_id: Optional[str] = None
    customer_email: Optional[str] = Field(None, description="Case-insensitive substring match")
    min_total: Optional[int] = Field(None, ge=0)
    max_total: Optional[int] = Field(None, ge=0)
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    order_by: Literal["created_at", "updated_at", "total_amount", "order_number"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)


class OrderCreate(BaseModel):
    order_number: str = Field(..., min_length=1, max_length=50)
    customer_email: str = Field(..., min_length=3, max_length=255)
    customer_id: Optional[str] = None
    customer_name: Optional[str] = Field(None, max_length=255)
    subtotal_amount: int = Field(0, ge=0)
    tax_amount: int = Field(0, ge=0)
    shipping_amount: int = Field(0, ge=0)
    discount_amount: int = Field(0, ge=0)
    currency_code: str = Field("USD", min_length=3, max_length=3)
    metadata: Optional[Dict[str, Any]] = None


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., description="New order status")


# ============ Store configuration ============
#
# Section models type the well-known keys and keep unknown ones, so stores
# can carry custom settings. Wire keys are camelCase.

class ConfigSection(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ColorPalette(ConfigSection):
    primary: Optional[str] = Field(None, pattern=HEX_COLOR)
    secondary: Optional[str] = Field(None, pattern=HEX_COLOR)
    accent: Optional[str] = Field(None, pattern=HEX_COLOR)
    background: Optional[str] = Field(None, pattern=HEX_COLOR)
    surface: Optional[str] = Field(None, pattern=HEX_COLOR)
    text: Optional[str] = Field(None, pattern=HEX_COLOR)
    text_secondary: Optional[str] = Field(None, alias="textSecondary", pattern=HEX_COLOR)
    border: Optional[str] = Field(None, pattern=HEX_COLOR)
    error: Optional[str] = Field(None, pattern=HEX_COLOR)
    warning: Optional[str] = Field(None, pattern=HEX_COLOR)
    success: Optional[str] = Field(None, pattern=HEX_COLOR)
    info: Optional[str] = Field(None, pattern=HEX_COLOR)


class ThemeConfig(ConfigSection):
    colors: Optional[ColorPalette] = None
    typography: Optional[Dict[str, Any]] = None
    spacing: Optional[Dict[str, str]] = None
    border_radius: Optional[Dict[str, str]] = Field(None, alias="borderRadius")
    shadows: Optional[Dict[str, str]] = None


class GridConfig(ConfigSection):
    columns: Optional[int] = Field(None, ge=1, le=12)
    gap: Optional[str] = None
    breakpoints: Optional[Dict[str, str]] = None


class LayoutConfig(ConfigSection):
    header: Optional[Dict[str, Any]] = None
    footer: Optional[Dict[str, Any]] = None
    sidebar: Optional[Dict[str, Any]] = None
    content: Optional[Dict[str, Any]] = None
    grid: Optional[GridConfig] = None


class FeatureFlags(ConfigSection):
    checkout: Optional[bool] = None
    inventory: Optional[bool] = None
    analytics: Optional[bool] = None
    multi_language: Optional[bool] = Field(None, alias="multiLanguage")
    dark_mode: Optional[bool] = Field(None, alias="darkMode")
    social_login: Optional[bool] = Field(None, alias="socialLogin")
    wishlist: Optional[bool] = None
    reviews: Optional[bool] = None
    recommendations: Optional[bool] = None
    live_chat: Optional[bool] = Field(None, alias="liveChat")


class IntegrationsConfig(ConfigSection):
    """Enabled providers per group, e.g. {"payment": {"stripe": true}}"""
    payment: Optional[Dict[str, bool]] = None
    analytics: Optional[Dict[str, bool]] = None
    marketing: Optional[Dict[str, bool]] = None


class StoreMetadata(ConfigSection):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    logo: Optional[str] = None
    favicon: Optional[str] = None
    keywords: Optional[List[str]] = None
    locale: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    timezone: Optional[str] = None


class SeoConfig(ConfigSection):
    title: Optional[str] = Field(None, max_length=60)
    description: Optional[str] = Field(None, max_length=160)
    keywords: Optional[List[str]] = None
    og_image: Optional[str] = Field(None, alias="ogImage")
    twitter_card: Optional[Literal["summary", "summary_large_image"]] = Field(None, alias="twitterCard")


class StoreConfigPayload(BaseModel):
    """
    Store configuration document.

    store_id is optional; when present it must name the authorized store.
    """
    store_id: Optional[str] = None
    version: str = Field("1.0.0", max_length=20)
    metadata: StoreMetadata = Field(default_factory=StoreMetadata)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    integrations: IntegrationsConfig = Field(default_factory=IntegrationsConfig)
    seo: SeoConfig = Field(default_factory=SeoConfig)
