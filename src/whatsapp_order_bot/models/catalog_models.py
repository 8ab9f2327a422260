"""Catalog data models.

These models represent products sold through the WhatsApp bot and managed
through the admin API. Products are read-only from the conversation's
point of view.
"""

import re
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from whatsapp_order_bot.models.serialization import to_dynamodb_value, to_money

_CURRENCY_NOISE = re.compile(r"[$,\s]")


class ProductCategory(str, Enum):
    """Every category a product may be stored under."""

    # Restaurant categories
    PIZZAS = "pizzas"
    SALADS = "salads"
    BEVERAGES = "beverages"
    APPETIZERS = "appetizers"
    DESSERTS = "desserts"
    PASTA = "pasta"
    SANDWICHES = "sandwiches"
    SPECIALS = "specials"
    SIDES = "sides"
    ENTREES = "entrees"
    SOUPS = "soups"

    # Legacy retail categories
    FLOWERS = "flowers"
    CAKES = "cakes"
    GIFTS = "gifts"
    COMBOS = "combos"
    PLANTS = "plants"


def parse_price(raw: Any) -> Decimal | None:
    """Parse a stored price into a positive Decimal.

    Accepts numbers and strings decorated with currency symbols, thousands
    separators or whitespace (e.g. "$1,299.00").

    Args:
        raw: Price value as stored

    Returns:
        Decimal price quantized to cents, or None if the value is missing,
        non-numeric or does not round to a positive cent amount
    """
    if raw is None or isinstance(raw, bool):
        return None

    try:
        if isinstance(raw, str):
            cleaned = _CURRENCY_NOISE.sub("", raw)
            if not cleaned:
                return None
            value = Decimal(cleaned)
        elif isinstance(raw, int | float | Decimal):
            value = Decimal(str(raw)) if isinstance(raw, float) else Decimal(raw)
        else:
            return None

        if not value.is_finite():
            return None
        price = to_money(value)
    except InvalidOperation:
        return None

    # Amounts below half a cent round to zero
    if price <= 0:
        return None

    return price


class ProductImage(BaseModel):
    """Product image reference. The first image of a product is its primary image."""

    url: str | None = Field(None, description="Absolute or server-relative image URL")
    base64: str | None = Field(None, description="Base64 encoded image data")
    alt: str | None = Field(None, description="Alternative text")
    mime_type: str | None = Field(None, description="MIME type, e.g. image/jpeg")


class ProductSpecifications(BaseModel):
    """Free-form food specifications."""

    model_config = ConfigDict(extra="allow")

    ingredients: str | None = None
    allergens: str | None = None
    servings: str | None = None
    calories: int | None = None
    preparation_time: str | None = None
    spice_level: str | None = None
    dietary_info: list[str] = Field(default_factory=list)


class Product(BaseModel):
    """Catalog item.

    `price` is None when the stored value could not be interpreted as a
    positive amount; the cart falls back to a category default in that case.
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    product_id: str = Field(..., description="Opaque product identifier")
    name: str = Field(..., description="Product name")
    category: ProductCategory = Field(..., description="Product category")
    subcategory: str = Field(default="", description="Optional subcategory")
    description: str = Field(default="", description="Product description")
    price: Decimal | None = Field(None, description="Unit price")
    original_price: Decimal | None = Field(None, description="Price before discount")
    images: list[ProductImage] = Field(default_factory=list, description="Ordered images")
    availability: bool = Field(default=True, description="Whether the product can be ordered")
    stock: int = Field(default=100, description="Units in stock")
    featured: bool = Field(default=False, description="Shown first and in the specials menu")
    specifications: ProductSpecifications | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = to_dynamodb_value(self.model_dump())
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Product":
        """Create Product from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Product: Parsed model instance
        """
        data = dict(item)
        data["price"] = parse_price(item.get("price"))
        data["original_price"] = parse_price(item.get("original_price"))
        data["featured"] = bool(item.get("featured", False))
        for field in ("created_at", "updated_at"):
            if field in item:
                data[field] = datetime.fromisoformat(item[field])
        return cls(**data)
