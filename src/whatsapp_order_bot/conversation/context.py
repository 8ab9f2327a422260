"""Transient conversation context.

The context is a tagged union keyed by `mode`. A transition always builds a
fresh context value, so selections from an earlier menu can never leak into
a later one and at most one item is ever selected.
"""

from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from whatsapp_order_bot.conversation.states import MenuCategory
from whatsapp_order_bot.models.catalog_models import Product, ProductImage, ProductSpecifications


class MenuItemSnapshot(BaseModel):
    """Copy of a catalog item taken when a menu is rendered."""

    item_id: str
    name: str
    price: Decimal | None = None
    description: str = ""
    details: str | None = None
    original_price: Decimal | None = None
    featured: bool = False
    images: list[ProductImage] = Field(default_factory=list)
    specifications: ProductSpecifications | None = None

    @classmethod
    def from_product(cls, product: Product) -> "MenuItemSnapshot":
        return cls(
            item_id=product.product_id,
            name=product.name,
            price=product.price,
            description=product.description,
            original_price=product.original_price,
            featured=product.featured,
            images=list(product.images),
            specifications=product.specifications,
        )

    @property
    def primary_image(self) -> ProductImage | None:
        return self.images[0] if self.images else None


class EmptyContext(BaseModel):
    """No transient data (main menu)."""

    mode: Literal["empty"] = "empty"


class BrowsingContext(BaseModel):
    """A category menu was rendered; replies index into `items`."""

    mode: Literal["browsing"] = "browsing"
    category: MenuCategory
    items: list[MenuItemSnapshot] = Field(default_factory=list)


class ProductSelectedContext(BaseModel):
    """One item's details were rendered."""

    mode: Literal["product_selected"] = "product_selected"
    category: MenuCategory
    item: MenuItemSnapshot


class PostAddContext(BaseModel):
    """An item was just added to the cart."""

    mode: Literal["post_add"] = "post_add"
    last_added_item: str


class CartReviewContext(BaseModel):
    """The cart was rendered."""

    mode: Literal["cart_review"] = "cart_review"


class CheckoutContext(BaseModel):
    """Waiting for the delivery address."""

    mode: Literal["checkout"] = "checkout"


ConversationContext = Annotated[
    EmptyContext
    | BrowsingContext
    | ProductSelectedContext
    | PostAddContext
    | CartReviewContext
    | CheckoutContext,
    Field(discriminator="mode"),
]

_context_adapter: TypeAdapter[ConversationContext] = TypeAdapter(ConversationContext)


def parse_context(data: Any) -> ConversationContext:
    """Parse stored context data, falling back to an empty context.

    Args:
        data: Stored context dictionary (may be missing or from an older layout)

    Returns:
        Parsed context, or EmptyContext if the data cannot be interpreted
    """
    if not data:
        return EmptyContext()
    try:
        return _context_adapter.validate_python(data)
    except ValidationError:
        return EmptyContext()
