"""Cart arithmetic and price policy.

Everything in this module is pure: functions take a cart or price and
return new values without touching storage.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from whatsapp_order_bot.conversation.states import MenuCategory
from whatsapp_order_bot.models.catalog_models import parse_price
from whatsapp_order_bot.models.customer_models import Cart, CartItem
from whatsapp_order_bot.models.serialization import to_money

logger = logging.getLogger(__name__)

FREE_DELIVERY_THRESHOLD = Decimal("25.00")
DELIVERY_FEE = Decimal("2.99")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PizzaSize:
    """A pizza size tier.

    Attributes:
        label: Size name shown to the customer
        surcharge: Amount added to the base price
    """

    label: str
    surcharge: Decimal


PIZZA_SIZES = (
    PizzaSize('Small (10")', Decimal("0.00")),
    PizzaSize('Medium (12")', Decimal("4.00")),
    PizzaSize('Large (14")', Decimal("8.00")),
    PizzaSize('Extra Large (16")', Decimal("12.00")),
)


def compute_delivery_fee(cart_total: Decimal) -> Decimal:
    """Delivery is free from 25.00 upwards, otherwise a flat 2.99."""
    return ZERO if cart_total >= FREE_DELIVERY_THRESHOLD else DELIVERY_FEE


def final_total(cart_total: Decimal) -> Decimal:
    """Cart total plus delivery fee."""
    return to_money(cart_total + compute_delivery_fee(cart_total))


def resolve_price(raw: Any, category: MenuCategory) -> Decimal:
    """Resolve a stored price, falling back to the category default.

    Args:
        raw: Price as stored on the catalog item (may be missing or malformed)
        category: Category the item was browsed in

    Returns:
        Positive price quantized to cents
    """
    price = parse_price(raw)
    if price is None:
        logger.warning(
            f"Unusable price {raw!r} for {category.value}, using default {category.default_price}"
        )
        return category.default_price
    return price


def pizza_size_prices(base_price: Decimal) -> list[tuple[PizzaSize, Decimal]]:
    """Price every size tier for a pizza.

    Args:
        base_price: Resolved base price of the pizza

    Returns:
        (size, price) pairs in menu order
    """
    return [(size, to_money(base_price + size.surcharge)) for size in PIZZA_SIZES]


def cart_total(items: list[CartItem]) -> Decimal:
    return to_money(sum((item.line_total for item in items), ZERO))


def add_to_cart(cart: Cart, product_name: str, price: Decimal, customization: str = "") -> Cart:
    """Return a new cart with one more line item.

    Every add creates its own line with quantity 1; identical items are not
    merged.

    Args:
        cart: Current cart
        product_name: Line name (includes the size for pizzas)
        price: Resolved unit price
        customization: Free-text customization

    Returns:
        New cart whose total equals the sum of its line totals
    """
    item = CartItem(
        product_name=product_name,
        price=to_money(price),
        quantity=1,
        customization=customization,
    )
    items = [*cart.items, item]
    return Cart(items=items, total_amount=cart_total(items))


def clear_cart() -> Cart:
    return Cart(items=[], total_amount=ZERO)
