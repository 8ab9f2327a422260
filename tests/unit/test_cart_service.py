"""Unit tests for cart arithmetic and price policy."""

import logging
from decimal import Decimal

import pytest

from whatsapp_order_bot.conversation.states import MenuCategory
from whatsapp_order_bot.models.customer_models import Cart
from whatsapp_order_bot.services.cart_service import (
    PIZZA_SIZES,
    add_to_cart,
    cart_total,
    clear_cart,
    compute_delivery_fee,
    final_total,
    pizza_size_prices,
    resolve_price,
)


@pytest.mark.unit
class TestDeliveryFee:
    """Test suite for delivery fee rules."""

    @pytest.mark.parametrize(
        ("subtotal", "expected"),
        [
            (Decimal("24.99"), Decimal("2.99")),
            (Decimal("25.00"), Decimal("0.00")),
            (Decimal("0"), Decimal("2.99")),
            (Decimal("80.00"), Decimal("0.00")),
        ],
    )
    def test_compute_delivery_fee(self, subtotal: Decimal, expected: Decimal) -> None:
        """Test the flat fee below the free delivery threshold."""
        assert compute_delivery_fee(subtotal) == expected

    def test_final_total_adds_fee(self) -> None:
        """Test that the final total is the subtotal plus the delivery fee."""
        assert final_total(Decimal("14.00")) == Decimal("16.99")
        assert final_total(Decimal("30.00")) == Decimal("30.00")


@pytest.mark.unit
class TestResolvePrice:
    """Test suite for price fallback."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("$12.99", Decimal("12.99")),
            (12.99, Decimal("12.99")),
            (None, Decimal("12.99")),
            ("abc", Decimal("12.99")),
            (-5, Decimal("12.99")),
            ("0.004", Decimal("12.99")),
            (Decimal("0.001"), Decimal("12.99")),
            ("1e30", Decimal("12.99")),
            ("NaN", Decimal("12.99")),
            ("Infinity", Decimal("12.99")),
            ("0.005", Decimal("0.01")),
        ],
    )
    def test_salad_prices(self, raw: object, expected: Decimal) -> None:
        """Test parsed prices and the salad default for unusable values."""
        assert resolve_price(raw, MenuCategory.SALADS) == expected

    @pytest.mark.parametrize("raw", ["0.004", "1e30", "NaN", "-Infinity"])
    def test_resolved_price_can_always_be_added(self, raw: str) -> None:
        """Test that a price resolved from a bad stored value is accepted by the cart."""
        price = resolve_price(raw, MenuCategory.SALADS)

        cart = add_to_cart(clear_cart(), "Tiny Salad", price)

        assert cart.items[0].price == Decimal("12.99")
        assert cart.total_amount == Decimal("12.99")

    @pytest.mark.parametrize(
        ("category", "default"),
        [
            (MenuCategory.PIZZAS, Decimal("9.99")),
            (MenuCategory.BEVERAGES, Decimal("2.99")),
            (MenuCategory.SPECIALS, Decimal("19.99")),
            (MenuCategory.PASTA, Decimal("14.99")),
            (MenuCategory.APPETIZERS, Decimal("7.99")),
        ],
    )
    def test_category_defaults(self, category: MenuCategory, default: Decimal) -> None:
        """Test that each category falls back to its own default."""
        assert resolve_price(None, category) == default

    def test_fallback_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that using a default price logs a warning."""
        with caplog.at_level(logging.WARNING):
            resolve_price("call us", MenuCategory.PIZZAS)

        assert "Unusable price" in caplog.text


@pytest.mark.unit
class TestPizzaSizes:
    """Test suite for pizza size pricing."""

    def test_size_prices_from_base(self) -> None:
        """Test the four size tiers for a 10.00 base price."""
        prices = [price for _, price in pizza_size_prices(Decimal("10.00"))]

        assert prices == [Decimal("10.00"), Decimal("14.00"), Decimal("18.00"), Decimal("22.00")]

    def test_size_labels(self) -> None:
        """Test the size labels in menu order."""
        assert [size.label for size in PIZZA_SIZES] == [
            'Small (10")',
            'Medium (12")',
            'Large (14")',
            'Extra Large (16")',
        ]


@pytest.mark.unit
class TestCartOperations:
    """Test suite for cart mutations."""

    def test_add_to_cart_returns_new_cart(self) -> None:
        """Test that adding leaves the original cart untouched."""
        cart = Cart()

        updated = add_to_cart(cart, "Garlic Bread", Decimal("5.99"))

        assert cart.is_empty
        assert len(updated.items) == 1
        assert updated.items[0].quantity == 1
        assert updated.total_amount == Decimal("5.99")

    def test_identical_items_are_not_merged(self) -> None:
        """Test that every add creates its own line."""
        cart = add_to_cart(Cart(), "Garlic Bread", Decimal("5.99"))
        cart = add_to_cart(cart, "Garlic Bread", Decimal("5.99"))

        assert len(cart.items) == 2
        assert cart.total_amount == Decimal("11.98")

    def test_total_matches_line_sum_after_many_adds(self) -> None:
        """Test the cart total invariant to the cent."""
        prices = ["0.10", "0.20", "9.99", "14.00", "2.99", "0.01", "19.99"]
        cart = Cart()
        for index, price in enumerate(prices):
            cart = add_to_cart(cart, f"item {index}", Decimal(price))

        assert cart.total_amount == sum((item.price * item.quantity for item in cart.items), Decimal("0"))
        assert cart.total_amount == Decimal("47.28")
        assert cart_total(cart.items) == cart.total_amount

    def test_clear_cart(self, mock_cart: Cart) -> None:
        """Test that clearing yields an empty cart with a zero total."""
        cleared = clear_cart()

        assert cleared.is_empty
        assert cleared.total_amount == Decimal("0.00")
        assert not mock_cart.is_empty
