"""Builds the item lists shown in category menus."""

import logging
from decimal import Decimal

from whatsapp_order_bot.conversation.context import MenuItemSnapshot
from whatsapp_order_bot.conversation.states import MenuCategory
from whatsapp_order_bot.models.catalog_models import Product, ProductCategory
from whatsapp_order_bot.repositories.store_repositories import (
    ProductRepository,
    sort_featured_then_newest,
)

logger = logging.getLogger(__name__)


def _fallback(category: MenuCategory, entries: list[tuple[str, str, str, str | None]]) -> list[MenuItemSnapshot]:
    return [
        MenuItemSnapshot(
            item_id=f"default-{category.value}-{index}",
            name=name,
            price=Decimal(price),
            description=description,
            details=details,
        )
        for index, (name, price, description, details) in enumerate(entries, start=1)
    ]


# Shown when the catalog has nothing for these categories
FALLBACK_MENUS: dict[MenuCategory, list[MenuItemSnapshot]] = {
    MenuCategory.SPECIALS: _fallback(
        MenuCategory.SPECIALS,
        [
            (
                "Family Feast",
                "39.99",
                "Large pizza + Caesar salad + 4 drinks",
                "Perfect for family dinner! Save $12 vs individual items",
            ),
            ("Lunch Express", "12.99", "Personal pizza + drink + garlic bread", "Quick lunch ready in 15 minutes!"),
            ("Date Night Special", "24.99", "Medium pizza + Caprese salad + dessert", "Romantic dining made easy!"),
            ("Game Day Bundle", "49.99", "2 Large pizzas + wings + 6 drinks", "Perfect for watching the game!"),
        ],
    ),
    MenuCategory.PASTA: _fallback(
        MenuCategory.PASTA,
        [
            ("Spaghetti Carbonara", "14.99", "Creamy sauce with bacon & parmesan cheese", None),
            ("Fettuccine Alfredo", "13.99", "Rich garlic cream sauce with fresh herbs", None),
            ("Penne Arrabbiata", "12.99", "Spicy tomato sauce with Italian herbs", None),
            ("Lasagna Classic", "16.99", "Layered with meat sauce & three cheeses", None),
        ],
    ),
    MenuCategory.APPETIZERS: _fallback(
        MenuCategory.APPETIZERS,
        [
            ("Garlic Bread", "5.99", "Warm bread with garlic butter and herbs", None),
            ("Cheese Breadsticks", "7.99", "Mozzarella-filled breadsticks with marinara", None),
            ("Buffalo Wings", "9.99", "Spicy wings with ranch dipping sauce", None),
            ("Mozzarella Sticks", "6.99", "Crispy fried cheese sticks with marinara", None),
        ],
    ),
}


class MenuBuilder:
    """Builds category menus from the catalog.

    Menus hold full item snapshots so that a numeric reply can be resolved
    against exactly the list the customer saw, without a second query.
    """

    def __init__(self, product_repository: ProductRepository) -> None:
        """Initialize the MenuBuilder.

        Args:
            product_repository: Catalog read access
        """
        self.product_repository = product_repository

    async def build_menu(self, category: MenuCategory) -> list[MenuItemSnapshot] | None:
        """Build the item list for a category menu.

        Args:
            category: Category to render

        Returns:
            Up to `category.page_size` items, featured-first then newest-first,
            the fallback list when the catalog has none for a category that
            has one, or None if the catalog could not be read
        """
        if category == MenuCategory.SPECIALS:
            products = self._find_specials(category.page_size)
        else:
            products = self.product_repository.find_by_category(
                category.product_category, available_only=True, limit=category.page_size
            )

        if products is None:
            logger.error(f"Catalog unavailable while building {category.value} menu")
            return None

        if not products and category in FALLBACK_MENUS:
            logger.info(f"No {category.value} in catalog, using fallback menu")
            return list(FALLBACK_MENUS[category])

        return [MenuItemSnapshot.from_product(product) for product in products]

    def _find_specials(self, limit: int) -> list[Product] | None:
        """Merge the specials category with featured items of any category."""
        specials = self.product_repository.find_by_category(ProductCategory.SPECIALS, available_only=True)
        featured = self.product_repository.find_featured(available_only=True)
        if specials is None or featured is None:
            return None

        merged: dict[str, Product] = {}
        for product in specials + featured:
            merged.setdefault(product.product_id, product)

        return sort_featured_then_newest(list(merged.values()))[:limit]
