"""Unit tests for MenuBuilder."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from whatsapp_order_bot.conversation.states import MenuCategory
from whatsapp_order_bot.models.catalog_models import Product, ProductCategory
from whatsapp_order_bot.repositories.store_repositories import ProductRepository
from whatsapp_order_bot.services.menu_builder import FALLBACK_MENUS, MenuBuilder


def _product(product_id: str, category: ProductCategory, day: int, featured: bool = False) -> Product:
    return Product(
        product_id=product_id,
        name=product_id.title(),
        category=category,
        price=Decimal("10.00"),
        featured=featured,
        created_at=datetime(2024, 1, day, tzinfo=UTC),
    )


@pytest.mark.unit
class TestMenuBuilder:
    """Test suite for MenuBuilder."""

    @pytest.fixture
    def mock_product_repo(self) -> MagicMock:
        """Create a mock ProductRepository."""
        return MagicMock(spec=ProductRepository)

    @pytest.fixture
    def builder(self, mock_product_repo: MagicMock) -> MenuBuilder:
        """Create a MenuBuilder with mocked catalog access."""
        return MenuBuilder(mock_product_repo)

    @pytest.mark.asyncio
    async def test_build_menu_snapshots_catalog_items(
        self, builder: MenuBuilder, mock_product_repo: MagicMock, mock_pizzas: list[Product]
    ) -> None:
        """Test that catalog products become item snapshots in repository order."""
        mock_product_repo.find_by_category.return_value = mock_pizzas

        items = await builder.build_menu(MenuCategory.PIZZAS)

        assert items is not None
        assert [item.item_id for item in items] == ["pz_margherita", "pz_pepperoni"]
        assert items[0].images[0].url == "/images/margherita.jpg"
        mock_product_repo.find_by_category.assert_called_once_with(
            ProductCategory.PIZZAS, available_only=True, limit=20
        )

    @pytest.mark.asyncio
    async def test_build_menu_uses_category_page_size(
        self, builder: MenuBuilder, mock_product_repo: MagicMock
    ) -> None:
        """Test that salads are limited to their page size."""
        mock_product_repo.find_by_category.return_value = []

        await builder.build_menu(MenuCategory.SALADS)

        mock_product_repo.find_by_category.assert_called_once_with(
            ProductCategory.SALADS, available_only=True, limit=15
        )

    @pytest.mark.asyncio
    async def test_malformed_catalog_row_still_builds_menu(self) -> None:
        """Test that a stored row with an unroundable price is listed unpriced instead of failing the menu."""
        mock_dynamodb = MagicMock()
        mock_dynamodb.Table.return_value.query.return_value = {
            "Items": [
                {"product_id": "sl_caesar", "name": "Caesar", "category": "salads", "price": "8.50"},
                {"product_id": "sl_typo", "name": "Typo Salad", "category": "salads", "price": "1e30"},
                {"product_id": "sl_tiny", "name": "Tiny Salad", "category": "salads", "price": "0.004"},
            ]
        }
        builder = MenuBuilder(ProductRepository(dynamodb_resource=mock_dynamodb, table_name="test-products"))

        items = await builder.build_menu(MenuCategory.SALADS)

        assert items is not None
        prices = {item.item_id: item.price for item in items}
        assert prices == {"sl_caesar": Decimal("8.50"), "sl_typo": None, "sl_tiny": None}

    @pytest.mark.asyncio
    async def test_empty_pizza_menu_has_no_fallback(self, builder: MenuBuilder, mock_product_repo: MagicMock) -> None:
        """Test that categories without a fallback list return an empty list."""
        mock_product_repo.find_by_category.return_value = []

        assert await builder.build_menu(MenuCategory.PIZZAS) == []

    @pytest.mark.asyncio
    async def test_empty_pasta_menu_uses_fallback(self, builder: MenuBuilder, mock_product_repo: MagicMock) -> None:
        """Test that the pasta fallback list is used when the catalog has no pasta."""
        mock_product_repo.find_by_category.return_value = []

        items = await builder.build_menu(MenuCategory.PASTA)

        assert items is not None
        assert [item.name for item in items] == [
            "Spaghetti Carbonara",
            "Fettuccine Alfredo",
            "Penne Arrabbiata",
            "Lasagna Classic",
        ]
        assert items[0].item_id == "default-pasta-1"
        assert items[0].price == Decimal("14.99")

    @pytest.mark.asyncio
    async def test_build_menu_returns_none_when_catalog_fails(
        self, builder: MenuBuilder, mock_product_repo: MagicMock
    ) -> None:
        """Test that a failed catalog read is reported as None, not an empty menu."""
        mock_product_repo.find_by_category.return_value = None

        assert await builder.build_menu(MenuCategory.APPETIZERS) is None

    @pytest.mark.asyncio
    async def test_specials_merge_featured_items(self, builder: MenuBuilder, mock_product_repo: MagicMock) -> None:
        """Test that specials merge with featured items, deduplicated, featured first then newest."""
        deal = _product("deal", ProductCategory.SPECIALS, 5)
        featured_deal = _product("featured_deal", ProductCategory.SPECIALS, 2, featured=True)
        featured_pizza = _product("featured_pizza", ProductCategory.PIZZAS, 9, featured=True)
        mock_product_repo.find_by_category.return_value = [featured_deal, deal]
        mock_product_repo.find_featured.return_value = [featured_pizza, featured_deal]

        items = await builder.build_menu(MenuCategory.SPECIALS)

        assert items is not None
        assert [item.item_id for item in items] == ["featured_pizza", "featured_deal", "deal"]
        mock_product_repo.find_by_category.assert_called_once_with(ProductCategory.SPECIALS, available_only=True)

    @pytest.mark.asyncio
    async def test_specials_limited_to_eight(self, builder: MenuBuilder, mock_product_repo: MagicMock) -> None:
        """Test that at most eight specials are shown."""
        mock_product_repo.find_by_category.return_value = [
            _product(f"deal{day}", ProductCategory.SPECIALS, day) for day in range(1, 11)
        ]
        mock_product_repo.find_featured.return_value = []

        items = await builder.build_menu(MenuCategory.SPECIALS)

        assert items is not None
        assert len(items) == 8
        assert items[0].item_id == "deal10"

    @pytest.mark.asyncio
    async def test_specials_fallback_when_nothing_matches(
        self, builder: MenuBuilder, mock_product_repo: MagicMock
    ) -> None:
        """Test that the specials fallback list is used when no deals exist."""
        mock_product_repo.find_by_category.return_value = []
        mock_product_repo.find_featured.return_value = []

        items = await builder.build_menu(MenuCategory.SPECIALS)

        assert items == FALLBACK_MENUS[MenuCategory.SPECIALS]
        assert items is not None
        assert items[0].name == "Family Feast"
        assert items[0].price == Decimal("39.99")

    @pytest.mark.asyncio
    async def test_specials_none_when_featured_scan_fails(
        self, builder: MenuBuilder, mock_product_repo: MagicMock
    ) -> None:
        """Test that a failed featured scan makes the specials menu unavailable."""
        mock_product_repo.find_by_category.return_value = []
        mock_product_repo.find_featured.return_value = None

        assert await builder.build_menu(MenuCategory.SPECIALS) is None
