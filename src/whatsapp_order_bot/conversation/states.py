"""Conversation states and browsable menu categories."""

from decimal import Decimal
from enum import Enum

from whatsapp_order_bot.models.catalog_models import ProductCategory

RESET_TOKEN = "0"
GREETING_TOKENS = frozenset({"menu", "hi", "hello", "start"})
MENU_TOKENS = frozenset({"menu", "start"})


class ConversationState(str, Enum):
    """Named position of a customer in the ordering dialogue."""

    MAIN_MENU = "main_menu"
    BROWSING_PIZZAS = "browsing_pizzas"
    BROWSING_SALADS = "browsing_salads"
    BROWSING_BEVERAGES = "browsing_beverages"
    BROWSING_SPECIALS = "browsing_specials"
    BROWSING_PASTA = "browsing_pasta"
    BROWSING_APPETIZERS = "browsing_appetizers"
    PRODUCT_DETAILS = "product_details"
    # Post add-to-cart action menu; the name is kept for stored records.
    CUSTOMIZATION = "customization"
    CART_VIEW = "cart_view"
    DELIVERY_DETAILS = "delivery_details"


class MenuCategory(str, Enum):
    """Categories a customer can browse from WhatsApp."""

    PIZZAS = "pizzas"
    SALADS = "salads"
    BEVERAGES = "beverages"
    SPECIALS = "specials"
    PASTA = "pasta"
    APPETIZERS = "appetizers"

    @property
    def browsing_state(self) -> ConversationState:
        return _BROWSING_STATES[self]

    @property
    def product_category(self) -> ProductCategory:
        return ProductCategory(self.value)

    @property
    def page_size(self) -> int:
        return _PAGE_SIZES[self]

    @property
    def default_price(self) -> Decimal:
        return _DEFAULT_PRICES[self]


_BROWSING_STATES = {
    MenuCategory.PIZZAS: ConversationState.BROWSING_PIZZAS,
    MenuCategory.SALADS: ConversationState.BROWSING_SALADS,
    MenuCategory.BEVERAGES: ConversationState.BROWSING_BEVERAGES,
    MenuCategory.SPECIALS: ConversationState.BROWSING_SPECIALS,
    MenuCategory.PASTA: ConversationState.BROWSING_PASTA,
    MenuCategory.APPETIZERS: ConversationState.BROWSING_APPETIZERS,
}

_PAGE_SIZES = {
    MenuCategory.PIZZAS: 20,
    MenuCategory.SALADS: 15,
    MenuCategory.BEVERAGES: 15,
    MenuCategory.SPECIALS: 8,
    MenuCategory.PASTA: 8,
    MenuCategory.APPETIZERS: 8,
}

_DEFAULT_PRICES = {
    MenuCategory.PIZZAS: Decimal("9.99"),
    MenuCategory.SALADS: Decimal("12.99"),
    MenuCategory.BEVERAGES: Decimal("2.99"),
    MenuCategory.SPECIALS: Decimal("19.99"),
    MenuCategory.PASTA: Decimal("14.99"),
    MenuCategory.APPETIZERS: Decimal("7.99"),
}

# Main menu and empty-cart shortcut menu, in option order
BROWSE_SHORTCUTS = (
    MenuCategory.PIZZAS,
    MenuCategory.SALADS,
    MenuCategory.BEVERAGES,
    MenuCategory.SPECIALS,
)

# Trailing options appended after a category's item list, in option order
CROSS_LINKS = {
    MenuCategory.PIZZAS: (MenuCategory.PASTA, MenuCategory.APPETIZERS),
    MenuCategory.PASTA: (MenuCategory.PIZZAS,),
    MenuCategory.APPETIZERS: (MenuCategory.PIZZAS,),
}
