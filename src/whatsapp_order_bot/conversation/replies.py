"""Reply payloads and side effects produced by conversation transitions.

A transition never sends anything itself. It returns a `Reply` describing
what the customer should see and a list of side effects for the caller to
carry out; message wording lives in the presenter layer.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from whatsapp_order_bot.conversation.context import ConversationContext, MenuItemSnapshot
from whatsapp_order_bot.conversation.states import ConversationState, MenuCategory
from whatsapp_order_bot.models.catalog_models import ProductImage
from whatsapp_order_bot.models.customer_models import Cart
from whatsapp_order_bot.models.order_models import Order


class ReplyKind(str, Enum):
    """Kinds of outbound reply."""

    WELCOME = "welcome"
    MAIN_MENU = "main_menu"
    MAIN_MENU_RETURN = "main_menu_return"
    CATEGORY_MENU = "category_menu"
    PRODUCT_DETAILS = "product_details"
    ADDED_TO_CART = "added_to_cart"
    CART = "cart"
    CART_CLEARED = "cart_cleared"
    DELIVERY_REQUEST = "delivery_request"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_FAILED = "order_failed"
    CONTACT_INFO = "contact_info"
    INVALID_CHOICE = "invalid_choice"
    SERVICE_UNAVAILABLE = "service_unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class Reply:
    """Outbound reply payload.

    Only the attributes relevant to `kind` are set.

    Attributes:
        kind: What the reply shows
        category: Menu category for CATEGORY_MENU and PRODUCT_DETAILS
        items: Rendered item list for CATEGORY_MENU (option i is items[i-1])
        item: Selected item for PRODUCT_DETAILS
        price: Resolved price for PRODUCT_DETAILS and ADDED_TO_CART
        product_name: Cart line name for ADDED_TO_CART
        cart: Cart to summarize for ADDED_TO_CART, CART and DELIVERY_REQUEST
        order: Created order for ORDER_CONFIRMED
    """

    kind: ReplyKind
    category: MenuCategory | None = None
    items: list[MenuItemSnapshot] = field(default_factory=list)
    item: MenuItemSnapshot | None = None
    price: Decimal | None = None
    product_name: str | None = None
    cart: Cart | None = None
    order: Order | None = None


@dataclass(frozen=True)
class SendProductImage:
    """Send an item's primary image ahead of the text reply."""

    image: ProductImage
    item_name: str


@dataclass(frozen=True)
class PlaceOrder:
    """Finalize the cart into an order delivered to `address`."""

    address: str


SideEffect = SendProductImage | PlaceOrder


@dataclass
class TransitionResult:
    """Outcome of handling one inbound message.

    Attributes:
        state: Next conversation state
        context: Replacement context (never merged with the previous one)
        cart: Cart after any add or clear performed by the transition
        reply: Payload for the outbound presenter
        effects: Side effects to carry out, in order
    """

    state: ConversationState
    context: ConversationContext
    cart: Cart
    reply: Reply
    effects: list[SideEffect] = field(default_factory=list)
