"""Conversation state machine for the WhatsApp ordering flow.

`ConversationStateMachine.transition` maps (state, context, text, cart) to
the next state, a freshly built context, the resulting cart, a reply
payload and side effects. It reads the catalog through the menu builder
but never writes to storage or sends messages.

Numeric replies are 1-based indices into the option list that was rendered
when the current state was entered. Anything that does not resolve to an
option yields an invalid-choice reply and leaves state, context and cart
untouched.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal

from whatsapp_order_bot.conversation.context import (
    BrowsingContext,
    CartReviewContext,
    CheckoutContext,
    ConversationContext,
    EmptyContext,
    PostAddContext,
    ProductSelectedContext,
)
from whatsapp_order_bot.conversation.replies import (
    PlaceOrder,
    Reply,
    ReplyKind,
    SendProductImage,
    SideEffect,
    TransitionResult,
)
from whatsapp_order_bot.conversation.states import (
    BROWSE_SHORTCUTS,
    CROSS_LINKS,
    MENU_TOKENS,
    RESET_TOKEN,
    ConversationState,
    MenuCategory,
)
from whatsapp_order_bot.models.customer_models import Cart
from whatsapp_order_bot.services.cart_service import (
    PIZZA_SIZES,
    add_to_cart,
    clear_cart,
    resolve_price,
)
from whatsapp_order_bot.services.menu_builder import MenuBuilder

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Normalize inbound text for command matching."""
    return text.strip().lower()


def parse_choice(text: str) -> int | None:
    """Parse a menu reply as a positive integer.

    Args:
        text: Normalized message text

    Returns:
        The chosen option number, or None if the text is not a plain integer
    """
    if not text.isdecimal():
        return None
    return int(text)


@dataclass(frozen=True)
class Turn:
    """One inbound message as seen by a state handler.

    Attributes:
        state: State the customer is in
        context: Context stored with that state
        text: Message text exactly as received
        choice: Parsed option number, or None for non-numeric text
        cart: Customer's current cart
    """

    state: ConversationState
    context: ConversationContext
    text: str
    choice: int | None
    cart: Cart


StateHandler = Callable[[Turn], Awaitable[TransitionResult]]


class ConversationStateMachine:
    """Transition table for the ordering dialogue."""

    def __init__(self, menu_builder: MenuBuilder) -> None:
        """Initialize the state machine.

        Args:
            menu_builder: Builds category item lists when a menu is entered
        """
        self.menu_builder = menu_builder
        self._handlers: dict[ConversationState, StateHandler] = {
            ConversationState.MAIN_MENU: self._handle_main_menu,
            **{
                category.browsing_state: functools.partial(self._handle_browsing, category)
                for category in MenuCategory
            },
            ConversationState.PRODUCT_DETAILS: self._handle_product_details,
            ConversationState.CUSTOMIZATION: self._handle_post_add,
            ConversationState.CART_VIEW: self._handle_cart_view,
            ConversationState.DELIVERY_DETAILS: self._handle_delivery_details,
        }

    async def transition(
        self,
        state: ConversationState | str,
        context: ConversationContext,
        text: str,
        cart: Cart,
    ) -> TransitionResult:
        """Handle one inbound message from an existing customer.

        The reset token and the menu commands are checked before dispatch and
        work from every state.

        Args:
            state: Stored conversation state (unknown values are handled as main_menu)
            context: Stored conversation context
            text: Raw message text
            cart: Customer's current cart

        Returns:
            TransitionResult for the message
        """
        normalized = normalize(text)

        if normalized == RESET_TOKEN:
            return self._main_menu(cart, ReplyKind.MAIN_MENU_RETURN)
        if normalized in MENU_TOKENS:
            return self._main_menu(cart, ReplyKind.MAIN_MENU)

        if not isinstance(state, ConversationState):
            logger.warning(f"Unknown conversation state {state!r}, handling as main_menu")
            state = ConversationState.MAIN_MENU
            context = EmptyContext()

        turn = Turn(state=state, context=context, text=text, choice=parse_choice(normalized), cart=cart)
        return await self._handlers[state](turn)

    # Shared transitions

    @staticmethod
    def _main_menu(cart: Cart, kind: ReplyKind = ReplyKind.MAIN_MENU) -> TransitionResult:
        return TransitionResult(
            state=ConversationState.MAIN_MENU,
            context=EmptyContext(),
            cart=cart,
            reply=Reply(kind=kind),
        )

    @staticmethod
    def _stay(turn: Turn, kind: ReplyKind = ReplyKind.INVALID_CHOICE) -> TransitionResult:
        return TransitionResult(state=turn.state, context=turn.context, cart=turn.cart, reply=Reply(kind=kind))

    @staticmethod
    def _show_cart(cart: Cart) -> TransitionResult:
        return TransitionResult(
            state=ConversationState.CART_VIEW,
            context=CartReviewContext(),
            cart=cart,
            reply=Reply(kind=ReplyKind.CART, cart=cart),
        )

    @staticmethod
    def _request_delivery(cart: Cart) -> TransitionResult:
        return TransitionResult(
            state=ConversationState.DELIVERY_DETAILS,
            context=CheckoutContext(),
            cart=cart,
            reply=Reply(kind=ReplyKind.DELIVERY_REQUEST, cart=cart),
        )

    async def _open_category(self, turn: Turn, category: MenuCategory) -> TransitionResult:
        """Enter a category's browsing state with a freshly built item list."""
        items = await self.menu_builder.build_menu(category)
        if items is None:
            return self._stay(turn, ReplyKind.SERVICE_UNAVAILABLE)

        return TransitionResult(
            state=category.browsing_state,
            context=BrowsingContext(category=category, items=items),
            cart=turn.cart,
            reply=Reply(kind=ReplyKind.CATEGORY_MENU, category=category, items=items),
        )

    # State handlers

    async def _handle_main_menu(self, turn: Turn) -> TransitionResult:
        choice = turn.choice
        if choice is not None and 1 <= choice <= len(BROWSE_SHORTCUTS):
            return await self._open_category(turn, BROWSE_SHORTCUTS[choice - 1])
        if choice == 5:
            return self._show_cart(turn.cart)
        if choice == 6:
            return TransitionResult(
                state=ConversationState.MAIN_MENU,
                context=EmptyContext(),
                cart=turn.cart,
                reply=Reply(kind=ReplyKind.CONTACT_INFO),
            )
        return self._stay(turn)

    async def _handle_browsing(self, category: MenuCategory, turn: Turn) -> TransitionResult:
        context = turn.context
        # A list stored for a different category resolves nothing
        items = context.items if isinstance(context, BrowsingContext) and context.category == category else []

        choice = turn.choice
        if choice is None or choice < 1:
            return self._stay(turn)

        if choice <= len(items):
            item = items[choice - 1]
            effects: list[SideEffect] = []
            if item.primary_image is not None:
                effects.append(SendProductImage(image=item.primary_image, item_name=item.name))
            return TransitionResult(
                state=ConversationState.PRODUCT_DETAILS,
                context=ProductSelectedContext(category=category, item=item),
                cart=turn.cart,
                reply=Reply(
                    kind=ReplyKind.PRODUCT_DETAILS,
                    category=category,
                    item=item,
                    price=resolve_price(item.price, category),
                ),
                effects=effects,
            )

        links = CROSS_LINKS.get(category, ())
        link_index = choice - len(items) - 1
        if link_index < len(links):
            return await self._open_category(turn, links[link_index])

        return self._stay(turn)

    async def _handle_product_details(self, turn: Turn) -> TransitionResult:
        context = turn.context
        if not isinstance(context, ProductSelectedContext):
            logger.warning("product_details without a selected item, returning to main menu")
            return self._main_menu(turn.cart)

        category = context.category
        item = context.item
        price = resolve_price(item.price, category)
        choice = turn.choice

        if category == MenuCategory.PIZZAS:
            if choice is not None and 1 <= choice <= len(PIZZA_SIZES):
                size = PIZZA_SIZES[choice - 1]
                return self._added(turn, f"{item.name} - {size.label}", price + size.surcharge)
            if choice == len(PIZZA_SIZES) + 1:
                return await self._open_category(turn, category)
            return self._stay(turn)

        if choice == 1:
            return self._added(turn, item.name, price)
        if choice == 2:
            return await self._open_category(turn, category)
        return self._stay(turn)

    def _added(self, turn: Turn, product_name: str, price: Decimal) -> TransitionResult:
        cart = add_to_cart(turn.cart, product_name, price)
        return TransitionResult(
            state=ConversationState.CUSTOMIZATION,
            context=PostAddContext(last_added_item=product_name),
            cart=cart,
            reply=Reply(
                kind=ReplyKind.ADDED_TO_CART,
                product_name=product_name,
                price=cart.items[-1].price,
                cart=cart,
            ),
        )

    async def _handle_post_add(self, turn: Turn) -> TransitionResult:
        if turn.choice == 1:
            return self._main_menu(turn.cart)
        if turn.choice == 2:
            return self._request_delivery(turn.cart)
        if turn.choice == 3:
            return self._show_cart(turn.cart)
        return self._stay(turn)

    async def _handle_cart_view(self, turn: Turn) -> TransitionResult:
        choice = turn.choice

        if turn.cart.is_empty:
            if choice is not None and 1 <= choice <= len(BROWSE_SHORTCUTS):
                return await self._open_category(turn, BROWSE_SHORTCUTS[choice - 1])
            return self._stay(turn)

        if choice == 1:
            return self._request_delivery(turn.cart)
        if choice == 2:
            return TransitionResult(
                state=ConversationState.MAIN_MENU,
                context=EmptyContext(),
                cart=clear_cart(),
                reply=Reply(kind=ReplyKind.CART_CLEARED),
            )
        if choice == 3:
            return self._main_menu(turn.cart)
        return self._stay(turn)

    async def _handle_delivery_details(self, turn: Turn) -> TransitionResult:
        address = turn.text.strip()
        if not address:
            return self._stay(turn)

        # Orders always carry at least one item, so an address that arrives
        # with an empty cart reopens the cart view instead of placing an order
        if turn.cart.is_empty:
            logger.info("Delivery details received with an empty cart, showing cart")
            return self._show_cart(turn.cart)

        return TransitionResult(
            state=ConversationState.MAIN_MENU,
            context=EmptyContext(),
            cart=clear_cart(),
            reply=Reply(kind=ReplyKind.ORDER_CONFIRMED),
            effects=[PlaceOrder(address=address)],
        )
