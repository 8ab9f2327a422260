"""Text templates for outbound WhatsApp messages.

WhatsApp renders *text* as bold; option numbers use keycap emoji up to 10
and plain numbers beyond.
"""

from decimal import Decimal

from whatsapp_order_bot.conversation.context import MenuItemSnapshot
from whatsapp_order_bot.conversation.replies import Reply, ReplyKind
from whatsapp_order_bot.conversation.states import CROSS_LINKS, MenuCategory
from whatsapp_order_bot.models.customer_models import Cart
from whatsapp_order_bot.models.order_models import Order
from whatsapp_order_bot.services.cart_service import (
    compute_delivery_fee,
    final_total,
    pizza_size_prices,
)

_KEYCAPS = ["0️⃣", "1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣", "🔟"]

RETURN_HINT = '💡 Type *"0"* to return to main menu'

_CATEGORY_TITLES = {
    MenuCategory.PIZZAS: ("🍕", "SIGNATURE PIZZAS"),
    MenuCategory.SALADS: ("🥗", "FRESH SALADS & STARTERS"),
    MenuCategory.BEVERAGES: ("🥤", "BEVERAGES & DESSERTS"),
    MenuCategory.SPECIALS: ("🔥", "TODAY'S HOT DEALS"),
    MenuCategory.PASTA: ("🍝", "PASTA & ITALIAN CLASSICS"),
    MenuCategory.APPETIZERS: ("🥖", "APPETIZERS & SIDES"),
}

_CROSS_LINK_LABELS = {
    MenuCategory.PIZZAS: "🔙 *Back to Pizza Menu*",
    MenuCategory.PASTA: "🍝 *Pasta & Italian Classics*",
    MenuCategory.APPETIZERS: "🥖 *Appetizers & Sides*",
}

_PIZZA_SERVINGS = [
    "Perfect for 1-2 people",
    "Great for 2-3 people",
    "Feeds 3-4 people",
    "Perfect for sharing 4-5 people",
]


def option(number: int) -> str:
    return _KEYCAPS[number] if number < len(_KEYCAPS) else f"{number}."


def money(amount: Decimal) -> str:
    return f"${amount:.2f}"


def _truncate(text: str, length: int = 45) -> str:
    return text if len(text) <= length else f"{text[:length]}..."


class MessageRenderer:
    """Renders reply payloads into WhatsApp message text."""

    def __init__(self, shop_name: str = "Tony's Pizza Palace") -> None:
        self.shop_name = shop_name

    def render(self, reply: Reply) -> str:
        """Render a reply payload.

        Args:
            reply: Payload produced by a conversation transition

        Returns:
            Message text ready to send
        """
        renderers = {
            ReplyKind.WELCOME: self._welcome,
            ReplyKind.MAIN_MENU: self._main_menu,
            ReplyKind.MAIN_MENU_RETURN: self._main_menu_return,
            ReplyKind.CATEGORY_MENU: self._category_menu,
            ReplyKind.PRODUCT_DETAILS: self._product_details,
            ReplyKind.ADDED_TO_CART: self._added_to_cart,
            ReplyKind.CART: self._cart,
            ReplyKind.CART_CLEARED: self._cart_cleared,
            ReplyKind.DELIVERY_REQUEST: self._delivery_request,
            ReplyKind.ORDER_CONFIRMED: self._order_confirmed,
            ReplyKind.ORDER_FAILED: self._order_failed,
            ReplyKind.CONTACT_INFO: self._contact_info,
            ReplyKind.INVALID_CHOICE: self._invalid_choice,
            ReplyKind.SERVICE_UNAVAILABLE: self._service_unavailable,
            ReplyKind.ERROR: self._error,
        }
        return renderers[reply.kind](reply)

    def image_caption(self, item_name: str) -> str:
        return f"📸 *{item_name}*\n{self.shop_name}"

    # Menus

    def _menu_options(self) -> str:
        return "\n".join(
            [
                f"{option(1)} 🍕 *Signature Pizzas*",
                f"{option(2)} 🥗 *Fresh Salads & Starters*",
                f"{option(3)} 🥤 *Beverages & Desserts*",
                f"{option(4)} 🔥 *Today's Hot Deals*",
                f"{option(5)} 🛒 *My Cart & Checkout*",
                f"{option(6)} 📞 *Contact & Hours*",
            ]
        )

    def _welcome(self, reply: Reply) -> str:
        return (
            f"🍕 *Welcome to {self.shop_name}!* 🍕\n\n"
            "*🍕 MAIN MENU 🍕*\n\n"
            f"{self._menu_options()}\n\n"
            "🚚 *FREE DELIVERY* on orders $25+\n"
            "💳 *Cash on delivery accepted*\n\n"
            "*Type any number (1-6) to get started!*\n\n"
            '💡 Type *"0"* anytime to return to this menu'
        )

    def _main_menu(self, reply: Reply) -> str:
        return (
            f"🍕 *{self.shop_name}* 🍕\n\n"
            "*🍕 MAIN MENU 🍕*\n\n"
            f"{self._menu_options()}\n\n"
            "*Type any number (1-6) to continue!*\n\n"
            '💡 Type *"0"* anytime to return to this menu'
        )

    def _main_menu_return(self, reply: Reply) -> str:
        return (
            f"🍕 *{self.shop_name}* 🍕\n\n"
            "*🍕 MAIN MENU 🍕*\n\n"
            f"{self._menu_options()}\n\n"
            "🚀 *Back to main menu - What would you like to order?*\n\n"
            '💡 Type *"0"* anytime to return to this menu'
        )

    def _category_menu(self, reply: Reply) -> str:
        category = reply.category or MenuCategory.PIZZAS
        emoji, title = _CATEGORY_TITLES[category]
        lines = [f"{emoji} *{title}* {emoji}", ""]

        if reply.items:
            for number, item in enumerate(reply.items, start=1):
                lines.extend(self._menu_entry(number, item, category))
        else:
            lines.append("🔄 *Nothing available right now.* Please check back in a moment!")
            lines.append("")

        links = CROSS_LINKS.get(category, ())
        for offset, target in enumerate(links, start=1):
            lines.append(f"{option(len(reply.items) + offset)} {_CROSS_LINK_LABELS[target]}")
        if links:
            lines.append("")

        if reply.items:
            lines.append("*Select any number to see details!*")
        lines.append(RETURN_HINT)
        return "\n".join(lines)

    def _menu_entry(self, number: int, item: MenuItemSnapshot, category: MenuCategory) -> list[str]:
        featured = "⭐ " if item.featured else ""
        price = item.price if item.price is not None else category.default_price
        price_label = f"Starting at {money(price)}" if category == MenuCategory.PIZZAS else money(price)
        if item.original_price is not None and item.original_price > price:
            price_label += f" ~{money(item.original_price)}~"

        entry = [f"{option(number)} {featured}*{item.name}*", f"   💰 {price_label}"]
        if item.description:
            entry.append(f"   📝 {_truncate(item.description)}")
        if item.specifications and item.specifications.spice_level:
            entry.append(f"   🌶️ {item.specifications.spice_level}")
        entry.append("")
        return entry

    # Product details

    def _product_details(self, reply: Reply) -> str:
        item = reply.item
        category = reply.category or MenuCategory.PIZZAS
        price = reply.price if reply.price is not None else category.default_price
        if item is None:
            return self._invalid_choice(reply)

        emoji, _ = _CATEGORY_TITLES[category]
        lines = [f"{emoji} *{item.name.upper()}* {emoji}", ""]
        if item.description:
            lines.extend(["📝 *Description:*", item.description, ""])
        if item.details:
            lines.extend([f"✨ {item.details}", ""])

        specs = item.specifications
        if specs is not None:
            if specs.ingredients:
                lines.append(f"🥬 *Ingredients:* {specs.ingredients}")
            if specs.servings:
                lines.append(f"👥 *Serves:* {specs.servings}")
            if specs.allergens:
                lines.append(f"⚠️ *Allergens:* {specs.allergens}")
            if specs.preparation_time:
                lines.append(f"⏰ *Prep Time:* {specs.preparation_time}")
            if specs.spice_level:
                lines.append(f"🌶️ *Spice Level:* {specs.spice_level}")
            lines.append("")

        if category == MenuCategory.PIZZAS:
            lines.append("💰 *SIZE & PRICING:*")
            lines.append("")
            sizes = pizza_size_prices(price)
            for number, ((size, size_price), servings) in enumerate(zip(sizes, _PIZZA_SERVINGS, strict=True), 1):
                lines.append(f"{option(number)} *{size.label}* - {money(size_price)}")
                lines.append(f"   👥 {servings}")
                lines.append("")
            lines.append(f"{option(len(sizes) + 1)} *🔙 Back to Pizza Menu*")
            lines.append("")
            lines.append(f"*Select your preferred size (1-{len(sizes) + 1})!*")
        else:
            lines.append(f"💰 *Price: {money(price)}*")
            lines.append("")
            lines.append(f"{option(1)} 🛒 *Add to Cart*")
            lines.append(f"{option(2)} 🔙 *Back to {category.value.title()} Menu*")
            lines.append("")
            lines.append("*Select an option (1-2)*")

        lines.extend(["", RETURN_HINT])
        return "\n".join(lines)

    # Cart and checkout

    def _added_to_cart(self, reply: Reply) -> str:
        cart = reply.cart or Cart()
        price = reply.price or Decimal("0.00")
        return (
            "✅ *ADDED TO CART!* ✅\n\n"
            f"🍕 *{reply.product_name}*\n"
            f"💰 {money(price)}\n\n"
            f"🛒 *Cart Total: {money(cart.total_amount)}*\n\n"
            "*What would you like to do next?*\n\n"
            f"{option(1)} 🛒 *Continue Shopping*\n"
            f"{option(2)} 🚚 *Proceed to Checkout*\n"
            f"{option(3)} 👀 *View Full Cart*\n\n"
            "*Select an option (1-3)*\n\n"
            f"{RETURN_HINT}"
        )

    def _cart(self, reply: Reply) -> str:
        cart = reply.cart or Cart()
        lines = ["🛒 *YOUR SHOPPING CART* 🛒", ""]

        if cart.is_empty:
            lines.extend(
                [
                    "*Your cart is empty!* 🛒",
                    "",
                    "*Start your delicious journey:*",
                    f"{option(1)} 🍕 *Browse Signature Pizzas*",
                    f"{option(2)} 🥗 *Browse Fresh Salads*",
                    f"{option(3)} 🥤 *Browse Drinks & Desserts*",
                    f"{option(4)} 🔥 *Check Today's Hot Deals*",
                ]
            )
        else:
            lines.append("*Your Order:*")
            for number, item in enumerate(cart.items, start=1):
                lines.append(f"{option(number)} {item.product_name}")
                lines.append(f"   💰 {money(item.price)} x {item.quantity}")
            lines.append("")
            lines.append(f"💰 *TOTAL: {money(cart.total_amount)}*")
            lines.extend(self._delivery_lines(cart.total_amount))
            lines.extend(
                [
                    "",
                    "*Ready to complete your order?*",
                    "",
                    f"{option(1)} 🚚 *Proceed to Checkout*",
                    f"{option(2)} 🗑️ *Clear Cart*",
                    f"{option(3)} ➕ *Add More Items*",
                ]
            )

        lines.extend(["", RETURN_HINT])
        return "\n".join(lines)

    def _delivery_lines(self, subtotal: Decimal) -> list[str]:
        fee = compute_delivery_fee(subtotal)
        if fee > 0:
            return [
                f"🚚 *Delivery Fee: {money(fee)}*",
                "💡 *FREE delivery on orders $25+*",
                f"💰 *GRAND TOTAL: {money(final_total(subtotal))}*",
            ]
        return ["🚚 *Delivery:* FREE! 🎉"]

    def _cart_cleared(self, reply: Reply) -> str:
        return f"🗑️ *Cart cleared!*\n\n{self._main_menu(reply)}"

    def _delivery_request(self, reply: Reply) -> str:
        cart = reply.cart or Cart()
        fee = compute_delivery_fee(cart.total_amount)
        fee_line = f"🚚 *Delivery Fee: {money(fee)}*" if fee > 0 else "🚚 *Delivery: FREE! 🎉*"
        return (
            "🚚 *DELIVERY INFORMATION* 🚚\n\n"
            f"💰 *Order Total: {money(final_total(cart.total_amount))}*\n"
            f"{fee_line}\n\n"
            "To complete your order, please reply with your delivery details:\n\n"
            "Name: [Your Full Name]\n"
            "Phone: [Your Phone Number]\n"
            "Address: [Complete Street Address]\n"
            "City: [City, State, ZIP]\n"
            "Notes: [Special delivery instructions]\n\n"
            f"{RETURN_HINT}"
        )

    def _order_confirmed(self, reply: Reply) -> str:
        order: Order | None = reply.order
        if order is None:
            return self._order_failed(reply)
        return (
            "✅ *ORDER CONFIRMED!* ✅\n\n"
            f"🎊 *Thank you for choosing {self.shop_name}!*\n\n"
            "📋 *Order Details:*\n"
            f"🆔 Order ID: *{order.order_id}*\n"
            f"💰 Total: *{money(order.total_amount)}*\n"
            f"📞 Phone: *{order.customer_phone}*\n"
            f"📍 Address: {order.delivery_info.address}\n"
            f"⏰ Estimated Delivery: *{order.delivery_info.delivery_time}*\n"
            "💳 Payment: *Cash on Delivery*\n\n"
            '💡 Type *"MENU"* to order again!\n'
            f"{RETURN_HINT}"
        )

    def _order_failed(self, reply: Reply) -> str:
        return (
            "❌ Sorry, there was an error processing your order.\n\n"
            "Your cart has been kept - please send your delivery details again.\n\n"
            f"{RETURN_HINT}"
        )

    # Static and error replies

    def _contact_info(self, reply: Reply) -> str:
        return (
            f"📞 *{self.shop_name.upper()}* 📞\n\n"
            "🏪 *Location & Hours:*\n"
            "📍 123 Broadway Ave, New York, NY 10001\n"
            "📞 Phone: (555) PIZZA-NY\n"
            "🕐 Hours: Mon-Sun 11AM-11PM\n"
            "🚚 Free delivery on orders $25+\n\n"
            '💡 Type *"MENU"* to continue\n'
            '💡 Type *"0"* for main menu'
        )

    def _invalid_choice(self, reply: Reply) -> str:
        return f"❌ *Invalid choice*\n\nPlease reply with one of the option numbers shown.\n\n{RETURN_HINT}"

    def _service_unavailable(self, reply: Reply) -> str:
        return f"❌ *Menu temporarily unavailable*\n\nPlease try again in a moment!\n\n{RETURN_HINT}"

    def _error(self, reply: Reply) -> str:
        return f"❌ *Something went wrong*\n\nPlease try again!\n\n{RETURN_HINT}"
