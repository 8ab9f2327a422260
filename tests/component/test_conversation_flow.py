"""Component tests for a full WhatsApp ordering conversation.

The real state machine, menu builder, checkout and renderer run against
in-memory stores and a recording presenter.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from whatsapp_order_bot.conversation.state_machine import ConversationStateMachine
from whatsapp_order_bot.conversation.states import ConversationState
from whatsapp_order_bot.models.catalog_models import Product, ProductCategory, ProductImage
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.models.order_models import Order
from whatsapp_order_bot.presenters.base_presenter import OutboundPresenter
from whatsapp_order_bot.presenters.message_renderer import MessageRenderer
from whatsapp_order_bot.repositories.store_repositories import CheckoutWriteResult, ProductRepository
from whatsapp_order_bot.services.checkout_service import CheckoutService
from whatsapp_order_bot.services.conversation_service import ConversationService
from whatsapp_order_bot.services.menu_builder import MenuBuilder

SENDER = "15551234567"


class InMemoryCustomers:
    """Customer store keyed by phone number."""

    def __init__(self) -> None:
        self.records: dict[str, Customer] = {}

    def get_customer(self, phone_number: str) -> Customer | None:
        customer = self.records.get(phone_number)
        return customer.model_copy(deep=True) if customer else None

    def save_customer(self, customer: Customer) -> bool:
        self.records[customer.phone_number] = customer.model_copy(deep=True)
        return True


class InMemoryOrders:
    """Order store writing the order and the customer together."""

    def __init__(self, customers: InMemoryCustomers) -> None:
        self.customers = customers
        self.orders: dict[str, Order] = {}
        self.outcomes: list[CheckoutWriteResult] = []

    def create_order_for_customer(self, order: Order, customer: Customer) -> CheckoutWriteResult:
        outcome = self.outcomes.pop(0) if self.outcomes else CheckoutWriteResult.CREATED
        if outcome == CheckoutWriteResult.CREATED:
            self.orders[order.order_id] = order
            self.customers.save_customer(customer)
        return outcome


class RecordingPresenter(OutboundPresenter):
    """Presenter that keeps every outbound message."""

    def __init__(self) -> None:
        super().__init__(channel_name="recording")
        self.texts: list[str] = []
        self.images: list[tuple[ProductImage, str]] = []

    async def send_text(self, recipient: str, text: str) -> bool:
        self.texts.append(text)
        return True

    async def send_image(self, recipient: str, image: ProductImage, caption: str) -> bool:
        self.images.append((image, caption))
        return True


@pytest.mark.component
class TestConversationFlow:
    """End-to-end ordering conversations."""

    @pytest.fixture
    def customers(self) -> InMemoryCustomers:
        """Create an empty customer store."""
        return InMemoryCustomers()

    @pytest.fixture
    def orders(self, customers: InMemoryCustomers) -> InMemoryOrders:
        """Create an empty order store."""
        return InMemoryOrders(customers)

    @pytest.fixture
    def presenter(self) -> RecordingPresenter:
        """Create a recording presenter."""
        return RecordingPresenter()

    @pytest.fixture
    def products(self, mock_pizzas: list[Product]) -> MagicMock:
        """Create a catalog with two pizzas and nothing else."""
        repo = MagicMock(spec=ProductRepository)
        repo.find_by_category.side_effect = lambda category, available_only=True, limit=None: (
            list(mock_pizzas) if category == ProductCategory.PIZZAS else []
        )
        repo.find_featured.return_value = [mock_pizzas[0]]
        return repo

    @pytest.fixture
    def service(
        self,
        customers: InMemoryCustomers,
        orders: InMemoryOrders,
        presenter: RecordingPresenter,
        products: MagicMock,
    ) -> ConversationService:
        """Wire the conversation with real services over the in-memory stores."""
        return ConversationService(
            customer_repository=customers,  # type: ignore[arg-type]
            state_machine=ConversationStateMachine(menu_builder=MenuBuilder(products)),
            checkout_service=CheckoutService(order_repository=orders, order_id_prefix="TP"),  # type: ignore[arg-type]
            presenter=presenter,
            renderer=MessageRenderer(shop_name="Tony's Pizza Palace"),
        )

    async def _send(self, service: ConversationService, *messages: str) -> None:
        for text in messages:
            await service.handle_message(SENDER, text)

    @pytest.mark.asyncio
    async def test_first_contact_requires_greeting(
        self, service: ConversationService, customers: InMemoryCustomers, presenter: RecordingPresenter
    ) -> None:
        """Test that an unknown sender is only registered by a greeting."""
        await self._send(service, "2")

        assert customers.records == {}
        assert presenter.texts == []

        await self._send(service, "Hi")

        assert SENDER in customers.records
        assert "Welcome to Tony's Pizza Palace" in presenter.texts[-1]

    @pytest.mark.asyncio
    async def test_order_medium_pizza(
        self,
        service: ConversationService,
        customers: InMemoryCustomers,
        orders: InMemoryOrders,
        presenter: RecordingPresenter,
    ) -> None:
        """Test browsing, choosing a size and checking out a medium pizza."""
        await self._send(service, "hi", "1", "1")

        assert customers.records[SENDER].conversation_state == ConversationState.PRODUCT_DETAILS
        assert presenter.images[0][1] == "📸 *Margherita*\nTony's Pizza Palace"
        assert 'Medium (12")* - $14.00' in presenter.texts[-1]

        await self._send(service, "2")

        customer = customers.records[SENDER]
        assert customer.conversation_state == ConversationState.CUSTOMIZATION
        assert customer.cart.items[0].product_name == 'Margherita - Medium (12")'
        assert customer.cart.total_amount == Decimal("14.00")

        await self._send(service, "2", "12 Baker Street, Flat 3")

        (order,) = orders.orders.values()
        assert order.order_id.startswith("TP")
        assert order.subtotal == Decimal("14.00")
        assert order.delivery_fee == Decimal("2.99")
        assert order.total_amount == Decimal("16.99")
        assert order.delivery_info.address == "12 Baker Street, Flat 3"

        customer = customers.records[SENDER]
        assert customer.conversation_state == ConversationState.MAIN_MENU
        assert customer.cart.is_empty
        assert customer.order_history[0].order_id == order.order_id
        assert order.order_id in presenter.texts[-1]

    @pytest.mark.asyncio
    async def test_reset_keeps_cart(
        self, service: ConversationService, customers: InMemoryCustomers, presenter: RecordingPresenter
    ) -> None:
        """Test that the reset token returns to the main menu from any state without emptying the cart."""
        await self._send(service, "hi", "1", "2", "1")
        assert customers.records[SENDER].cart.total_amount == Decimal("12.50")

        await self._send(service, "0")

        customer = customers.records[SENDER]
        assert customer.conversation_state == ConversationState.MAIN_MENU
        assert customer.cart.total_amount == Decimal("12.50")

    @pytest.mark.asyncio
    async def test_cross_link_opens_fallback_menu(
        self, service: ConversationService, customers: InMemoryCustomers, presenter: RecordingPresenter
    ) -> None:
        """Test that the option after the pizza list opens the pasta fallback menu."""
        await self._send(service, "hi", "1", "3")

        assert customers.records[SENDER].conversation_state == ConversationState.BROWSING_PASTA
        assert "Spaghetti Carbonara" in presenter.texts[-1]

    @pytest.mark.asyncio
    async def test_invalid_choice_keeps_state(
        self, service: ConversationService, customers: InMemoryCustomers, presenter: RecordingPresenter
    ) -> None:
        """Test that an unrecognized reply leaves the customer where they were."""
        await self._send(service, "hi", "1")
        before = customers.records[SENDER]

        await self._send(service, "pineapple")

        after = customers.records[SENDER]
        assert after.conversation_state == before.conversation_state
        assert after.current_context == before.current_context

    @pytest.mark.asyncio
    async def test_failed_checkout_keeps_cart(
        self,
        service: ConversationService,
        customers: InMemoryCustomers,
        orders: InMemoryOrders,
        presenter: RecordingPresenter,
    ) -> None:
        """Test that a failed order write leaves the customer able to retry."""
        await self._send(service, "hi", "1", "1", "1", "2")
        orders.outcomes = [CheckoutWriteResult.FAILED]

        await self._send(service, "12 Baker Street")

        assert orders.orders == {}
        customer = customers.records[SENDER]
        assert customer.conversation_state == ConversationState.DELIVERY_DETAILS
        assert customer.cart.total_amount == Decimal("10.00")

        await self._send(service, "12 Baker Street")

        assert len(orders.orders) == 1
        assert customers.records[SENDER].cart.is_empty

    @pytest.mark.asyncio
    async def test_order_id_collision_is_retried(
        self, service: ConversationService, orders: InMemoryOrders
    ) -> None:
        """Test that a duplicate order ID is regenerated with a suffix."""
        await self._send(service, "hi", "1", "1", "1", "2")
        orders.outcomes = [CheckoutWriteResult.DUPLICATE_ORDER_ID]

        await self._send(service, "12 Baker Street")

        (order_id,) = orders.orders
        assert "-" in order_id
