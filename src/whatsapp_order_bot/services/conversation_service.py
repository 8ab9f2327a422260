"""Conversation service: handles one inbound WhatsApp message end to end.

Loads the customer, runs the state machine, carries out its side effects,
stores the result and sends the reply. Messages are handled one at a time
to completion; there is no locking across concurrent messages from the
same sender.
"""

import logging
from datetime import UTC, datetime

from whatsapp_order_bot.conversation.replies import (
    PlaceOrder,
    Reply,
    ReplyKind,
    SendProductImage,
    TransitionResult,
)
from whatsapp_order_bot.conversation.state_machine import ConversationStateMachine, normalize
from whatsapp_order_bot.conversation.states import GREETING_TOKENS, ConversationState
from whatsapp_order_bot.models.customer_models import Customer
from whatsapp_order_bot.observability.decorators import traced
from whatsapp_order_bot.observability.metrics import (
    record_invalid_choice,
    record_message_processed,
)
from whatsapp_order_bot.presenters.base_presenter import OutboundPresenter
from whatsapp_order_bot.presenters.message_renderer import MessageRenderer
from whatsapp_order_bot.repositories.store_repositories import CustomerRepository, StorageError
from whatsapp_order_bot.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for processing inbound customer messages."""

    def __init__(
        self,
        customer_repository: CustomerRepository,
        state_machine: ConversationStateMachine,
        checkout_service: CheckoutService,
        presenter: OutboundPresenter,
        renderer: MessageRenderer,
    ) -> None:
        """Initialize the ConversationService.

        Args:
            customer_repository: Customer context store
            state_machine: Conversation transition table
            checkout_service: Order finalization
            presenter: Outbound messaging channel
            renderer: Reply text templates
        """
        self.customer_repository = customer_repository
        self.state_machine = state_machine
        self.checkout_service = checkout_service
        self.presenter = presenter
        self.renderer = renderer

    @traced("conversation.handle_message")
    async def handle_message(self, sender: str, text: str) -> Reply | None:
        """Handle one inbound text message.

        Args:
            sender: Sender phone number
            text: Message text as received

        Returns:
            The reply that was sent, or None if the message was ignored
        """
        try:
            customer = self.customer_repository.get_customer(sender)
        except StorageError:
            return await self._reply(sender, Reply(kind=ReplyKind.SERVICE_UNAVAILABLE))

        try:
            if customer is None:
                return await self._handle_first_contact(sender, text)
            return await self._handle_customer_message(customer, text)

        except Exception as e:
            logger.exception(f"Failed to process message from {sender}: {e}")
            return await self._reply(sender, Reply(kind=ReplyKind.ERROR))

    async def _handle_first_contact(self, sender: str, text: str) -> Reply | None:
        """Register a new customer on a greeting; ignore anything else."""
        if normalize(text) not in GREETING_TOKENS:
            logger.info(f"Ignoring message from unknown sender {sender}")
            return None

        record_message_processed("new_customer")
        if not self.customer_repository.save_customer(Customer.new(sender)):
            return await self._reply(sender, Reply(kind=ReplyKind.SERVICE_UNAVAILABLE))

        logger.info(f"New customer registered: {sender}")
        return await self._reply(sender, Reply(kind=ReplyKind.WELCOME))

    async def _handle_customer_message(self, customer: Customer, text: str) -> Reply:
        state = customer.conversation_state
        state_label = state.value if isinstance(state, ConversationState) else str(state)
        sender = customer.phone_number

        logger.info(f"Message from {sender} in state {state_label}: {normalize(text)!r}")
        record_message_processed(state_label)

        result = await self.state_machine.transition(state, customer.current_context, text, customer.cart)

        if result.reply.kind == ReplyKind.INVALID_CHOICE:
            record_invalid_choice(state_label)

        place_order = next((effect for effect in result.effects if isinstance(effect, PlaceOrder)), None)
        if place_order is not None:
            return await self._place_order(customer, place_order)

        if not self.customer_repository.save_customer(self._apply(customer, result)):
            return await self._reply(sender, Reply(kind=ReplyKind.SERVICE_UNAVAILABLE))

        for effect in result.effects:
            if isinstance(effect, SendProductImage):
                await self.presenter.send_image(sender, effect.image, self.renderer.image_caption(effect.item_name))

        return await self._reply(sender, result.reply)

    async def _place_order(self, customer: Customer, place_order: PlaceOrder) -> Reply:
        """Finalize the order; on failure the stored customer keeps the cart."""
        checkout = await self.checkout_service.finalize_order(customer, place_order.address)
        if checkout.success:
            return await self._reply(
                customer.phone_number, Reply(kind=ReplyKind.ORDER_CONFIRMED, order=checkout.order)
            )
        return await self._reply(customer.phone_number, Reply(kind=ReplyKind.ORDER_FAILED))

    @staticmethod
    def _apply(customer: Customer, result: TransitionResult) -> Customer:
        return customer.model_copy(
            update={
                "conversation_state": result.state,
                "current_context": result.context,
                "cart": result.cart,
                "updated_at": datetime.now(UTC),
            }
        )

    async def _reply(self, recipient: str, reply: Reply) -> Reply:
        await self.presenter.send_text(recipient, self.renderer.render(reply))
        return reply
