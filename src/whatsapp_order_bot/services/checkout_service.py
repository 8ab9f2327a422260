"""Checkout service for turning a customer's cart into an order."""

import logging
import random
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from whatsapp_order_bot.conversation.context import EmptyContext
from whatsapp_order_bot.conversation.states import ConversationState
from whatsapp_order_bot.models.customer_models import Customer, OrderSummary
from whatsapp_order_bot.models.order_models import (
    DeliveryInfo,
    Order,
    OrderStatus,
    PaymentInfo,
    TimelineEntry,
)
from whatsapp_order_bot.observability.decorators import traced
from whatsapp_order_bot.observability.metrics import (
    record_checkout_failure,
    record_order_placed,
)
from whatsapp_order_bot.repositories.store_repositories import (
    CheckoutWriteResult,
    OrderRepository,
)
from whatsapp_order_bot.services.cart_service import (
    clear_cart,
    compute_delivery_fee,
    final_total,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Result of finalizing a customer's cart.

    Attributes:
        success: Whether the order was created
        order: The created order, None on failure
        customer: Customer record after checkout (unchanged on failure)
        error_message: Error message if checkout failed, None otherwise
    """

    success: bool
    customer: Customer
    order: Order | None = None
    error_message: str | None = None


class CheckoutService:
    """Service for finalizing orders.

    The order and the customer record (cart cleared, order history
    appended, back at the main menu) are written in one transaction, so a
    failed checkout leaves the stored customer exactly as it was.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        order_id_prefix: str = "TP",
        max_attempts: int = 3,
    ) -> None:
        """Initialize the CheckoutService.

        Args:
            order_repository: Repository for the order + customer transaction
            order_id_prefix: Shop prefix for generated order IDs
            max_attempts: Attempts before giving up on order ID collisions
        """
        self.order_repository = order_repository
        self.order_id_prefix = order_id_prefix
        self.max_attempts = max_attempts

    def generate_order_id(self, attempt: int = 0) -> str:
        """Generate an order ID from the current time in milliseconds.

        Retries after a collision get a random three-digit suffix.

        Args:
            attempt: Zero-based attempt number

        Returns:
            Order ID such as "TP1718000000000" or "TP1718000000000-042"
        """
        order_id = f"{self.order_id_prefix}{time.time_ns() // 1_000_000}"
        if attempt > 0:
            order_id = f"{order_id}-{random.randint(0, 999):03d}"
        return order_id

    def build_order(self, order_id: str, customer: Customer, address: str) -> Order:
        """Snapshot the customer's cart into a pending order.

        Args:
            order_id: Identifier for the new order
            customer: Ordering customer
            address: Free-text delivery address and details

        Returns:
            Order with totals computed from the cart
        """
        now = datetime.now(UTC)
        subtotal = customer.cart.total_amount
        return Order(
            order_id=order_id,
            customer_phone=customer.phone_number,
            items=[item.model_copy() for item in customer.cart.items],
            subtotal=subtotal,
            delivery_fee=compute_delivery_fee(subtotal),
            total_amount=final_total(subtotal),
            delivery_info=DeliveryInfo(
                recipient_phone=customer.phone_number,
                address=address,
                delivery_date=now,
            ),
            payment_info=PaymentInfo(),
            status=OrderStatus.PENDING,
            timeline=[TimelineEntry(status=OrderStatus.PENDING, timestamp=now, notes="Order placed via WhatsApp")],
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def customer_after_checkout(customer: Customer, order: Order) -> Customer:
        """Return the customer record as it is stored once `order` exists."""
        summary = OrderSummary(
            order_id=order.order_id,
            date=order.created_at,
            amount=order.total_amount,
            status=order.status.value,
        )
        return customer.model_copy(
            update={
                "cart": clear_cart(),
                "order_history": [*customer.order_history, summary],
                "conversation_state": ConversationState.MAIN_MENU,
                "current_context": EmptyContext(),
                "updated_at": order.created_at,
            }
        )

    @traced("checkout.finalize_order")
    async def finalize_order(self, customer: Customer, address: str) -> CheckoutResult:
        """Create an order from the customer's cart.

        Args:
            customer: Customer as loaded before this message
            address: Free-text delivery address and details

        Returns:
            CheckoutResult with the created order and updated customer, or the
            unchanged customer and an error message
        """
        if customer.cart.is_empty:
            return CheckoutResult(success=False, customer=customer, error_message="Cart is empty")

        for attempt in range(self.max_attempts):
            order = self.build_order(self.generate_order_id(attempt), customer, address)
            updated = self.customer_after_checkout(customer, order)

            outcome = self.order_repository.create_order_for_customer(order, updated)

            if outcome == CheckoutWriteResult.CREATED:
                logger.info(
                    f"Order {order.order_id} placed for {customer.phone_number} - total {order.total_amount}"
                )
                record_order_placed(order.total_amount)
                return CheckoutResult(success=True, customer=updated, order=order)

            if outcome == CheckoutWriteResult.FAILED:
                break

            logger.warning(f"Order ID collision on attempt {attempt + 1}, regenerating")

        record_checkout_failure(outcome.value)
        error_msg = f"Failed to create order for {customer.phone_number} ({outcome.value})"
        logger.error(error_msg)
        return CheckoutResult(success=False, customer=customer, error_message=error_msg)
