"""Custom metrics for the WhatsApp order bot."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("whatsapp-order-bot")

# Inbound messages handled, by conversation state at arrival
messages_processed_counter = meter.create_counter(
    name="messages_processed_total",
    description="Total number of inbound messages processed by conversation state",
    unit="1",
)

invalid_choices_counter = meter.create_counter(
    name="invalid_choices_total",
    description="Total number of unrecognized replies by conversation state",
    unit="1",
)

orders_placed_counter = meter.create_counter(
    name="orders_placed_total",
    description="Total number of orders placed over WhatsApp",
    unit="1",
)

checkout_failures_counter = meter.create_counter(
    name="checkout_failures_total",
    description="Total number of checkouts that could not be persisted",
    unit="1",
)

outbound_failures_counter = meter.create_counter(
    name="outbound_failures_total",
    description="Total number of outbound WhatsApp messages that failed to send",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_value",
    description="Final total of placed orders including delivery fee",
    unit="USD",
)


def record_message_processed(state: str) -> None:
    """Record an inbound message.

    Args:
        state: Conversation state the customer was in when the message arrived
    """
    messages_processed_counter.add(1, {"state": state})


def record_invalid_choice(state: str) -> None:
    """Record a reply that did not match any option.

    Args:
        state: Conversation state the reply was interpreted in
    """
    invalid_choices_counter.add(1, {"state": state})


def record_order_placed(total: Decimal) -> None:
    """Record a placed order and its final total.

    Args:
        total: Order total including delivery fee
    """
    orders_placed_counter.add(1)
    order_value_histogram.record(float(total))


def record_checkout_failure(reason: str) -> None:
    """Record a checkout that did not create an order.

    Args:
        reason: Short failure reason (e.g., "duplicate_order_id", "failed")
    """
    checkout_failures_counter.add(1, {"reason": reason})


def record_outbound_failure(kind: str) -> None:
    """Record a failed outbound message.

    Args:
        kind: Message kind ("text" or "image")
    """
    outbound_failures_counter.add(1, {"kind": kind})
