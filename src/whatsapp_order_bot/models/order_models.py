"""Order models.

Orders are created once per successful WhatsApp checkout and afterwards
only change status (via the admin API).
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from whatsapp_order_bot.models.customer_models import CartItem
from whatsapp_order_bot.models.serialization import to_dynamodb_value


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check whether an order in this status may move to `target`.

        Orders move forward along the fulfilment path, or to cancelled from
        any non-terminal status.
        """
        if self.is_terminal or target == self:
            return False
        if target == OrderStatus.CANCELLED:
            return True
        return _FULFILMENT_PATH.index(target) > _FULFILMENT_PATH.index(self)


_FULFILMENT_PATH = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, Enum):
    """Payment state of an order."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentInfo(BaseModel):
    """Payment details. No payment is processed by the service."""

    method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None


class DeliveryInfo(BaseModel):
    """Delivery details.

    Only the free-text address is collected over WhatsApp; the other fields
    carry fixed defaults.
    """

    recipient_name: str = "Valued Customer"
    recipient_phone: str | None = None
    address: str
    city: str = "Delivery City"
    area: str | None = None
    delivery_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    delivery_time: str = "30-45 minutes"
    special_instructions: str | None = None


class TimelineEntry(BaseModel):
    """Status change record."""

    status: OrderStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    notes: str | None = None


class Order(BaseModel):
    """Customer order."""

    order_id: str = Field(..., description="Human-readable order identifier")
    customer_phone: str = Field(..., description="Phone number of the ordering customer")
    items: list[CartItem] = Field(..., description="Cart snapshot at checkout")
    subtotal: Decimal = Field(..., description="Cart total before delivery fee", ge=0)
    delivery_fee: Decimal = Field(..., description="Delivery fee charged", ge=0)
    total_amount: Decimal = Field(..., description="Subtotal plus delivery fee", ge=0)
    delivery_info: DeliveryInfo
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    status: OrderStatus = OrderStatus.PENDING
    timeline: list[TimelineEntry] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def with_status(self, status: OrderStatus, notes: str | None = None) -> "Order":
        """Return a copy moved to `status` with a timeline entry appended."""
        now = datetime.now(UTC)
        return self.model_copy(
            update={
                "status": status,
                "timeline": [*self.timeline, TimelineEntry(status=status, timestamp=now, notes=notes)],
                "notes": notes if notes else self.notes,
                "updated_at": now,
            }
        )

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = to_dynamodb_value(self.model_dump())
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls.model_validate(item)
