"""Customer, cart and order-history models.

A customer is keyed by phone number and carries the conversation state,
the transient conversation context and the shopping cart.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from whatsapp_order_bot.conversation.context import (
    ConversationContext,
    EmptyContext,
    parse_context,
)
from whatsapp_order_bot.conversation.states import ConversationState
from whatsapp_order_bot.models.serialization import to_dynamodb_value


class CartItem(BaseModel):
    """Cart line item. The price is a snapshot taken when the item was added."""

    product_name: str = Field(..., description="Display name, including size for pizzas")
    price: Decimal = Field(..., description="Unit price at add time", gt=0)
    quantity: int = Field(default=1, description="Units of this line", ge=1)
    customization: str = Field(default="", description="Free-text customization")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Cart(BaseModel):
    """Shopping cart with a running total."""

    items: list[CartItem] = Field(default_factory=list)
    total_amount: Decimal = Field(default=Decimal("0.00"))

    @property
    def is_empty(self) -> bool:
        return not self.items


class OrderSummary(BaseModel):
    """Entry of a customer's order history. Never modified once appended."""

    order_id: str
    date: datetime
    amount: Decimal
    status: str


class Customer(BaseModel):
    """WhatsApp customer record."""

    phone_number: str = Field(..., description="Sender phone number, unique key")
    name: str = Field(default="")
    email: str = Field(default="")
    conversation_state: ConversationState | str = Field(default=ConversationState.MAIN_MENU)
    current_context: ConversationContext = Field(default_factory=EmptyContext)
    cart: Cart = Field(default_factory=Cart)
    order_history: list[OrderSummary] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("conversation_state", mode="before")
    @classmethod
    def coerce_state(cls, v: Any) -> Any:
        """Keep known states as enum members; unknown values pass through as strings."""
        if isinstance(v, str) and not isinstance(v, ConversationState):
            try:
                return ConversationState(v)
            except ValueError:
                return v
        return v

    @field_validator("current_context", mode="before")
    @classmethod
    def coerce_context(cls, v: Any) -> Any:
        """Tolerate missing or outdated stored context."""
        if isinstance(v, BaseModel):
            return v
        return parse_context(v)

    @classmethod
    def new(cls, phone_number: str) -> "Customer":
        """Create the default record for a first-contact customer."""
        return cls(phone_number=phone_number)

    @property
    def total_spent(self) -> Decimal:
        return sum((entry.amount for entry in self.order_history), Decimal("0.00"))

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = to_dynamodb_value(self.model_dump())
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Customer":
        """Create Customer from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Customer: Parsed model instance
        """
        data = dict(item)
        for field in ("created_at", "updated_at"):
            if field in item:
                data[field] = datetime.fromisoformat(item[field])
        return cls(**data)
