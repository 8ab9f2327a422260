"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import UTC, datetime
from decimal import Decimal

import pytest

# Entry modules skip application assembly in test mode
os.environ.setdefault("ENVIRONMENT", "test")

from whatsapp_order_bot.models.catalog_models import (  # noqa: E402
    Product,
    ProductCategory,
    ProductImage,
    ProductSpecifications,
)
from whatsapp_order_bot.models.customer_models import Cart, CartItem, Customer  # noqa: E402


@pytest.fixture
def mock_phone_number() -> str:
    """Fixture providing a standard test sender phone number."""
    return "15551234567"


@pytest.fixture
def mock_pizzas() -> list[Product]:
    """Fixture providing sample pizzas, one featured."""
    return [
        Product(
            product_id="pz_margherita",
            name="Margherita",
            category=ProductCategory.PIZZAS,
            description="Tomato, mozzarella and basil",
            price=Decimal("10.00"),
            featured=True,
            images=[ProductImage(url="/images/margherita.jpg", alt="Margherita")],
            specifications=ProductSpecifications(ingredients="Tomato, mozzarella, basil", spice_level="Mild"),
            created_at=datetime(2024, 1, 10, tzinfo=UTC),
        ),
        Product(
            product_id="pz_pepperoni",
            name="Pepperoni",
            category=ProductCategory.PIZZAS,
            description="Classic pepperoni",
            price=Decimal("12.50"),
            created_at=datetime(2024, 1, 12, tzinfo=UTC),
        ),
    ]


@pytest.fixture
def mock_salad() -> Product:
    """Fixture providing a sample salad without an image."""
    return Product(
        product_id="sl_caesar",
        name="Caesar Salad",
        category=ProductCategory.SALADS,
        description="Romaine, croutons and parmesan",
        price=Decimal("8.50"),
    )


@pytest.fixture
def mock_customer(mock_phone_number: str) -> Customer:
    """Fixture providing a returning customer at the main menu."""
    return Customer(phone_number=mock_phone_number, name="Sam")


@pytest.fixture
def mock_cart() -> Cart:
    """Fixture providing a cart below the free delivery threshold."""
    return Cart(
        items=[CartItem(product_name='Margherita - Medium (12")', price=Decimal("14.00"))],
        total_amount=Decimal("14.00"),
    )


@pytest.fixture
def mock_inbound_message_event() -> dict:
    """Fixture providing a sample EventBridge relayed message."""
    return {
        "version": "0",
        "id": "event_123",
        "detail-type": "InboundMessage",
        "source": "com.whatsapp.relay",
        "account": "123456789012",
        "time": "2024-01-15T10:30:00Z",
        "region": "us-east-1",
        "resources": [],
        "detail": {
            "sender": "15551234567",
            "text": "hi",
            "message_id": "wamid.abc123",
            "timestamp": "1705314600",
        },
    }


@pytest.fixture
def mock_webhook_payload() -> dict:
    """Fixture providing a Cloud API notification with one text message."""
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "waba_1",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"phone_number_id": "pn_1"},
                            "messages": [
                                {
                                    "from": "15551234567",
                                    "id": "wamid.abc123",
                                    "timestamp": "1705314600",
                                    "type": "text",
                                    "text": {"body": "hi"},
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }
