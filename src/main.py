"""Main application entry point for the WhatsApp order bot.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from whatsapp_order_bot.auth.webhook_verifier import WebhookVerifier
from whatsapp_order_bot.conversation.state_machine import ConversationStateMachine
from whatsapp_order_bot.handlers.api_handler import create_app
from whatsapp_order_bot.handlers.webhook_handler import WebhookHandler
from whatsapp_order_bot.observability import configure_logging, setup_observability
from whatsapp_order_bot.presenters.message_renderer import MessageRenderer
from whatsapp_order_bot.presenters.whatsapp_presenter import WhatsAppPresenter
from whatsapp_order_bot.repositories.store_repositories import (
    CustomerRepository,
    OrderRepository,
    ProductRepository,
)
from whatsapp_order_bot.services.admin_service import AdminService
from whatsapp_order_bot.services.checkout_service import CheckoutService
from whatsapp_order_bot.services.conversation_service import ConversationService
from whatsapp_order_bot.services.menu_builder import MenuBuilder

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB accepts any credentials
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def create_presenter() -> WhatsAppPresenter:
    """Create the WhatsApp Cloud API presenter from environment variables.

    Returns:
        Configured WhatsAppPresenter

    Raises:
        ValueError: If the Cloud API credentials are missing
    """
    access_token = os.getenv("WHATSAPP_ACCESS_TOKEN")
    phone_number_id = os.getenv("WHATSAPP_PHONE_NUMBER_ID")

    if not access_token or not phone_number_id:
        raise ValueError("WHATSAPP_ACCESS_TOKEN and WHATSAPP_PHONE_NUMBER_ID must be set in environment")

    return WhatsAppPresenter(
        access_token=access_token,
        phone_number_id=phone_number_id,
        api_version=os.getenv("WHATSAPP_API_VERSION", "v19.0"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8001"),
    )


def create_webhook_verifier() -> WebhookVerifier:
    """Create the webhook verifier from environment variables.

    Raises:
        ValueError: If WHATSAPP_VERIFY_TOKEN is missing
    """
    verify_token = os.getenv("WHATSAPP_VERIFY_TOKEN")
    if not verify_token:
        raise ValueError("WHATSAPP_VERIFY_TOKEN must be set in environment")

    verifier = WebhookVerifier(verify_token=verify_token, app_secret=os.getenv("WHATSAPP_APP_SECRET"))
    if not verifier.signature_required:
        logger.warning("WHATSAPP_APP_SECRET not configured - webhook signatures will not be checked")

    return verifier


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB repositories
    3. Creates the WhatsApp presenter and webhook verifier
    4. Wires the conversation and admin services
    5. Creates the FastAPI app and sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing WhatsApp order bot...")

    dynamodb_resource = get_dynamodb_resource()

    customers_table = os.getenv("DYNAMODB_CUSTOMERS_TABLE", "whatsapp-bot-customers")
    products_table = os.getenv("DYNAMODB_PRODUCTS_TABLE", "whatsapp-bot-products")
    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "whatsapp-bot-orders")

    customer_repository = CustomerRepository(dynamodb_resource=dynamodb_resource, table_name=customers_table)
    product_repository = ProductRepository(dynamodb_resource=dynamodb_resource, table_name=products_table)
    order_repository = OrderRepository(
        dynamodb_resource=dynamodb_resource,
        table_name=orders_table,
        customers_table_name=customers_table,
    )

    logger.info(
        f"Repositories configured - customers: {customers_table}, "
        f"products: {products_table}, orders: {orders_table}"
    )

    presenter = create_presenter()
    webhook_verifier = create_webhook_verifier()

    conversation_service = ConversationService(
        customer_repository=customer_repository,
        state_machine=ConversationStateMachine(menu_builder=MenuBuilder(product_repository)),
        checkout_service=CheckoutService(
            order_repository=order_repository,
            order_id_prefix=os.getenv("ORDER_ID_PREFIX", "TP"),
        ),
        presenter=presenter,
        renderer=MessageRenderer(shop_name=os.getenv("SHOP_NAME", "Tony's Pizza Palace")),
    )
    admin_service = AdminService(
        customer_repository=customer_repository,
        product_repository=product_repository,
        order_repository=order_repository,
    )

    logger.info("Services initialized")

    app = create_app(
        webhook_handler=WebhookHandler(conversation_service),
        admin_service=admin_service,
        webhook_verifier=webhook_verifier,
    )
    setup_observability(app)

    logger.info("WhatsApp order bot initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# We use if-else instead of ternary to avoid calling create_application() before checking
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
