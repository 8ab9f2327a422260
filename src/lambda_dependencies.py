"""Shared dependency factory for Lambda handlers.

Dependencies are created once and reused across invocations within the same
Lambda container.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from whatsapp_order_bot.auth.webhook_verifier import WebhookVerifier
from whatsapp_order_bot.conversation.state_machine import ConversationStateMachine
from whatsapp_order_bot.handlers.api_handler import create_app
from whatsapp_order_bot.handlers.event_handler import MessageEventHandler
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

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_conversation_service: ConversationService | None = None
_admin_service: AdminService | None = None
_event_handler: MessageEventHandler | None = None
_fastapi_app: FastAPI | None = None


def _table_names() -> tuple[str, str, str]:
    return (
        os.getenv("DYNAMODB_CUSTOMERS_TABLE", "whatsapp-bot-customers"),
        os.getenv("DYNAMODB_PRODUCTS_TABLE", "whatsapp-bot-products"),
        os.getenv("DYNAMODB_ORDERS_TABLE", "whatsapp-bot-orders"),
    )


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def get_conversation_service() -> ConversationService:
    """Create or retrieve cached conversation service.

    Returns:
        Configured ConversationService instance

    Raises:
        ValueError: If the WhatsApp Cloud API credentials are missing
    """
    global _conversation_service

    if _conversation_service is not None:
        return _conversation_service

    access_token = os.getenv("WHATSAPP_ACCESS_TOKEN")
    phone_number_id = os.getenv("WHATSAPP_PHONE_NUMBER_ID")

    if not access_token or not phone_number_id:
        raise ValueError("WHATSAPP_ACCESS_TOKEN and WHATSAPP_PHONE_NUMBER_ID must be set in environment")

    dynamodb_resource = get_dynamodb_resource()
    customers_table, products_table, orders_table = _table_names()

    _conversation_service = ConversationService(
        customer_repository=CustomerRepository(dynamodb_resource=dynamodb_resource, table_name=customers_table),
        state_machine=ConversationStateMachine(
            menu_builder=MenuBuilder(
                ProductRepository(dynamodb_resource=dynamodb_resource, table_name=products_table)
            )
        ),
        checkout_service=CheckoutService(
            order_repository=OrderRepository(
                dynamodb_resource=dynamodb_resource,
                table_name=orders_table,
                customers_table_name=customers_table,
            ),
            order_id_prefix=os.getenv("ORDER_ID_PREFIX", "TP"),
        ),
        presenter=WhatsAppPresenter(
            access_token=access_token,
            phone_number_id=phone_number_id,
            api_version=os.getenv("WHATSAPP_API_VERSION", "v19.0"),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8001"),
        ),
        renderer=MessageRenderer(shop_name=os.getenv("SHOP_NAME", "Tony's Pizza Palace")),
    )

    logger.info("Conversation service initialized")
    return _conversation_service


def get_admin_service() -> AdminService:
    """Create or retrieve cached admin service.

    Returns:
        Configured AdminService instance
    """
    global _admin_service

    if _admin_service is not None:
        return _admin_service

    dynamodb_resource = get_dynamodb_resource()
    customers_table, products_table, orders_table = _table_names()

    _admin_service = AdminService(
        customer_repository=CustomerRepository(dynamodb_resource=dynamodb_resource, table_name=customers_table),
        product_repository=ProductRepository(dynamodb_resource=dynamodb_resource, table_name=products_table),
        order_repository=OrderRepository(
            dynamodb_resource=dynamodb_resource,
            table_name=orders_table,
            customers_table_name=customers_table,
        ),
    )

    logger.info("Admin service initialized")
    return _admin_service


def get_event_handler() -> MessageEventHandler:
    """Create or retrieve cached event handler.

    Returns:
        Configured MessageEventHandler instance
    """
    global _event_handler

    if _event_handler is not None:
        return _event_handler

    _event_handler = MessageEventHandler(conversation_service=get_conversation_service())

    logger.info("Event handler initialized")
    return _event_handler


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance

    Raises:
        ValueError: If WHATSAPP_VERIFY_TOKEN is missing
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    verify_token = os.getenv("WHATSAPP_VERIFY_TOKEN")
    if not verify_token:
        raise ValueError("WHATSAPP_VERIFY_TOKEN must be set in environment")

    _fastapi_app = create_app(
        webhook_handler=WebhookHandler(get_conversation_service()),
        admin_service=get_admin_service(),
        webhook_verifier=WebhookVerifier(
            verify_token=verify_token,
            app_secret=os.getenv("WHATSAPP_APP_SECRET"),
        ),
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with logging and observability.

    Should be called once during Lambda cold start.
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_observability()

    logger.info("Lambda environment initialized")
