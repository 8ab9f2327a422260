"""AWS Lambda handler for both API Gateway and EventBridge events.

This module provides a single Lambda entry point that handles:
1. API Gateway requests (webhook and admin API via Mangum ASGI adapter for FastAPI)
2. EventBridge relayed WhatsApp messages (direct handling)

The handler automatically detects the event type and routes accordingly.
"""

import asyncio
import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_event_handler, get_fastapi_app, initialize_lambda_environment
from whatsapp_order_bot.handlers.event_handler import (
    is_inbound_message_event,
    parse_eventbridge_event,
)

# Initialize Lambda environment during cold start (skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()

logger = logging.getLogger(__name__)

# Create FastAPI app and Mangum adapter (cached for warm starts, skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    app = get_fastapi_app()
    mangum_handler = Mangum(app, lifespan="off")
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def is_eventbridge_event(event: dict[str, Any]) -> bool:
    """Determine if the event is from EventBridge.

    Args:
        event: The Lambda event payload

    Returns:
        True if this is an EventBridge event, False otherwise
    """
    # API Gateway events carry requestContext instead
    return "source" in event and "detail-type" in event and "detail" in event


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Multi-purpose Lambda handler for API Gateway and EventBridge events.

    Routes incoming events to the appropriate handler:
    - EventBridge events -> MessageEventHandler
    - API Gateway requests -> FastAPI via Mangum

    Args:
        event: The Lambda event payload (EventBridge or API Gateway)
        context: The Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {context.aws_request_id}")

    try:
        if is_eventbridge_event(event):
            logger.info(f"Processing EventBridge event: {event.get('source')} - {event.get('detail-type')}")
            return handle_eventbridge_event(event)

        logger.info("Processing API Gateway request via Mangum")
        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "body": f"Internal server error: {str(e)}",
        }


def handle_eventbridge_event(event: dict[str, Any]) -> dict[str, Any]:
    """Handle an EventBridge relayed WhatsApp message.

    Args:
        event: The EventBridge event payload

    Returns:
        Response dict with statusCode and body
    """
    source = event.get("source", "")
    detail_type = event.get("detail-type", "")

    if not is_inbound_message_event(event):
        logger.warning(f"Unsupported event type: {source}/{detail_type}")
        return {
            "statusCode": 400,
            "body": f"Unsupported event type: {source}/{detail_type}",
        }

    message = parse_eventbridge_event(event)
    if message is None:
        return {
            "statusCode": 400,
            "body": "Invalid event format",
        }

    event_handler = get_event_handler()

    try:
        # Run async handler in event loop
        handled = asyncio.run(event_handler.handle_inbound_message(message))
    except Exception as e:
        logger.exception(f"Error processing message {message.message_id}: {e}")
        return {
            "statusCode": 500,
            "body": f"Error processing event: {str(e)}",
        }

    if handled:
        logger.info(f"Processed message {message.message_id} from {message.sender}")
        return {
            "statusCode": 200,
            "body": f"Processed message {message.message_id}",
        }

    return {
        "statusCode": 200,
        "body": f"Skipped message {message.message_id}",
    }
