"""EventBridge event handler for relayed WhatsApp messages."""

import logging
from typing import Any

from pydantic import ValidationError

from whatsapp_order_bot.handlers.webhook_handler import (
    InboundMessage,
    is_direct_sender,
    normalize_sender,
)
from whatsapp_order_bot.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

EVENT_SOURCE = "com.whatsapp.relay"
EVENT_DETAIL_TYPE = "InboundMessage"


def is_inbound_message_event(event: dict[str, Any]) -> bool:
    """Check whether a Lambda event is a relayed WhatsApp message."""
    return event.get("source") == EVENT_SOURCE and event.get("detail-type") == EVENT_DETAIL_TYPE


def parse_eventbridge_event(event: dict[str, Any]) -> InboundMessage | None:
    """Parse an EventBridge event into an InboundMessage.

    Args:
        event: Raw EventBridge event dictionary

    Returns:
        InboundMessage if parsing succeeds, None otherwise
    """
    try:
        detail = event.get("detail", {})
        return InboundMessage(**detail)
    except (ValidationError, TypeError) as e:
        logger.error(f"Failed to parse EventBridge event: {e}")
        return None


class MessageEventHandler:
    """Handler for inbound messages relayed through EventBridge."""

    def __init__(self, conversation_service: ConversationService) -> None:
        """Initialize the event handler.

        Args:
            conversation_service: Service that handles each inbound message
        """
        self.conversation_service = conversation_service

    async def handle_inbound_message(self, message: InboundMessage) -> bool:
        """Handle a relayed message.

        Args:
            message: The relayed message

        Returns:
            True if the message was handed to the conversation, False if it was filtered out
        """
        if not is_direct_sender(message.sender):
            logger.info(f"Skipping relayed message {message.message_id} from {message.sender}")
            return False

        await self.conversation_service.handle_message(normalize_sender(message.sender), message.text)
        return True

    async def handle_eventbridge_event(self, event: dict[str, Any], _context: Any) -> dict[str, Any]:
        """Lambda handler for EventBridge events.

        Args:
            event: EventBridge event dictionary
            _context: Lambda context object (unused)

        Returns:
            Dictionary with statusCode and body for Lambda response
        """
        message = parse_eventbridge_event(event)
        if not message:
            logger.error("Received invalid event format")
            return {
                "statusCode": 400,
                "body": "Invalid event format",
            }

        handled = await self.handle_inbound_message(message)

        return {
            "statusCode": 200,
            "body": f"Processed message {message.message_id}" if handled else f"Skipped message {message.message_id}",
        }
