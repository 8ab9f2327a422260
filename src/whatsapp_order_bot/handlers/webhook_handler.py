"""WhatsApp Cloud API webhook payload handling."""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from whatsapp_order_bot.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

GROUP_SUFFIX = "@g.us"
STATUS_BROADCAST = "status@broadcast"
CONTACT_SUFFIX = "@c.us"


class InboundMessage(BaseModel):
    """A text message addressed to the shop.

    Attributes:
        sender: Sender phone number
        text: Message body
        message_id: Channel message identifier
        timestamp: Channel timestamp (epoch seconds as sent by the channel)
    """

    sender: str
    text: str
    message_id: str = ""
    timestamp: str = ""


class _TextBody(BaseModel):
    body: str


class _WebhookMessage(BaseModel):
    sender: str = Field(alias="from")
    id: str = ""
    timestamp: str = ""
    type: str
    text: _TextBody | None = None


class _ChangeValue(BaseModel):
    messages: list[_WebhookMessage] = Field(default_factory=list)


class _Change(BaseModel):
    field: str = ""
    value: _ChangeValue = Field(default_factory=_ChangeValue)


class _Entry(BaseModel):
    changes: list[_Change] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    """Subset of the Cloud API notification payload that carries messages."""

    object: str = ""
    entry: list[_Entry] = Field(default_factory=list)


def is_direct_sender(sender: str) -> bool:
    """Group chats and status updates never reach the conversation."""
    return not sender.endswith(GROUP_SUFFIX) and STATUS_BROADCAST not in sender


def normalize_sender(sender: str) -> str:
    return sender.removesuffix(CONTACT_SUFFIX)


def extract_text_messages(payload: dict[str, Any]) -> list[InboundMessage]:
    """Extract direct text messages from a webhook notification.

    Status callbacks, non-text messages, group senders and status
    broadcasts are dropped.

    Args:
        payload: Decoded webhook JSON

    Returns:
        Messages in delivery order (empty if the payload cannot be parsed)
    """
    try:
        notification = WebhookPayload.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Failed to parse webhook payload: {e}")
        return []

    messages: list[InboundMessage] = []
    for entry in notification.entry:
        for change in entry.changes:
            for message in change.value.messages:
                if message.type != "text" or message.text is None:
                    logger.info(f"Skipping {message.type} message {message.id}")
                    continue
                if not is_direct_sender(message.sender):
                    logger.info(f"Skipping message {message.id} from {message.sender}")
                    continue
                messages.append(
                    InboundMessage(
                        sender=normalize_sender(message.sender),
                        text=message.text.body,
                        message_id=message.id,
                        timestamp=message.timestamp,
                    )
                )
    return messages


class WebhookHandler:
    """Feeds webhook messages to the conversation, one at a time in order."""

    def __init__(self, conversation_service: ConversationService) -> None:
        """Initialize the webhook handler.

        Args:
            conversation_service: Service that handles each inbound message
        """
        self.conversation_service = conversation_service

    async def handle_payload(self, payload: dict[str, Any]) -> int:
        """Handle every text message in a webhook notification.

        Args:
            payload: Decoded webhook JSON

        Returns:
            Number of messages handed to the conversation
        """
        messages = extract_text_messages(payload)
        for message in messages:
            await self.conversation_service.handle_message(message.sender, message.text)
        return len(messages)
