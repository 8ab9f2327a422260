"""Base presenter for outbound messaging channels.

Presenters deliver rendered replies to a customer. Like the rest of the
service they use simple return values for expected failures: a send that
fails is logged and reported as False, never raised into the conversation
flow.
"""

from abc import ABC, abstractmethod

from whatsapp_order_bot.models.catalog_models import ProductImage


class OutboundPresenter(ABC):
    """Abstract base class for outbound messaging channels."""

    def __init__(self, channel_name: str) -> None:
        """Initialize the presenter.

        Args:
            channel_name: Name of the messaging channel (e.g., 'whatsapp')
        """
        self.channel_name = channel_name

    @abstractmethod
    async def send_text(self, recipient: str, text: str) -> bool:
        """Send a text message.

        Args:
            recipient: Customer phone number
            text: Message body

        Returns:
            bool: True if the channel accepted the message, False otherwise
        """
        pass

    @abstractmethod
    async def send_image(self, recipient: str, image: ProductImage, caption: str) -> bool:
        """Send an image with a caption.

        Args:
            recipient: Customer phone number
            image: Image referenced by URL or carried as base64 data
            caption: Caption shown under the image

        Returns:
            bool: True if the channel accepted the message, False otherwise
        """
        pass
