"""WhatsApp Cloud API presenter.

Sends text and image messages through the Graph API messages endpoint.
Images stored as base64 are uploaded to the media endpoint first and sent
by media ID; images stored as URLs are sent by link.
"""

import base64
import binascii
import logging
from typing import Any
from urllib.parse import urljoin

import httpx

from whatsapp_order_bot.models.catalog_models import ProductImage
from whatsapp_order_bot.observability.metrics import record_outbound_failure
from whatsapp_order_bot.presenters.base_presenter import OutboundPresenter

logger = logging.getLogger(__name__)

GRAPH_API_BASE_URL = "https://graph.facebook.com"


class WhatsAppPresenter(OutboundPresenter):
    """Presenter for the WhatsApp Cloud API.

    Authenticates every request with a long-lived bearer access token.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v19.0",
        public_base_url: str = "http://localhost:8001",
        base_url: str = GRAPH_API_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the WhatsApp presenter.

        Args:
            access_token: Cloud API access token
            phone_number_id: Business phone number ID messages are sent from
            api_version: Graph API version (e.g., 'v19.0')
            public_base_url: Base URL for resolving relative image URLs
            base_url: Graph API base URL
            timeout: Request timeout in seconds
        """
        super().__init__("whatsapp")
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.public_base_url = public_base_url
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.api_version}/{self.phone_number_id}/messages"

    @property
    def media_url(self) -> str:
        return f"{self.base_url}/{self.api_version}/{self.phone_number_id}/media"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def resolve_image_url(self, url: str) -> str:
        """Resolve a stored image URL against the public base URL if it is relative."""
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(self.public_base_url.rstrip("/") + "/", url.lstrip("/"))

    async def send_text(self, recipient: str, text: str) -> bool:
        """Send a text message.

        Args:
            recipient: Customer phone number
            text: Message body

        Returns:
            bool: True if the message was accepted, False otherwise
        """
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        if await self._post_message(payload):
            return True

        record_outbound_failure("text")
        return False

    async def send_image(self, recipient: str, image: ProductImage, caption: str) -> bool:
        """Send an image message.

        Args:
            recipient: Customer phone number
            image: Image with either a URL or base64 data
            caption: Caption shown under the image

        Returns:
            bool: True if the message was accepted, False otherwise
        """
        image_payload: dict[str, Any] = {"caption": caption}

        if image.url:
            image_payload["link"] = self.resolve_image_url(image.url)
        elif image.base64:
            media_id = await self._upload_media(image)
            if media_id is None:
                record_outbound_failure("image")
                return False
            image_payload["id"] = media_id
        else:
            logger.warning(f"Image for {recipient} has neither URL nor data, skipping")
            return False

        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "image",
            "image": image_payload,
        }
        if await self._post_message(payload):
            return True

        record_outbound_failure("image")
        return False

    async def _post_message(self, payload: dict[str, Any]) -> bool:
        """POST a message payload to the messages endpoint."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.messages_url, json=payload, headers=self._headers())

            if response.status_code == 200:
                logger.info(f"Sent {payload['type']} message to {payload['to']}")
                return True

            logger.error(
                f"WhatsApp {payload['type']} message to {payload['to']} failed: "
                f"{response.status_code} {response.text}"
            )
            return False

        except httpx.HTTPError as e:
            logger.error(f"WhatsApp {payload['type']} message to {payload['to']} failed: {e}")
            return False

    async def _upload_media(self, image: ProductImage) -> str | None:
        """Upload base64 image data and return the media ID.

        Args:
            image: Image carrying base64 data, optionally as a data URI

        Returns:
            Media ID, or None if the data is invalid or the upload failed
        """
        data = image.base64 or ""
        mime_type = image.mime_type or "image/jpeg"
        if data.startswith("data:") and "," in data:
            header, data = data.split(",", 1)
            mime_type = header[len("data:") :].split(";", 1)[0] or mime_type

        try:
            content = base64.b64decode(data, validate=True)
        except binascii.Error as e:
            logger.error(f"Invalid base64 image data: {e}")
            return None

        extension = mime_type.split("/")[-1]
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.media_url,
                    data={"messaging_product": "whatsapp", "type": mime_type},
                    files={"file": (f"product.{extension}", content, mime_type)},
                    headers=self._headers(),
                )

            if response.status_code != 200:
                logger.error(f"WhatsApp media upload failed: {response.status_code} {response.text}")
                return None

            media_id: str = response.json()["id"]
            return media_id

        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"WhatsApp media upload failed: {e}")
            return None
