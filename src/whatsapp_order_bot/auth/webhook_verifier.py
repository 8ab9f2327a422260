"""Verification of WhatsApp Cloud API webhook requests.

The subscription handshake is checked against the configured verify token.
Event deliveries carry an X-Hub-Signature-256 header, an HMAC-SHA256 of the
raw body keyed with the app secret; it is checked only when an app secret
is configured.
"""

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


class WebhookVerifier:
    """Validates webhook handshakes and payload signatures."""

    def __init__(self, verify_token: str, app_secret: str | None = None) -> None:
        """Initialize verifier.

        Args:
            verify_token: Token configured for the webhook subscription
            app_secret: App secret used to sign deliveries (None disables signature checks)

        Raises:
            ValueError: If verify_token is empty
        """
        if not verify_token:
            raise ValueError("A webhook verify token must be provided")

        self.verify_token = verify_token
        self.app_secret = app_secret or None

    @property
    def signature_required(self) -> bool:
        return self.app_secret is not None

    def verify_handshake(self, mode: str | None, token: str | None) -> bool:
        """Check a subscription handshake.

        Args:
            mode: hub.mode query parameter
            token: hub.verify_token query parameter

        Returns:
            bool: True if the handshake is for this subscription
        """
        return mode == "subscribe" and token is not None and hmac.compare_digest(token.encode(), self.verify_token.encode())

    def verify_signature(self, body: bytes, signature_header: str | None) -> bool:
        """Check the X-Hub-Signature-256 header of a delivery.

        Args:
            body: Raw request body
            signature_header: Header value ("sha256=<hex digest>")

        Returns:
            bool: True if signatures are not required or the signature matches
        """
        if self.app_secret is None:
            return True
        if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
            return False

        expected = hmac.new(self.app_secret.encode(), body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(signature_header[len(SIGNATURE_PREFIX) :], expected)
