"""FastAPI dependencies for webhook verification."""

from typing import Annotated

from fastapi import Header, HTTPException, Request

from whatsapp_order_bot.auth.webhook_verifier import WebhookVerifier


async def get_verified_body(
    request: Request,
    x_hub_signature_256: Annotated[str | None, Header()] = None,
) -> bytes:
    """FastAPI dependency returning the raw webhook body once its signature checks out.

    Args:
        request: Incoming request (the verifier is read from app state)
        x_hub_signature_256: Signature from the X-Hub-Signature-256 header

    Returns:
        bytes: The raw request body

    Raises:
        HTTPException: 401 if the signature is missing or invalid
    """
    verifier: WebhookVerifier = request.app.state.webhook_verifier
    body = await request.body()

    if not verifier.verify_signature(body, x_hub_signature_256):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    return body
