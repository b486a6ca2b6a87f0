"""
Shopify webhook authentication.

Shopify signs each webhook with a base64 HMAC-SHA256 of the raw request
body, sent in the X-Shopify-Hmac-Sha256 header.
"""

import logging

from fastapi import Header, HTTPException, Request, status

from wandini import config
from wandini.utils.hash import verify_hmac_sha256_b64

logger = logging.getLogger(__name__)


async def verify_shopify_hmac(
    request: Request,
    x_shopify_hmac_sha256: str | None = Header(
        default=None, alias="X-Shopify-Hmac-Sha256"
    ),
) -> None:
    """
    Verify the webhook signature against the raw body.

    Verification is skipped when no webhook secret is configured.

    Raises:
        HTTPException: 401 if the header is missing or the signature is wrong
    """
    secret = config.SHOPIFY_WEBHOOK_SECRET
    if not secret:
        logger.warning("No webhook secret configured, skipping verification")
        return

    if not x_shopify_hmac_sha256:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Shopify-Hmac-Sha256 header is required",
        )

    body = await request.body()
    if not verify_hmac_sha256_b64(secret, body, x_shopify_hmac_sha256):
        logger.warning("Rejected webhook with invalid HMAC")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid HMAC",
        )
