"""Hash utility functions for Wandini."""

import base64
import hashlib
import hmac


def compute_hmac_sha256_b64(secret: str, data: bytes) -> str:
    """
    Compute a base64-encoded HMAC-SHA256, as sent in Shopify webhook headers.

    Args:
        secret: Shared signing secret
        data: Raw request body

    Returns:
        Base64 digest string
    """
    digest = hmac.new(secret.encode("utf-8"), data, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_hmac_sha256_b64(secret: str, data: bytes, signature: str) -> bool:
    """Constant-time comparison of a base64 HMAC-SHA256 signature."""
    expected = compute_hmac_sha256_b64(secret, data)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
