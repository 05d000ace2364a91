"""
Webhook Security Module

Signature verification for billing provider webhooks:
- HMAC-SHA256 over the raw request body, hex encoded
- Constant-time signature comparison
- Verification happens before the body is parsed or any state is touched
"""

import hashlib
import hmac
import logging
import re
from typing import Optional

from fastapi import Request

logger = logging.getLogger(__name__)

LEMONSQUEEZY_SIGNATURE_HEADER = "x-signature"
HEX_SIGNATURE_PATTERN = re.compile(r"[0-9a-f]{64}")


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8", "surrogateescape"), b.encode("utf-8", "surrogateescape"))


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(secret: Optional[str], raw_body: bytes, signature: Optional[str]) -> None:
    """
    Check a hex HMAC-SHA256 signature against the raw body.

    Raises:
        WebhookSignatureError: "Missing signature" or "Invalid signature"
    """
    if not signature:
        logger.error("❌ Missing x-signature header")
        raise WebhookSignatureError("Missing signature")

    if not secret:
        logger.error("❌ LEMONSQUEEZY_WEBHOOK_SECRET not configured, rejecting webhook")
        raise WebhookSignatureError("Invalid signature")

    signature = signature.strip().lower()
    if not HEX_SIGNATURE_PATTERN.fullmatch(signature):
        logger.warning(f"🚫 Malformed webhook signature (length {len(signature)})")
        raise WebhookSignatureError("Invalid signature")

    expected_signature = compute_hmac_sha256(secret, raw_body)
    if not constant_time_compare(expected_signature, signature):
        logger.warning(f"🚫 Invalid webhook signature (body length {len(raw_body)} bytes)")
        raise WebhookSignatureError("Invalid signature")


async def verify_lemonsqueezy_webhook(request: Request, secret: Optional[str]) -> bytes:
    """
    Verify a LemonSqueezy webhook and return the raw body it was computed over.

    Args:
        request: FastAPI request object
        secret: Signing secret configured on the LemonSqueezy webhook

    Returns:
        Raw request body bytes
    """
    # Read the body before any parsing, the signature covers the exact bytes
    raw_body = await request.body()
    signature = request.headers.get(LEMONSQUEEZY_SIGNATURE_HEADER)
    verify_signature(secret, raw_body, signature)
    logger.info("✅ LemonSqueezy webhook signature verified")
    return raw_body
