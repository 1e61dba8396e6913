"""
Webhook Security Module

Signature verification for payment gateway webhooks. Paystack signs the raw
request body with HMAC-SHA512 using the account secret key and sends the hex
digest in the ``x-paystack-signature`` header.
"""

import hashlib
import hmac
import logging

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


async def verify_paystack_webhook(
    request: Request, secret: str, raise_on_failure: bool = True
) -> tuple[bool, bytes]:
    """
    Verify a Paystack webhook signature.

    The body must be read raw, before any JSON parsing, or the digest will not
    match.

    Returns:
        Tuple of (is_valid, raw_body)
    """
    raw_body = await request.body()
    signature = request.headers.get(PAYSTACK_SIGNATURE_HEADER, "")

    if not signature:
        logger.error("❌ Missing x-paystack-signature header")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Missing signature")
        return False, raw_body

    if not secret:
        logger.error("❌ PAYSTACK_SECRET_KEY not configured, rejecting webhook")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Invalid signature")
        return False, raw_body

    expected = compute_hmac_sha512(secret, raw_body)
    if not constant_time_compare(signature.strip().lower(), expected):
        logger.warning("🚫 Paystack webhook signature mismatch")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Invalid signature")
        return False, raw_body

    return True, raw_body


def create_webhook_signature(secret: str, payload: bytes) -> str:
    """Sign a payload the way Paystack does; used for tests and local replay tooling."""
    return compute_hmac_sha512(secret, payload)
