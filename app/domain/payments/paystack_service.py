"""Paystack service - Integration with the Paystack REST API"""

import logging
from typing import Optional

import httpx

from ...config import PAYSTACK_BASE_URL, PAYSTACK_PUBLIC_KEY, PAYSTACK_SECRET_KEY
from ...shared.retry import (
    API_RETRY,
    PAYMENT_RETRY,
    CircuitOpenError,
    RetryOptions,
    circuit_breakers,
    retry_async,
)

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = ["card", "bank", "ussd"]


class PaystackError(Exception):
    """Raised for failed Paystack calls. ``status_code`` is 0 for network errors."""

    def __init__(self, message: str, status_code: int = 0, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable


def should_retry_paystack(error: Exception, attempt: int) -> bool:
    """Network errors and 5xx retry; 429 retries once; other 4xx never do."""
    if not isinstance(error, PaystackError):
        return False
    if error.status_code == 429:
        return attempt == 1
    return error.retryable


class PaystackService:
    """Service for Paystack API operations"""

    def __init__(self, secret_key: Optional[str] = PAYSTACK_SECRET_KEY, base_url: str = PAYSTACK_BASE_URL):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        return bool(self.secret_key)

    @property
    def public_key(self) -> Optional[str]:
        return PAYSTACK_PUBLIC_KEY

    async def _send(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        if not self.secret_key:
            raise PaystackError("Paystack is not configured", status_code=503)

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=30.0) as client:
                response = await client.request(method, path, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise PaystackError(f"Network error calling Paystack: {e}", retryable=True) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or body.get("status") is False:
            message = body.get("message") or f"Paystack request failed with HTTP {response.status_code}"
            raise PaystackError(
                message,
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        return body.get("data") or {}

    async def _request(
        self, method: str, path: str, payload: Optional[dict] = None, options: RetryOptions = API_RETRY
    ) -> dict:
        operation = path.strip("/").split("/")[0]
        try:
            return await retry_async(
                lambda: self._send(method, path, payload),
                should_retry=should_retry_paystack,
                options=options,
                breaker=circuit_breakers.get(f"paystack:{operation}"),
            )
        except CircuitOpenError as e:
            logger.warning(f"⚠️ Paystack {operation} calls paused: {e}")
            raise PaystackError("Paystack is temporarily unavailable", status_code=503, retryable=True) from e

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        metadata: Optional[dict] = None,
        callback_url: Optional[str] = None,
        reference: Optional[str] = None,
        subaccount: Optional[str] = None,
        channels: Optional[list[str]] = None,
    ) -> dict:
        """Start a checkout. ``amount`` is in kobo. Returns authorization_url, access_code and reference."""
        payload = {
            "email": email,
            "amount": amount,
            "metadata": metadata or {},
            "channels": channels or DEFAULT_CHANNELS,
        }
        if callback_url:
            payload["callback_url"] = callback_url
        if reference:
            payload["reference"] = reference
        if subaccount:
            payload["subaccount"] = subaccount

        logger.info(f"💳 Initializing Paystack transaction for {email} ({amount} kobo)")
        return await self._request("POST", "/transaction/initialize", payload, PAYMENT_RETRY)

    async def verify_transaction(self, reference: str) -> dict:
        return await self._request("GET", f"/transaction/verify/{reference}", options=PAYMENT_RETRY)

    async def create_transfer_recipient(self, name: str, account_number: str, bank_code: str) -> dict:
        payload = {
            "type": "nuban",
            "name": name,
            "account_number": account_number,
            "bank_code": bank_code,
            "currency": "NGN",
        }
        return await self._request("POST", "/transferrecipient", payload)

    async def initiate_transfer(self, amount: int, recipient: str, reason: str, reference: Optional[str] = None) -> dict:
        """Send ``amount`` kobo from the platform balance to a transfer recipient."""
        payload = {"source": "balance", "amount": amount, "recipient": recipient, "reason": reason}
        if reference:
            payload["reference"] = reference
        logger.info(f"💸 Initiating transfer of {amount} kobo to {recipient}")
        return await self._request("POST", "/transfer", payload, PAYMENT_RETRY)


# Global instance
paystack_service = PaystackService()
