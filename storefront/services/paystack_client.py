import hashlib
import hmac
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import requests

from storefront.config import Settings, settings as app_settings

logger = logging.getLogger(__name__)


class PaystackError(Exception):
    """Transport failure or a rejection reported by Paystack."""


class PaystackClient:
    """
    Thin wrapper over the Paystack REST API.

    Every call returns the ``data`` member of the Paystack envelope or raises
    PaystackError.
    """

    def __init__(self, settings: Settings):
        self.base_url = settings.paystack_base_url.rstrip("/")
        self.currency = settings.currency
        self.timeout = settings.paystack_timeout_seconds
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {settings.paystack_secret_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Paystack {method} {path} failed: {e}")
            raise PaystackError(f"Paystack unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Paystack {method} {path} returned a non-JSON body ({response.status_code})")
            raise PaystackError(f"Paystack returned an invalid response ({response.status_code})")

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.error(f"Paystack {method} {path} rejected: {message}")
            raise PaystackError(f"Paystack Error: {message}")

        return body.get("data") or {}

    def initialize_transaction(
        self,
        *,
        amount: int,
        email: str,
        reference: str,
        callback_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = {
            "amount": amount,
            "email": email,
            "reference": reference,
            "currency": self.currency,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        data = self._request("POST", "/transaction/initialize", json=payload)
        logger.info(f"Transaction initialized: {reference}")
        return data

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        data = self._request("GET", f"/transaction/verify/{reference}")
        logger.info(f"Transaction verified: {reference} - {data.get('status')}")
        return data

    def create_refund(self, transaction_id: str, amount: Optional[int] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"transaction": transaction_id}
        if amount:
            payload["amount"] = amount

        data = self._request("POST", "/refund", json=payload)
        logger.info(f"Refund initiated: {transaction_id}")
        return data


def verify_webhook_signature(secret: str, signature: Optional[str], payload: bytes) -> bool:
    """HMAC-SHA512 of the raw request body, hex encoded, as sent in X-Paystack-Signature."""
    if not signature or not secret:
        return False

    computed = hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()
    return hmac.compare_digest(computed.encode("utf-8"), signature.encode("latin-1", "replace"))


@lru_cache()
def get_payment_gateway() -> PaystackClient:
    return PaystackClient(app_settings)
