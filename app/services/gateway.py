"""
Razorpay payment gateway client over its REST API.
"""
import hashlib
import hmac
import logging
from typing import Dict, Optional

import requests
from fastapi import Request

from app import settings

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The gateway could not be reached or refused the request."""


class GatewayDisabledError(GatewayError):
    """Gateway keys are not configured."""


class RazorpayGateway:
    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        api_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, str]) -> dict:
        """
        Create an order for ``amount`` in the major currency unit.

        Razorpay expects the smallest unit (paise), so the amount is sent x100.
        Returns the order document; its ``id`` is the order reference.
        """
        if not self.enabled:
            raise GatewayDisabledError("Payment gateway is not configured")

        payload = {
            "amount": amount * 100,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        try:
            response = self.session.post(
                f"{self.api_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Gateway order creation failed for %s: %s", receipt, e)
            raise GatewayError("Could not create payment order") from e

        order = response.json()
        logger.info("Gateway order %s created for %s", order.get("id"), receipt)
        return order

    def verify_signature(self, order_ref: str, payment_ref: str, signature: str) -> bool:
        """Check the HMAC-SHA256 of ``order|payment`` against the signature the checkout returned."""
        if not self.enabled:
            raise GatewayDisabledError("Payment gateway is not configured")
        if not (order_ref and payment_ref and signature):
            return False

        expected = hmac.new(
            self.key_secret.encode(),
            f"{order_ref}|{payment_ref}".encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)


def build_gateway() -> RazorpayGateway:
    gateway = RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_url=settings.RAZORPAY_API_URL,
        timeout=settings.RAZORPAY_TIMEOUT_SECONDS,
    )
    if not gateway.enabled:
        logger.warning("Razorpay keys not set; gateway payments are disabled")
    return gateway


def get_gateway(request: Request) -> RazorpayGateway:
    """Dependency returning the gateway built at startup."""
    return request.app.state.gateway
