"""
RAZORPAY PAYMENT GATEWAY
========================
Order creation and checkout signature verification for fee payments.

Flow:
1. Student clicks Pay -> /fees/create-payment-order -> Razorpay order_id
2. Frontend opens Razorpay checkout with order_id
3. Frontend calls /fees/verify-payment with the signed result
4. Signature is checked here before anything is written
"""

import asyncio
import hashlib
import hmac
from decimal import Decimal
from typing import Any, Dict, Optional

import razorpay

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.core.logging_config import logger
from app.core.types import quantize_money


class PaymentGateway:
    """Thin wrapper over the Razorpay SDK, constructed once per application"""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        currency: Optional[str] = None,
    ):
        self.key_id = settings.RAZORPAY_KEY_ID if key_id is None else key_id
        self.key_secret = settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        self.currency = currency or settings.PAYMENT_CURRENCY
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _get_client(self) -> "razorpay.Client":
        if self._client is None:
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    @staticmethod
    def to_minor_units(amount: Decimal) -> int:
        """Rupees to paise"""
        return int((quantize_money(amount) * 100).to_integral_value())

    async def create_order(self, amount: Decimal, receipt: str, notes: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Create a Razorpay order; the SDK is synchronous so it runs in a thread"""
        if not self.is_configured:
            raise PaymentGatewayError("Payment service not configured")

        payload = {
            "amount": self.to_minor_units(amount),
            "currency": self.currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            order = await asyncio.to_thread(self._get_client().order.create, payload)
        except Exception as e:
            logger.log_payment_event("order_create", False, amount=amount, receipt=receipt, error=str(e))
            raise PaymentGatewayError() from e

        logger.log_payment_event("order_create", True, amount=amount, order_id=order.get("id"), receipt=receipt)
        return order

    def compute_signature(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}"
        return hmac.new(self.key_secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """HMAC-SHA256 over "order_id|payment_id" with the key secret, constant-time compare"""
        if not self.key_secret or not signature:
            return False
        expected = self.compute_signature(order_id, payment_id)
        return hmac.compare_digest(expected, signature)
