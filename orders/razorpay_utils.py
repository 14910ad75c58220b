# orders/razorpay_utils.py
import hashlib
import hmac
import logging

import requests
from django.conf import settings

from .exceptions import ConfigurationError, GatewayError, ValidationError

logger = logging.getLogger(__name__)

# Razorpay rejects orders below ₹1
GATEWAY_MINIMUM_PAISE = 100


class RazorpayAPI:
    """Razorpay REST client: order creation and payment signature checks"""

    def __init__(self, key_id=None, key_secret=None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.base_url = settings.RAZORPAY_BASE_URL.rstrip("/")
        self.timeout = settings.RAZORPAY_TIMEOUT

    def _require_credentials(self):
        if not self.key_id or not self.key_secret:
            logger.error("Razorpay credentials are not configured")
            raise ConfigurationError("Payment gateway not configured")

    def create_order(self, amount_in_paise, receipt):
        """
        Create a gateway order for ``amount_in_paise``.
        Returns {"gateway_order_id", "amount", "currency"}.
        """
        amount = int(amount_in_paise)
        minimum = max(settings.MINIMUM_ORDER_AMOUNT_PAISE, GATEWAY_MINIMUM_PAISE)
        if amount < minimum:
            raise ValidationError(f"Minimum order amount is ₹{minimum / 100:.2f}")

        self._require_credentials()

        payload = {
            "amount": amount,
            "currency": settings.CURRENCY,
            "receipt": str(receipt)[:40],
            "payment_capture": 1,
        }

        try:
            response = requests.post(
                f"{self.base_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Razorpay order request failed for {receipt}: {str(e)}", exc_info=True)
            raise GatewayError("Payment gateway unavailable")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            description = (data.get("error") or {}).get("description") if isinstance(data, dict) else None
            logger.error(f"Razorpay order creation failed ({response.status_code}) for {receipt}: {description}")
            raise GatewayError(description or "Failed to create payment order")

        if not isinstance(data, dict) or not data.get("id"):
            logger.error(f"Razorpay returned a malformed order for {receipt}")
            raise GatewayError("Invalid response from payment gateway")

        logger.info(f"Razorpay order {data['id']} created for {receipt}")
        return {
            "gateway_order_id": data["id"],
            "amount": data.get("amount", amount),
            "currency": data.get("currency", settings.CURRENCY),
        }

    def compute_signature(self, gateway_order_id, gateway_payment_id):
        message = f"{gateway_order_id}|{gateway_payment_id}"
        return hmac.new(
            self.key_secret.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def verify_signature(self, gateway_order_id, gateway_payment_id, signature):
        """HMAC-SHA256 of "order_id|payment_id" keyed by the secret, constant-time compare"""
        self._require_credentials()
        if not gateway_order_id or not gateway_payment_id or not signature:
            return False
        expected = self.compute_signature(gateway_order_id, gateway_payment_id)
        return hmac.compare_digest(expected, str(signature))
