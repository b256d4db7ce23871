"""
Payment gateway clients.

A gateway takes {amount, customer info, booking reference} and answers with
a GatewayResponse. Charges are single attempts: no retry, no refunds, no
webhook handling.

    - MockGateway: always succeeds with a generated transaction id
    - PayHereGateway: form POST to a PayHere-style checkout endpoint
"""

import hashlib
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from common.conf import get_setting

logger = logging.getLogger(__name__)


@dataclass
class GatewayResponse:
    success: bool
    transaction_id: str = ""
    message: str = ""


class MockGateway:
    """Test/dev gateway; every charge succeeds."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def charge(self, amount: Decimal, customer: Dict[str, Any], reference: str) -> GatewayResponse:
        transaction_id = f"txn_{uuid.uuid4().hex[:16]}"
        logger.info("Mock charge %s %s for %s -> %s", amount, self.config.get("CURRENCY"), reference, transaction_id)
        return GatewayResponse(success=True, transaction_id=transaction_id, message="Payment processed successfully")


class PayHereGateway:
    """HTTP client for a PayHere-style checkout API."""

    def __init__(self, config: Dict[str, Any], session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _hash(self, order_id: str, amount: str) -> str:
        secret_hash = hashlib.md5(self.config["MERCHANT_SECRET"].encode()).hexdigest().upper()
        raw = f"{self.config['MERCHANT_ID']}{order_id}{amount}{self.config['CURRENCY']}{secret_hash}"
        return hashlib.md5(raw.encode()).hexdigest().upper()

    def charge(self, amount: Decimal, customer: Dict[str, Any], reference: str) -> GatewayResponse:
        formatted_amount = f"{Decimal(amount):.2f}"
        payload = {
            "merchant_id": self.config["MERCHANT_ID"],
            "order_id": reference,
            "items": f"School ride booking {reference}",
            "amount": formatted_amount,
            "currency": self.config["CURRENCY"],
            "first_name": customer.get("first_name", ""),
            "last_name": customer.get("last_name", ""),
            "email": customer.get("email", ""),
            "phone": customer.get("phone", ""),
            "hash": self._hash(reference, formatted_amount),
        }

        try:
            response = self.session.post(self.config["ENDPOINT"], data=payload)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Gateway charge for %s failed: %s", reference, e)
            return GatewayResponse(success=False, message="Payment gateway unreachable. Please try again.")

        if str(body.get("status")).lower() in ("success", "2"):
            return GatewayResponse(
                success=True,
                transaction_id=str(body.get("payment_id", "")),
                message=body.get("message", "Payment processed successfully"),
            )

        return GatewayResponse(success=False, message=body.get("message") or "Payment declined")


GATEWAYS = {
    "mock": MockGateway,
    "payhere": PayHereGateway,
}


def get_gateway():
    """Instantiate the configured gateway provider."""
    config = get_setting("PAYMENT_GATEWAY")
    provider = config.get("PROVIDER", "mock")
    try:
        gateway_class = GATEWAYS[provider]
    except KeyError:
        raise ValueError(f"Unknown payment gateway provider: {provider}")
    return gateway_class(config)
