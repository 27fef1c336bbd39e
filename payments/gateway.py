# payments/gateway.py
"""
Razorpay REST client and configuration.

Environment variables:
- RAZORPAY_KEY_ID: API key ID (required for payments)
- RAZORPAY_KEY_SECRET: API key secret, also signs checkout callbacks
- RAZORPAY_ACCOUNT_NUMBER: RazorpayX account that funds payouts

Only the four calls the wallet needs are wrapped. Everything else about
the gateway is out of scope.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
from typing import Optional

import httpx

_logger = logging.getLogger(__name__)

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0
CURRENCY = "INR"


class PaymentError(Exception):
    """Base payments error."""
    pass


class PaymentsDisabledError(PaymentError):
    """Gateway credentials are not configured."""
    pass


class GatewayError(PaymentError):
    """The gateway rejected a request or could not be reached."""
    pass


def get_key_id() -> str:
    return os.environ.get("RAZORPAY_KEY_ID", "")


def get_key_secret() -> str:
    return os.environ.get("RAZORPAY_KEY_SECRET", "")


def get_account_number() -> str:
    return os.environ.get("RAZORPAY_ACCOUNT_NUMBER", "")


def is_payments_enabled() -> bool:
    """Check if payments are enabled (both credentials configured)."""
    return bool(get_key_id() and get_key_secret())


def require_field(body: dict, field: str):
    """
    Read a field the gateway must always return.

    Raises:
        GatewayError: If the field is missing or empty
    """
    value = body.get(field)
    if value in (None, ""):
        _logger.error(f"Razorpay response missing '{field}'")
        raise GatewayError(f"Payment gateway response missing {field}")
    return value


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: str,
    secret: str,
) -> bool:
    """
    Check a checkout callback signature.

    The gateway signs "{order_id}|{payment_id}" with HMAC-SHA256 using the
    key secret and sends the hex digest.
    """
    if not (order_id and payment_id and signature and secret):
        return False
    message = f"{order_id}|{payment_id}".encode("utf-8")
    expected = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


class RazorpayClient:
    """Thin synchronous client over httpx with basic auth."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_BASE,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.key_id = key_id
        self._http = http or httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
        )

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        try:
            response = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            _logger.error(f"Razorpay {method} {path} failed: {e}")
            raise GatewayError(f"Payment gateway unreachable: {e}")

        if response.is_error:
            _logger.error(
                f"Razorpay API error on {method} {path}: "
                f"{response.status_code} {response.text}"
            )
            raise GatewayError(f"Payment gateway returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            _logger.error(f"Razorpay {method} {path} returned an unreadable body")
            raise GatewayError("Payment gateway returned an invalid response")
        return body

    def create_order(self, amount_paise: int, receipt: str, notes: dict) -> dict:
        return self._request("POST", "/orders", json={
            "amount": amount_paise,
            "currency": CURRENCY,
            "receipt": receipt,
            "notes": notes,
        })

    def fetch_payment(self, payment_id: str) -> dict:
        return self._request("GET", f"/payments/{payment_id}")

    def create_fund_account(
        self,
        name: str,
        account_number: str,
        ifsc: str,
        email: Optional[str] = None,
    ) -> dict:
        return self._request("POST", "/fund_accounts", json={
            "account_type": "bank_account",
            "bank_account": {
                "name": name,
                "account_number": account_number,
                "ifsc": ifsc,
            },
            "contact": {
                "name": name,
                "email": email or "user@example.com",
                "type": "customer",
            },
        })

    def create_payout(
        self,
        fund_account_id: str,
        amount_paise: int,
        reference_id: str,
        narration: str = "Wallet withdrawal",
        mode: str = "IMPS",
    ) -> dict:
        return self._request("POST", "/payouts", json={
            "account_number": get_account_number(),
            "fund_account_id": fund_account_id,
            "amount": amount_paise,
            "currency": CURRENCY,
            "mode": mode,
            "purpose": "payout",
            "queue_if_low_balance": True,
            "reference_id": reference_id,
            "narration": narration,
        })


_client: Optional[RazorpayClient] = None


def get_gateway() -> RazorpayClient:
    """
    Get the shared gateway client.

    Raises:
        PaymentsDisabledError: If credentials are not configured
    """
    global _client

    if not is_payments_enabled():
        raise PaymentsDisabledError("Razorpay credentials not configured")

    if _client is None or _client.key_id != get_key_id():
        _client = RazorpayClient(get_key_id(), get_key_secret())
        _logger.info("Razorpay client initialized")

    return _client
