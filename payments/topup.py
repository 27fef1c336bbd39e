# payments/topup.py
"""
Wallet top-up via gateway checkout.

Flow:
1. create_topup_order: gateway order for the amount, handed to checkout
2. Client completes checkout and receives (order_id, payment_id, signature)
3. verify_topup: check signature, confirm capture, credit the wallet once
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal

from payments.gateway import (
    CURRENCY,
    GatewayError,
    PaymentError,
    get_gateway,
    get_key_secret,
    require_field,
    verify_payment_signature,
)
from wallet.ledger import (
    DuplicateTransactionError,
    InvalidAmountError,
    has_transaction,
    update_wallet_balance,
)
from wallet.models import Number, TransactionType, from_paise, to_money, to_paise

_logger = logging.getLogger(__name__)

MIN_TOPUP_AMOUNT = Decimal("10")
MAX_TOPUP_AMOUNT = Decimal("10000")


class PaymentVerificationError(PaymentError):
    """Checkout callback could not be verified."""
    pass


def create_topup_order(user_id: str, amount: Number) -> dict:
    """
    Create a gateway order for a wallet top-up.

    Args:
        user_id: User topping up
        amount: Rupees, between 10 and 10,000

    Returns:
        Dict with order_id, amount (paise), currency and key_id for checkout

    Raises:
        InvalidAmountError: Amount out of range
        PaymentsDisabledError: Gateway not configured
        GatewayError: Gateway rejected the order
    """
    try:
        rupees = to_money(amount)
    except ValueError:
        raise InvalidAmountError("Invalid amount")

    if not MIN_TOPUP_AMOUNT <= rupees <= MAX_TOPUP_AMOUNT:
        raise InvalidAmountError(
            f"Please enter amount between ₹{MIN_TOPUP_AMOUNT}-₹{MAX_TOPUP_AMOUNT:,}"
        )

    gateway = get_gateway()
    order = gateway.create_order(
        amount_paise=to_paise(rupees),
        receipt=f"rcpt_{int(time.time() * 1000)}",
        notes={"user_id": user_id, "purpose": "wallet_topup"},
    )

    order_id = require_field(order, "id")
    _logger.info(f"Created top-up order for user {user_id}", extra={"order_id": order_id})

    return {
        "order_id": order_id,
        "amount": order.get("amount", to_paise(rupees)),
        "currency": order.get("currency", CURRENCY),
        "key_id": gateway.key_id,
    }


def verify_topup(user_id: str, order_id: str, payment_id: str, signature: str) -> dict:
    """
    Verify a completed checkout and credit the wallet.

    A payment is credited at most once; replaying the same callback
    returns already_credited=True without touching the balance.

    Returns:
        Dict with success, amount, payment_id, already_credited

    Raises:
        PaymentVerificationError: Missing data, bad signature, mismatched
            order or user, or payment not captured
        GatewayError: Payment lookup failed or returned no amount
    """
    if not order_id or not payment_id or not signature:
        raise PaymentVerificationError("Missing payment verification data")

    gateway = get_gateway()

    if not verify_payment_signature(order_id, payment_id, signature, get_key_secret()):
        _logger.warning(f"Invalid payment signature from user {user_id}")
        raise PaymentVerificationError("Invalid payment signature")

    if has_transaction(TransactionType.CREDIT, payment_id):
        return _already_credited(payment_id)

    payment = gateway.fetch_payment(payment_id)

    if payment.get("order_id") not in (None, order_id):
        raise PaymentVerificationError("Payment does not belong to this order")

    notes = payment.get("notes") or {}
    if isinstance(notes, dict) and notes.get("user_id") not in (None, user_id):
        _logger.warning(f"User {user_id} tried to claim payment {payment_id} of another user")
        raise PaymentVerificationError("Payment does not belong to this user")

    if payment.get("status") != "captured":
        raise PaymentVerificationError("Payment not captured")

    try:
        amount = from_paise(int(require_field(payment, "amount")))
    except (TypeError, ValueError):
        raise GatewayError("Payment gateway returned an invalid amount")

    try:
        update_wallet_balance(
            user_id,
            amount,
            TransactionType.CREDIT,
            description="Wallet top-up via Razorpay",
            reference_id=payment_id,
        )
    except DuplicateTransactionError:
        return _already_credited(payment_id)

    return {
        "success": True,
        "amount": str(amount),
        "payment_id": payment_id,
        "already_credited": False,
    }


def _already_credited(payment_id: str) -> dict:
    _logger.info(f"Payment {payment_id} already credited")
    return {
        "success": True,
        "amount": None,
        "payment_id": payment_id,
        "already_credited": True,
    }
