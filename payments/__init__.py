# payments/__init__.py
"""
Payments module for Razorpay top-ups and payouts.

Provides:
- Checkout order creation and signature-verified wallet top-up
- Bank detail capture and validation
- Withdrawals with automatic reversal on payout failure
"""

from payments.gateway import (
    PaymentError,
    PaymentsDisabledError,
    GatewayError,
    is_payments_enabled,
    verify_payment_signature,
)
from payments.topup import PaymentVerificationError, create_topup_order, verify_topup
from payments.bank_details import (
    InvalidBankDetailError,
    BankDetailNotFoundError,
    add_bank_detail,
    update_bank_detail,
    get_bank_detail,
    list_bank_details,
)
from payments.withdrawals import create_withdrawal, get_withdrawal, list_withdrawals

__all__ = [
    "PaymentError",
    "PaymentsDisabledError",
    "GatewayError",
    "is_payments_enabled",
    "verify_payment_signature",
    "PaymentVerificationError",
    "create_topup_order",
    "verify_topup",
    "InvalidBankDetailError",
    "BankDetailNotFoundError",
    "add_bank_detail",
    "update_bank_detail",
    "get_bank_detail",
    "list_bank_details",
    "create_withdrawal",
    "get_withdrawal",
    "list_withdrawals",
]
