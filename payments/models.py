# payments/models.py
"""
Bank detail and withdrawal models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class WithdrawalStatus(Enum):
    """Withdrawal lifecycle. Gateway payout statuses map onto these."""

    PENDING = "pending"        # Debited, payout not yet requested
    QUEUED = "queued"          # Gateway queued it (low balance)
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"          # Debit reversed


# Payout statuses that keep the wallet debit in place
ACCEPTED_PAYOUT_STATUSES = frozenset({"queued", "processing", "processed"})


def mask_account_number(account_number: str) -> str:
    """Show only the last four digits."""
    if len(account_number) <= 4:
        return account_number
    return "X" * (len(account_number) - 4) + account_number[-4:]


@dataclass(frozen=True)
class BankDetail:
    """A user's payout bank account."""
    id: str
    user_id: str
    account_number: str
    bank_name: str
    account_holder_name: str
    ifsc_code: str
    address: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_number": self.account_number,
            "bank_name": self.bank_name,
            "account_holder_name": self.account_holder_name,
            "ifsc_code": self.ifsc_code,
            "address": self.address,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Withdrawal:
    """
    A payout request.

    bank_name / account_number_masked are filled from the joined bank
    detail when listing.
    """
    id: str
    user_id: str
    amount: Decimal
    bank_detail_id: str
    status: WithdrawalStatus
    created_at: datetime
    razorpay_fund_account_id: Optional[str] = None
    razorpay_payout_id: Optional[str] = None
    failure_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    bank_name: Optional[str] = None
    account_number_masked: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": str(self.amount),
            "bank_detail_id": self.bank_detail_id,
            "status": self.status.value,
            "razorpay_payout_id": self.razorpay_payout_id,
            "failure_reason": self.failure_reason,
            "created_at": self.created_at.isoformat(),
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "bank_details": {
                "bank_name": self.bank_name,
                "account_number": self.account_number_masked,
            },
        }
