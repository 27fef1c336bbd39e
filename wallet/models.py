# wallet/models.py
"""
Wallet and ledger data models.

Amounts are Decimal rupees at the API boundary and integer paise in storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from enum import Enum
from typing import Optional, Union

PAISE_PER_RUPEE = 100
MONEY_QUANTUM = Decimal("0.01")

Number = Union[Decimal, int, float, str]


class TransactionType(Enum):
    """Kinds of ledger entries."""

    CREDIT = "credit"        # Top-ups, withdrawal reversals
    DEBIT = "debit"          # Withdrawals
    BET_PLACE = "bet_place"  # Stake taken when a bet is placed
    BET_WIN = "bet_win"      # Winnings paid on settlement

    @property
    def is_credit(self) -> bool:
        return self in (TransactionType.CREDIT, TransactionType.BET_WIN)


def to_money(value: Number) -> Decimal:
    """Coerce a value to a Decimal quantized to paise."""
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        value = repr(value)
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError
        # Raises InvalidOperation past 28 significant digits
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a valid amount: {value!r}")


def to_paise(value: Number) -> int:
    return int(to_money(value) * PAISE_PER_RUPEE)


def from_paise(paise: int) -> Decimal:
    return (Decimal(paise) / PAISE_PER_RUPEE).quantize(MONEY_QUANTUM)


@dataclass(frozen=True)
class Wallet:
    """A user's balance."""

    id: str
    user_id: str
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "balance": str(self.balance),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Transaction:
    """
    Immutable ledger entry.

    reference_id ties the entry to what caused it (bet id, payment id,
    withdrawal id). A (type, reference_id) pair is recorded at most once.
    """

    id: str
    user_id: str
    wallet_id: str
    type: TransactionType
    amount: Decimal
    description: Optional[str]
    reference_id: Optional[str]
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "amount": str(self.amount),
            "description": self.description,
            "reference_id": self.reference_id,
            "created_at": self.created_at.isoformat(),
        }
