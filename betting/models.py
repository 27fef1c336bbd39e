# betting/models.py
"""
Bet data models.

A bet is placed against one index and resolved against a single quote
taken at or after its settlement time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class BetType(Enum):
    """Which decimal digits of the index value the bet is on."""

    ANDAR = "andar"  # First decimal digit (.X0)
    BAHAR = "bahar"  # Second decimal digit (.0X)
    PAIR = "pair"    # Both decimal digits (.XX)

    @property
    def max_number(self) -> int:
        return 99 if self is BetType.PAIR else 9


class BetStatus(Enum):
    PENDING = "pending"
    SETTLED = "settled"


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a bet against an index value."""
    actual_value: Decimal
    actual_decimal: int
    is_win: bool
    win_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "actual_value": str(self.actual_value),
            "actual_decimal": self.actual_decimal,
            "is_win": self.is_win,
            "win_amount": str(self.win_amount),
        }


@dataclass(frozen=True)
class Bet:
    """
    Stored bet.

    Outcome fields stay None until the bet is settled.
    """
    id: str
    user_id: str
    index_name: str
    amount: Decimal
    bet_type: BetType
    bet_number: int
    status: BetStatus
    settlement_time: datetime
    created_at: datetime
    actual_value: Optional[Decimal] = None
    actual_decimal: Optional[int] = None
    is_win: bool = False
    win_amount: Decimal = Decimal("0.00")
    settled_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return self.status is BetStatus.SETTLED

    @property
    def outcome(self) -> Optional[Outcome]:
        if not self.is_settled:
            return None
        return Outcome(
            actual_value=self.actual_value,
            actual_decimal=self.actual_decimal,
            is_win=self.is_win,
            win_amount=self.win_amount,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "index_name": self.index_name,
            "amount": str(self.amount),
            "bet_type": self.bet_type.value,
            "bet_number": self.bet_number,
            "status": self.status.value,
            "settlement_time": self.settlement_time.isoformat(),
            "created_at": self.created_at.isoformat(),
            "actual_value": str(self.actual_value) if self.actual_value is not None else None,
            "actual_decimal": self.actual_decimal,
            "is_win": self.is_win,
            "win_amount": str(self.win_amount),
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
        }


class SettlementState(Enum):
    """What a settle_bet call did."""

    SETTLED = "settled"                  # Outcome decided by this call
    SCHEDULED = "scheduled"              # Not due yet, nothing changed
    ALREADY_SETTLED = "already_settled"  # Someone else settled it first


@dataclass(frozen=True)
class SettlementResult:
    bet_id: str
    state: SettlementState
    settlement_time: datetime
    outcome: Optional[Outcome] = None

    def to_dict(self) -> dict:
        data = {
            "bet_id": self.bet_id,
            "state": self.state.value,
            "settlement_time": self.settlement_time.isoformat(),
        }
        if self.outcome is not None:
            data.update(self.outcome.to_dict())
        return data


@dataclass
class SettlementPassReport:
    """Summary of one scheduler pass over due bets."""
    started_at: datetime
    results: list = field(default_factory=list)

    @property
    def settled_bets(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r["success"])

    def to_dict(self) -> dict:
        return {
            "success": True,
            "started_at": self.started_at.isoformat(),
            "settled_bets": self.settled_bets,
            "failures": self.failures,
            "results": self.results,
        }
