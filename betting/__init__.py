# betting/__init__.py
"""
Betting module.

Provides:
- Bet validation and win/loss rules for andar, bahar and pair bets
- Bet placement and exactly-once settlement
- A polling scheduler that settles due bets
"""

from betting.models import (
    Bet,
    BetStatus,
    BetType,
    Outcome,
    SettlementPassReport,
    SettlementResult,
    SettlementState,
)
from betting.rules import BettingError, InvalidBetError, evaluate, validate_bet
from betting.service import (
    BetNotFoundError,
    MarketClosedError,
    place_bet,
    settle_bet,
    get_bet,
    list_bets,
    find_due_bets,
)
from betting.scheduler import SettlementScheduler, run_settlement_pass

__all__ = [
    "Bet",
    "BetStatus",
    "BetType",
    "Outcome",
    "SettlementPassReport",
    "SettlementResult",
    "SettlementState",
    "BettingError",
    "InvalidBetError",
    "evaluate",
    "validate_bet",
    "BetNotFoundError",
    "MarketClosedError",
    "place_bet",
    "settle_bet",
    "get_bet",
    "list_bets",
    "find_due_bets",
    "SettlementScheduler",
    "run_settlement_pass",
]
