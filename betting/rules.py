# betting/rules.py
"""
Bet validation and outcome rules.

Bet types read the two decimal digits of the index value:
- andar: first decimal digit    (12345.67 -> 6)
- bahar: second decimal digit   (12345.67 -> 7)
- pair:  both decimal digits    (12345.67 -> 67)

A winning bet pays stake * payout rate.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from betting.models import BetType, Outcome
from markets.indices import get_index
from markets.quotes import decimal_digits
from wallet.models import MONEY_QUANTUM, Number, to_money

_logger = logging.getLogger(__name__)

MIN_BET_AMOUNT = Decimal("10")
MAX_BET_AMOUNT = Decimal("500")

DEFAULT_PAYOUT_RATE = Decimal("0.95")


class BettingError(Exception):
    """Base betting error."""
    pass


class InvalidBetError(BettingError):
    """Bet parameters failed validation."""
    pass


def get_payout_rate() -> Decimal:
    """Winnings multiplier applied to the stake (PAYOUT_RATE env var)."""
    raw = os.environ.get("PAYOUT_RATE")
    if not raw:
        return DEFAULT_PAYOUT_RATE
    try:
        rate = Decimal(raw)
    except InvalidOperation:
        _logger.warning(f"PAYOUT_RATE='{raw}' is not a number; using {DEFAULT_PAYOUT_RATE}")
        return DEFAULT_PAYOUT_RATE
    if not rate.is_finite() or rate <= 0:
        _logger.warning(f"PAYOUT_RATE={raw} must be positive; using {DEFAULT_PAYOUT_RATE}")
        return DEFAULT_PAYOUT_RATE
    return rate


def parse_bet_type(bet_type: Union[BetType, str]) -> BetType:
    if isinstance(bet_type, BetType):
        return bet_type
    try:
        return BetType(str(bet_type).lower())
    except ValueError:
        raise InvalidBetError(f"Unknown bet type: {bet_type}")


def validate_bet(
    index_name: str,
    bet_type: Union[BetType, str],
    bet_number: int,
    amount: Number,
) -> tuple[BetType, Decimal]:
    """
    Check a bet before placement.

    Returns:
        Tuple of (parsed bet type, stake as Decimal)

    Raises:
        InvalidBetError: With a user-facing message
    """
    if get_index(index_name) is None:
        raise InvalidBetError(f"Unknown index: {index_name}")

    parsed_type = parse_bet_type(bet_type)

    try:
        stake = to_money(amount)
    except ValueError:
        raise InvalidBetError("Bet amount must be a number")

    if stake != stake.to_integral_value():
        raise InvalidBetError("Bet amount must be a whole number of rupees")
    if not MIN_BET_AMOUNT <= stake <= MAX_BET_AMOUNT:
        raise InvalidBetError(
            f"Bet amount must be between ₹{MIN_BET_AMOUNT}-₹{MAX_BET_AMOUNT}"
        )

    if isinstance(bet_number, bool) or not isinstance(bet_number, int):
        raise InvalidBetError("Bet number must be an integer")
    if not 0 <= bet_number <= parsed_type.max_number:
        if parsed_type is BetType.PAIR:
            raise InvalidBetError("For Pair bets, please enter a valid number (0-99)")
        raise InvalidBetError("For Andar/Bahar bets, please enter a single digit (0-9)")

    return parsed_type, stake


def is_winning(bet_type: BetType, bet_number: int, digits: int) -> bool:
    """Compare the chosen number against the decimal digits (0-99)."""
    if bet_type is BetType.ANDAR:
        return digits // 10 == bet_number
    if bet_type is BetType.BAHAR:
        return digits % 10 == bet_number
    return digits == bet_number


def evaluate(
    bet_type: Union[BetType, str],
    bet_number: int,
    actual_value: Number,
    amount: Number,
) -> Outcome:
    """Decide win/loss for a bet against a realized index value."""
    parsed_type = parse_bet_type(bet_type)
    value = to_money(actual_value)
    digits = decimal_digits(value)
    win = is_winning(parsed_type, bet_number, digits)

    win_amount = Decimal("0.00")
    if win:
        win_amount = (to_money(amount) * get_payout_rate()).quantize(
            MONEY_QUANTUM, rounding=ROUND_HALF_UP
        )

    return Outcome(
        actual_value=value,
        actual_decimal=digits,
        is_win=win,
        win_amount=win_amount,
    )
