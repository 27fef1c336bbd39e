# betting/tests/test_rules.py
"""Tests for bet validation and outcome rules."""

import os
from decimal import Decimal
from unittest.mock import patch

import pytest

from betting.models import BetType
from betting.rules import (
    DEFAULT_PAYOUT_RATE,
    InvalidBetError,
    evaluate,
    get_payout_rate,
    is_winning,
    parse_bet_type,
    validate_bet,
)


class TestValidateBet:
    """Test validate_bet."""

    def test_valid_bet(self):
        bet_type, stake = validate_bet("Sensex", "andar", 6, 100)
        assert bet_type is BetType.ANDAR
        assert stake == Decimal("100")

    def test_bet_type_is_case_insensitive(self):
        assert parse_bet_type("PAIR") is BetType.PAIR

    def test_boundaries_accepted(self):
        validate_bet("Dax", "pair", 0, 10)
        validate_bet("Dax", "pair", 99, 500)
        validate_bet("Dax", "bahar", 9, "500.00")

    @pytest.mark.parametrize(
        "index_name,bet_type,bet_number,amount,message",
        [
            ("Nikkei", "andar", 1, 100, "Unknown index"),
            ("Sensex", "middle", 1, 100, "Unknown bet type"),
            ("Sensex", "andar", 1, 9, "between ₹10-₹500"),
            ("Sensex", "andar", 1, 501, "between ₹10-₹500"),
            ("Sensex", "andar", 1, "10.50", "whole number"),
            ("Sensex", "andar", 1, "lots", "must be a number"),
            ("Sensex", "andar", 1, 1e30, "must be a number"),
            ("Sensex", "andar", 1, "1e30", "must be a number"),
            ("Sensex", "andar", 10, 100, "single digit (0-9)"),
            ("Sensex", "bahar", -1, 100, "single digit (0-9)"),
            ("Sensex", "pair", 100, 100, "valid number (0-99)"),
            ("Sensex", "pair", True, 100, "must be an integer"),
            ("Sensex", "pair", 5.0, 100, "must be an integer"),
        ],
    )
    def test_invalid_bets(self, index_name, bet_type, bet_number, amount, message):
        with pytest.raises(InvalidBetError) as exc_info:
            validate_bet(index_name, bet_type, bet_number, amount)
        assert message in str(exc_info.value)


class TestOutcome:
    """Test win/loss evaluation."""

    @pytest.mark.parametrize(
        "bet_type,bet_number,digits,expected",
        [
            (BetType.ANDAR, 6, 67, True),
            (BetType.ANDAR, 7, 67, False),
            (BetType.BAHAR, 7, 67, True),
            (BetType.BAHAR, 6, 67, False),
            (BetType.PAIR, 67, 67, True),
            (BetType.PAIR, 76, 67, False),
            (BetType.ANDAR, 0, 5, True),
            (BetType.PAIR, 5, 5, True),
        ],
    )
    def test_is_winning(self, bet_type, bet_number, digits, expected):
        assert is_winning(bet_type, bet_number, digits) is expected

    def test_win_pays_stake_times_rate(self):
        outcome = evaluate("pair", 67, "12345.67", 100)
        assert outcome.is_win
        assert outcome.actual_decimal == 67
        assert outcome.actual_value == Decimal("12345.67")
        assert outcome.win_amount == Decimal("95.00")

    def test_loss_pays_nothing(self):
        outcome = evaluate("andar", 1, "12345.67", 100)
        assert not outcome.is_win
        assert outcome.win_amount == Decimal("0.00")

    def test_win_amount_rounded_to_paise(self):
        outcome = evaluate("bahar", 7, "12345.67", 15)
        assert outcome.win_amount == Decimal("14.25")


class TestPayoutRate:
    """Test PAYOUT_RATE configuration."""

    def test_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("PAYOUT_RATE", None)
            assert get_payout_rate() == DEFAULT_PAYOUT_RATE

    def test_from_env(self):
        with patch.dict(os.environ, {"PAYOUT_RATE": "1.9"}):
            assert get_payout_rate() == Decimal("1.9")
            assert evaluate("pair", 67, "12345.67", 100).win_amount == Decimal("190.00")

    @pytest.mark.parametrize("raw", ["abc", "-1", "0"])
    def test_invalid_falls_back(self, raw):
        with patch.dict(os.environ, {"PAYOUT_RATE": raw}):
            assert get_payout_rate() == DEFAULT_PAYOUT_RATE
