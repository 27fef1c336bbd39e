# wallet/tests/test_ledger.py
"""Tests for the wallet ledger."""

import threading
from decimal import Decimal

import pytest

from persistence.db import get_db
from wallet.ledger import (
    DuplicateTransactionError,
    InsufficientBalanceError,
    InvalidAmountError,
    WalletNotFoundError,
    create_account,
    get_wallet,
    has_transaction,
    list_transactions,
    update_wallet_balance,
)
from wallet.models import TransactionType, from_paise, to_money, to_paise


class TestMoney:
    """Test money conversion helpers."""

    def test_float_keeps_decimal_representation(self):
        assert to_money(0.1) == Decimal("0.10")

    def test_rounds_half_up_to_paise(self):
        assert to_money("10.005") == Decimal("10.01")

    def test_paise_conversion(self):
        assert to_paise("12.34") == 1234
        assert from_paise(1234) == Decimal("12.34")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_money("ten")
        with pytest.raises(ValueError):
            to_money("NaN")

    @pytest.mark.parametrize("value", ["1e30", 1e30, Decimal("1E+40")])
    def test_rejects_values_beyond_precision(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    def test_credit_types(self):
        assert TransactionType.CREDIT.is_credit
        assert TransactionType.BET_WIN.is_credit
        assert not TransactionType.DEBIT.is_credit
        assert not TransactionType.BET_PLACE.is_credit


class TestCreateAccount:
    """Test account creation."""

    def test_creates_zero_balance_wallet(self):
        wallet = create_account("user-1", "one@example.com")
        assert wallet.user_id == "user-1"
        assert wallet.balance == Decimal("0.00")

    def test_is_idempotent(self):
        first = create_account("user-1")
        second = create_account("user-1")
        assert first.id == second.id

        with get_db() as conn:
            count = conn.execute(
                "SELECT COUNT(*) AS n FROM profiles WHERE user_id = 'user-1'"
            ).fetchone()["n"]
        assert count == 1

    def test_unknown_user_has_no_wallet(self):
        assert get_wallet("nobody") is None


class TestUpdateWalletBalance:
    """Test balance updates."""

    def test_credit_increases_balance(self):
        create_account("user-1")
        entry = update_wallet_balance("user-1", "250.50", TransactionType.CREDIT, "Top-up", "pay_1")

        assert entry.amount == Decimal("250.50")
        assert entry.type is TransactionType.CREDIT
        assert get_wallet("user-1").balance == Decimal("250.50")

    def test_debit_decreases_balance(self, funded_user):
        update_wallet_balance(funded_user, 100, "debit", "Withdrawal", "wd_1")
        assert get_wallet(funded_user).balance == Decimal("900.00")

    def test_debit_may_empty_wallet(self, funded_user):
        update_wallet_balance(funded_user, 1000, "bet_place", "Bet", "bet_1")
        assert get_wallet(funded_user).balance == Decimal("0.00")

    def test_overdraw_rejected_and_nothing_recorded(self, funded_user):
        with pytest.raises(InsufficientBalanceError):
            update_wallet_balance(funded_user, "1000.01", "debit", "Too much", "wd_2")

        assert get_wallet(funded_user).balance == Decimal("1000.00")
        assert not has_transaction("debit", "wd_2")

    @pytest.mark.parametrize("amount", [0, -5, "abc", "1e30", 1e30])
    def test_invalid_amount_rejected(self, funded_user, amount):
        with pytest.raises(InvalidAmountError):
            update_wallet_balance(funded_user, amount, "credit")

    def test_amount_beyond_integer_storage_rejected(self, funded_user):
        with pytest.raises(InvalidAmountError):
            update_wallet_balance(funded_user, "1e20", "credit")
        assert get_wallet(funded_user).balance == Decimal("1000.00")

    def test_missing_wallet(self):
        with pytest.raises(WalletNotFoundError):
            update_wallet_balance("ghost", 10, "credit")

    def test_duplicate_reference_rejected(self, funded_user):
        update_wallet_balance(funded_user, 50, "bet_win", "Winnings", "bet-9")

        with pytest.raises(DuplicateTransactionError):
            update_wallet_balance(funded_user, 50, "bet_win", "Winnings", "bet-9")

        assert get_wallet(funded_user).balance == Decimal("1050.00")

    def test_same_reference_different_type_allowed(self, funded_user):
        update_wallet_balance(funded_user, 10, "bet_place", "Bet", "bet-1")
        update_wallet_balance(funded_user, 9.5, "bet_win", "Winnings", "bet-1")
        assert get_wallet(funded_user).balance == Decimal("999.50")

    def test_entries_without_reference_not_deduplicated(self, funded_user):
        update_wallet_balance(funded_user, 10, "credit")
        update_wallet_balance(funded_user, 10, "credit")
        assert get_wallet(funded_user).balance == Decimal("1020.00")

    def test_concurrent_debits_never_overdraw(self):
        create_account("racer")
        update_wallet_balance("racer", 100, "credit", reference_id="seed")
        errors = []

        def spend(n):
            try:
                update_wallet_balance("racer", 30, "debit", reference_id=f"spend-{n}")
            except InsufficientBalanceError as e:
                errors.append(e)

        threads = [threading.Thread(target=spend, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 2
        assert get_wallet("racer").balance == Decimal("10.00")


class TestListTransactions:
    """Test transaction history."""

    def test_newest_first_with_limit(self, funded_user):
        for n in range(3):
            update_wallet_balance(funded_user, n + 1, "credit", f"Top-up {n}", f"pay_{n}")

        entries = list_transactions(funded_user, limit=2)

        assert [e.reference_id for e in entries] == ["pay_2", "pay_1"]

    def test_scoped_to_user(self, funded_user):
        create_account("other")
        update_wallet_balance("other", 5, "credit", reference_id="other-pay")

        refs = {e.reference_id for e in list_transactions(funded_user, limit=50)}
        assert "other-pay" not in refs

    def test_to_dict(self, funded_user):
        entry = list_transactions(funded_user)[0]
        data = entry.to_dict()
        assert data["type"] == "credit"
        assert data["amount"] == "1000.00"
        assert data["reference_id"] == "seed-funded"
