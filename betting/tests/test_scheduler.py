# betting/tests/test_scheduler.py
"""Tests for the settlement pass and background scheduler."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from betting.models import BetStatus
from betting.scheduler import SettlementScheduler, run_settlement_pass
from betting.service import get_bet, place_bet
from markets.quotes import Quote
from wallet.ledger import get_wallet

MARKET_OPEN = datetime(2025, 7, 21, 4, 0, tzinfo=timezone.utc)
AFTER_DELAY = MARKET_OPEN + timedelta(seconds=61)


class FlakyProvider:
    """Fails for one index, quotes 12345.67 for the rest."""

    def __init__(self, failing_index):
        self.failing_index = failing_index

    def get_quote(self, index_name):
        if index_name == self.failing_index:
            raise RuntimeError(f"No feed for {index_name}")
        return Quote(index_name, Decimal("12345.67"), Decimal("0"), Decimal("0"))


class TestRunSettlementPass:
    """Test a single settlement pass."""

    def test_settles_all_due_bets(self, funded_user, fixed_quotes):
        first = place_bet(funded_user, "Sensex", "andar", 6, 100, now=MARKET_OPEN)
        second = place_bet(funded_user, "Sensex", "bahar", 1, 100, now=MARKET_OPEN)

        report = run_settlement_pass(now=AFTER_DELAY)

        assert report.settled_bets == 2
        assert report.failures == 0
        assert get_bet(first.id).status is BetStatus.SETTLED
        assert get_bet(second.id).status is BetStatus.SETTLED
        # one win (95) and one loss on 200 staked
        assert get_wallet(funded_user).balance == Decimal("895.00")

    def test_skips_bets_not_yet_due(self, funded_user, fixed_quotes):
        bet = place_bet(funded_user, "Sensex", "andar", 6, 100, now=MARKET_OPEN)

        report = run_settlement_pass(now=MARKET_OPEN + timedelta(seconds=10))

        assert report.settled_bets == 0
        assert get_bet(bet.id).status is BetStatus.PENDING

    def test_one_failure_does_not_stop_pass(self, funded_user):
        dax_time = datetime(2025, 7, 21, 8, 0, tzinfo=timezone.utc)
        good = place_bet(funded_user, "Sensex", "andar", 6, 100, now=MARKET_OPEN)
        bad = place_bet(funded_user, "Dax", "andar", 6, 100, now=dax_time)

        report = run_settlement_pass(
            now=dax_time + timedelta(minutes=5),
            provider=FlakyProvider("Dax"),
        )

        assert report.settled_bets == 2
        assert report.failures == 1
        failed = [r for r in report.results if not r["success"]]
        assert failed[0]["bet_id"] == bad.id
        assert "No feed for Dax" in failed[0]["error"]
        assert get_bet(good.id).status is BetStatus.SETTLED
        assert get_bet(bad.id).status is BetStatus.PENDING

    def test_report_to_dict(self, funded_user, fixed_quotes):
        place_bet(funded_user, "Sensex", "pair", 67, 100, now=MARKET_OPEN)

        data = run_settlement_pass(now=AFTER_DELAY).to_dict()

        assert data["success"] is True
        assert data["settled_bets"] == 1
        assert data["results"][0]["result"]["state"] == "settled"
        assert data["results"][0]["result"]["is_win"] is True

    def test_limit(self, funded_user, fixed_quotes):
        for n in range(3):
            place_bet(funded_user, "Sensex", "andar", n, 10, now=MARKET_OPEN)

        assert run_settlement_pass(now=AFTER_DELAY, limit=2).settled_bets == 2
        assert run_settlement_pass(now=AFTER_DELAY, limit=2).settled_bets == 1


class TestSettlementScheduler:
    """Test the background scheduler lifecycle."""

    def test_start_and_stop(self):
        scheduler = SettlementScheduler(interval_seconds=0.05)
        assert not scheduler.is_running

        scheduler.start()
        try:
            assert scheduler.is_running
        finally:
            scheduler.stop()

        assert not scheduler.is_running

    def test_start_is_idempotent(self):
        scheduler = SettlementScheduler(interval_seconds=0.05)
        scheduler.start()
        try:
            thread = scheduler._thread
            scheduler.start()
            assert scheduler._thread is thread
        finally:
            scheduler.stop()

    def test_stop_without_start(self):
        SettlementScheduler().stop()  # Should not raise

    def test_run_once_counts_passes(self):
        scheduler = SettlementScheduler()
        report = scheduler.run_once()
        assert report.settled_bets == 0
        assert scheduler.passes == 1
