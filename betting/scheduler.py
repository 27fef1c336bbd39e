# betting/scheduler.py
"""
Polling settlement scheduler.

Each pass settles every pending bet whose settlement time has passed.
Bets are settled independently: one failing bet is reported and the pass
moves on. Exactly-once payout is enforced by settle_bet, so overlapping
passes (background thread + cron endpoint) are harmless.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Optional

from betting.models import SettlementPassReport
from betting.service import find_due_bets, settle_bet
from markets.quotes import QuoteProvider
from persistence.db import as_utc, close_db, utcnow

_logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15
DEFAULT_BATCH_SIZE = 100


def run_settlement_pass(
    now: Optional[datetime] = None,
    limit: int = DEFAULT_BATCH_SIZE,
    provider: Optional[QuoteProvider] = None,
) -> SettlementPassReport:
    """
    Settle all due bets once.

    Args:
        now: Cut-off time (defaults to current UTC time)
        limit: Max bets to process in this pass
        provider: Quote source override

    Returns:
        SettlementPassReport with one result per bet attempted
    """
    now = utcnow() if now is None else as_utc(now)
    report = SettlementPassReport(started_at=now)

    for bet in find_due_bets(now=now, limit=limit):
        try:
            result = settle_bet(bet.id, now=now, provider=provider)
            report.results.append({
                "bet_id": bet.id,
                "success": True,
                "result": result.to_dict(),
            })
        except Exception as e:
            _logger.error(f"Error settling bet {bet.id}: {e}")
            report.results.append({
                "bet_id": bet.id,
                "success": False,
                "error": str(e),
            })

    if report.results:
        _logger.info(
            f"Settlement pass: {report.settled_bets} bets, {report.failures} failures"
        )
    return report


class SettlementScheduler:
    """
    Background thread that runs a settlement pass every interval.

    Usage:
        scheduler = SettlementScheduler(interval_seconds=15)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.passes = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="settlement-scheduler",
                daemon=True,
            )
            self._thread.start()
        _logger.info(f"Settlement scheduler started (every {self.interval_seconds}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop.set()
            self._thread = None
        thread.join(timeout)
        _logger.info("Settlement scheduler stopped")

    def run_once(self) -> SettlementPassReport:
        report = run_settlement_pass(limit=self.batch_size)
        self.passes += 1
        return report

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                try:
                    self.run_once()
                except Exception as e:
                    _logger.exception(f"Settlement pass failed: {e}")
                self._stop.wait(self.interval_seconds)
        finally:
            close_db()
