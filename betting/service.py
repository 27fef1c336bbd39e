# betting/service.py
"""
Betting service.

Handles:
- Bet placement (stake debit + bet row in one transaction)
- Settlement against a quote, paying winnings exactly once
- Bet history and due-bet lookup for the scheduler
"""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Union

from betting.models import (
    Bet,
    BetStatus,
    BetType,
    SettlementResult,
    SettlementState,
)
from betting.rules import BettingError, evaluate, validate_bet
from markets.indices import get_index, is_market_open
from markets.quotes import QuoteProvider, get_quote_provider
from persistence.db import (
    as_utc,
    get_db,
    init_db,
    transaction,
    utcnow,
    to_db_time,
    from_db_time,
)
from wallet.ledger import DuplicateTransactionError, update_wallet_balance
from wallet.models import Number, TransactionType, from_paise, to_paise

_logger = logging.getLogger(__name__)

DEFAULT_SETTLEMENT_DELAY_SECONDS = 60


class BetNotFoundError(BettingError):
    """No bet with this ID (or not owned by the caller)."""
    pass


class MarketClosedError(BettingError):
    """The index is outside its trading window."""
    pass


def get_settlement_delay() -> timedelta:
    """How long after placement a bet becomes due (SETTLEMENT_DELAY_SECONDS)."""
    raw = os.environ.get("SETTLEMENT_DELAY_SECONDS")
    seconds = DEFAULT_SETTLEMENT_DELAY_SECONDS
    if raw:
        try:
            seconds = max(0, int(raw))
        except ValueError:
            _logger.warning(
                f"SETTLEMENT_DELAY_SECONDS='{raw}' is not a valid integer; "
                f"using default {DEFAULT_SETTLEMENT_DELAY_SECONDS}"
            )
    return timedelta(seconds=seconds)


def place_bet(
    user_id: str,
    index_name: str,
    bet_type: Union[BetType, str],
    bet_number: int,
    amount: Number,
    now: Optional[datetime] = None,
) -> Bet:
    """
    Place a bet and take the stake from the user's wallet.

    Args:
        user_id: Bettor
        index_name: Index to bet on
        bet_type: andar, bahar or pair
        bet_number: Chosen digit(s)
        amount: Stake in rupees
        now: Placement time (defaults to current UTC time)

    Returns:
        The pending Bet

    Raises:
        InvalidBetError: Parameters failed validation
        MarketClosedError: Index is not trading at `now`
        InsufficientBalanceError: Stake exceeds wallet balance
        WalletNotFoundError: User has no wallet
    """
    init_db()
    parsed_type, stake = validate_bet(index_name, bet_type, bet_number, amount)

    now = utcnow() if now is None else as_utc(now)

    if not is_market_open(get_index(index_name), now):
        raise MarketClosedError(
            f"Market Closed for {index_name}. Please try again during market hours."
        )

    bet = Bet(
        id=str(uuid.uuid4()),
        user_id=user_id,
        index_name=index_name,
        amount=stake,
        bet_type=parsed_type,
        bet_number=bet_number,
        status=BetStatus.PENDING,
        settlement_time=now + get_settlement_delay(),
        created_at=now,
    )

    with transaction() as conn:
        update_wallet_balance(
            user_id,
            stake,
            TransactionType.BET_PLACE,
            description=f"Bet placed on {index_name}",
            reference_id=bet.id,
            conn=conn,
        )
        conn.execute(
            """
            INSERT INTO bets
            (id, user_id, index_name, amount_paise, bet_type, bet_number,
             status, settlement_time, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                bet.id,
                user_id,
                index_name,
                to_paise(stake),
                parsed_type.value,
                bet_number,
                BetStatus.PENDING.value,
                to_db_time(bet.settlement_time),
                to_db_time(now),
            ),
        )

    _logger.info(
        f"Bet placed: {parsed_type.value} {bet_number} on {index_name} for {stake}",
        extra={"bet_id": bet.id, "user_id": user_id},
    )
    return bet


def settle_bet(
    bet_id: str,
    now: Optional[datetime] = None,
    provider: Optional[QuoteProvider] = None,
) -> SettlementResult:
    """
    Resolve a pending bet against the current quote for its index.

    The status flip and the winnings credit commit together, and the flip
    only matches a pending row, so a bet is paid at most once no matter
    how many callers race on it.

    Args:
        bet_id: Bet to settle
        now: Settlement time (defaults to current UTC time)
        provider: Quote source (defaults to the registered provider)

    Returns:
        SettlementResult describing what happened

    Raises:
        BetNotFoundError: Unknown bet ID
    """
    init_db()
    now = utcnow() if now is None else as_utc(now)

    bet = get_bet(bet_id)
    if bet is None:
        raise BetNotFoundError(f"Bet {bet_id} not found")

    if bet.is_settled:
        return SettlementResult(
            bet_id=bet_id,
            state=SettlementState.ALREADY_SETTLED,
            settlement_time=bet.settlement_time,
            outcome=bet.outcome,
        )

    if now < bet.settlement_time:
        return SettlementResult(
            bet_id=bet_id,
            state=SettlementState.SCHEDULED,
            settlement_time=bet.settlement_time,
        )

    quote = (provider or get_quote_provider()).get_quote(bet.index_name)
    outcome = evaluate(bet.bet_type, bet.bet_number, quote.value, bet.amount)

    with transaction() as conn:
        cursor = conn.execute(
            """
            UPDATE bets
            SET status = ?, actual_value = ?, actual_decimal = ?,
                is_win = ?, win_amount_paise = ?, settled_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                BetStatus.SETTLED.value,
                str(outcome.actual_value),
                outcome.actual_decimal,
                int(outcome.is_win),
                to_paise(outcome.win_amount),
                to_db_time(now),
                bet_id,
                BetStatus.PENDING.value,
            ),
        )
        won_race = cursor.rowcount == 1

        if won_race and outcome.is_win and outcome.win_amount > 0:
            try:
                update_wallet_balance(
                    bet.user_id,
                    outcome.win_amount,
                    TransactionType.BET_WIN,
                    description=f"Winnings from {bet.index_name} bet",
                    reference_id=bet_id,
                    conn=conn,
                )
            except DuplicateTransactionError:
                _logger.warning(f"Winnings for bet {bet_id} were already credited")

    if not won_race:
        settled = get_bet(bet_id)
        return SettlementResult(
            bet_id=bet_id,
            state=SettlementState.ALREADY_SETTLED,
            settlement_time=settled.settlement_time,
            outcome=settled.outcome,
        )

    _logger.info(
        f"Bet settled: {bet.index_name}={outcome.actual_value} "
        f"({'win' if outcome.is_win else 'loss'})",
        extra={"bet_id": bet_id, "user_id": bet.user_id},
    )
    return SettlementResult(
        bet_id=bet_id,
        state=SettlementState.SETTLED,
        settlement_time=bet.settlement_time,
        outcome=outcome,
    )


def get_bet(bet_id: str, user_id: Optional[str] = None) -> Optional[Bet]:
    """
    Get a bet by ID.

    Args:
        bet_id: Bet ID
        user_id: If given, only return the bet when this user owns it
    """
    init_db()

    query = "SELECT * FROM bets WHERE id = ?"
    params: list = [bet_id]
    if user_id is not None:
        query += " AND user_id = ?"
        params.append(user_id)

    with get_db() as conn:
        row = conn.execute(query, params).fetchone()

    return _row_to_bet(row) if row else None


def list_bets(user_id: str, limit: int = 50) -> List[Bet]:
    """Bet history for a user, newest first."""
    init_db()

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM bets
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [_row_to_bet(row) for row in rows]


def find_due_bets(now: Optional[datetime] = None, limit: int = 100) -> List[Bet]:
    """Pending bets whose settlement time has passed, oldest first."""
    init_db()
    now = utcnow() if now is None else as_utc(now)

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM bets
            WHERE status = ? AND settlement_time <= ?
            ORDER BY settlement_time ASC
            LIMIT ?
            """,
            (BetStatus.PENDING.value, to_db_time(now), limit),
        ).fetchall()

    return [_row_to_bet(row) for row in rows]


def _row_to_bet(row) -> Bet:
    """Convert a database row to a Bet object."""
    actual_value = row["actual_value"]
    return Bet(
        id=row["id"],
        user_id=row["user_id"],
        index_name=row["index_name"],
        amount=from_paise(row["amount_paise"]),
        bet_type=BetType(row["bet_type"]),
        bet_number=row["bet_number"],
        status=BetStatus(row["status"]),
        settlement_time=from_db_time(row["settlement_time"]),
        created_at=from_db_time(row["created_at"]),
        actual_value=Decimal(actual_value) if actual_value is not None else None,
        actual_decimal=row["actual_decimal"],
        is_win=bool(row["is_win"]),
        win_amount=from_paise(row["win_amount_paise"]),
        settled_at=from_db_time(row["settled_at"]),
    )
