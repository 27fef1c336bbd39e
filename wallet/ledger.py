# wallet/ledger.py
"""
Wallet ledger service.

Handles:
- Account (profile + wallet) creation
- Atomic balance updates with a matching ledger entry
- Transaction history

update_wallet_balance is the only code path that changes a balance.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

from persistence.db import (
    get_db,
    init_db,
    transaction,
    utcnow,
    to_db_time,
    from_db_time,
)
from wallet.models import (
    Number,
    Transaction,
    TransactionType,
    Wallet,
    from_paise,
    to_paise,
)

_logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value
MAX_PAISE = 2**63 - 1


class WalletError(Exception):
    """Base wallet error."""
    pass


class WalletNotFoundError(WalletError):
    """No wallet exists for the user."""
    pass


class InsufficientBalanceError(WalletError):
    """Debit would take the balance below zero."""
    pass


class InvalidAmountError(WalletError):
    """Amount is not a positive money value."""
    pass


class DuplicateTransactionError(WalletError):
    """A ledger entry with this type and reference already exists."""
    pass


def create_account(user_id: str, email: Optional[str] = None) -> Wallet:
    """
    Create the profile and zero-balance wallet for a user.

    Idempotent: an existing account is returned unchanged.

    Args:
        user_id: Identity-provider user ID
        email: Email claim, if the token carried one

    Returns:
        The user's Wallet
    """
    init_db()
    now = to_db_time(utcnow())

    with transaction() as conn:
        conn.execute(
            """
            INSERT OR IGNORE INTO profiles (id, user_id, email, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (str(uuid.uuid4()), user_id, email, now, now),
        )
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO wallets (id, user_id, balance_paise, created_at, updated_at)
            VALUES (?, ?, 0, ?, ?)
            """,
            (str(uuid.uuid4()), user_id, now, now),
        )
        if cursor.rowcount:
            _logger.info(f"Created wallet for user {user_id}")

    return get_wallet(user_id)


def get_wallet(user_id: str) -> Optional[Wallet]:
    """Get a user's wallet, or None if the account was never created."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM wallets WHERE user_id = ?",
            (user_id,),
        ).fetchone()

    return _row_to_wallet(row) if row else None


def update_wallet_balance(
    user_id: str,
    amount: Number,
    type: Union[TransactionType, str],
    description: Optional[str] = None,
    reference_id: Optional[str] = None,
    conn: Optional[sqlite3.Connection] = None,
) -> Transaction:
    """
    Apply a credit or debit to a wallet and record it in the ledger.

    Credits (credit, bet_win) add to the balance; debits (debit, bet_place)
    subtract and may not take it below zero. The balance change and the
    ledger row commit together or not at all.

    Args:
        user_id: Wallet owner
        amount: Positive amount in rupees
        type: Transaction type
        description: Human-readable note
        reference_id: What caused the entry (bet ID, payment ID, ...)
        conn: Join an open transaction instead of starting one

    Returns:
        The recorded Transaction

    Raises:
        InvalidAmountError: amount is not positive
        WalletNotFoundError: user has no wallet
        InsufficientBalanceError: debit exceeds balance
        DuplicateTransactionError: (type, reference_id) already recorded
    """
    tx_type = TransactionType(type)

    try:
        amount_paise = to_paise(amount)
    except ValueError as e:
        raise InvalidAmountError(str(e))
    if amount_paise <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    if amount_paise > MAX_PAISE:
        raise InvalidAmountError("Amount is too large")

    with _joined(conn) as db:
        wallet = db.execute(
            "SELECT id, balance_paise FROM wallets WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if wallet is None:
            raise WalletNotFoundError("Wallet not found for user")

        if tx_type.is_credit:
            new_balance = wallet["balance_paise"] + amount_paise
            if new_balance > MAX_PAISE:
                raise InvalidAmountError("Amount is too large")
        else:
            new_balance = wallet["balance_paise"] - amount_paise
            if new_balance < 0:
                raise InsufficientBalanceError("Insufficient wallet balance")

        now = utcnow()
        entry = Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            wallet_id=wallet["id"],
            type=tx_type,
            amount=from_paise(amount_paise),
            description=description,
            reference_id=reference_id,
            created_at=now,
        )

        try:
            db.execute(
                """
                INSERT INTO transactions
                (id, user_id, wallet_id, type, amount_paise, description,
                 reference_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    user_id,
                    entry.wallet_id,
                    tx_type.value,
                    amount_paise,
                    description,
                    reference_id,
                    to_db_time(now),
                ),
            )
        except sqlite3.IntegrityError:
            raise DuplicateTransactionError(
                f"{tx_type.value} already recorded for reference {reference_id}"
            )

        db.execute(
            "UPDATE wallets SET balance_paise = ?, updated_at = ? WHERE id = ?",
            (new_balance, to_db_time(now), wallet["id"]),
        )

    _logger.info(
        f"Wallet {tx_type.value} of {entry.amount} for user {user_id}",
        extra={"reference_id": reference_id, "transaction_id": entry.id},
    )
    return entry


def has_transaction(
    type: Union[TransactionType, str],
    reference_id: str,
    conn: Optional[sqlite3.Connection] = None,
) -> bool:
    """Check whether a ledger entry exists for a (type, reference) pair."""
    tx_type = TransactionType(type)

    if conn is not None:
        row = conn.execute(
            "SELECT 1 FROM transactions WHERE type = ? AND reference_id = ?",
            (tx_type.value, reference_id),
        ).fetchone()
        return row is not None

    init_db()
    with get_db() as db:
        row = db.execute(
            "SELECT 1 FROM transactions WHERE type = ? AND reference_id = ?",
            (tx_type.value, reference_id),
        ).fetchone()
    return row is not None


def list_transactions(user_id: str, limit: int = 10) -> List[Transaction]:
    """Most recent ledger entries for a user, newest first."""
    init_db()

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM transactions
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [_row_to_transaction(row) for row in rows]


@contextmanager
def _joined(conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
    """Use the caller's transaction if given, otherwise open one."""
    if conn is not None:
        yield conn
        return

    init_db()
    with transaction() as db:
        yield db


def _row_to_wallet(row) -> Wallet:
    return Wallet(
        id=row["id"],
        user_id=row["user_id"],
        balance=from_paise(row["balance_paise"]),
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


def _row_to_transaction(row) -> Transaction:
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        wallet_id=row["wallet_id"],
        type=TransactionType(row["type"]),
        amount=from_paise(row["amount_paise"]),
        description=row["description"],
        reference_id=row["reference_id"],
        created_at=from_db_time(row["created_at"]),
    )
