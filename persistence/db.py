# persistence/db.py
"""
SQLite database connection and schema management.

Uses a file-based SQLite database for persistence.
On Railway, use a persistent volume to survive restarts.

Money columns are integer paise. Timestamps are UTC ISO-8601 strings with
fixed microsecond precision so they compare correctly as text.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_logger = logging.getLogger(__name__)

# Database file location (configurable via env var)
DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "decimal_digits.db"
DB_PATH = Path(os.environ.get("DD_DB_PATH", str(DEFAULT_DB_PATH)))

# Connection pool (one connection per thread)
_local = threading.local()
_init_lock = threading.Lock()
_initialized = False

TABLES = (
    "withdrawals",
    "bank_details",
    "bets",
    "transactions",
    "wallets",
    "profiles",
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_time(value: datetime) -> str:
    """Serialize a datetime for storage."""
    return as_utc(value).isoformat(timespec="microseconds")


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def _get_connection() -> sqlite3.Connection:
    """Get thread-local database connection."""
    if not hasattr(_local, "connection") or _local.connection is None:
        # Ensure directory exists
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(DB_PATH),
            timeout=30.0,
            check_same_thread=False,
        )
        # Enable foreign keys
        conn.execute("PRAGMA foreign_keys = ON")
        # Return rows as dicts
        conn.row_factory = sqlite3.Row
        _local.connection = conn

    return _local.connection


@contextmanager
def get_db():
    """
    Get database connection context manager.

    Usage:
        with get_db() as conn:
            cursor = conn.execute("SELECT ...")
    """
    conn = _get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


@contextmanager
def transaction():
    """
    Open a write transaction that takes the database lock up front.

    Reads made inside the block see a stable snapshot, so read-check-write
    sequences (balance checks, status flips) cannot interleave with
    another writer.

    Usage:
        with transaction() as conn:
            row = conn.execute("SELECT balance_paise ...").fetchone()
            conn.execute("UPDATE wallets ...")
    """
    conn = _get_connection()
    if conn.in_transaction:
        conn.commit()
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init_db() -> None:
    """
    Initialize database schema.

    Creates tables if they don't exist.
    Safe to call multiple times (idempotent).
    """
    global _initialized

    with _init_lock:
        if _initialized:
            return

        with get_db() as conn:
            # Profiles (one per user, created on first authenticated use)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL UNIQUE,
                    email TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Wallets
            conn.execute("""
                CREATE TABLE IF NOT EXISTS wallets (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL UNIQUE,
                    balance_paise INTEGER NOT NULL DEFAULT 0
                        CHECK (balance_paise >= 0),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Ledger entries
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    wallet_id TEXT NOT NULL,
                    type TEXT NOT NULL
                        CHECK (type IN ('credit', 'debit', 'bet_place', 'bet_win')),
                    amount_paise INTEGER NOT NULL CHECK (amount_paise > 0),
                    description TEXT,
                    reference_id TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (wallet_id) REFERENCES wallets(id)
                )
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_transactions_reference
                ON transactions(type, reference_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_user
                ON transactions(user_id, created_at DESC)
            """)

            # Bets
            conn.execute("""
                CREATE TABLE IF NOT EXISTS bets (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    index_name TEXT NOT NULL,
                    amount_paise INTEGER NOT NULL,
                    bet_type TEXT NOT NULL
                        CHECK (bet_type IN ('andar', 'bahar', 'pair')),
                    bet_number INTEGER NOT NULL,
                    actual_value TEXT,
                    actual_decimal INTEGER,
                    is_win INTEGER NOT NULL DEFAULT 0,
                    win_amount_paise INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'pending',
                    settlement_time TEXT NOT NULL,
                    settled_at TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_bets_status
                ON bets(status, settlement_time)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_bets_user
                ON bets(user_id, created_at DESC)
            """)

            # Bank details (payout destinations)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS bank_details (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    account_number TEXT NOT NULL,
                    bank_name TEXT NOT NULL,
                    account_holder_name TEXT NOT NULL,
                    ifsc_code TEXT NOT NULL,
                    address TEXT NOT NULL,
                    is_verified INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_bank_details_user
                ON bank_details(user_id)
            """)

            # Withdrawals
            conn.execute("""
                CREATE TABLE IF NOT EXISTS withdrawals (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    amount_paise INTEGER NOT NULL,
                    bank_detail_id TEXT NOT NULL,
                    razorpay_fund_account_id TEXT,
                    razorpay_payout_id TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    failure_reason TEXT,
                    created_at TEXT NOT NULL,
                    processed_at TEXT,
                    FOREIGN KEY (bank_detail_id) REFERENCES bank_details(id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_withdrawals_user
                ON withdrawals(user_id, created_at DESC)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_withdrawals_status
                ON withdrawals(status)
            """)

            _logger.info(f"Database initialized at {DB_PATH}")
            _initialized = True


def close_db() -> None:
    """Close thread-local database connection."""
    if hasattr(_local, "connection") and _local.connection is not None:
        _local.connection.close()
        _local.connection = None


def reset_db() -> None:
    """Reset database (for testing). Drops all tables."""
    global _initialized

    with _init_lock:
        with get_db() as conn:
            for table in TABLES:
                conn.execute(f"DROP TABLE IF EXISTS {table}")
        _initialized = False


def get_db_path() -> Path:
    """Get the database file path."""
    return DB_PATH
