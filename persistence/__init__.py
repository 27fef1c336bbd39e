# persistence/__init__.py
"""
Persistence layer.

Provides SQLite-backed storage for:
- Profiles and wallets
- The wallet ledger (transactions)
- Bets
- Bank details and withdrawals
"""

from persistence.db import (
    get_db,
    init_db,
    close_db,
    reset_db,
    transaction,
    utcnow,
    as_utc,
    to_db_time,
    from_db_time,
)

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "reset_db",
    "transaction",
    "utcnow",
    "as_utc",
    "to_db_time",
    "from_db_time",
]
