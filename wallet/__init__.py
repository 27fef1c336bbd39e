# wallet/__init__.py
"""
Wallet module.

Provides:
- Per-user wallets with a non-negative balance
- An append-only ledger of credits and debits
- Exactly-once entries keyed by (type, reference_id)
"""

from wallet.models import Transaction, TransactionType, Wallet
from wallet.ledger import (
    WalletError,
    WalletNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    DuplicateTransactionError,
    create_account,
    get_wallet,
    update_wallet_balance,
    has_transaction,
    list_transactions,
)

__all__ = [
    "Transaction",
    "TransactionType",
    "Wallet",
    "WalletError",
    "WalletNotFoundError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "DuplicateTransactionError",
    "create_account",
    "get_wallet",
    "update_wallet_balance",
    "has_transaction",
    "list_transactions",
]
