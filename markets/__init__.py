# markets/__init__.py
"""
Market data module.

Provides:
- The fixed catalogue of bettable stock indices
- Trading-hours checks per exchange timezone
- Quote providers (simulated by default)
"""

from markets.indices import StockIndex, get_index, list_indices, is_market_open
from markets.quotes import (
    Quote,
    QuoteProvider,
    SimulatedQuoteProvider,
    decimal_digits,
    get_quote_provider,
    set_quote_provider,
)

__all__ = [
    "StockIndex",
    "get_index",
    "list_indices",
    "is_market_open",
    "Quote",
    "QuoteProvider",
    "SimulatedQuoteProvider",
    "decimal_digits",
    "get_quote_provider",
    "set_quote_provider",
]
