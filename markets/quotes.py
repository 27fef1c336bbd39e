# markets/quotes.py
"""
Index quote providers.

Values are simulated; a real feed can be plugged in by implementing
QuoteProvider and registering it with set_quote_provider().
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Protocol, Union

_logger = logging.getLogger(__name__)

# Simulated value range
SIMULATED_MIN_VALUE = 10000
SIMULATED_SPAN = 10000

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Quote:
    """A point-in-time index value."""
    index_name: str
    value: Decimal
    change: Decimal
    change_percent: Decimal
    quoted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "index_name": self.index_name,
            "value": str(self.value),
            "change": str(self.change),
            "change_percent": str(self.change_percent),
            "quoted_at": self.quoted_at.isoformat(),
        }


class QuoteProvider(Protocol):
    """Anything that can produce a quote for an index name."""

    def get_quote(self, index_name: str) -> Quote:
        ...


def _cents(value: float) -> Decimal:
    return Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


class SimulatedQuoteProvider:
    """
    Random quotes in [10000, 20000) with two decimals.

    Pass a seeded random.Random for reproducible values.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def get_quote(self, index_name: str) -> Quote:
        with self._lock:
            value = self._rng.random() * SIMULATED_SPAN + SIMULATED_MIN_VALUE
            change = (self._rng.random() - 0.5) * 200
            change_percent = (self._rng.random() - 0.5) * 4

        return Quote(
            index_name=index_name,
            value=_cents(value),
            change=_cents(change),
            change_percent=_cents(change_percent),
        )


def decimal_digits(value: Union[Decimal, float, int, str]) -> int:
    """
    The two digits after the decimal point, as 0-99.

    The value is rounded half-up to cents first, so 12345.678 gives 68.
    """
    if isinstance(value, float):
        value = repr(value)
    cents = Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return int(abs(cents) * 100) % 100


_provider: QuoteProvider = SimulatedQuoteProvider()


def get_quote_provider() -> QuoteProvider:
    return _provider


def set_quote_provider(provider: QuoteProvider) -> QuoteProvider:
    """Swap the active provider. Returns the previous one."""
    global _provider
    previous = _provider
    _provider = provider
    _logger.info(f"Quote provider set to {type(provider).__name__}")
    return previous
