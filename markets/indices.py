# markets/indices.py
"""
Stock index catalogue and trading-hours check.

Hours are decimal local time: 9.25 is 09:15, 13.5 is 13:30.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class StockIndex:
    """A bettable index and its local trading window."""
    name: str
    timezone: str
    market_open: float
    market_close: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "timezone": self.timezone,
            "market_open": self.market_open,
            "market_close": self.market_close,
        }


STOCK_INDICES: tuple[StockIndex, ...] = (
    StockIndex("Taiwan", "Asia/Taipei", 9, 13.5),
    StockIndex("Kospi", "Asia/Seoul", 9, 15.5),
    StockIndex("Hangseng", "Asia/Hong_Kong", 9.5, 16),
    StockIndex("Sensex", "Asia/Kolkata", 9.25, 15.5),
    StockIndex("Dax", "Europe/Berlin", 9, 17.5),
    StockIndex("Dow Jones", "America/New_York", 9.5, 16),
)

_BY_NAME = {index.name: index for index in STOCK_INDICES}


def get_index(name: str) -> Optional[StockIndex]:
    """Look up an index by its exact name."""
    return _BY_NAME.get(name)


def list_indices() -> List[StockIndex]:
    return list(STOCK_INDICES)


def local_hour(index: StockIndex, now: Optional[datetime] = None) -> float:
    """Wall-clock time at the index's exchange as decimal hours."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local = now.astimezone(ZoneInfo(index.timezone))
    return local.hour + local.minute / 60


def is_market_open(index: StockIndex, now: Optional[datetime] = None) -> bool:
    """
    Check if the index is trading at `now`.

    Both ends of the window are inclusive. Weekends and exchange
    holidays are not considered.
    """
    current = local_hour(index, now)
    return index.market_open <= current <= index.market_close
