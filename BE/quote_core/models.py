# BE/quote_core/models.py
"""
Plain data records shared by the parser, the state machine and the renderer.

Quote and CandleBar are frozen: the parser builds them, nobody edits them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Quote:
    symbol: str
    name: str
    current: float
    previous_close: float
    open: float
    high: float
    low: float
    volume: float
    turnover: float = 0.0
    date: str = ""
    time: str = ""
    timestamp: Optional[datetime] = None

    @property
    def change(self) -> float:
        return self.current - self.previous_close

    @property
    def change_pct(self) -> Optional[float]:
        """Fractional change vs previous close; None when previous close is not positive."""
        if self.previous_close <= 0:
            return None
        return self.change / self.previous_close

    def volume_display(self) -> str:
        lots = self.volume / 100.0  # shares -> lots
        if lots >= 10000.0:
            return f"{lots / 10000.0:.1f}万手"
        return f"{lots:.0f}手"

    def turnover_display(self) -> str:
        if self.turnover >= 1e8:
            return f"{self.turnover / 1e8:.2f}亿"
        if self.turnover >= 1e4:
            return f"{self.turnover / 1e4:.1f}万"
        return f"{self.turnover:.0f}元"


@dataclass(frozen=True)
class CandleBar:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def is_bullish(self) -> bool:
        return self.close >= self.open


class TimeFrame(Enum):
    """Candle bucket width. Values are the short labels used in config files."""

    MIN5 = "5m"
    MIN15 = "15m"
    MIN30 = "30m"
    MIN60 = "60m"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def scale(self) -> int:
        """Minutes per bar, as the candle endpoint's ``scale`` parameter expects."""
        return _SCALE[self]

    @property
    def label(self) -> str:
        return _LABEL[self]

    @property
    def is_intraday(self) -> bool:
        return self.scale < _SCALE[TimeFrame.DAILY]

    @classmethod
    def ordered(cls) -> List["TimeFrame"]:
        return list(cls)

    @classmethod
    def from_value(cls, value: Optional[str], default: Optional["TimeFrame"] = None) -> Optional["TimeFrame"]:
        """Lenient lookup by value or member name ('daily', 'DAILY', '5m')."""
        key = (value or "").strip()
        for tf in cls:
            if key.lower() == tf.value or key.upper() == tf.name:
                return tf
        return default


_SCALE: Dict[TimeFrame, int] = {
    TimeFrame.MIN5: 5,
    TimeFrame.MIN15: 15,
    TimeFrame.MIN30: 30,
    TimeFrame.MIN60: 60,
    TimeFrame.DAILY: 240,
    TimeFrame.WEEKLY: 1200,
    TimeFrame.MONTHLY: 7200,
}

_LABEL: Dict[TimeFrame, str] = {
    TimeFrame.MIN5: "5m",
    TimeFrame.MIN15: "15m",
    TimeFrame.MIN30: "30m",
    TimeFrame.MIN60: "60m",
    TimeFrame.DAILY: "Daily",
    TimeFrame.WEEKLY: "Weekly",
    TimeFrame.MONTHLY: "Monthly",
}


class InputMode(Enum):
    NORMAL = "normal"
    ADDING_SYMBOL = "adding_symbol"


class ViewMode(Enum):
    NORMAL = "normal"
    FULLSCREEN_CHART = "fullscreen_chart"


# A-share (Shanghai/Shenzhen/Beijing), Hong Kong, US.
_SYMBOL_PATTERNS = (
    re.compile(r"^(sh|sz|bj)\d{6}$"),
    re.compile(r"^hk\d{5}$"),
    re.compile(r"^gb_[a-z0-9.]+$"),
)


def normalize_symbol(raw: str) -> str:
    """
    Canonical lowercase symbol for user input. ``usAAPL`` and ``us_aapl``
    become ``gb_aapl``, the form the quote service expects.

    Raises ValueError for anything that matches no known market.
    """
    sym = raw.strip().lower()
    if not sym:
        raise ValueError("Empty symbol")
    if sym.startswith("us"):
        sym = "gb_" + sym[2:].lstrip("_")
    if not any(p.match(sym) for p in _SYMBOL_PATTERNS):
        raise ValueError(f"Invalid symbol: {raw.strip()}")
    return sym
