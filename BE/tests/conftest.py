from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

import pytest

from quote_core.errors import QuoteError, TransportError
from quote_core.models import CandleBar, Quote, TimeFrame


def sina_record(
    symbol: str = "sh600519",
    *,
    name: str = "贵州茅台",
    open: str = "1731.500",
    previous_close: str = "1732.000",
    current: str = "1755.000",
    high: str = "1760.000",
    low: str = "1728.000",
    volume: str = "2543210",
    turnover: str = "4456789012.000",
    date: str = "2025-02-11",
    time: str = "15:00:00",
    field_count: int = 33,
) -> str:
    """A realistic `var hq_str_...` line with the A-share field positions filled in."""
    fields = ["0.000"] * field_count
    values = {0: name, 1: open, 2: previous_close, 3: current, 4: high, 5: low,
              8: volume, 9: turnover, 30: date, 31: time}
    for pos, value in values.items():
        if pos < field_count:
            fields[pos] = value
    return f'var hq_str_{symbol}="{",".join(fields)}";'


def make_quote(symbol: str, current: float = 10.0, previous_close: float = 9.5, name: str = "") -> Quote:
    return Quote(
        symbol=symbol,
        name=name or symbol.upper(),
        current=current,
        previous_close=previous_close,
        open=previous_close,
        high=max(current, previous_close),
        low=min(current, previous_close),
        volume=1_000_000.0,
        turnover=10_000_000.0,
        date="2025-02-11",
        time="15:00:00",
    )


def make_bars(closes: Iterable[float], start: Optional[datetime] = None) -> List[CandleBar]:
    start = start or datetime(2025, 1, 1)
    return [
        CandleBar(timestamp=start + timedelta(days=i), open=c, high=c + 1, low=c - 1, close=c, volume=100.0)
        for i, c in enumerate(closes)
    ]


class FakeFetcher:
    """In-memory `QuoteFetcher`. Symbols listed in `failing` come back as TransportError."""

    def __init__(self, *, failing: Iterable[str] = (), candle_count: int = 60) -> None:
        self.failing = set(failing)
        self.failing_candles: set = set()
        self.candle_count = candle_count
        self.quote_calls: List[List[str]] = []
        self.candle_calls: List[tuple] = []
        self.prices: Dict[str, float] = {}

    def _quote(self, symbol: str) -> Quote:
        return make_quote(symbol, current=self.prices.get(symbol, 10.0))

    def fetch_quote(self, symbol: str) -> Quote:
        if symbol in self.failing:
            raise TransportError("connection refused", symbol=symbol)
        return self._quote(symbol)

    def fetch_quotes(self, symbols: Iterable[str]) -> Dict[str, object]:
        symbols = list(symbols)
        self.quote_calls.append(symbols)
        out: Dict[str, object] = {}
        for sym in symbols:
            if sym in self.failing:
                out[sym] = TransportError("connection refused", symbol=sym)
            else:
                out[sym] = self._quote(sym)
        return out

    def fetch_candles(self, symbol: str, timeframe: TimeFrame, count: int = 120) -> List[CandleBar]:
        self.candle_calls.append((symbol, timeframe, count))
        if symbol in self.failing_candles:
            raise QuoteError("candle service down")
        return make_bars(float(10 + i) for i in range(self.candle_count))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def record() -> Callable[..., str]:
    return sina_record
