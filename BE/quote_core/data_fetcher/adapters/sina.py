# BE/quote_core/data_fetcher/adapters/sina.py
"""
Sina adapter
────────────
HTTP client for the Sina Finance quote service.

Endpoints used:
- Real-time quotes:  http://hq.sinajs.cn/list=<sym[,sym2,...]>
- Candle history:    http://money.finance.sina.com.cn/quotes_service/api/json_v2.php/
                     CN_MarketData.getKLineData?symbol=<sym>&scale=<min>&ma=no&datalen=<n>

Notes
-----
• Symbols are Sina-formatted: sh600519, sz000858, bj430047, hk00700, gb_aapl.
• The quote host rejects requests without a finance.sina.com.cn Referer.
• Retries live here, never in the parser: `_request` retries transport errors
  and 5xx with a linear backoff, then raises `TransportError`.
• `fetch_quotes` isolates failures per chunk (transport) and per symbol
  (parse), so one bad symbol never blanks the rest of the watchlist.
"""

from __future__ import annotations

import time
from typing import Dict, Iterable, List, Optional, Union

import requests

from ...errors import EmptyQuoteError, QuoteError, TransportError
from ...models import CandleBar, Quote, TimeFrame
from ...utils.logging import get_logger
from ..parser import parse_candles, parse_quote, split_quote_blob

log = get_logger(__name__)

# ────────────────────────────────────────────────────────────
# Config
# ────────────────────────────────────────────────────────────

REALTIME_URL = "http://hq.sinajs.cn/list="
KLINE_URL = (
    "http://money.finance.sina.com.cn/quotes_service/api/json_v2.php/"
    "CN_MarketData.getKLineData"
)
HEADERS = {
    "Referer": "http://finance.sina.com.cn",
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) quote-tui/0.1",
}

DEFAULT_TIMEOUT = 8.0  # seconds
MAX_RETRIES = 2
BACKOFF_BASE = 0.5
BATCH_SIZE = 40
DEFAULT_CANDLE_COUNT = 120

QuoteResult = Union[Quote, QuoteError]


class SinaClient:
    """
    Blocking client; one instance per process.

    Usage:
        client = SinaClient(timeout=5)
        results = client.fetch_quotes(["sh600519", "hk00700"])
        bars = client.fetch_candles("sh600519", TimeFrame.DAILY, count=120)
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        backoff_base: float = BACKOFF_BASE,
        session: Optional[requests.Session] = None,
        sleep=time.sleep,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.backoff_base = backoff_base
        self._session = session or requests.Session()
        self._session.headers.update(HEADERS)
        self._sleep = sleep

    # --------------- HTTP core ---------------

    def _request(self, url: str, params: Optional[Dict[str, object]] = None, *, symbol: Optional[str] = None) -> bytes:
        """GET with retries; return the raw body or raise `TransportError`."""
        last_err: Optional[str] = None
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                resp = self._session.get(url, params=params, timeout=self.timeout)
                if resp.status_code >= 500:
                    last_err = f"HTTP {resp.status_code}"
                else:
                    resp.raise_for_status()
                    return resp.content
            except requests.HTTPError as e:
                # 4xx: not transient
                raise TransportError(f"request failed: {e}", url=url, symbol=symbol) from e
            except requests.RequestException as e:
                last_err = str(e) or type(e).__name__
            if attempt < attempts:
                log.debug("GET %s failed (%s), retry %d/%d", url, last_err, attempt, self.max_retries)
                self._sleep(self.backoff_base * attempt)

        raise TransportError(
            f"request failed after {attempts} attempt(s): {last_err or 'unknown'}",
            url=url,
            symbol=symbol,
        )

    # --------------- public API ---------------

    def fetch_quote(self, symbol: str) -> Quote:
        """Fetch and parse one symbol's real-time quote. Raises `QuoteError`."""
        raw = self._request(REALTIME_URL + symbol, symbol=symbol)
        return parse_quote(symbol, raw)

    def fetch_quotes(self, symbols: Iterable[str]) -> Dict[str, QuoteResult]:
        """
        Batch version of fetch_quote. The service accepts comma-separated lists.

        Returns ``{symbol: Quote | QuoteError}`` for every requested symbol, in
        request order. Never raises.
        """
        syms: List[str] = []
        for s in symbols:
            if s and s not in syms:
                syms.append(s)
        out: Dict[str, QuoteResult] = {}
        for i in range(0, len(syms), BATCH_SIZE):
            chunk = syms[i : i + BATCH_SIZE]
            try:
                raw = self._request(REALTIME_URL + ",".join(chunk))
            except TransportError as e:
                log.warning("Quote batch %s failed: %s", ",".join(chunk), e)
                for sym in chunk:
                    out[sym] = TransportError(str(e), url=e.url, symbol=sym)
                continue

            records = split_quote_blob(raw)
            for sym in chunk:
                record = records.get(sym)
                if record is None:
                    out[sym] = EmptyQuoteError(sym)
                    continue
                try:
                    out[sym] = parse_quote(sym, record)
                except QuoteError as e:
                    log.info("Quote for %s rejected: %s", sym, e)
                    out[sym] = e
        return out

    def fetch_candles(self, symbol: str, timeframe: TimeFrame, count: int = DEFAULT_CANDLE_COUNT) -> List[CandleBar]:
        """Fetch ``count`` bars for a symbol/timeframe, oldest first. Raises `QuoteError`."""
        params = {
            "symbol": symbol,
            "scale": timeframe.scale,
            "ma": "no",
            "datalen": int(count),
        }
        raw = self._request(KLINE_URL, params, symbol=symbol)
        return parse_candles(timeframe, raw, symbol=symbol)

    def close(self) -> None:
        self._session.close()
