# BE/quote_core/data_fetcher/__init__.py
"""
Unified data fetcher API.

This package exposes a stable facade over the wire-format parser and the
provider adapter, so import sites stay simple:

    from quote_core.data_fetcher import QuoteFetcher, SinaClient, parse_quote

`QuoteFetcher` is everything `quote_core.state` needs from a data source.
The Sina client satisfies it; tests pass in-memory fakes.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Protocol, Union

from ..errors import QuoteError
from ..models import CandleBar, Quote, TimeFrame
from .adapters.sina import SinaClient
from .parser import (
    MIN_QUOTE_FIELDS,
    SINA_FIELDS_V1,
    FieldLayout,
    decode_payload,
    parse_candles,
    parse_quote,
    split_quote_blob,
)


class QuoteFetcher(Protocol):
    def fetch_quote(self, symbol: str) -> Quote: ...

    def fetch_quotes(self, symbols: Iterable[str]) -> Dict[str, Union[Quote, QuoteError]]: ...

    def fetch_candles(self, symbol: str, timeframe: TimeFrame, count: int = ...) -> List[CandleBar]: ...


__all__ = [
    "QuoteFetcher",
    "SinaClient",
    # parser
    "FieldLayout",
    "SINA_FIELDS_V1",
    "MIN_QUOTE_FIELDS",
    "decode_payload",
    "parse_quote",
    "parse_candles",
    "split_quote_blob",
]
