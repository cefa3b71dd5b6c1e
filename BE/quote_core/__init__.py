"""
quote_core
──────────
Core package for the terminal quote dashboard.

• models: Quote, CandleBar, TimeFrame and the UI mode enums
• data_fetcher: wire-format parser + Sina HTTP client
• indicators: moving averages over candle closes
• events: background event source (keys, resizes, ticks) over a closable channel
• keymap: key → command tables per input mode
• state: the dashboard state machine
• persistence: watchlist document on disk
• config: env-driven runtime settings
• utils: logging, IO, timezones

Import conveniences:
    from quote_core import AppState, SinaClient, TimeFrame, load_settings
"""

from __future__ import annotations

from .config import Settings, load_settings
from .data_fetcher import QuoteFetcher, SinaClient
from .errors import QuoteError
from .models import CandleBar, Quote, TimeFrame
from .state import AppState

__all__ = [
    "AppState",
    "CandleBar",
    "Quote",
    "QuoteError",
    "QuoteFetcher",
    "Settings",
    "SinaClient",
    "TimeFrame",
    "load_settings",
]
