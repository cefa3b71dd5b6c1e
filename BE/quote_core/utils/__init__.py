# BE/quote_core/utils/__init__.py
"""
Small cross‑cutting helpers shared across the dashboard.
This module re-exports the most commonly used utilities so callers can do:

    from quote_core.utils import get_logger, read_yaml, market_tz_for_symbol

Nothing here should import domain modules (data_fetcher, indicators, state...).
Keep it lean.
"""

from .logging import get_logger, configure_logging
from .io import read_yaml, write_yaml, ensure_dir, atomic_write_text
from .timezones import (
    LOCAL_TZ,
    market_tz_for_symbol,
    parse_market_timestamp,
    to_local,
)

__all__ = [
    # logging
    "get_logger",
    "configure_logging",
    # io
    "read_yaml",
    "write_yaml",
    "ensure_dir",
    "atomic_write_text",
    # time/tz
    "LOCAL_TZ",
    "market_tz_for_symbol",
    "parse_market_timestamp",
    "to_local",
]
