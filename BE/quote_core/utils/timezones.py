# BE/quote_core/utils/timezones.py
"""
TZ utilities with **no dependency** on the app's config module.

The quote service stamps every record with the exchange's wall-clock date and
time and no offset, so the zone has to be inferred from the symbol prefix:

    sh / sz / bj  → Asia/Shanghai
    hk            → Asia/Hong_Kong
    gb_           → America/New_York
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import tzlocal

DEFAULT_MARKET_TZ = "Asia/Shanghai"

_PREFIX_TZ = (
    ("gb_", "America/New_York"),
    ("hk", "Asia/Hong_Kong"),
    ("sh", "Asia/Shanghai"),
    ("sz", "Asia/Shanghai"),
    ("bj", "Asia/Shanghai"),
)

# Detect USER's local timezone (fallback to the default market tz)
try:
    LOCAL_TZ = ZoneInfo(tzlocal.get_localzone_name())
except Exception:
    LOCAL_TZ = ZoneInfo(DEFAULT_MARKET_TZ)


def market_tz_for_symbol(symbol: str) -> ZoneInfo:
    """Return the exchange time zone for a service symbol (e.g. 'sh600519')."""
    s = (symbol or "").strip().lower()
    for prefix, tz_name in _PREFIX_TZ:
        if s.startswith(prefix):
            return ZoneInfo(tz_name)
    return ZoneInfo(DEFAULT_MARKET_TZ)


def parse_market_timestamp(date_str: str, time_str: str, *, symbol: str) -> Optional[datetime]:
    """
    Combine 'YYYY-MM-DD' and 'HH:MM:SS' into an aware datetime in the symbol's
    market tz. Returns None when either part is missing or malformed.
    """
    date_str = (date_str or "").strip()
    time_str = (time_str or "").strip()
    if not date_str or not time_str:
        return None
    try:
        naive = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
    return naive.replace(tzinfo=market_tz_for_symbol(symbol))


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to the user's local zone (None passes through)."""
    if dt is None:
        return None
    return dt.astimezone(LOCAL_TZ)
