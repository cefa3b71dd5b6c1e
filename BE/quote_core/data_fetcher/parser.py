# BE/quote_core/data_fetcher/parser.py
"""
Quote / candle wire-format parser
─────────────────────────────────
Pure functions: bytes (or text) in, typed records out. No I/O, no retries,
so the fetch layer can retry a request and re-parse safely.

Real-time payload (one line per symbol, GBK encoded):

    var hq_str_sh600519="贵州茅台,1731.500,1732.000,1755.000,...,2025-02-11,15:00:00,00,";

Candle payload (JSON array, sometimes a JS literal with bare keys):

    [{"day":"2025-02-11","open":"1731.5","high":"1760.0","low":"1728.0",
      "close":"1755.0","volume":"25432100"}, ...]

Known limitation: a numeric quote field that fails to parse becomes 0.0
instead of failing the record. A zero price therefore flows into change
figures and moving averages unchanged.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..errors import (
    CandlePayloadError,
    DecodeError,
    EmptyQuoteError,
    FieldCountError,
    NumericParseError,
)
from ..models import CandleBar, Quote, TimeFrame
from ..utils.logging import get_logger
from ..utils.timezones import market_tz_for_symbol, parse_market_timestamp

log = get_logger(__name__)

SOURCE_ENCODING = "gbk"

Payload = Union[bytes, bytearray, str]


# ────────────────────────────────────────────────────────────
# Field contract
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldLayout:
    """Positions of each field in a real-time record. Owned by the service, not derived."""

    version: str
    min_fields: int
    name: int
    open: int
    previous_close: int
    current: int
    high: int
    low: int
    volume: int
    turnover: int
    date: int
    time: int


SINA_FIELDS_V1 = FieldLayout(
    version="sina-a-share-v1",
    min_fields=32,
    name=0,
    open=1,
    previous_close=2,
    current=3,
    high=4,
    low=5,
    volume=8,
    turnover=9,
    date=30,
    time=31,
)

MIN_QUOTE_FIELDS = SINA_FIELDS_V1.min_fields

_BLOB_LINE = re.compile(r'hq_str_(?P<symbol>[A-Za-z0-9_.$]+)\s*=\s*"(?P<body>[^"]*)"')
_BARE_KEY = re.compile(r'([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:')

_CANDLE_TS_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")


# ────────────────────────────────────────────────────────────
# Decoding
# ────────────────────────────────────────────────────────────

def decode_payload(raw: Payload, *, strict: bool = False) -> str:
    """
    Convert the service's GBK bytes to text.

    Undecodable bytes are not fatal: they are logged and kept as ``\\xNN``
    escapes, so the numeric fields still parse. ``strict=True`` raises
    `DecodeError` instead.
    """
    if isinstance(raw, str):
        return raw
    data = bytes(raw)
    try:
        return data.decode(SOURCE_ENCODING)
    except UnicodeDecodeError as e:
        if strict:
            raise DecodeError(f"payload is not valid {SOURCE_ENCODING}: {e}") from e
        log.warning("Payload is not valid %s (%s); decoding best-effort", SOURCE_ENCODING, e.reason)
        return data.decode(SOURCE_ENCODING, errors="backslashreplace")


def _parse_float(value: Any, *, strict: bool = False) -> float:
    try:
        if value is None:
            raise NumericParseError("missing numeric field")
        text = str(value).strip()
        if not text:
            raise NumericParseError("empty numeric field")
        return float(text)
    except NumericParseError:
        if strict:
            raise
        return 0.0
    except (TypeError, ValueError) as e:
        if strict:
            raise NumericParseError(f"not a number: {value!r}") from e
        return 0.0


# ────────────────────────────────────────────────────────────
# Real-time quotes
# ────────────────────────────────────────────────────────────

def _record_body(symbol: str, text: str) -> str:
    start = text.find('"')
    end = text.rfind('"')
    if start < 0 or end <= start:
        raise EmptyQuoteError(symbol)
    body = text[start + 1 : end]
    if not body.strip():
        raise EmptyQuoteError(symbol)
    return body


def parse_quote(symbol: str, raw: Payload, *, layout: FieldLayout = SINA_FIELDS_V1) -> Quote:
    """
    Parse one real-time record into a `Quote`.

    Raises `EmptyQuoteError` when the record has no body and `FieldCountError`
    when it has fewer than ``layout.min_fields`` fields. Numeric fields that
    fail to parse default to 0.0 individually.
    """
    text = decode_payload(raw)
    body = _record_body(symbol, text)
    fields = body.split(",")
    if len(fields) < layout.min_fields:
        raise FieldCountError(layout.min_fields, len(fields), symbol=symbol)

    def num(pos: int) -> float:
        try:
            return _parse_float(fields[pos], strict=True)
        except NumericParseError:
            log.debug("%s: field %d %r defaulted to 0.0", symbol, pos, fields[pos])
            return 0.0

    date = fields[layout.date].strip()
    time = fields[layout.time].strip()
    return Quote(
        symbol=symbol,
        name=fields[layout.name],
        current=num(layout.current),
        previous_close=num(layout.previous_close),
        open=num(layout.open),
        high=num(layout.high),
        low=num(layout.low),
        volume=num(layout.volume),
        turnover=num(layout.turnover),
        date=date,
        time=time,
        timestamp=parse_market_timestamp(date, time, symbol=symbol),
    )


def split_quote_blob(raw: Payload) -> Dict[str, str]:
    """
    Split a multi-symbol response into ``{symbol: record_line}``.

    Each value is a self-contained record that `parse_quote` accepts. Symbols
    the service returned with an empty body are kept (as empty records) so the
    caller can report them as unknown.
    """
    text = decode_payload(raw)
    out: Dict[str, str] = {}
    for m in _BLOB_LINE.finditer(text):
        sym = m.group("symbol")
        out[sym] = f'var hq_str_{sym}="{m.group("body")}";'
    return out


# ────────────────────────────────────────────────────────────
# Candles
# ────────────────────────────────────────────────────────────

def _load_candle_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Older endpoints emit JS object literals: {day:"2025-02-11",open:"1.0",...}
    quoted = _BARE_KEY.sub(r'\1"\2":', text)
    try:
        return json.loads(quoted)
    except json.JSONDecodeError as e:
        raise CandlePayloadError(f"candle payload is not JSON: {e}") from e


def _parse_candle_ts(value: Any, tz) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    s = value.strip()
    for fmt in _CANDLE_TS_FORMATS:
        try:
            return datetime.strptime(s, fmt).replace(tzinfo=tz)
        except ValueError:
            continue
    return None


def _parse_candle(record: Any, tz) -> Optional[CandleBar]:
    if not isinstance(record, dict):
        return None
    ts = _parse_candle_ts(record.get("day"), tz)
    if ts is None:
        return None
    try:
        o, h, l, c = (_parse_float(record.get(k), strict=True) for k in ("open", "high", "low", "close"))
    except NumericParseError:
        return None
    return CandleBar(
        timestamp=ts,
        open=o,
        high=h,
        low=l,
        close=c,
        volume=_parse_float(record.get("volume")),
    )


def parse_candles(timeframe: TimeFrame, raw: Payload, *, symbol: str = "") -> List[CandleBar]:
    """
    Parse a candle payload into bars sorted ascending by timestamp.

    Malformed records are skipped with a warning; partial data beats none.
    Duplicate timestamps keep the later record. Raises `CandlePayloadError`
    only when the payload as a whole is not decodable.
    """
    text = decode_payload(raw).strip()
    if not text or text == "null":
        return []
    data = _load_candle_json(text)
    if data is None:
        return []
    if not isinstance(data, list):
        raise CandlePayloadError(f"expected a list of candles, got {type(data).__name__}")

    tz = market_tz_for_symbol(symbol)
    by_ts: Dict[datetime, CandleBar] = {}
    skipped = 0
    for record in data:
        bar = _parse_candle(record, tz)
        if bar is None:
            skipped += 1
            continue
        if bar.timestamp in by_ts:
            log.warning("%s %s: duplicate candle at %s, keeping the later one",
                        symbol or "?", timeframe.label, bar.timestamp)
        by_ts[bar.timestamp] = bar

    if skipped:
        log.warning("%s %s: skipped %d malformed candle record(s)", symbol or "?", timeframe.label, skipped)

    bars = sorted(by_ts.values(), key=lambda b: b.timestamp)
    if timeframe.is_intraday and bars and all(_is_midnight(b.timestamp) for b in bars):
        log.debug("%s %s: intraday request returned date-only bars", symbol or "?", timeframe.label)
    return bars


def _is_midnight(ts: datetime) -> bool:
    return ts.hour == 0 and ts.minute == 0 and ts.second == 0
