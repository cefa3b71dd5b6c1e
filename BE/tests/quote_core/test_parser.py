from __future__ import annotations

import logging

import pytest

from conftest import sina_record
from quote_core.data_fetcher.parser import (
    MIN_QUOTE_FIELDS,
    decode_payload,
    parse_candles,
    parse_quote,
    split_quote_blob,
)
from quote_core.errors import (
    CandlePayloadError,
    DecodeError,
    EmptyQuoteError,
    FieldCountError,
)
from quote_core.models import TimeFrame


def test_parse_quote_reads_fields_from_gbk_bytes() -> None:
    raw = sina_record("sh600519").encode("gbk")

    quote = parse_quote("sh600519", raw)

    assert quote.symbol == "sh600519"
    assert quote.name == "贵州茅台"
    assert quote.current == 1755.0
    assert quote.previous_close == 1732.0
    assert quote.open == 1731.5
    assert quote.high == 1760.0
    assert quote.low == 1728.0
    assert quote.volume == 2543210.0
    assert quote.turnover == 4456789012.0
    assert (quote.date, quote.time) == ("2025-02-11", "15:00:00")
    assert quote.timestamp is not None
    assert str(quote.timestamp.tzinfo) == "Asia/Shanghai"


@pytest.mark.parametrize(
    "current, previous_close",
    [("10.00", "9.50"), ("9.50", "10.00"), ("0.01", "1234.56"), ("88.88", "88.88")],
)
def test_change_is_current_minus_previous_close(current: str, previous_close: str) -> None:
    quote = parse_quote("sz000858", sina_record("sz000858", current=current, previous_close=previous_close))

    assert quote.change == quote.current - quote.previous_close


def test_change_pct_is_none_without_previous_close() -> None:
    quote = parse_quote("sh600519", sina_record(previous_close="0.000"))

    assert quote.change_pct is None


def test_too_few_fields_reports_actual_count() -> None:
    raw = sina_record(field_count=20)

    with pytest.raises(FieldCountError) as excinfo:
        parse_quote("sh600519", raw)

    assert excinfo.value.actual == 20
    assert excinfo.value.expected == MIN_QUOTE_FIELDS
    assert "got 20" in str(excinfo.value)


def test_exactly_minimum_field_count_parses() -> None:
    quote = parse_quote("sh600519", sina_record(field_count=MIN_QUOTE_FIELDS))

    assert quote.current == 1755.0


def test_empty_record_is_unknown_symbol() -> None:
    with pytest.raises(EmptyQuoteError):
        parse_quote("sh000000", 'var hq_str_sh000000="";')


def test_malformed_numeric_field_defaults_to_zero() -> None:
    quote = parse_quote("sh600519", sina_record(high="n/a", volume=""))

    assert quote.high == 0.0
    assert quote.volume == 0.0
    assert quote.current == 1755.0


def test_bad_date_leaves_timestamp_empty() -> None:
    quote = parse_quote("sh600519", sina_record(date="not-a-date"))

    assert quote.timestamp is None
    assert quote.date == "not-a-date"


def test_decode_payload_keeps_undecodable_bytes() -> None:
    raw = "茅台".encode("gbk") + b"\xff"

    text = decode_payload(raw)

    assert text.startswith("茅台")
    assert "\\xff" in text


def test_decode_payload_strict_raises() -> None:
    with pytest.raises(DecodeError):
        decode_payload(b"\xff", strict=True)


def test_split_quote_blob_yields_parseable_records() -> None:
    blob = "\n".join(
        [
            sina_record("sh600519"),
            sina_record("hk00700", name="腾讯控股"),
            'var hq_str_sz999999="";',
        ]
    ).encode("gbk")

    records = split_quote_blob(blob)

    assert set(records) == {"sh600519", "hk00700", "sz999999"}
    assert parse_quote("hk00700", records["hk00700"]).name == "腾讯控股"
    with pytest.raises(EmptyQuoteError):
        parse_quote("sz999999", records["sz999999"])


# ────────────────────────────────────────────────────────────
# Candles
# ────────────────────────────────────────────────────────────

def test_parse_candles_sorts_and_skips_malformed(caplog: pytest.LogCaptureFixture) -> None:
    raw = (
        '[{"day":"2025-02-12","open":"2","high":"3","low":"1","close":"2.5","volume":"100"},'
        '{"day":"garbage","open":"1","high":"1","low":"1","close":"1","volume":"1"},'
        '{"day":"2025-02-10","open":"1","high":"2","low":"0.5","close":"1.5","volume":"x"},'
        '{"day":"2025-02-11","open":"oops","high":"2","low":"1","close":"1","volume":"1"}]'
    )

    with caplog.at_level(logging.WARNING):
        bars = parse_candles(TimeFrame.DAILY, raw, symbol="sh600519")

    assert [b.timestamp.day for b in bars] == [10, 12]
    assert bars[0].volume == 0.0
    assert bars[1].close == 2.5
    assert "skipped 2 malformed" in caplog.text


def test_parse_candles_keeps_later_duplicate() -> None:
    raw = (
        '[{"day":"2025-02-10 10:30:00","open":"1","high":"1","low":"1","close":"1","volume":"1"},'
        '{"day":"2025-02-10 10:30:00","open":"2","high":"2","low":"2","close":"2","volume":"2"}]'
    )

    bars = parse_candles(TimeFrame.MIN30, raw, symbol="sh600519")

    assert len(bars) == 1
    assert bars[0].close == 2.0


def test_parse_candles_accepts_bare_key_literals() -> None:
    raw = '[{day:"2025-02-10",open:"1.0",high:"2.0",low:"0.5",close:"1.5",volume:"10"}]'

    bars = parse_candles(TimeFrame.DAILY, raw)

    assert len(bars) == 1
    assert bars[0].high == 2.0


@pytest.mark.parametrize("raw", [b"", b"null", b"  null \n"])
def test_parse_candles_empty_payloads(raw: bytes) -> None:
    assert parse_candles(TimeFrame.WEEKLY, raw) == []


@pytest.mark.parametrize("raw", ["<html>blocked</html>", '{"day":"2025-02-10"}'])
def test_parse_candles_rejects_undecodable_payload(raw: str) -> None:
    with pytest.raises(CandlePayloadError):
        parse_candles(TimeFrame.DAILY, raw)
