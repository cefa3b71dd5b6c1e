# BE/quote_core/errors.py
"""
Error taxonomy for decode / parse / fetch boundaries.

None of these ever terminate the dashboard: `quote_core.state` catches
`QuoteError` at every fetch site and turns it into a status message.
"""

from __future__ import annotations

from typing import Optional


class QuoteError(Exception):
    """Base class for everything the quote pipeline raises."""


class DecodeError(QuoteError):
    """Raw bytes could not be converted to text (only raised in strict mode)."""


class FieldCountError(QuoteError):
    def __init__(self, expected: int, actual: int, symbol: str = "") -> None:
        self.expected = expected
        self.actual = actual
        self.symbol = symbol
        where = f" for {symbol}" if symbol else ""
        super().__init__(f"too few quote fields{where}: expected at least {expected}, got {actual}")


class EmptyQuoteError(QuoteError):
    """The service answered with no data for the symbol (usually an unknown code)."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"no quote data for {symbol} (unknown symbol?)")


class NumericParseError(QuoteError, ValueError):
    """
    A single numeric field is malformed.

    The parser never raises this: malformed numbers default to 0.0 so that one
    bad field cannot sink a whole record. It exists so callers that want the
    strict behaviour (tests, diagnostics) have a name to catch.
    """


class TransportError(QuoteError):
    def __init__(self, message: str, *, url: str = "", symbol: Optional[str] = None) -> None:
        self.url = url
        self.symbol = symbol
        super().__init__(message)


class CandlePayloadError(QuoteError):
    """The candle payload as a whole could not be decoded."""
