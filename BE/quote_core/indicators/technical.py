"""
quote_core.indicators.technical
===============================

Moving averages over candle closes, implemented with pandas.

Output is a plain list aligned with the input: ``None`` where there is not
enough history yet, a float everywhere else.

Example usage:
    from quote_core.indicators.technical import moving_average, moving_averages

    moving_average([10, 20, 30, 40, 50], 3)
    # -> [None, None, 20.0, 30.0, 40.0]

    overlays = moving_averages(bars)          # {5: [...], 10: [...], 20: [...], 30: [...]}

Numeric notes:
- Accumulation is plain floating point (np.mean over each window).
- NaN/Inf inputs are not cleaned; they poison every window that contains them.
- Prices the parser defaulted to 0.0 are averaged in as zeros.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..models import CandleBar
from . import STANDARD_WINDOWS


def _closes(candles: Iterable[CandleBar]) -> pd.Series:
    return pd.Series([c.close for c in candles], dtype="float64", name="close")


def moving_average(closes: Sequence[float], window: int) -> List[Optional[float]]:
    """
    Simple Moving Average.

    Args:
        closes: close prices, oldest first
        window: number of bars per average (>= 1)

    Returns:
        list of the same length; index i is None for i < window - 1, else
        the mean of closes[i - window + 1 .. i]
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    series = pd.Series(list(closes), dtype="float64")
    means = series.rolling(window=window, min_periods=window).apply(np.mean, raw=True)
    return [None if i < window - 1 else float(v) for i, v in enumerate(means)]


def moving_averages(
    candles: Sequence[CandleBar],
    windows: Iterable[int] = STANDARD_WINDOWS,
) -> Dict[int, List[Optional[float]]]:
    """
    One moving average per window over the candles' closes.
    Each window is computed independently; nothing is cached between them.
    """
    closes = _closes(candles).tolist()
    return {w: moving_average(closes, w) for w in windows}
