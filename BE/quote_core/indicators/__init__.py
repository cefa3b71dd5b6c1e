"""
quote_core.indicators
=====================

Indicator API for the dashboard. Higher layers (state, renderer) call these
without caring where each indicator lives.

Public API (re-exported)
------------------------
- moving_average(closes, window) → list[Optional[float]]
- moving_averages(candles, windows=(5, 10, 20, 30)) → {window: list[Optional[float]]}
- STANDARD_WINDOWS

pandas is imported lazily inside the functions to keep CLI startup fast.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

__all__ = ["moving_average", "moving_averages", "STANDARD_WINDOWS"]

STANDARD_WINDOWS = (5, 10, 20, 30)


def _technical():
    from . import technical as _t
    return _t


def moving_average(closes: Sequence[float], window: int) -> List[Optional[float]]:
    return _technical().moving_average(closes, window)


def moving_averages(candles, windows: Iterable[int] = STANDARD_WINDOWS) -> Dict[int, List[Optional[float]]]:
    return _technical().moving_averages(candles, windows)
