# BE/quote_core/persistence/watchlist_store.py
"""
Watchlist document on disk (YAML):

    watchlist:
      - sh600519
      - hk00700
    timeframe: daily

Reads never fail: a missing, unreadable or malformed file yields the built-in
default watchlist. Entries that are not valid symbols are dropped with a warning. Writes are atomic (temp file → replace).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

import yaml

from ..config import DEFAULT_TIMEFRAME, DEFAULT_WATCHLIST
from ..models import TimeFrame, normalize_symbol
from ..utils.io import read_yaml, write_yaml
from ..utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class WatchlistDocument:
    watchlist: List[str] = field(default_factory=lambda: list(DEFAULT_WATCHLIST))
    timeframe: TimeFrame = DEFAULT_TIMEFRAME

    def to_dict(self) -> dict:
        return {"watchlist": list(self.watchlist), "timeframe": self.timeframe.value}


def _clean_watchlist(raw: Any, source: Path) -> List[str]:
    if not isinstance(raw, list):
        return []
    out: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            log.warning("%s: skipping non-string watchlist entry %r", source, item)
            continue
        try:
            sym = normalize_symbol(item)
        except ValueError as e:
            log.warning("%s: skipping watchlist entry (%s)", source, e)
            continue
        if sym not in out:
            out.append(sym)
    return out


class WatchlistStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> WatchlistDocument:
        try:
            data = read_yaml(self.path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            log.warning("Could not read %s (%s); using default watchlist", self.path, e)
            return WatchlistDocument()

        if not data:
            return WatchlistDocument()

        watchlist = _clean_watchlist(data.get("watchlist"), self.path)
        if not watchlist:
            log.warning("%s has no usable watchlist; using default", self.path)
            watchlist = list(DEFAULT_WATCHLIST)

        raw_tf = data.get("timeframe")
        timeframe = TimeFrame.from_value(raw_tf) if isinstance(raw_tf, str) else None
        if timeframe is None:
            if raw_tf is not None:
                log.warning("%s: unknown timeframe %r; using %s", self.path, raw_tf, DEFAULT_TIMEFRAME.label)
            timeframe = DEFAULT_TIMEFRAME

        return WatchlistDocument(watchlist=watchlist, timeframe=timeframe)

    def save(self, doc: WatchlistDocument) -> None:
        """Raises OSError on failure; callers surface it as a status message."""
        write_yaml(self.path, doc.to_dict())
        log.info("Saved %d symbol(s) to %s", len(doc.watchlist), self.path)
