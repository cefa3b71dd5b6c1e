# BE/quote_core/persistence/__init__.py
"""
Persistence helpers:
- watchlist_store: the user's ordered watchlist and default timeframe (YAML)
"""

from .watchlist_store import WatchlistDocument, WatchlistStore

__all__ = ["WatchlistDocument", "WatchlistStore"]
