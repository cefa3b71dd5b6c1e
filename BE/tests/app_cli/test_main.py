from __future__ import annotations

from pathlib import Path

from app_cli.main import persist_if_dirty, sync_terminal_size
from conftest import FakeFetcher
from quote_core.models import TimeFrame
from quote_core.persistence import WatchlistStore
from quote_core.state import AppState


def test_persist_saves_watchlist_and_timeframe(tmp_path: Path) -> None:
    store = WatchlistStore(tmp_path / "config.yml")
    state = AppState(FakeFetcher(), watchlist=["sh600519"])
    state.add_symbol("hk00700")
    state.set_timeframe(TimeFrame.WEEKLY)

    persist_if_dirty(state, store)

    doc = store.load()
    assert doc.watchlist == ["sh600519", "hk00700"]
    assert doc.timeframe is TimeFrame.WEEKLY
    assert not state.watchlist_dirty


def test_persist_skips_clean_state(tmp_path: Path) -> None:
    store = WatchlistStore(tmp_path / "config.yml")
    state = AppState(FakeFetcher(), watchlist=["sh600519"])

    persist_if_dirty(state, store)

    assert not store.path.exists()


def test_save_failure_becomes_status(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    store = WatchlistStore(blocker / "config.yml")
    state = AppState(FakeFetcher(), watchlist=["sh600519"])
    state.add_symbol("hk00700")

    persist_if_dirty(state, store)

    assert state.status_message.startswith("Could not save watchlist")
    assert not state.watchlist_dirty


class _Screen:
    def __init__(self, height: int, width: int) -> None:
        self.size = (height, width)

    def getmaxyx(self):
        return self.size


def test_sync_terminal_size_overrides_stale_size() -> None:
    state = AppState(FakeFetcher(), watchlist=["sh600519"])
    state.terminal_size = (1, 1)

    sync_terminal_size(_Screen(30, 100), state)

    assert state.terminal_size == (100, 30)
