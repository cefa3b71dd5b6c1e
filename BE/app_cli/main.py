# BE/app_cli/main.py
"""
Quote dashboard entry point.

Flow:
1. Load `.env`, settings and the persisted watchlist
2. Fetch quotes and candles for the initial selection
3. Start the event source (keys, resizes, ticks) on a background thread
4. Loop: draw → next event → update state → persist the watchlist if edited
5. On quit, close the event channel and the HTTP session

Logging goes to QUOTE_TUI_LOG_FILE only; curses owns the terminal.
"""

from __future__ import annotations

import curses
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from quote_core.config import Settings, load_settings
from quote_core.data_fetcher import SinaClient
from quote_core.events import ChannelClosed, EventSource
from quote_core.persistence import WatchlistDocument, WatchlistStore
from quote_core.state import AppState
from quote_core.utils.logging import configure_logging, get_logger

from . import terminal_ui
from .terminal_ui import CursesInputPoller

log = get_logger(__name__)


def persist_if_dirty(state: AppState, store: WatchlistStore) -> None:
    """Save the watchlist and timeframe after an edit; failures become a status message."""
    if not state.watchlist_dirty:
        return
    state.watchlist_dirty = False
    doc = WatchlistDocument(watchlist=list(state.watchlist), timeframe=state.timeframe)
    try:
        store.save(doc)
    except OSError as e:
        state.set_status(f"Could not save watchlist: {e}", error=True)


def sync_terminal_size(stdscr, state: AppState) -> None:
    """Take the size from the screen itself; layout math depends on it."""
    height, width = stdscr.getmaxyx()
    state.terminal_size = (width, height)


def run(stdscr, state: AppState, store: WatchlistStore, settings: Settings) -> None:
    """Curses main loop; `curses.wrapper` restores the terminal however this exits."""
    terminal_ui.setup_screen(stdscr)
    colors = terminal_ui.init_colors()
    sync_terminal_size(stdscr, state)

    state.set_status("Loading...")
    terminal_ui.draw(stdscr, state, colors)
    state.refresh_all()

    # Input is read from a window nothing draws into, so the poller thread
    # never refreshes the screen under the renderer.
    input_win = curses.newwin(1, 1, 0, 0)
    source = EventSource(CursesInputPoller(input_win, screen=stdscr), settings.tick_interval)
    with source.receiver as events:
        while not state.should_quit:
            sync_terminal_size(stdscr, state)
            terminal_ui.draw(stdscr, state, colors)
            try:
                event = events.recv()
            except ChannelClosed:
                log.warning("Event source stopped; exiting")
                break
            state.handle(event)
            persist_if_dirty(state, store)
    source.join(timeout=settings.tick_interval + 1.0)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logging(console=False)
    settings = load_settings()

    store = WatchlistStore(settings.resolved_config_path())
    doc = store.load()
    log.info("Starting with %d symbol(s), timeframe %s", len(doc.watchlist), doc.timeframe.label)

    client = SinaClient(timeout=settings.request_timeout, max_retries=settings.max_retries)
    state = AppState(client, watchlist=doc.watchlist, timeframe=doc.timeframe, settings=settings)

    # Esc is a bound key; don't wait a full second for an escape sequence.
    os.environ.setdefault("ESCDELAY", "25")
    try:
        curses.wrapper(run, state, store, settings)
    except KeyboardInterrupt:
        log.info("Interrupted")
    except curses.error as e:
        log.error("Terminal error: %s", e)
        print(f"quote-tui: terminal error: {e}", file=sys.stderr)
        return 1
    finally:
        persist_if_dirty(state, store)
        client.close()
    log.info("Bye")
    return 0


if __name__ == "__main__":
    sys.exit(main())
