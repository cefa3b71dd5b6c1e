# BE/quote_core/state.py
"""
Dashboard state machine.

`AppState` is owned by the consumer thread and mutated only through
`handle(event)` (or the methods it dispatches to). Fetches run synchronously
on that thread; every fetch site catches `QuoteError`, so a bad symbol or a
network hiccup becomes a status message instead of an exception.

Quote bookkeeping per symbol:
- ``quotes[sym]``     result of the latest fetch, None if it failed
- ``last_good[sym]``  last successful Quote, kept so the renderer can show
                      stale data instead of a blank row
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_TIMEFRAME, MESSAGE_HISTORY, Settings
from .data_fetcher import QuoteFetcher
from .errors import QuoteError, TransportError
from .events import Event, KeyEvent, ResizeEvent, TickEvent
from .keymap import Action, Command, action_for
from .models import CandleBar, InputMode, Quote, TimeFrame, ViewMode, normalize_symbol
from .utils.logging import get_logger

log = get_logger(__name__)

CANDLE_WIDTH = 3  # terminal columns per candle
CHART_MARGIN = 12  # border (2) + price axis (10)
SCROLL_STEP = 5

# A tick that arrives slightly early still counts as due for auto-refresh.
_REFRESH_SLACK = 0.25


class AppState:
    def __init__(
        self,
        fetcher: QuoteFetcher,
        *,
        watchlist: Iterable[str],
        timeframe: TimeFrame = DEFAULT_TIMEFRAME,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or Settings()
        self._clock = clock

        self.should_quit = False
        self.watchlist: List[str] = []
        for sym in watchlist:
            if sym not in self.watchlist:
                self.watchlist.append(sym)
        self.quotes: Dict[str, Optional[Quote]] = {sym: None for sym in self.watchlist}
        self.last_good: Dict[str, Quote] = {}
        self.active_index: Optional[int] = 0 if self.watchlist else None

        self.timeframe = timeframe
        self.candles: List[CandleBar] = []
        self.candles_valid = False
        self.candle_offset = 0
        self.candle_cursor: Optional[int] = None

        self.input_mode = InputMode.NORMAL
        self.input_buffer = ""
        self.view_mode = ViewMode.NORMAL
        self.help_visible = False
        self.terminal_size: Tuple[int, int] = (80, 24)

        self.status_message = ""
        self.messages: Deque[str] = deque(maxlen=MESSAGE_HISTORY)
        self.watchlist_dirty = False
        self._last_quote_refresh: Optional[float] = None

    # --------------- queries ---------------

    @property
    def active_symbol(self) -> Optional[str]:
        if self.active_index is None:
            return None
        return self.watchlist[self.active_index]

    def current_quote(self) -> Optional[Quote]:
        sym = self.active_symbol
        return self.quotes.get(sym) if sym else None

    def display_quote(self, symbol: str) -> Tuple[Optional[Quote], bool]:
        """(quote, is_stale): the fresh quote, else the last good one flagged stale."""
        fresh = self.quotes.get(symbol)
        if fresh is not None:
            return fresh, False
        stale = self.last_good.get(symbol)
        return stale, stale is not None

    def visible_candle_count(self) -> int:
        width = self.terminal_size[0]
        inner = max(0, width - CHART_MARGIN)
        return min(inner // CANDLE_WIDTH, len(self.candles))

    def visible_range(self) -> Tuple[int, int]:
        """[start, end) indices of the candles that fit on screen at the current scroll."""
        count = self.visible_candle_count()
        start = max(0, len(self.candles) - count - self.candle_offset)
        return start, start + count

    def visible_candles(self) -> List[CandleBar]:
        start, end = self.visible_range()
        return self.candles[start:end]

    def cursor_candle(self) -> Optional[CandleBar]:
        if self.candle_cursor is None:
            return None
        idx = self.visible_range()[0] + self.candle_cursor
        if 0 <= idx < len(self.candles):
            return self.candles[idx]
        return None

    # --------------- status ---------------

    def set_status(self, message: str, *, error: bool = False) -> None:
        self.status_message = message
        self.messages.append(message)
        if error:
            log.warning(message)
        else:
            log.info(message)

    # --------------- event dispatch ---------------

    def handle(self, event: Event) -> None:
        if isinstance(event, TickEvent):
            self.on_tick()
        elif isinstance(event, ResizeEvent):
            self.terminal_size = (event.width, event.height)
        elif isinstance(event, KeyEvent):
            action = action_for(event, self.input_mode, help_visible=self.help_visible)
            if action is not None:
                self.apply(action)
        else:
            raise TypeError(f"unknown event {event!r}")

    def apply(self, action: Action) -> None:
        cmd = action.command
        fullscreen = self.view_mode is ViewMode.FULLSCREEN_CHART

        if cmd is Command.QUIT:
            self.should_quit = True
        elif cmd is Command.BACK:
            self.back()
        elif cmd is Command.NEXT:
            if not fullscreen:
                self.select_next()
        elif cmd is Command.PREV:
            if not fullscreen:
                self.select_prev()
        elif cmd is Command.ACTIVATE:
            self.activate()
        elif cmd is Command.TOGGLE_FULLSCREEN:
            self.toggle_fullscreen()
        elif cmd is Command.CURSOR_LEFT:
            self.cursor_left()
        elif cmd is Command.CURSOR_RIGHT:
            self.cursor_right()
        elif cmd is Command.SCROLL_LEFT:
            self.scroll_left()
        elif cmd is Command.SCROLL_RIGHT:
            self.scroll_right()
        elif cmd is Command.START_ADD:
            self.start_add_symbol()
        elif cmd is Command.DELETE:
            if not fullscreen:
                self.delete_active()
        elif cmd is Command.REFRESH:
            self.set_status("Refreshing...")
            self.refresh_all()
        elif cmd is Command.TIMEFRAME:
            if action.timeframe is not None:
                self.set_timeframe(action.timeframe)
            self.help_visible = False
        elif cmd is Command.HELP:
            self.help_visible = True
        elif cmd is Command.CLOSE_HELP:
            self.help_visible = False
        elif cmd is Command.INPUT_CHAR:
            self.input_buffer += action.char
        elif cmd is Command.INPUT_BACKSPACE:
            self.input_buffer = self.input_buffer[:-1]
        elif cmd is Command.CONFIRM:
            self.confirm_add_symbol()
        elif cmd is Command.CANCEL:
            self.cancel_input()
        else:
            raise ValueError(f"unhandled command {cmd!r}")

    # --------------- fetching ---------------

    def on_tick(self) -> None:
        now = self._clock()
        interval = self.settings.auto_refresh_interval
        slack = _REFRESH_SLACK * self.settings.tick_interval
        if self._last_quote_refresh is None or now - self._last_quote_refresh >= interval - slack:
            self.refresh_quotes()
        if not self.candles_valid and self.active_symbol is not None:
            self.refresh_candles()

    def refresh_all(self) -> None:
        self.refresh_quotes()
        self.refresh_candles()

    def refresh_quotes(self) -> None:
        """Fetch every watchlist symbol; each symbol succeeds or fails on its own."""
        self._last_quote_refresh = self._clock()
        if not self.watchlist:
            self.quotes.clear()
            return

        symbols = list(self.watchlist)
        try:
            results = self.fetcher.fetch_quotes(symbols)
        except QuoteError as e:
            results = {sym: e for sym in symbols}

        failures: List[Tuple[str, QuoteError]] = []
        for sym in symbols:
            result = results.get(sym)
            if result is None:
                result = TransportError("no result returned", symbol=sym)
            if isinstance(result, Quote):
                self.quotes[sym] = result
                self.last_good[sym] = result
            else:
                self.quotes[sym] = None
                failures.append((sym, result))

        for sym, err in failures:
            self.set_status(f"Quote fetch failed for {sym}: {err}", error=True)
        if not failures:
            q = self.current_quote()
            if q is not None:
                self.set_status(f"{q.symbol} {q.name} updated {q.date} {q.time}")

    def refresh_candles(self) -> None:
        """Load the active symbol's series for the current timeframe."""
        sym = self.active_symbol
        if sym is None:
            self.candles = []
            self.candles_valid = False
            return
        try:
            bars = self.fetcher.fetch_candles(sym, self.timeframe, self.settings.candle_count)
        except QuoteError as e:
            self.candles = []
            self.candles_valid = False
            self.set_status(f"Candle fetch failed for {sym} ({self.timeframe.label}): {e}", error=True)
            return
        self.candles = bars
        self.candles_valid = True
        self.candle_offset = 0
        self.candle_cursor = None

    def invalidate_candles(self) -> None:
        self.candles = []
        self.candles_valid = False
        self.candle_offset = 0
        self.candle_cursor = None

    # --------------- navigation ---------------

    def select_next(self) -> None:
        if not self.watchlist or self.active_index is None:
            return
        self.active_index = (self.active_index + 1) % len(self.watchlist)
        self.invalidate_candles()

    def select_prev(self) -> None:
        if not self.watchlist or self.active_index is None:
            return
        self.active_index = (self.active_index - 1) % len(self.watchlist)
        self.invalidate_candles()

    def activate(self) -> None:
        """Enter: load the selection's chart, or toggle fullscreen once it is loaded."""
        if self.active_symbol is None:
            return
        if not self.candles_valid:
            self.set_status(f"Loading {self.active_symbol}...")
            self.refresh_candles()
        else:
            self.toggle_fullscreen()

    def set_timeframe(self, timeframe: TimeFrame) -> None:
        if timeframe is self.timeframe:
            return
        self.timeframe = timeframe
        self.watchlist_dirty = True  # the timeframe is saved with the watchlist
        self.invalidate_candles()
        self.refresh_candles()

    def toggle_fullscreen(self) -> None:
        if self.view_mode is ViewMode.NORMAL:
            self.view_mode = ViewMode.FULLSCREEN_CHART
        else:
            self.view_mode = ViewMode.NORMAL

    def back(self) -> None:
        if self.candle_cursor is not None:
            self.candle_cursor = None
        elif self.view_mode is ViewMode.FULLSCREEN_CHART:
            self.view_mode = ViewMode.NORMAL
        else:
            self.should_quit = True

    # --------------- candle cursor / scroll ---------------

    def scroll_left(self) -> None:
        if self.candle_offset + 2 * SCROLL_STEP < len(self.candles):
            self.candle_offset += SCROLL_STEP
        self.candle_cursor = None

    def scroll_right(self) -> None:
        self.candle_offset = max(0, self.candle_offset - SCROLL_STEP)
        self.candle_cursor = None

    def _last_visible_pos(self) -> int:
        return max(0, self.visible_candle_count() - 1)

    def cursor_left(self) -> None:
        if not self.candles:
            return
        if self.candle_cursor is None:
            self.candle_cursor = self._last_visible_pos()
        elif self.candle_cursor > 0:
            self.candle_cursor -= 1

    def cursor_right(self) -> None:
        if not self.candles:
            return
        if self.candle_cursor is None:
            self.candle_cursor = self._last_visible_pos()
        elif self.candle_cursor < self._last_visible_pos():
            self.candle_cursor += 1

    # --------------- watchlist editing ---------------

    def add_symbol(self, symbol: str) -> bool:
        """Append a symbol; False (and no change) if it is already listed."""
        if symbol in self.watchlist:
            return False
        self.watchlist.append(symbol)
        self.quotes[symbol] = None
        self.watchlist_dirty = True
        if self.active_index is None:
            self.active_index = 0
            self.invalidate_candles()
        return True

    def start_add_symbol(self) -> None:
        self.input_mode = InputMode.ADDING_SYMBOL
        self.input_buffer = ""
        self.set_status("Enter a code (sh600519 / hk00700 / gb_aapl), Enter to confirm, Esc to cancel")

    def cancel_input(self) -> None:
        self.input_mode = InputMode.NORMAL
        self.input_buffer = ""
        self.set_status("Cancelled")

    def confirm_add_symbol(self) -> None:
        raw = self.input_buffer
        self.input_buffer = ""
        self.input_mode = InputMode.NORMAL
        try:
            sym = normalize_symbol(raw)
        except ValueError as e:
            self.set_status(str(e), error=True)
            return
        if not self.add_symbol(sym):
            self.set_status(f"{sym} is already in the watchlist")
            return
        try:
            q = self.fetcher.fetch_quote(sym)
        except QuoteError as e:
            self.set_status(f"Added {sym}, but the quote fetch failed: {e}", error=True)
            return
        self.quotes[sym] = q
        self.last_good[sym] = q
        self.set_status(f"Added: {q.symbol} {q.name}")

    def delete_active(self) -> None:
        if self.active_index is None:
            return
        if len(self.watchlist) <= 1:
            self.set_status("Keep at least one symbol in the watchlist")
            return
        idx = self.active_index
        removed = self.watchlist.pop(idx)
        self.quotes.pop(removed, None)
        self.last_good.pop(removed, None)
        self.active_index = min(idx, len(self.watchlist) - 1)
        self.watchlist_dirty = True
        self.set_status(f"Removed: {removed}")
        self.invalidate_candles()
        self.refresh_candles()
