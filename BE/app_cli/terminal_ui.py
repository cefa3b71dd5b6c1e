# BE/app_cli/terminal_ui.py
"""
Curses layer for the quote dashboard.

Two halves:
- `CursesInputPoller` runs on the event-source thread and turns curses key
  codes into `KeyEvent` / `ResizeEvent` values.
- `draw(stdscr, state, colors)` runs on the main thread and paints one frame
  from `AppState`. It never mutates state.

Price colors follow the mainland convention: red is up, green is down.
"""

from __future__ import annotations

import curses
import locale
import time
import unicodedata
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from quote_core.events import Event, KeyEvent, ResizeEvent
from quote_core.indicators import STANDARD_WINDOWS, moving_averages
from quote_core.keymap import HELP_ROWS, KEY_FOR_TIMEFRAME
from quote_core.models import CandleBar, InputMode, Quote, TimeFrame, ViewMode
from quote_core.state import CANDLE_WIDTH, AppState
from quote_core.utils.timezones import to_local

PRICE_AXIS_WIDTH = 10
MAX_GRID_LINES = 6
WATCHLIST_MAX_ROWS = 8

# curses key code → named key
_SPECIAL_KEYS: Dict[int, str] = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_PPAGE: "pageup",
    curses.KEY_NPAGE: "pagedown",
    curses.KEY_ENTER: "enter",
    curses.KEY_BACKSPACE: "backspace",
}

_CHAR_KEYS: Dict[str, str] = {
    "\n": "enter",
    "\r": "enter",
    "\x1b": "esc",
    "\x7f": "backspace",
    "\x08": "backspace",
}

# MA window → color name
_MA_COLORS: Dict[int, str] = {5: "WHITE", 10: "ACCENT", 20: "MAGENTA", 30: "CYAN"}


# ────────────────────────────────────────────────────────────────────────────
# Input
# ────────────────────────────────────────────────────────────────────────────

class CursesInputPoller:
    """
    Blocking key reader for `EventSource`.

    Give it a window the renderer never draws into; reading from a window
    refreshes it, and that must not race the main thread's frame. Resize
    events report the size of ``screen`` (the full-size window), not of the
    input window.
    """

    def __init__(self, win, screen=None) -> None:
        self.win = win
        self.screen = screen if screen is not None else win
        self.win.keypad(True)

    def poll(self, timeout: float) -> Optional[Event]:
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            self.win.timeout(max(1, int(remaining * 1000)))
            try:
                ch = self.win.get_wch()
            except curses.error:
                return None  # timed out
            event = self.translate(ch)
            if event is not None:
                return event

    def translate(self, ch) -> Optional[Event]:
        """Map a `get_wch` result to an event; None for keys the app ignores."""
        if isinstance(ch, int):
            if ch == curses.KEY_RESIZE:
                height, width = self.screen.getmaxyx()
                return ResizeEvent(width=width, height=height)
            name = _SPECIAL_KEYS.get(ch)
            return KeyEvent(name) if name else None

        if ch in _CHAR_KEYS:
            return KeyEvent(_CHAR_KEYS[ch])
        code = ord(ch)
        if 1 <= code <= 26:
            return KeyEvent(chr(code + 96), ctrl=True)
        if ch.isprintable():
            return KeyEvent(ch)
        return None


# ────────────────────────────────────────────────────────────────────────────
# Screen setup
# ────────────────────────────────────────────────────────────────────────────

def init_colors() -> Dict[str, int]:
    """Color name → curses attribute. Empty on monochrome terminals."""
    if not curses.has_colors():
        return {}
    curses.start_color()
    try:
        curses.use_default_colors()
        bg = -1
    except curses.error:
        bg = curses.COLOR_BLACK

    pairs = {
        "UP": curses.COLOR_RED,
        "DOWN": curses.COLOR_GREEN,
        "ACCENT": curses.COLOR_YELLOW,
        "CYAN": curses.COLOR_CYAN,
        "MAGENTA": curses.COLOR_MAGENTA,
        "BLUE": curses.COLOR_BLUE,
        "WHITE": curses.COLOR_WHITE,
    }
    colors: Dict[str, int] = {}
    for pair_id, (name, fg) in enumerate(pairs.items(), start=1):
        curses.init_pair(pair_id, fg, bg)
        colors[name] = curses.color_pair(pair_id)
    return colors


def setup_screen(stdscr) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass  # terminal cannot hide the cursor
    stdscr.keypad(True)


# ────────────────────────────────────────────────────────────────────────────
# Text helpers
# ────────────────────────────────────────────────────────────────────────────

def _line_chars() -> Tuple[str, str, str, str, str, str]:
    encoding = (locale.getpreferredencoding(False) or "").lower()
    if "utf" in encoding:
        return ("│", "─", "┌", "┐", "└", "┘")
    return ("|", "-", "+", "+", "+", "+")


def _char_width(ch: str) -> int:
    if unicodedata.combining(ch):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in ("F", "W") else 1


def text_width(text: str) -> int:
    return sum(_char_width(ch) for ch in text)


def fit_cell(text: str, width: int, *, align: str = "left") -> str:
    """Clip/pad text to a display width; CJK characters count as two columns."""
    if width <= 0:
        return ""
    out: List[str] = []
    used = 0
    for ch in text:
        w = _char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    clipped = "".join(out)
    pad = " " * (width - used)
    return pad + clipped if align == "right" else clipped + pad


def _safe_addstr(win, y: int, x: int, s: str, attr: int = 0) -> None:
    try:
        win.addstr(y, x, s, attr)
    except curses.error:
        # bottom-right cell and off-screen writes raise; nothing to draw there
        pass


def _draw_box(win, x: int, y: int, width: int, height: int, attr: int = 0, title: str = "") -> None:
    if width < 2 or height < 2:
        return
    vline, hline, tl, tr, bl, br = _line_chars()
    right, bottom = x + width - 1, y + height - 1
    _safe_addstr(win, y, x, tl + hline * (width - 2) + tr, attr)
    for row in range(y + 1, bottom):
        _safe_addstr(win, row, x, vline, attr)
        _safe_addstr(win, row, right, vline, attr)
    _safe_addstr(win, bottom, x, bl + hline * (width - 2) + br, attr)
    if title:
        _safe_addstr(win, y, x + 2, fit_cell(f" {title} ", width - 4).rstrip(), attr | curses.A_BOLD)


# ────────────────────────────────────────────────────────────────────────────
# Formatting
# ────────────────────────────────────────────────────────────────────────────

def format_change(quote: Quote) -> str:
    pct = quote.change_pct
    pct_text = "--" if pct is None else f"{pct * 100:+.2f}%"
    return f"{quote.change:+.2f} ({pct_text})"


def trend_attr(value: float, colors: Dict[str, int]) -> int:
    if value > 0:
        return colors.get("UP", 0)
    if value < 0:
        return colors.get("DOWN", 0)
    return 0


def _bar_time(bar: CandleBar, timeframe: TimeFrame) -> str:
    return bar.timestamp.strftime("%m-%d %H:%M" if timeframe.is_intraday else "%Y-%m-%d")


def price_to_row(price: float, lo: float, hi: float, top: int, height: int) -> int:
    """Row for a price on a [lo, hi] axis drawn from `top` downward over `height` rows."""
    if height <= 1 or hi <= lo:
        return top + max(0, height - 1) // 2
    frac = (hi - price) / (hi - lo)
    row = top + int(round(frac * (height - 1)))
    return min(top + height - 1, max(top, row))


def price_range(bars: Sequence[CandleBar], extra: Sequence[float] = ()) -> Tuple[float, float]:
    """Low/high over the bars and overlay values, padded by 5% of the span."""
    values = [b.low for b in bars] + [b.high for b in bars] + list(extra)
    lo, hi = min(values), max(values)
    span = hi - lo
    pad = span * 0.05 if span > 0 else max(abs(hi) * 0.01, 0.01)
    return lo - pad, hi + pad


# ────────────────────────────────────────────────────────────────────────────
# Panels
# ────────────────────────────────────────────────────────────────────────────

def _draw_title_bar(win, width: int, state: AppState, colors: Dict[str, int]) -> None:
    now = to_local(datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S %Z")
    left = " Quote Dashboard"
    _safe_addstr(win, 0, 0, fit_cell(left, width), curses.A_REVERSE | curses.A_BOLD)
    _safe_addstr(win, 0, max(0, width - len(now) - 1), now, curses.A_REVERSE)


def _draw_quote_panel(win, top: int, width: int, state: AppState, colors: Dict[str, int]) -> int:
    """Three-line summary of the active symbol. Returns rows used."""
    sym = state.active_symbol
    if sym is None:
        _safe_addstr(win, top, 1, "Watchlist is empty. Press 'a' to add a symbol.")
        return 3
    quote, stale = state.display_quote(sym)
    if quote is None:
        _safe_addstr(win, top, 1, f"{sym}  loading...")
        return 3

    attr = trend_attr(quote.change, colors)
    x = 1
    name = f"{quote.name or sym} ({sym})"
    _safe_addstr(win, top, x, name, curses.A_BOLD)
    x += text_width(name) + 2
    price = f"{quote.current:.2f}"
    _safe_addstr(win, top, x, price, attr | curses.A_BOLD)
    x += len(price) + 2
    _safe_addstr(win, top, x, format_change(quote), attr)
    if stale:
        _safe_addstr(win, top, max(0, width - 9), "[stale]", colors.get("ACCENT", 0) | curses.A_DIM)

    line2 = (
        f"Open {quote.open:.2f}   High {quote.high:.2f}   Low {quote.low:.2f}   "
        f"Prev {quote.previous_close:.2f}"
    )
    _safe_addstr(win, top + 1, 1, fit_cell(line2, width - 2))

    stamp = ""
    local = to_local(quote.timestamp)
    if local is not None:
        stamp = local.strftime("%Y-%m-%d %H:%M:%S %Z")
    elif quote.date or quote.time:
        stamp = f"{quote.date} {quote.time}".strip()
    line3 = f"Vol {quote.volume_display()}   Amount {quote.turnover_display()}   {stamp}"
    _safe_addstr(win, top + 2, 1, fit_cell(line3, width - 2))
    return 3


def _draw_timeframe_tabs(win, y: int, width: int, state: AppState, colors: Dict[str, int]) -> None:
    x = 1
    for tf in TimeFrame.ordered():
        label = f" {KEY_FOR_TIMEFRAME[tf]}:{tf.label} "
        attr = curses.A_REVERSE | colors.get("ACCENT", 0) if tf is state.timeframe else 0
        if x + len(label) >= width:
            break
        _safe_addstr(win, y, x, label, attr)
        x += len(label) + 1


def _draw_chart(win, top: int, height: int, width: int, state: AppState, colors: Dict[str, int]) -> None:
    sym = state.active_symbol or "-"
    cursor = state.cursor_candle()
    title = f"{sym} {state.timeframe.label}"
    if cursor is not None:
        title += (
            f"  {_bar_time(cursor, state.timeframe)}  O {cursor.open:.2f} H {cursor.high:.2f}"
            f" L {cursor.low:.2f} C {cursor.close:.2f} V {cursor.volume:.0f}"
        )
    _draw_box(win, 0, top, width, height, title=title)

    inner_top = top + 1
    plot_height = height - 3  # borders + date axis
    bars = state.visible_candles()
    if plot_height < 2 or not bars:
        msg = "No candle data" if state.candles_valid else "Loading candles..."
        _safe_addstr(win, top + height // 2, max(1, (width - len(msg)) // 2), msg, curses.A_DIM)
        return

    start, end = state.visible_range()
    overlays = {w: values[start:end] for w, values in moving_averages(state.candles).items()}
    overlay_values = [v for values in overlays.values() for v in values if v is not None]
    lo, hi = price_range(bars, overlay_values)

    def row(price: float) -> int:
        return price_to_row(price, lo, hi, inner_top, plot_height)

    # price axis + grid labels
    grid_lines = min(MAX_GRID_LINES, plot_height)
    for i in range(grid_lines):
        y = inner_top + (i * (plot_height - 1)) // max(1, grid_lines - 1)
        price = hi - (hi - lo) * (y - inner_top) / max(1, plot_height - 1)
        _safe_addstr(win, y, 1, f"{price:>{PRICE_AXIS_WIDTH - 1}.2f}", curses.A_DIM)

    chart_left = 1 + PRICE_AXIS_WIDTH
    vline = _line_chars()[0]
    for i, bar in enumerate(bars):
        x = chart_left + i * CANDLE_WIDTH + 1
        if x >= width - 1:
            break
        attr = colors.get("UP", 0) if bar.is_bullish else colors.get("DOWN", 0)
        if state.candle_cursor == i:
            attr = colors.get("ACCENT", 0) | curses.A_BOLD
        body_top, body_bottom = row(max(bar.open, bar.close)), row(min(bar.open, bar.close))
        for y in range(row(bar.high), row(bar.low) + 1):
            ch = "█" if body_top <= y <= body_bottom else vline
            _safe_addstr(win, y, x, ch, attr)

        for window, values in overlays.items():
            value = values[i] if i < len(values) else None
            if value is not None and x + 1 < width - 1:
                _safe_addstr(win, row(value), x + 1, "·", colors.get(_MA_COLORS.get(window, "WHITE"), 0))

    # date axis: first bar on the left, last bar on the right
    axis_y = inner_top + plot_height
    first, last = _bar_time(bars[0], state.timeframe), _bar_time(bars[-1], state.timeframe)
    _safe_addstr(win, axis_y, chart_left, first, curses.A_DIM)
    _safe_addstr(win, axis_y, max(chart_left + len(first) + 2, width - len(last) - 2), last, curses.A_DIM)

    legend = "  ".join(f"MA{w}" for w in STANDARD_WINDOWS)
    x = max(2, width - len(legend) - 3)
    for w in STANDARD_WINDOWS:
        label = f"MA{w}"
        _safe_addstr(win, top + height - 1, x, label, colors.get(_MA_COLORS.get(w, "WHITE"), 0))
        x += len(label) + 2


def _draw_watchlist(win, top: int, height: int, width: int, state: AppState, colors: Dict[str, int]) -> None:
    _draw_box(win, 0, top, width, height, title=f"Watchlist ({len(state.watchlist)})")
    cols = [("Symbol", 11, "left"), ("Name", 12, "left"), ("Last", 10, "right"),
            ("Chg", 9, "right"), ("Chg%", 9, "right"), ("Volume", 12, "right")]
    header = " ".join(fit_cell(name, w, align=a) for name, w, a in cols)
    _safe_addstr(win, top + 1, 2, fit_cell(header, width - 4), curses.A_BOLD)

    rows = height - 3
    if rows <= 0:
        return
    active = state.active_index or 0
    first = min(max(0, active - rows + 1), max(0, len(state.watchlist) - rows))
    for n, sym in enumerate(state.watchlist[first : first + rows]):
        idx = first + n
        y = top + 2 + n
        quote, stale = state.display_quote(sym)
        marker = "*" if stale else " "
        if quote is None:
            cells = [sym, "--", "--", "--", "--", "--"]
            attr = curses.A_DIM
        else:
            pct = quote.change_pct
            cells = [
                sym,
                quote.name,
                f"{quote.current:.2f}",
                f"{quote.change:+.2f}",
                "--" if pct is None else f"{pct * 100:+.2f}%",
                quote.volume_display(),
            ]
            attr = trend_attr(quote.change, colors)
            if stale:
                attr |= curses.A_DIM
        line = marker + " ".join(fit_cell(c, w, align=a) for c, (_, w, a) in zip(cells, cols))
        if idx == state.active_index:
            attr |= curses.A_REVERSE
        _safe_addstr(win, y, 1, fit_cell(line, width - 3), attr)


def _draw_status(win, y: int, width: int, state: AppState, colors: Dict[str, int]) -> None:
    if state.input_mode is InputMode.ADDING_SYMBOL:
        prompt = f" Add symbol: {state.input_buffer}_"
        _safe_addstr(win, y, 0, fit_cell(prompt, width - 1), colors.get("ACCENT", 0) | curses.A_BOLD)
        return
    hint = "?:help q:quit "
    msg = fit_cell(" " + state.status_message, max(0, width - len(hint) - 1))
    _safe_addstr(win, y, 0, msg, curses.A_REVERSE)
    _safe_addstr(win, y, max(0, width - len(hint) - 1), hint, curses.A_REVERSE | curses.A_DIM)


def _draw_help(win, height: int, width: int, colors: Dict[str, int]) -> None:
    key_width = max(len(keys) for keys, _ in HELP_ROWS) + 2
    box_w = min(width - 2, 72)
    box_h = min(height - 2, len(HELP_ROWS) + 4)
    if box_w < 20 or box_h < 4:
        return
    left, top = (width - box_w) // 2, (height - box_h) // 2
    blank = " " * (box_w - 2)
    for y in range(top + 1, top + box_h - 1):
        _safe_addstr(win, y, left + 1, blank)
    _draw_box(win, left, top, box_w, box_h, colors.get("ACCENT", 0), title="Keys")
    for n, (keys, desc) in enumerate(HELP_ROWS[: box_h - 4]):
        y = top + 2 + n
        _safe_addstr(win, y, left + 2, fit_cell(keys, key_width), curses.A_BOLD)
        _safe_addstr(win, y, left + 2 + key_width, fit_cell(desc, box_w - key_width - 4))


# ────────────────────────────────────────────────────────────────────────────
# Frame
# ────────────────────────────────────────────────────────────────────────────

def draw(stdscr, state: AppState, colors: Dict[str, int]) -> None:
    """Paint one frame. Layout adapts to `state.view_mode` and the window size."""
    height, width = stdscr.getmaxyx()
    stdscr.erase()

    if height < 10 or width < 40:
        _safe_addstr(stdscr, 0, 0, fit_cell("Terminal too small", width - 1))
        stdscr.noutrefresh()
        curses.doupdate()
        return

    _draw_title_bar(stdscr, width, state, colors)
    status_y = height - 1

    if state.view_mode is ViewMode.FULLSCREEN_CHART:
        _draw_timeframe_tabs(stdscr, 1, width, state, colors)
        _draw_chart(stdscr, 2, status_y - 2, width, state, colors)
    else:
        used = 1 + _draw_quote_panel(stdscr, 1, width, state, colors)
        _draw_timeframe_tabs(stdscr, used, width, state, colors)
        used += 1
        watch_h = min(len(state.watchlist), WATCHLIST_MAX_ROWS) + 3
        chart_h = status_y - used - watch_h
        if chart_h < 6:
            watch_h = max(3, watch_h - (6 - chart_h))
            chart_h = status_y - used - watch_h
        _draw_chart(stdscr, used, chart_h, width, state, colors)
        _draw_watchlist(stdscr, used + chart_h, watch_h, width, state, colors)

    _draw_status(stdscr, status_y, width, state, colors)
    if state.help_visible:
        _draw_help(stdscr, height, width, colors)

    stdscr.noutrefresh()
    curses.doupdate()
