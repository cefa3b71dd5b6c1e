# BE/quote_core/keymap.py
"""
Key → action tables, one per input context (normal, adding a symbol, help).

Keys arrive as `KeyEvent`s whose ``key`` is either a single character or a
named key: up, down, left, right, enter, esc, backspace, pageup, pagedown.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .events import KeyEvent
from .models import InputMode, TimeFrame


class Command(Enum):
    QUIT = "quit"
    BACK = "back"
    NEXT = "next"
    PREV = "prev"
    ACTIVATE = "activate"
    TOGGLE_FULLSCREEN = "toggle_fullscreen"
    CURSOR_LEFT = "cursor_left"
    CURSOR_RIGHT = "cursor_right"
    SCROLL_LEFT = "scroll_left"
    SCROLL_RIGHT = "scroll_right"
    START_ADD = "start_add"
    DELETE = "delete"
    REFRESH = "refresh"
    TIMEFRAME = "timeframe"
    HELP = "help"
    CLOSE_HELP = "close_help"
    INPUT_CHAR = "input_char"
    INPUT_BACKSPACE = "input_backspace"
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Action:
    command: Command
    timeframe: Optional[TimeFrame] = None
    char: str = ""


TIMEFRAME_KEYS: Dict[str, TimeFrame] = {
    "1": TimeFrame.MIN5,
    "2": TimeFrame.MIN15,
    "3": TimeFrame.MIN30,
    "4": TimeFrame.MIN60,
    "5": TimeFrame.DAILY,
    "6": TimeFrame.WEEKLY,
    "7": TimeFrame.MONTHLY,
}

KEY_FOR_TIMEFRAME: Dict[TimeFrame, str] = {tf: key for key, tf in TIMEFRAME_KEYS.items()}

NORMAL_KEYS: Dict[str, Command] = {
    "q": Command.QUIT,
    "esc": Command.BACK,
    "f": Command.TOGGLE_FULLSCREEN,
    "enter": Command.ACTIVATE,
    "up": Command.PREV,
    "k": Command.PREV,
    "down": Command.NEXT,
    "j": Command.NEXT,
    "left": Command.CURSOR_LEFT,
    "h": Command.CURSOR_LEFT,
    "right": Command.CURSOR_RIGHT,
    "l": Command.CURSOR_RIGHT,
    "pageup": Command.SCROLL_LEFT,
    "pagedown": Command.SCROLL_RIGHT,
    "a": Command.START_ADD,
    "d": Command.DELETE,
    "r": Command.REFRESH,
    "?": Command.HELP,
}

ADDING_KEYS: Dict[str, Command] = {
    "enter": Command.CONFIRM,
    "esc": Command.CANCEL,
    "backspace": Command.INPUT_BACKSPACE,
}

HELP_CLOSE_KEYS = frozenset({"esc", "?", "q"})

# (keys, description) rows for the help overlay
HELP_ROWS = (
    ("↑/k ↓/j", "select previous / next symbol"),
    ("Enter", "load chart for the selection / toggle fullscreen"),
    ("f", "toggle fullscreen chart"),
    ("←/h →/l", "move candle cursor"),
    ("PgUp PgDn", "scroll candles"),
    ("1-7", "timeframe: " + " ".join(f"{k}={tf.label}" for k, tf in TIMEFRAME_KEYS.items())),
    ("a / d", "add / delete symbol"),
    ("r", "refresh now"),
    ("?", "this help"),
    ("Esc", "clear cursor / leave fullscreen / quit"),
    ("q, Ctrl-C", "quit"),
)


def action_for(event: KeyEvent, mode: InputMode, *, help_visible: bool = False) -> Optional[Action]:
    """Translate a key press into an `Action`, or None when the key is unbound."""
    key = event.key
    if event.ctrl and key == "c":
        return Action(Command.QUIT)

    if help_visible:
        if key in HELP_CLOSE_KEYS:
            return Action(Command.CLOSE_HELP)
        if key in TIMEFRAME_KEYS:
            return Action(Command.TIMEFRAME, timeframe=TIMEFRAME_KEYS[key])
        return None

    if mode is InputMode.ADDING_SYMBOL:
        command = ADDING_KEYS.get(key)
        if command is not None:
            return Action(command)
        if len(key) == 1 and key.isprintable() and not event.ctrl:
            return Action(Command.INPUT_CHAR, char=key)
        return None

    if key in TIMEFRAME_KEYS:
        return Action(Command.TIMEFRAME, timeframe=TIMEFRAME_KEYS[key])
    command = NORMAL_KEYS.get(key)
    return Action(command) if command is not None else None
