from __future__ import annotations

import pytest

from quote_core.events import KeyEvent
from quote_core.keymap import (
    KEY_FOR_TIMEFRAME,
    TIMEFRAME_KEYS,
    Action,
    Command,
    action_for,
)
from quote_core.models import InputMode, TimeFrame


def test_every_timeframe_has_a_key() -> None:
    assert set(KEY_FOR_TIMEFRAME) == set(TimeFrame)
    assert set(TIMEFRAME_KEYS.values()) == set(TimeFrame)


@pytest.mark.parametrize("timeframe", list(TimeFrame))
def test_every_timeframe_has_scale_and_label(timeframe: TimeFrame) -> None:
    assert timeframe.scale > 0
    assert timeframe.label
    assert TimeFrame.from_value(timeframe.value) is timeframe


def test_timeframe_keys_follow_display_order() -> None:
    assert [TIMEFRAME_KEYS[str(n)] for n in range(1, 8)] == TimeFrame.ordered()


@pytest.mark.parametrize(
    "key, command",
    [
        ("q", Command.QUIT),
        ("esc", Command.BACK),
        ("enter", Command.ACTIVATE),
        ("k", Command.PREV),
        ("down", Command.NEXT),
        ("h", Command.CURSOR_LEFT),
        ("right", Command.CURSOR_RIGHT),
        ("pageup", Command.SCROLL_LEFT),
        ("pagedown", Command.SCROLL_RIGHT),
        ("a", Command.START_ADD),
        ("d", Command.DELETE),
        ("r", Command.REFRESH),
        ("f", Command.TOGGLE_FULLSCREEN),
        ("?", Command.HELP),
    ],
)
def test_normal_mode_bindings(key: str, command: Command) -> None:
    assert action_for(KeyEvent(key), InputMode.NORMAL) == Action(command)


def test_unbound_key_is_ignored() -> None:
    assert action_for(KeyEvent("z"), InputMode.NORMAL) is None


def test_ctrl_c_quits_in_every_context() -> None:
    ctrl_c = KeyEvent("c", ctrl=True)

    assert action_for(ctrl_c, InputMode.NORMAL).command is Command.QUIT
    assert action_for(ctrl_c, InputMode.ADDING_SYMBOL).command is Command.QUIT
    assert action_for(ctrl_c, InputMode.NORMAL, help_visible=True).command is Command.QUIT


def test_adding_mode_turns_characters_into_input() -> None:
    assert action_for(KeyEvent("5"), InputMode.ADDING_SYMBOL) == Action(Command.INPUT_CHAR, char="5")
    assert action_for(KeyEvent("enter"), InputMode.ADDING_SYMBOL) == Action(Command.CONFIRM)
    assert action_for(KeyEvent("esc"), InputMode.ADDING_SYMBOL) == Action(Command.CANCEL)
    assert action_for(KeyEvent("backspace"), InputMode.ADDING_SYMBOL) == Action(Command.INPUT_BACKSPACE)
    assert action_for(KeyEvent("up"), InputMode.ADDING_SYMBOL) is None


def test_help_overlay_bindings() -> None:
    assert action_for(KeyEvent("?"), InputMode.NORMAL, help_visible=True) == Action(Command.CLOSE_HELP)
    assert action_for(KeyEvent("2"), InputMode.NORMAL, help_visible=True) == Action(
        Command.TIMEFRAME, timeframe=TimeFrame.MIN15
    )
    assert action_for(KeyEvent("a"), InputMode.NORMAL, help_visible=True) is None
