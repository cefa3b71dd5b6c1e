# BE/quote_core/config.py
"""
config.py
─────────
Central configuration layer:
• Runtime settings (tick cadence, fetch sizes, HTTP timeouts) from env vars
• Location of the persisted watchlist document
• Built-in defaults used when nothing is configured

Environment variables (a `.env` file is loaded by `app_cli.main`):

    QUOTE_TUI_TICK_SECONDS     poll timeout / tick cadence          (5)
    QUOTE_TUI_REFRESH_SECONDS  quote auto-refresh cadence           (= tick)
    QUOTE_TUI_CANDLES          bars requested per candle fetch      (120)
    QUOTE_TUI_TIMEOUT          HTTP timeout in seconds              (8)
    QUOTE_TUI_RETRIES          retries per HTTP request             (2)
    QUOTE_TUI_CONFIG           watchlist document path
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, TypeVar

from .models import TimeFrame
from .utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

APP_NAME = "quote-tui"
CONFIG_FILENAME = "config.yml"

DEFAULT_WATCHLIST: List[str] = [
    "sh600519",  # 贵州茅台
    "sz000858",  # 五粮液
    "sh601318",  # 中国平安
]
DEFAULT_TIMEFRAME = TimeFrame.DAILY

DEFAULT_TICK_SECONDS = 5.0
DEFAULT_CANDLE_COUNT = 120
DEFAULT_TIMEOUT = 8.0
DEFAULT_RETRIES = 2
MESSAGE_HISTORY = 50


@dataclass
class Settings:
    tick_interval: float = DEFAULT_TICK_SECONDS
    auto_refresh_interval: float = DEFAULT_TICK_SECONDS
    candle_count: int = DEFAULT_CANDLE_COUNT
    request_timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_RETRIES
    config_path: Optional[Path] = None

    def resolved_config_path(self) -> Path:
        return self.config_path or default_config_path()


# ────────────────────────────────────────────────────────────
# Paths
# ────────────────────────────────────────────────────────────
def default_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """$QUOTE_TUI_CONFIG, else $XDG_CONFIG_HOME/quote-tui/config.yml, else ~/.config/..."""
    env = os.environ if env is None else env
    explicit = (env.get("QUOTE_TUI_CONFIG") or "").strip()
    if explicit:
        return Path(explicit).expanduser()
    xdg = (env.get("XDG_CONFIG_HOME") or "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / APP_NAME / CONFIG_FILENAME


# ────────────────────────────────────────────────────────────
# Env parsing
# ────────────────────────────────────────────────────────────
def _env_value(
    env: Mapping[str, str],
    name: str,
    cast: Callable[[str], T],
    default: T,
    *,
    valid: Callable[[T], bool] = lambda v: True,
) -> T:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        log.warning("Ignoring %s=%r: not a valid %s", name, raw, cast.__name__)
        return default
    if not valid(value):
        log.warning("Ignoring %s=%r: out of range", name, raw)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build `Settings` from the environment; bad values fall back to defaults."""
    env = os.environ if env is None else env
    tick = _env_value(env, "QUOTE_TUI_TICK_SECONDS", float, DEFAULT_TICK_SECONDS, valid=lambda v: v > 0)
    return Settings(
        tick_interval=tick,
        auto_refresh_interval=_env_value(env, "QUOTE_TUI_REFRESH_SECONDS", float, tick, valid=lambda v: v > 0),
        candle_count=_env_value(env, "QUOTE_TUI_CANDLES", int, DEFAULT_CANDLE_COUNT, valid=lambda v: 0 < v <= 1023),
        request_timeout=_env_value(env, "QUOTE_TUI_TIMEOUT", float, DEFAULT_TIMEOUT, valid=lambda v: v > 0),
        max_retries=_env_value(env, "QUOTE_TUI_RETRIES", int, DEFAULT_RETRIES, valid=lambda v: v >= 0),
        config_path=default_config_path(env),
    )
