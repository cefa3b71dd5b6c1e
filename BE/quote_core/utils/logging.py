# BE/quote_core/utils/logging.py
"""
Unified logger factory for the dashboard.
- Colorful, short console output when running outside curses
- Optional file handler (set QUOTE_TUI_LOG_FILE or pass file_path)

While the curses UI owns the terminal, anything written to stderr tears the
screen, so `app_cli.main` configures logging with ``console=False``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "quote_tui"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _ConsoleFormatter(logging.Formatter):
    # simple, compact format
    default_fmt = "[%(levelname).1s] %(message)s"
    debug_fmt = "[%(levelname).1s] %(name)s: %(message)s"

    def __init__(self, verbose: bool = False):
        fmt = self.debug_fmt if verbose else self.default_fmt
        super().__init__(fmt)

    # add colors if TTY
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - cosmetics
        msg = super().format(record)
        if not os.isatty(2):
            return msg
        level = record.levelno
        if level >= logging.ERROR:
            return f"\033[91m{msg}\033[0m"
        if level >= logging.WARNING:
            return f"\033[93m{msg}\033[0m"
        if level >= logging.INFO:
            return f"\033[92m{msg}\033[0m"
        return f"\033[90m{msg}\033[0m"


def level_from_env(default: int = logging.INFO) -> int:
    raw = os.getenv("QUOTE_TUI_LOG_LEVEL", "").strip().lower()
    return _LEVELS.get(raw, default)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the ``quote_tui`` namespace.

    Module loggers carry no handlers of their own; records propagate to the
    namespace root configured by `configure_logging`.
    """
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: Optional[int] = None,
    file_path: Optional[str | Path] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the namespace root with console + optional file output.
    Idempotent: calling twice returns the same configured logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if getattr(logger, "_quote_tui_configured", False):
        return logger

    level = level_from_env() if level is None else level
    logger.setLevel(level)
    logger.propagate = False

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        verbose = os.getenv("QUOTE_TUI_LOG_VERBOSE", "").lower() in {"1", "true", "yes"}
        ch.setFormatter(_ConsoleFormatter(verbose=verbose))
        logger.addHandler(ch)

    # File (opt-in)
    path = file_path or os.getenv("QUOTE_TUI_LOG_FILE")
    if path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(fh)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger._quote_tui_configured = True  # type: ignore[attr-defined]
    return logger
