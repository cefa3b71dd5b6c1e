from __future__ import annotations

from pathlib import Path

from quote_core.config import (
    DEFAULT_CANDLE_COUNT,
    DEFAULT_RETRIES,
    DEFAULT_TICK_SECONDS,
    DEFAULT_TIMEOUT,
    default_config_path,
    load_settings,
)


def test_defaults_with_empty_environment() -> None:
    settings = load_settings({"HOME": "/home/test"})

    assert settings.tick_interval == DEFAULT_TICK_SECONDS
    assert settings.auto_refresh_interval == DEFAULT_TICK_SECONDS
    assert settings.candle_count == DEFAULT_CANDLE_COUNT
    assert settings.request_timeout == DEFAULT_TIMEOUT
    assert settings.max_retries == DEFAULT_RETRIES


def test_values_from_environment() -> None:
    env = {
        "QUOTE_TUI_TICK_SECONDS": "2.5",
        "QUOTE_TUI_REFRESH_SECONDS": "30",
        "QUOTE_TUI_CANDLES": "250",
        "QUOTE_TUI_TIMEOUT": "3",
        "QUOTE_TUI_RETRIES": "0",
        "QUOTE_TUI_CONFIG": "/tmp/quotes.yml",
    }

    settings = load_settings(env)

    assert settings.tick_interval == 2.5
    assert settings.auto_refresh_interval == 30.0
    assert settings.candle_count == 250
    assert settings.request_timeout == 3.0
    assert settings.max_retries == 0
    assert settings.resolved_config_path() == Path("/tmp/quotes.yml")


def test_refresh_interval_follows_tick_by_default() -> None:
    settings = load_settings({"QUOTE_TUI_TICK_SECONDS": "1"})

    assert settings.auto_refresh_interval == 1.0


def test_invalid_values_fall_back_with_warning(caplog) -> None:
    env = {
        "QUOTE_TUI_TICK_SECONDS": "fast",
        "QUOTE_TUI_CANDLES": "5000",
        "QUOTE_TUI_TIMEOUT": "-1",
        "QUOTE_TUI_RETRIES": "1.5",
    }

    settings = load_settings(env)

    assert settings.tick_interval == DEFAULT_TICK_SECONDS
    assert settings.candle_count == DEFAULT_CANDLE_COUNT
    assert settings.request_timeout == DEFAULT_TIMEOUT
    assert settings.max_retries == DEFAULT_RETRIES
    assert "QUOTE_TUI_TICK_SECONDS" in caplog.text
    assert "QUOTE_TUI_CANDLES" in caplog.text


def test_config_path_prefers_xdg(tmp_path: Path) -> None:
    path = default_config_path({"XDG_CONFIG_HOME": str(tmp_path)})

    assert path == tmp_path / "quote-tui" / "config.yml"


def test_config_path_falls_back_to_home() -> None:
    path = default_config_path({})

    assert path == Path.home() / ".config" / "quote-tui" / "config.yml"
