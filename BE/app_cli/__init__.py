"""
CLI entrypoint for the quote dashboard.

This package wires the curses terminal to the reusable logic in
`quote_core`. Nothing here should contain provider-specific code; keep
that inside quote_core.data_fetcher.

Modules
-------
- main.py
    The executable entry-point. Loads settings and the watchlist, runs
    the draw → event → update loop, saves the watchlist after edits.

- terminal_ui.py
    Everything that touches curses: the key poller used by the event
    source and the frame renderer. The renderer only reads `AppState`.

Conventions
-----------
- `main.py` is the only module that owns the HTTP client and the event
  source. State transitions live in `quote_core.state`.

- Environment variables are read by `quote_core.config` and
  `quote_core.utils.logging`. The CLI only loads `.env`.

Run
---
`python -m app_cli.main` or the `quote-tui` console script.
"""
__all__ = ["main", "terminal_ui"]
