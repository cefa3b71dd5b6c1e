# BE/quote_core/data_fetcher/adapters/__init__.py
"""
Provider adapters. Each adapter owns its HTTP details (URLs, headers,
retries) and hands raw payloads to `quote_core.data_fetcher.parser`.
"""

from .sina import SinaClient

__all__ = ["SinaClient"]
