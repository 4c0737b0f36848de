"""Errors that end a request.

Both are terminal: nothing is retried and no partial body is returned.
The handlers that turn them into HTTP responses live in ``main.py``.
"""

from typing import Optional


class DataSourceError(Exception):
    """A warehouse query failed or returned rows that could not be decoded."""

    def __init__(self, message: str, query_name: Optional[str] = None):
        self.message = message
        self.query_name = query_name
        super().__init__(f"{query_name}: {message}" if query_name else message)


class StyleNotFoundError(Exception):
    """No source produced a single size for the requested style code."""

    def __init__(self, style_code: str):
        self.style_code = style_code
        super().__init__(f"SKU {style_code} not found")
