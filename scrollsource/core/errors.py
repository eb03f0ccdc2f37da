# scrollsource/core/errors.py
"""Exception hierarchy for scroll sources.

Callers can catch ``ScrollSourceError`` for anything raised by this package, or the
builtin category each error also belongs to.
"""

from __future__ import annotations


class ScrollSourceError(Exception):
    """Base class for all scrollsource exceptions."""


class ConfigurationError(ScrollSourceError, ValueError):
    """Raised at open time when a required setting is missing or invalid."""


class ClusterConnectionError(ScrollSourceError, ConnectionError):
    """Raised when no node of the cluster could be reached."""


class CursorExpiredError(ScrollSourceError):
    """Raised when the server no longer knows the scroll cursor.

    A lost cursor cannot be resumed; the read has to be restarted.
    """

    def __init__(self, scroll_id: str | None, message: str | None = None) -> None:
        self.scroll_id = scroll_id
        super().__init__(message or f"Scroll cursor expired or unknown: {scroll_id!r}")


__all__ = [
    "ScrollSourceError",
    "ConfigurationError",
    "ClusterConnectionError",
    "CursorExpiredError",
]
