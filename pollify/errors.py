from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "PollifyError",
    "ConfigurationError",
    "QueryError",
    "SynthesisError",
    "StoreError",
]


class PollifyError(Exception):
    """
    Base class for every failure raised while exporting rows as audio.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(PollifyError):
    """Missing environment values, bad identifiers or a missing output directory."""


class QueryError(PollifyError):
    """The row query failed or returned rows that could not be decoded."""


class SynthesisError(PollifyError):
    """The speech synthesis call failed."""


class StoreError(PollifyError):
    """Writing an audio blob to its destination failed."""
