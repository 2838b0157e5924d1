# signal_scoring/domain/errors.py
from __future__ import annotations
from typing import Optional, Sequence


class SettlementError(Exception):
    pass


class InvalidParameters(SettlementError, ValueError):
    """Malformed or missing settlement inputs. Not retryable."""
    pass


class DataUnavailable(SettlementError):
    """Every candidate venue failed or returned no candles for the window.

    Retryable later, not immediately.
    """

    def __init__(self, message: str, last_error: Optional[BaseException] = None, exchanges: Sequence[str] = ()):
        super().__init__(message)
        self.last_error = last_error
        self.exchanges = tuple(exchanges)
