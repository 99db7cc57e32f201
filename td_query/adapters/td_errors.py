"""Project-native typed exceptions for remote query service failures."""

from __future__ import annotations


class TdAdapterError(Exception):
    """Base exception for adapter-level remote service failures.

    Attributes:
        status_code: Optional upstream HTTP status code.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TdAdapterConnectionError(TdAdapterError, ConnectionError):
    """Transport-level connectivity failure or non-success HTTP status."""


class TdAdapterTimeoutError(TdAdapterError, TimeoutError):
    """Transport timeout while waiting for a remote service response."""


class TdApiResponseError(TdAdapterError, RuntimeError):
    """Remote service answered with a payload the adapter cannot interpret."""
