"""
Purpose: Exception types for I/O failures in the monitor pipeline.
Constraints: Field extraction never raises; only fetch, notify and config do.
"""


class MonitorError(Exception):
    """Base class for monitor failures."""


class ConfigError(MonitorError):
    """Missing or malformed configuration detected at startup."""


class FetchError(MonitorError):
    """Listing page could not be retrieved (network, proxy or non-2xx)."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class NotificationError(MonitorError):
    """Alert delivery to the messaging API failed."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status
