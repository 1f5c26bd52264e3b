"""Broker error taxonomy."""
from __future__ import annotations


class BrokerError(Exception):
    """Raised when a broker operation fails; carries the HTTP status when there is one."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(BrokerError, ValueError):
    """Missing required settings or an unknown driver. Fatal at construction."""


class MessageAlreadySettledError(BrokerError):
    """A terminal action was requested on a message that was already completed or abandoned."""
