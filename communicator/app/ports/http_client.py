"""HTTP client port: contract for issuing requests against the queue backend.

Brokers depend on this port; infrastructure (httpx) implements it. Keeps the
broker logic free of transport imports and lets tests script responses.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, runtime_checkable


class HttpClientError(Exception):
    """Base for HTTP client failures (network, protocol, etc.)."""


class HttpClientTimeoutError(HttpClientError):
    """Raised when the request times out."""


@runtime_checkable
class HttpResponse(Protocol):
    """Minimal read-only view of an HTTP response. Header lookup must be case-insensitive."""

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def text(self) -> str: ...

    @property
    def status_code(self) -> int: ...


@dataclass(frozen=True)
class RequestTimeout:
    """Connect and read timeouts in seconds."""

    connect_seconds: float
    read_seconds: float


@runtime_checkable
class AbstractHttpClient(Protocol):
    """Port: perform HTTP requests. Implementations live in infrastructure."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout: RequestTimeout,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> HttpResponse:
        """Perform the request; raise HttpClientTimeoutError or HttpClientError on transport failure.

        Non-2xx statuses are returned, not raised; callers decide what counts as success.
        """
        ...

    async def close(self) -> None:
        """Release resources (e.g. connection pool). No-op allowed if nothing to close."""
        ...
