"""HTTP client factory: builds AbstractHttpClient (no provider logic in composition)."""
from __future__ import annotations

import httpx

from communicator.app.constants import REQUEST_TIMEOUT_SECONDS
from communicator.app.infrastructure.http.httpx_client import HttpxHttpClient
from communicator.app.ports.http_client import AbstractHttpClient


def create_http_client() -> AbstractHttpClient:
    """Build an HTTP client. Timeouts are also applied per-request by the adapter."""
    async_client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)
    return HttpxHttpClient(async_client)
