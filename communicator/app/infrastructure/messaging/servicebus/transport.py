"""Request plumbing shared by the Service Bus broker and its message handles.

Builds `<endpoint>/<queue>/<path>` URLs, attaches a fresh SAS token to every
request and turns transport failures or unexpected statuses into BrokerError.
"""
from __future__ import annotations

from typing import Any, Iterable

from communicator.app.constants import REQUEST_TIMEOUT_SECONDS
from communicator.app.core.json_codec import encode_payload
from communicator.app.domain.errors import BrokerError
from communicator.app.infrastructure.messaging.servicebus.sas_token import SasTokenProvider
from communicator.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    HttpResponse,
    RequestTimeout,
)


class ServiceBusTransport:
    def __init__(
        self,
        client: AbstractHttpClient,
        tokens: SasTokenProvider,
        endpoint: str,
        *,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._tokens = tokens
        self._endpoint = endpoint.rstrip("/")
        self._timeout = RequestTimeout(connect_seconds=timeout_seconds, read_seconds=timeout_seconds)

    @property
    def client(self) -> AbstractHttpClient:
        return self._client

    def url(self, queue_name: str, path: str) -> str:
        return f"{self._endpoint}/{queue_name.strip('/')}/{path.strip('/')}"

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": self._tokens.ensure_fresh().token,
            "Content-Type": "application/json",
        }

    async def send(
        self,
        method: str,
        queue_name: str,
        path: str,
        *,
        action: str,
        expected_status: Iterable[int],
        body: Any = None,
    ) -> HttpResponse:
        try:
            content = encode_payload(body).encode() if body is not None else None
        except (TypeError, ValueError) as exc:
            raise BrokerError(f"Failed to {action} message: payload is not JSON serializable: {exc}") from exc
        try:
            response = await self._client.request(
                method,
                self.url(queue_name, path),
                timeout=self._timeout,
                headers=self.headers(),
                content=content,
            )
        except HttpClientError as exc:
            raise BrokerError(f"Failed to {action} message: {exc}") from exc

        if response.status_code not in tuple(expected_status):
            raise BrokerError(
                f"Failed to {action} message. Status code: {response.status_code}",
                status_code=response.status_code,
            )
        return response
