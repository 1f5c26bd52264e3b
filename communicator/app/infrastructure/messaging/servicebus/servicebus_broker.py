"""
Service Bus broker: HTTP-polling queue backend (REST API, SAS auth).

Wire contract:
  POST   /<queue>/messages                    publish, 201
  POST   /<queue>/messages/head               receive-and-lock, 201 (message) or 204 (empty)
  DELETE /<queue>/messages/<id>/<lockToken>   complete, 200
  PUT    /<queue>/messages/<id>/<lockToken>   abandon, 200

Subscribe loop (one iteration):
  receive -> none: sleep empty delay, continue
          -> message: callback(handle); success -> complete (unless the callback
             settled it); failure -> abandon (failure of abandon is only logged,
             the lock then expires and the backend redelivers).
  A body that is not JSON is delivered as None (logged), never dropped while locked.
  Anything escaping an iteration is logged and followed by the error delay.
  The loop ends only when the polling strategy is stopped or the task is cancelled.
"""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable

from communicator.app.constants import BROKER_PROPERTIES_HEADER
from communicator.app.core.handlers import MessageHandler, invoke_handler
from communicator.app.core.json_codec import decode_payload
from communicator.app.core.logging import log_event
from communicator.app.core.polling import PollingStrategy
from communicator.app.domain.config import ServiceBusConfig
from communicator.app.domain.errors import BrokerError
from communicator.app.domain.models import QueueMessage
from communicator.app.infrastructure.messaging.servicebus.sas_token import SasTokenProvider
from communicator.app.infrastructure.messaging.servicebus.servicebus_message import ServiceBusMessage
from communicator.app.infrastructure.messaging.servicebus.transport import ServiceBusTransport
from communicator.app.ports.http_client import AbstractHttpClient, HttpResponse

if TYPE_CHECKING:
    from loguru import Logger


class ServiceBusBroker:
    """MessageBroker implementation for the HTTP queue backend."""

    def __init__(
        self,
        config: ServiceBusConfig,
        *,
        client: AbstractHttpClient,
        logger: "Logger",
        polling: PollingStrategy | None = None,
        clock: Callable[[], float] = time.time,
        owns_client: bool = False,
    ) -> None:
        self._config = config
        self._logger = logger
        self._polling = polling or PollingStrategy.for_queue()
        self._tokens = SasTokenProvider(
            config.endpoint,
            config.shared_access_key_name,
            config.shared_access_key,
            clock=clock,
        )
        self._transport = ServiceBusTransport(client, self._tokens, config.endpoint)
        self._owns_client = owns_client

    @property
    def polling(self) -> PollingStrategy:
        return self._polling

    @property
    def tokens(self) -> SasTokenProvider:
        return self._tokens

    @property
    def http_client(self) -> AbstractHttpClient:
        return self._transport.client

    async def publish(self, queue_name: str, message: dict[str, Any]) -> bool:
        await self._transport.send(
            "POST",
            queue_name,
            "messages",
            action="publish",
            expected_status=(201,),
            body=message,
        )
        log_event(self._logger, "message_published", level="debug", queue=queue_name)
        return True

    async def receive(self, queue_name: str) -> ServiceBusMessage | None:
        response = await self._transport.send(
            "POST",
            queue_name,
            "messages/head",
            action="receive",
            expected_status=(201, 204),
        )
        if response.status_code == 204:
            return None

        properties = self._extract_broker_properties(response)
        lock_token = properties.get("LockToken")
        message_id = properties.get("MessageId")
        if not lock_token:
            raise BrokerError("Received message without lock token")
        if not message_id:
            raise BrokerError("Received message without MessageId")

        # The message is locked at this point; an undecodable body still gets a handle.
        try:
            body = decode_payload(response.text)
        except ValueError as exc:
            log_event(
                self._logger,
                "message_body_undecodable",
                level="warning",
                queue=queue_name,
                message_id=str(message_id),
                error=str(exc),
            )
            body = None

        message = QueueMessage(
            body=body,
            lock_token=str(lock_token),
            message_id=str(message_id),
            properties=properties,
        )
        return ServiceBusMessage(self._transport, message, queue_name=queue_name, logger=self._logger)

    async def complete(self, message: ServiceBusMessage) -> None:
        await message.complete()

    async def abandon(
        self,
        message: ServiceBusMessage,
        reason: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        await message.abandon(reason, properties)

    async def subscribe(self, queue_name: str, callback: MessageHandler) -> None:
        log_event(self._logger, "subscription_started", queue=queue_name)
        empty_polls = 0
        while not self._polling.stopped:
            try:
                message = await self.receive(queue_name)
                if message is None:
                    empty_polls += 1
                    await self._polling.sleep(self._polling.empty_delay(empty_polls))
                    continue
                empty_polls = 0
                await self._dispatch(message, callback)
            except Exception as exc:
                log_event(
                    self._logger,
                    "subscription_error",
                    level="error",
                    queue=queue_name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                await self._polling.sleep(self._polling.error_delay_seconds)
        log_event(self._logger, "subscription_stopped", queue=queue_name)

    async def _dispatch(self, message: ServiceBusMessage, callback: MessageHandler) -> None:
        try:
            await invoke_handler(callback, message)
        except Exception as exc:
            log_event(
                self._logger,
                "message_processing_failed",
                level="error",
                queue=message.queue_name,
                message_id=message.message_id,
                error=str(exc),
            )
            if message.settled:
                return
            try:
                await message.abandon(reason=str(exc) or type(exc).__name__)
            except BrokerError:
                # Already logged by the handle; the lock expires and the backend redelivers.
                pass
            return

        if not message.settled:
            await message.complete()

    def _extract_broker_properties(self, response: HttpResponse) -> dict[str, Any]:
        raw = response.headers.get(BROKER_PROPERTIES_HEADER)
        try:
            properties = decode_payload(raw)
        except ValueError:
            log_event(self._logger, "broker_properties_invalid", level="warning", header=raw)
            return {}
        return properties if isinstance(properties, dict) else {}

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.close()
