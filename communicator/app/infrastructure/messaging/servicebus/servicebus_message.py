"""Service Bus message handle: settles one delivery attempt of a received message.

State:
  RECEIVED -> complete() -> COMPLETED (removed from the queue)
  RECEIVED -> abandon()  -> ABANDONED (returned to the queue, redeliverable)
  Doing nothing lets the lock expire server-side; that state is not tracked here.
A failed terminal action leaves the handle RECEIVED. A terminal action on a
settled handle raises MessageAlreadySettledError without touching the network.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from communicator.app.constants import MessageState
from communicator.app.core.logging import log_event
from communicator.app.domain.errors import BrokerError, MessageAlreadySettledError
from communicator.app.domain.models import QueueMessage
from communicator.app.infrastructure.messaging.servicebus.transport import ServiceBusTransport

if TYPE_CHECKING:
    from loguru import Logger


class ServiceBusMessage:
    """Implements ports.acknowledgeable.Acknowledgeable for the Service Bus REST API."""

    def __init__(
        self,
        transport: ServiceBusTransport,
        message: QueueMessage,
        *,
        queue_name: str,
        logger: "Logger",
    ) -> None:
        self._transport = transport
        self._message = message
        self._queue_name = queue_name
        self._logger = logger
        self._state = MessageState.RECEIVED

    @property
    def body(self) -> Any:
        return self._message.body

    @property
    def message_id(self) -> str:
        return self._message.message_id

    @property
    def lock_token(self) -> str:
        return self._message.lock_token

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self._message.properties)

    @property
    def queue_name(self) -> str:
        return self._queue_name

    @property
    def message(self) -> QueueMessage:
        return self._message

    @property
    def state(self) -> MessageState:
        return self._state

    @property
    def settled(self) -> bool:
        return self._state != MessageState.RECEIVED

    def _resource_path(self) -> str:
        return f"messages/{self._message.message_id}/{self._message.lock_token}"

    def _ensure_unsettled(self, action: str) -> None:
        if self.settled:
            raise MessageAlreadySettledError(
                f"Cannot {action} message {self.message_id}: already {self._state.value.lower()}"
            )

    async def complete(self) -> None:
        self._ensure_unsettled("complete")
        try:
            await self._transport.send(
                "DELETE",
                self._queue_name,
                self._resource_path(),
                action="complete",
                expected_status=(200,),
            )
        except BrokerError as exc:
            log_event(
                self._logger,
                "message_complete_failed",
                level="error",
                queue=self._queue_name,
                message_id=self.message_id,
                error=str(exc),
            )
            raise
        self._state = MessageState.COMPLETED
        log_event(self._logger, "message_completed", queue=self._queue_name, message_id=self.message_id)

    async def abandon(
        self,
        reason: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        self._ensure_unsettled("abandon")
        body: dict[str, Any] = {"MessageId": self.message_id, **(properties or {})}
        if reason:
            body["AbandonReason"] = reason
        try:
            await self._transport.send(
                "PUT",
                self._queue_name,
                self._resource_path(),
                action="abandon",
                expected_status=(200,),
                body=body,
            )
        except BrokerError as exc:
            log_event(
                self._logger,
                "message_abandon_failed",
                level="error",
                queue=self._queue_name,
                message_id=self.message_id,
                error=str(exc),
            )
            raise
        self._state = MessageState.ABANDONED
        log_event(
            self._logger,
            "message_abandoned",
            queue=self._queue_name,
            message_id=self.message_id,
            reason=reason,
        )
