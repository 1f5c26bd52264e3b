"""Single publish/subscribe facade over whichever broker the driver selects.

The manager is built once per process and owns exactly one broker for its
lifetime. publish and subscribe delegate verbatim, so each backend's failure
contract survives: the queue backend raises BrokerError, the stream backend
returns False from publish.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from communicator.app.core.handlers import MessageHandler
from communicator.app.core.polling import PollingStrategy
from communicator.app.domain.config import BrokerDriver
from communicator.app.infrastructure.messaging.factory import create_message_broker
from communicator.app.ports.http_client import AbstractHttpClient
from communicator.app.ports.message_broker import MessageBroker

if TYPE_CHECKING:
    from loguru import Logger


class CommunicationManager:
    def __init__(
        self,
        driver: str | BrokerDriver,
        config: Mapping[str, Any],
        *,
        logger: "Logger",
        http_client: AbstractHttpClient | None = None,
        polling: PollingStrategy | None = None,
    ) -> None:
        self._driver = BrokerDriver.parse(driver)
        self._broker = create_message_broker(
            self._driver,
            config,
            logger=logger,
            http_client=http_client,
            polling=polling,
        )

    @property
    def driver(self) -> BrokerDriver:
        return self._driver

    @property
    def broker(self) -> MessageBroker:
        return self._broker

    async def publish(self, topic: str, message: dict[str, Any]) -> bool:
        return await self._broker.publish(topic, message)

    async def subscribe(self, topic: str, callback: MessageHandler) -> None:
        """Blocks until stop() is called (or, for the stream backend, an error escapes)."""
        await self._broker.subscribe(topic, callback)

    def stop(self) -> None:
        self._broker.polling.stop()

    async def close(self) -> None:
        self.stop()
        await self._broker.close()
