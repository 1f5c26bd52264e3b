"""Broker factory: selects implementation from the driver. Only place that imports concrete brokers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from communicator.app.core.polling import PollingStrategy
from communicator.app.domain.config import (
    BrokerDriver,
    RedisStreamConfig,
    ServiceBusConfig,
)
from communicator.app.domain.errors import ConfigurationError
from communicator.app.infrastructure.http.factory import create_http_client
from communicator.app.infrastructure.messaging.redis_stream.redis_stream_broker import RedisStreamBroker
from communicator.app.infrastructure.messaging.servicebus.servicebus_broker import ServiceBusBroker
from communicator.app.ports.http_client import AbstractHttpClient
from communicator.app.ports.message_broker import MessageBroker

if TYPE_CHECKING:
    from loguru import Logger


def create_message_broker(
    driver: str | BrokerDriver,
    config: Mapping[str, Any],
    *,
    logger: "Logger",
    http_client: AbstractHttpClient | None = None,
    polling: PollingStrategy | None = None,
) -> MessageBroker:
    """Build the broker for `driver`. The driver is validated before config or transport are touched."""
    kind = BrokerDriver.parse(driver)

    if kind is BrokerDriver.AZURE:
        service_bus_config = ServiceBusConfig.from_mapping(config)
        return ServiceBusBroker(
            service_bus_config,
            client=http_client or create_http_client(),
            logger=logger,
            polling=polling,
            owns_client=http_client is None,
        )

    if kind is BrokerDriver.REDIS:
        return RedisStreamBroker(RedisStreamConfig.from_mapping(config), logger=logger, polling=polling)

    raise ConfigurationError(f"Unsupported driver: {driver}")
