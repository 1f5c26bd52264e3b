"""Composition root: build and lifecycle-manage concrete dependencies.

Selects the driver from settings, opens the transport that driver needs (an
httpx client for the queue backend, a Redis connection for the stream
backend) and hands both to the CommunicationManager. The Redis connection is
only resolved when the redis driver is selected.
"""
from __future__ import annotations

from typing import Any

from loguru import logger
from redis.asyncio import Redis

from communicator.app.application.communication_manager import CommunicationManager
from communicator.app.config.settings import Settings
from communicator.app.core import SERVICE_NAME
from communicator.app.domain.config import BrokerDriver
from communicator.app.infrastructure.http.factory import create_http_client
from communicator.app.infrastructure.messaging.redis_stream.connection import create_redis_connection
from communicator.app.ports.http_client import AbstractHttpClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class CommunicatorDependencies:
    """Holds the wired manager and the transports it was built on."""

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._manager: CommunicationManager | None = None
        self._http_client: AbstractHttpClient | None = None
        self._redis: Redis | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def manager(self) -> CommunicationManager:
        if self._manager is None:
            raise RuntimeError("manager is not initialized")
        return self._manager

    async def connect(self) -> None:
        driver = BrokerDriver.parse(self._settings.driver)
        config = self._settings.connection_config()

        if driver is BrokerDriver.REDIS:
            self._redis = await create_redis_connection(self._settings)
            config["redis_connection"] = self._redis
        else:
            self._http_client = create_http_client()

        try:
            self._manager = CommunicationManager(
                driver,
                config,
                logger=logger.bind(service_name=SERVICE_NAME),
                http_client=self._http_client,
            )
        except Exception:
            await self.close()
            raise
        _log("communicator_ready", driver=driver.value)

    async def close(self) -> None:
        if self._manager is not None:
            try:
                await self._manager.close()
            except Exception as exc:
                logger.warning("manager close failed: {}", exc)
            self._manager = None

        if self._http_client is not None:
            try:
                await self._http_client.close()
            except Exception as exc:
                logger.warning("http client close failed: {}", exc)
            self._http_client = None

        if self._redis is not None:
            try:
                await self._redis.aclose()
            except Exception as exc:
                logger.warning("redis close failed: {}", exc)
            self._redis = None


def create_communicator_dependencies(settings: Settings | None = None) -> CommunicatorDependencies:
    return CommunicatorDependencies(settings=settings or Settings())
