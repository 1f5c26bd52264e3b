"""Redis connection helper (provider-specific infrastructure)."""
from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from loguru import logger

from communicator.app.config.settings import Settings
from communicator.app.core import SERVICE_NAME
from communicator.app.core.backoff import exponential_backoff


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def create_redis_connection(settings: Settings) -> aioredis.Redis:
    """Connect to Redis with retry/backoff and return a live client (responses decoded to str)."""
    _log("redis_connecting")
    attempt = 0
    async for delay in exponential_backoff(
        settings.initial_backoff_seconds,
        settings.max_backoff_seconds,
        settings.backoff_multiplier,
        settings.max_connection_attempts,
    ):
        attempt += 1
        _log("redis_connect_attempt", attempt=attempt, delay=delay)
        client: aioredis.Redis | None = None
        try:
            client = aioredis.from_url(settings.redis_url, decode_responses=True)
            await client.ping()
            _log("redis_connected")
            return client
        except Exception as exc:
            logger.warning("redis connect failed: {}", exc)
            if client is not None:
                await client.aclose()
            if attempt >= settings.max_connection_attempts:
                raise
    raise RuntimeError("redis connect failed")
