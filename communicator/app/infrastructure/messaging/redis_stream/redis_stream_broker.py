"""
Redis stream broker: log-based stream with consumer groups.

Wire contract:
  XGROUP CREATE <topic> <group> 0 MKSTREAM           idempotent, BUSYGROUP tolerated
  XADD <topic> * payload <json>                       publish
  XREADGROUP GROUP <group> consumer_<uuid> COUNT 1 STREAMS <topic> >
  XACK <topic> <group> <entryId>

The group cursor is owned by Redis; the client keeps no local offset. Every
poll uses a freshly minted consumer name, so acknowledgement is the only
cleanup of pending entries. A payload that is not JSON is delivered as None
and acknowledged like any other entry. Errors while reading, in the callback or while
acknowledging are logged and propagate, ending the loop: there is no
reject primitive for this backend.
"""
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Callable

from redis.exceptions import ResponseError

from communicator.app.constants import CONSUMER_NAME_PREFIX, STREAM_PAYLOAD_FIELD
from communicator.app.core.handlers import MessageHandler, invoke_handler
from communicator.app.core.json_codec import encode_payload
from communicator.app.core.logging import log_event
from communicator.app.core.polling import PollingStrategy
from communicator.app.domain.config import RedisStreamConfig
from communicator.app.domain.models import StreamRecord

if TYPE_CHECKING:
    from loguru import Logger


def _new_consumer_name() -> str:
    return f"{CONSUMER_NAME_PREFIX}{uuid.uuid4().hex}"


class RedisStreamBroker:
    """MessageBroker implementation for the consumer-group stream backend."""

    def __init__(
        self,
        config: RedisStreamConfig,
        *,
        logger: "Logger",
        polling: PollingStrategy | None = None,
        consumer_name_factory: Callable[[], str] = _new_consumer_name,
    ) -> None:
        self._redis = config.connection
        self._group_name = config.group_name
        self._logger = logger
        self._polling = polling or PollingStrategy.for_stream()
        self._consumer_name_factory = consumer_name_factory

    @property
    def polling(self) -> PollingStrategy:
        return self._polling

    @property
    def group_name(self) -> str:
        return self._group_name

    async def publish(self, topic: str, message: dict[str, Any]) -> bool:
        try:
            entry_id = await self._redis.xadd(topic, {STREAM_PAYLOAD_FIELD: encode_payload(message)}, id="*")
        except Exception as exc:
            log_event(self._logger, "stream_publish_failed", level="error", topic=topic, error=str(exc))
            return False
        log_event(self._logger, "stream_published", level="debug", topic=topic, entry_id=entry_id)
        return True

    async def ensure_group(self, topic: str) -> bool:
        """Create the consumer group; returns False when it already existed."""
        try:
            await self._redis.xgroup_create(topic, self._group_name, id="0", mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" in str(exc):
                return False
            log_event(
                self._logger,
                "stream_group_create_failed",
                level="error",
                topic=topic,
                group=self._group_name,
                error=str(exc),
            )
            raise
        log_event(self._logger, "stream_group_created", topic=topic, group=self._group_name)
        return True

    async def subscribe(self, topic: str, callback: MessageHandler) -> None:
        await self.ensure_group(topic)
        log_event(self._logger, "subscription_started", topic=topic, group=self._group_name)
        while not self._polling.stopped:
            for record in await self._read(topic):
                await self._deliver(topic, record, callback)
            await self._polling.sleep(self._polling.interval_seconds)
        log_event(self._logger, "subscription_stopped", topic=topic, group=self._group_name)

    async def _read(self, topic: str) -> list[StreamRecord]:
        consumer = self._consumer_name_factory()
        try:
            response = await self._redis.xreadgroup(
                groupname=self._group_name,
                consumername=consumer,
                streams={topic: ">"},
                count=1,
            )
        except Exception as exc:
            log_event(
                self._logger,
                "stream_read_failed",
                level="error",
                topic=topic,
                consumer=consumer,
                error=str(exc),
            )
            raise

        if not response:
            return []
        # RESP2 returns [[stream, entries]], RESP3 returns {stream: entries}.
        streams = response.items() if isinstance(response, dict) else response
        records: list[StreamRecord] = []
        for _stream, entries in streams:
            for entry_id, fields in entries:
                payload = (fields or {}).get(STREAM_PAYLOAD_FIELD)
                records.append(StreamRecord(entry_id=entry_id, payload=payload))
        return records

    def _decode(self, topic: str, record: StreamRecord) -> Any:
        try:
            return record.decode()
        except ValueError as exc:
            log_event(
                self._logger,
                "stream_payload_undecodable",
                level="warning",
                topic=topic,
                entry_id=record.entry_id,
                error=str(exc),
            )
            return None

    async def _deliver(self, topic: str, record: StreamRecord, callback: MessageHandler) -> None:
        payload = self._decode(topic, record)
        try:
            await invoke_handler(callback, payload)
        except Exception as exc:
            log_event(
                self._logger,
                "stream_callback_failed",
                level="error",
                topic=topic,
                entry_id=record.entry_id,
                error=str(exc),
            )
            raise
        try:
            await self._redis.xack(topic, self._group_name, record.entry_id)
        except Exception as exc:
            log_event(
                self._logger,
                "stream_ack_failed",
                level="error",
                topic=topic,
                entry_id=record.entry_id,
                error=str(exc),
            )
            raise
        log_event(self._logger, "stream_entry_acked", level="debug", topic=topic, entry_id=record.entry_id)

    async def close(self) -> None:
        """The connection belongs to whoever built it; nothing to release here."""
        return
