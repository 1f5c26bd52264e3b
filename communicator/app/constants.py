"""Communicator-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

TOKEN_TTL_SECONDS = 3600
REQUEST_TIMEOUT_SECONDS = 30.0
EMPTY_QUEUE_DELAY_SECONDS = 1.0
RETRY_DELAY_SECONDS = 5.0
STREAM_POLL_INTERVAL_SECONDS = 0.1

BROKER_PROPERTIES_HEADER = "BrokerProperties"
STREAM_PAYLOAD_FIELD = "payload"
DEFAULT_GROUP_NAME = "default_group"
CONSUMER_NAME_PREFIX = "consumer_"


class MessageState(str, Enum):
    """Client-side view of a received queue message."""

    RECEIVED = "RECEIVED"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"
