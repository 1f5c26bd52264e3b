"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from communicator.app.core.json_codec import decode_payload


@dataclass(frozen=True)
class AccessToken:
    """Signed credential string plus its absolute expiry (epoch seconds)."""

    token: str
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class QueueMessage:
    """One delivery attempt of a queue message (value object).

    lock_token identifies this delivery attempt; message_id is stable across
    redeliveries. properties is the decoded BrokerProperties sidecar.
    """

    body: Any
    lock_token: str
    message_id: str
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def delivery_count(self) -> int:
        return int(self.properties.get("DeliveryCount", 1))


@dataclass(frozen=True)
class StreamRecord:
    """A stream entry: backend-assigned id plus the raw JSON payload field."""

    entry_id: str
    payload: str | None

    def decode(self) -> Any:
        return decode_payload(self.payload)
