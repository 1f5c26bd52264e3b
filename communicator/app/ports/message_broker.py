"""Port: broker contract shared by every backend. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Any, Protocol

from communicator.app.core.handlers import MessageHandler
from communicator.app.core.polling import PollingStrategy


class MessageBroker(Protocol):
    """publish is fire-and-forget; subscribe blocks until the polling strategy is stopped.

    Backends keep their own failure contract: the queue backend raises
    BrokerError from publish, the stream backend returns False.
    """

    @property
    def polling(self) -> PollingStrategy: ...

    async def publish(self, topic: str, message: dict[str, Any]) -> bool: ...

    async def subscribe(self, topic: str, callback: MessageHandler) -> None: ...

    async def close(self) -> None: ...
