"""Port: a received message that can be settled. Broker adapters implement it."""
from __future__ import annotations

from typing import Any, Protocol


class Acknowledgeable(Protocol):
    """Terminal actions bound to one delivery attempt.

    complete removes the message; abandon returns it to the queue for redelivery.
    Both target the identifiers captured at receive time.
    """

    @property
    def settled(self) -> bool: ...

    async def complete(self) -> None: ...

    async def abandon(
        self,
        reason: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None: ...
