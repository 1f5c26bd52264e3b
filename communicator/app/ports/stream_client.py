"""Port: the subset of a Redis client the stream broker uses (redis-py asyncio signatures)."""
from __future__ import annotations

from typing import Any, Protocol


class StreamClient(Protocol):
    async def ping(self) -> Any: ...

    async def xgroup_create(
        self,
        name: str,
        groupname: str,
        id: str = "$",
        mkstream: bool = False,
    ) -> Any: ...

    async def xadd(self, name: str, fields: dict[str, Any], id: str = "*") -> Any: ...

    async def xreadgroup(
        self,
        groupname: str,
        consumername: str,
        streams: dict[str, str],
        count: int | None = None,
        block: int | None = None,
    ) -> Any: ...

    async def xack(self, name: str, groupname: str, *ids: str) -> Any: ...

    async def aclose(self) -> None: ...
