"""Test doubles for the HTTP and stream transports."""
from __future__ import annotations

import json
from typing import Any

from redis.exceptions import ResponseError

from communicator.app.core.polling import PollingStrategy
from communicator.app.ports.http_client import HttpClientError

SERVICE_BUS_CONFIG = {
    "endpoint": "https://test.servicebus.windows.net",
    "shared_access_key_name": "test",
    "shared_access_key": "test-key",
}


def event_names(events: list[dict[str, Any]]) -> list[str]:
    return [e.get("event") for e in events]


class FakeResponse:
    def __init__(self, status_code: int, text: str = "", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


def message_response(
    body: Any,
    *,
    message_id: str = "msg-1",
    lock_token: str = "lock-1",
    **extra_properties: Any,
) -> FakeResponse:
    properties = {"LockToken": lock_token, "MessageId": message_id, "DeliveryCount": 1, **extra_properties}
    return FakeResponse(201, json.dumps(body), {"BrokerProperties": json.dumps(properties)})


class FakeHttpClient:
    """Implements AbstractHttpClient; replays scripted responses and records every request.

    When the script runs out it answers 204 (empty queue).
    """

    def __init__(self, responses: list[FakeResponse | Exception] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    async def request(self, method, url, *, timeout, headers=None, content=None):  # noqa: ANN001
        self.requests.append(
            {"method": method, "url": url, "headers": dict(headers or {}), "content": content, "timeout": timeout}
        )
        if not self._responses:
            return FakeResponse(204)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]

    def json_body(self, index: int) -> Any:
        return json.loads(self.requests[index]["content"].decode())


def failing_transport() -> HttpClientError:
    return HttpClientError("connection refused")


class FakeStreamClient:
    """In-memory stream store with consumer-group delivery and pending-entry tracking."""

    def __init__(self) -> None:
        self.streams: dict[str, list[tuple[str, dict[str, str]]]] = {}
        self.groups: dict[tuple[str, str], dict[str, Any]] = {}
        self.read_calls: list[dict[str, Any]] = []
        self.ack_calls: list[tuple[str, str, tuple[str, ...]]] = []
        self.group_create_calls: list[dict[str, Any]] = []
        self.xadd_error: Exception | None = None
        self.group_create_error: Exception | None = None
        self.read_error: Exception | None = None
        self._seq = 0

    async def ping(self) -> bool:
        return True

    async def xgroup_create(self, name, groupname, id="$", mkstream=False):  # noqa: A002, ANN001
        self.group_create_calls.append({"name": name, "groupname": groupname, "id": id, "mkstream": mkstream})
        if self.group_create_error is not None:
            raise self.group_create_error
        if (name, groupname) in self.groups:
            raise ResponseError("BUSYGROUP Consumer Group name already exists")
        if name not in self.streams:
            if not mkstream:
                raise ResponseError("ERR The XGROUP subcommand requires the key to exist")
            self.streams[name] = []
        self.groups[(name, groupname)] = {"delivered": 0, "pending": set()}
        return True

    async def xadd(self, name, fields, id="*"):  # noqa: A002, ANN001
        if self.xadd_error is not None:
            raise self.xadd_error
        self._seq += 1
        entry_id = f"{1700000000000 + self._seq}-0"
        self.streams.setdefault(name, []).append((entry_id, dict(fields)))
        return entry_id

    async def xreadgroup(self, groupname, consumername, streams, count=None, block=None):  # noqa: ANN001
        self.read_calls.append(
            {"groupname": groupname, "consumername": consumername, "streams": dict(streams), "count": count, "block": block}
        )
        if self.read_error is not None:
            raise self.read_error
        result = []
        for name, cursor in streams.items():
            assert cursor == ">"
            group = self.groups[(name, groupname)]
            entries = self.streams.get(name, [])
            start = group["delivered"]
            batch = entries[start : start + (count or len(entries))]
            group["delivered"] = start + len(batch)
            group["pending"].update(entry_id for entry_id, _ in batch)
            if batch:
                result.append([name, batch])
        return result

    async def xack(self, name, groupname, *ids):  # noqa: ANN001
        self.ack_calls.append((name, groupname, ids))
        pending = self.groups[(name, groupname)]["pending"]
        acked = [entry_id for entry_id in ids if entry_id in pending]
        pending.difference_update(acked)
        return len(acked)

    async def aclose(self) -> None:
        return None

    def pending(self, name: str, groupname: str) -> set[str]:
        return set(self.groups[(name, groupname)]["pending"])


class RecordingSleeper:
    """Records requested delays and stops the polling strategy after `stop_after` sleeps."""

    def __init__(self, stop_after: int) -> None:
        self.stop_after = stop_after
        self.delays: list[float] = []
        self.polling: PollingStrategy | None = None

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if len(self.delays) >= self.stop_after and self.polling is not None:
            self.polling.stop()


def queue_polling(stop_after: int, **kwargs: Any) -> tuple[PollingStrategy, RecordingSleeper]:
    sleeper = RecordingSleeper(stop_after)
    polling = PollingStrategy.for_queue(sleeper=sleeper, **kwargs)
    sleeper.polling = polling
    return polling, sleeper


def stream_polling(stop_after: int, **kwargs: Any) -> tuple[PollingStrategy, RecordingSleeper]:
    sleeper = RecordingSleeper(stop_after)
    polling = PollingStrategy.for_stream(sleeper=sleeper, **kwargs)
    sleeper.polling = polling
    return polling, sleeper
