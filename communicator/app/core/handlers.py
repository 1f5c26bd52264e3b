"""Subscriber callbacks may be plain functions or coroutine functions."""
from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Union

MessageHandler = Callable[[Any], Union[Awaitable[Any], Any]]


async def invoke_handler(handler: MessageHandler, message: Any) -> Any:
    result = handler(message)
    if inspect.isawaitable(result):
        return await result
    return result
