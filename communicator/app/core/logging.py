"""Structured logging helpers (loguru).

Events are emitted as `log.bind(event=<name>, **context).<level>("")`: the
payload lives in the bound extras, the message body stays empty. Brokers take
the logger as an explicit constructor argument; only the composition root and
the entry point touch the global `loguru.logger`.
"""
from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger


def log_event(log: "Logger", event: str, level: str = "info", **context: Any) -> None:
    getattr(log.bind(event=event, **context), level)("")


def configure_logging(level: str = "INFO", *, serialize: bool = False) -> None:
    """Replace the default sink with a single stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), serialize=serialize, backtrace=False)
