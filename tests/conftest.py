from __future__ import annotations

from typing import Any

import pytest
from loguru import logger

from communicator.app.core import SERVICE_NAME


@pytest.fixture()
def broker_logger():
    return logger.bind(service_name=SERVICE_NAME)


@pytest.fixture()
def captured_events():
    """Collects the bound extras of every log record emitted during the test."""
    events: list[dict[str, Any]] = []

    def _sink(message: Any) -> None:
        record = message.record
        events.append({"level": record["level"].name, **record["extra"]})

    handler_id = logger.add(_sink, level="DEBUG")
    yield events
    logger.remove(handler_id)
