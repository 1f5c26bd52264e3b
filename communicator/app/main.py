"""Subscriber entry point: consume SUBSCRIBE_TOPIC and log every message until SIGINT/SIGTERM."""
import asyncio
import signal
from typing import Any

from loguru import logger

from communicator.app.composition import create_communicator_dependencies
from communicator.app.config.settings import Settings
from communicator.app.core import SERVICE_NAME
from communicator.app.core.logging import configure_logging
from communicator.app.domain.errors import ConfigurationError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def run_subscriber(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    topic = settings.subscribe_topic.strip()
    if not topic:
        raise ConfigurationError("Missing required configuration key: SUBSCRIBE_TOPIC")

    dependencies = create_communicator_dependencies(settings)
    await dependencies.connect()
    manager = dependencies.manager

    def request_shutdown() -> None:
        _log("shutdown_signal")
        manager.stop()

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
            installed.append(sig)
        except NotImplementedError:
            pass

    async def on_message(message: Any) -> None:
        body = getattr(message, "body", message)
        _log("message_received", topic=topic, body=body)

    _log("subscriber_started", topic=topic, driver=manager.driver.value)
    try:
        await manager.subscribe(topic, on_message)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        await dependencies.close()
        _log("subscriber_stopped", topic=topic)


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level, serialize=settings.log_json)
    try:
        asyncio.run(run_subscriber(settings))
    except KeyboardInterrupt:
        _log("subscriber_interrupted")
    except Exception as e:
        logger.exception("subscriber failed: {}", e)
        raise


if __name__ == "__main__":
    main()
