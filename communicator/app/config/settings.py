"""Settings for the communicator."""
from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from communicator.app.constants import DEFAULT_GROUP_NAME
from communicator.app.domain.config import BrokerDriver


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    driver: str = Field("azure", validation_alias="MICROSERVICE_COMMUNICATION_DRIVER")

    service_bus_endpoint: str = Field("", validation_alias="AZURE_SERVICE_BUS_ENDPOINT")
    service_bus_key_name: str = Field("", validation_alias="AZURE_SERVICE_BUS_KEY_NAME")
    service_bus_key: str = Field("", validation_alias="AZURE_SERVICE_BUS_KEY")

    redis_url: str = Field("redis://localhost:6379/0", validation_alias="REDIS_STREAM_URL")
    redis_group_name: str = Field(DEFAULT_GROUP_NAME, validation_alias="REDIS_STREAM_GROUP")

    initial_backoff_seconds: float = Field(0.5, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(10.0, validation_alias="MAX_BACKOFF_SECONDS")
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")
    max_connection_attempts: int = Field(5, validation_alias="MAX_CONNECTION_ATTEMPTS")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")

    subscribe_topic: str = Field("", validation_alias="SUBSCRIBE_TOPIC")

    def connection_config(self) -> dict[str, Any]:
        """Settings map for the selected driver. Required keys are validated by the broker config."""
        if BrokerDriver.parse(self.driver) is BrokerDriver.REDIS:
            return {"group_name": self.redis_group_name}
        return {
            "endpoint": self.service_bus_endpoint,
            "shared_access_key_name": self.service_bus_key_name,
            "shared_access_key": self.service_bus_key,
        }
