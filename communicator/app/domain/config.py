"""Per-driver broker configuration variants.

Each driver carries its own frozen config, built once from a plain mapping
(the shape produced by `Settings.connection_config()`). Missing or empty
required keys are a ConfigurationError at construction time.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Union

from communicator.app.constants import DEFAULT_GROUP_NAME
from communicator.app.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from communicator.app.ports.stream_client import StreamClient


class BrokerDriver(str, Enum):
    """Supported backends. AZURE is the HTTP queue, REDIS the consumer-group stream."""

    AZURE = "azure"
    REDIS = "redis"

    @classmethod
    def parse(cls, name: str) -> "BrokerDriver":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unsupported driver: {name}") from None


def _require(config: Mapping[str, Any], key: str) -> Any:
    value = config.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError(f"Missing required configuration key: {key}")
    return value


@dataclass(frozen=True)
class ServiceBusConfig:
    endpoint: str
    shared_access_key_name: str
    shared_access_key: str

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "ServiceBusConfig":
        return cls(
            endpoint=str(_require(config, "endpoint")).strip(),
            shared_access_key_name=str(_require(config, "shared_access_key_name")),
            shared_access_key=str(_require(config, "shared_access_key")),
        )


@dataclass(frozen=True)
class RedisStreamConfig:
    connection: "StreamClient"
    group_name: str = DEFAULT_GROUP_NAME

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "RedisStreamConfig":
        group_name = config.get("group_name") or DEFAULT_GROUP_NAME
        return cls(connection=_require(config, "redis_connection"), group_name=str(group_name))


BrokerConfig = Union[ServiceBusConfig, RedisStreamConfig]
