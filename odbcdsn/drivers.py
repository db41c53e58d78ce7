# drivers.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from odbcdsn.config.config import CanonicalConfig, ConnectorSettings, DsnConfigurationError
from odbcdsn.config.runtime import get_settings
from odbcdsn.connection.connectors import BaseConnector, get_connector_class
from odbcdsn.connection.descriptor import ConnectionDescriptor
from odbcdsn.connection.driver_registry import DriverInfo, load_driver_map
from odbcdsn.events import EventLogger, NULL_EVENT_LOGGER, event_logger_from_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Driver:
    name: str
    info: DriverInfo
    connector_class: type

    def connector(self, event_logger: EventLogger = NULL_EVENT_LOGGER, sniff_bytes: int = 64) -> BaseConnector:
        """Connection factory: a connector bound to this driver's prefix and policies."""
        return self.connector_class(
            self.info.prefix,
            self.info.include_driver,
            event_logger,
            key_file_property=self.info.key_file_property,
            passphrase_option=self.info.passphrase_option,
            sniff_bytes=sniff_bytes,
        )

_REGISTRY: dict[str, Driver] = {}

def register_driver(drv: Driver) -> None:
    _REGISTRY[drv.name.lower()] = drv

def get_driver(name: str) -> Driver | None:
    return _REGISTRY.get((name or "").lower())

def registered_drivers() -> tuple[str, ...]:
    return tuple(sorted(_REGISTRY))

# ---- built-in drivers ------------------------------------------------------

for _name, _info in load_driver_map().items():
    register_driver(Driver(name=_name, info=_info, connector_class=get_connector_class(_info.dbapi)))

# ---- entry points ----------------------------------------------------------

def _resolve(config: Mapping[str, Any], settings: ConnectorSettings | None) -> tuple[Driver, ConnectorSettings]:
    settings = settings or get_settings()
    selector = config.driver if isinstance(config, CanonicalConfig) else config.get("driver")
    name = selector or settings.default_driver
    if not name:
        raise DsnConfigurationError(
            "No driver configured: set 'driver' in the connection config or ODBCDSN_DEFAULT_DRIVER.")
    drv = get_driver(name)
    if drv is None:
        raise DsnConfigurationError(
            f"Unknown driver {name!r}; registered drivers: {', '.join(registered_drivers())}")
    return drv, settings

def describe(config: Mapping[str, Any], settings: ConnectorSettings | None = None) -> ConnectionDescriptor:
    """Build the (dsn, username, password, options) descriptor without connecting."""
    drv, settings = _resolve(config, settings)
    connector = drv.connector(event_logger_from_settings(settings), sniff_bytes=settings.key_sniff_bytes)
    return connector.describe(config)

def connect(config: Mapping[str, Any], settings: ConnectorSettings | None = None):
    """Describe the connection with its driver's connector and open it."""
    drv, settings = _resolve(config, settings)
    connector = drv.connector(event_logger_from_settings(settings), sniff_bytes=settings.key_sniff_bytes)
    logger.debug(f"Connecting through driver '{drv.name}'")
    return connector.connect(config)
