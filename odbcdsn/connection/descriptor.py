from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from odbcdsn.config.config import CanonicalConfig
from odbcdsn.connection.credentials import route, KEY_FILE_PROPERTY, PASSPHRASE_OPTION
from odbcdsn.connection.dsn_builder import build, excluded_properties, qualify
from odbcdsn.connection.normalizer import AuthMode, normalize
from odbcdsn.events import EventLogger, NULL_EVENT_LOGGER

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConnectionDescriptor:
    """Everything the driver connect call needs for one attempt."""
    dsn: str
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    options: Dict[str, Any] = field(default_factory=dict, repr=False)
    auth_mode: AuthMode = AuthMode.STANDARD
    # network location kept out of the DSN, handed to the driver as keywords
    server: str | None = None
    port: int | str | None = None


def describe(config: Mapping[str, Any] | CanonicalConfig,
             prefix: str,
             include_driver: bool = True,
             event_logger: EventLogger = NULL_EVENT_LOGGER,
             key_file_property: str = KEY_FILE_PROPERTY,
             passphrase_option: str = PASSPHRASE_OPTION,
             sniff_bytes: int = 64) -> ConnectionDescriptor:
    """
    Normalize, route credentials, then either pass the supplied DSN through
    or build one. No network I/O happens here.
    """
    canonical, auth_mode = normalize(config, prefix, event_logger, sniff_bytes=sniff_bytes)
    routed, options = route(canonical, auth_mode,
                            key_file_property=key_file_property,
                            passphrase_option=passphrase_option)

    location: Dict[str, Any] = {}
    if routed.dsn:
        dsn = qualify(prefix, routed.dsn)
    else:
        dsn = build(prefix, routed, include_driver)
        excluded = excluded_properties(prefix)
        location = {k: routed.properties[k] for k in ("server", "port")
                    if k in excluded and routed.properties.get(k) not in (None, "")}

    logger.debug(f"Described {prefix} connection '{routed.name or ''}' using {auth_mode.value} authentication")
    return ConnectionDescriptor(
        dsn=dsn,
        username=routed.username,
        password=routed.password,
        options=options,
        auth_mode=auth_mode,
        server=None if "server" not in location else str(location["server"]),
        port=location.get("port"),
    )
