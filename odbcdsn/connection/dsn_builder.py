from __future__ import annotations
import logging
from typing import FrozenSet

from odbcdsn.config.config import CanonicalConfig, DsnConfigurationError
from odbcdsn.connection.dsn_parts_helper import properties_to_dsn

logger = logging.getLogger(__name__)

ODBC_DRIVER_ENV = "DB_ODBC_DRIVER"

# connector control metadata, never a DSN property
GENERIC_EXCLUDED: FrozenSet[str] = frozenset(
    ["driver", "odbc_driver", "dsn", "options", "username", "password", "name", "prefix"])

# Snowflake takes server/port positionally and key material out-of-band
SNOWFLAKE_EXCLUDED: FrozenSet[str] = GENERIC_EXCLUDED | frozenset(
    ["port", "server", "private_key_path", "private_key_passphrase"])


def excluded_properties(prefix: str) -> FrozenSet[str]:
    return SNOWFLAKE_EXCLUDED if prefix == "snowflake" else GENERIC_EXCLUDED


def qualify(prefix: str, raw_dsn: str) -> str:
    """Pass a caller-supplied DSN through, tagging it with '<prefix>:' if needed."""
    tag = f"{prefix}:"
    return raw_dsn if raw_dsn.startswith(tag) else tag + raw_dsn


def build(prefix: str, config: CanonicalConfig, include_driver: bool) -> str:
    """
    Build '<prefix>:driver=<path>;k1=v1;...' from the config properties.
    Raises DsnConfigurationError when the driver property is required but
    no ODBC driver path is configured.
    """
    excluded = excluded_properties(prefix)
    props = {k: v for k, v in config.properties.items() if k not in excluded}

    if include_driver:
        if not config.odbc_driver:
            raise DsnConfigurationError(
                f'Please make sure the environment variable: "{ODBC_DRIVER_ENV}" was set properly. '
                f'{ODBC_DRIVER_ENV} should be the absolute path to the database driver file '
                f'(configuration key "odbc_driver").',
                setting=ODBC_DRIVER_ENV,
            )
        props = {"driver": config.odbc_driver, **props}

    dsn = properties_to_dsn(prefix, props)
    logger.debug(f"Built {prefix} DSN with properties: {', '.join(props)}")
    return dsn
