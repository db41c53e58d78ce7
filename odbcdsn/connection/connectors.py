import logging
from typing import Any, Mapping

from odbcdsn import events
from odbcdsn.config.config import DsnConfigurationError
from odbcdsn.connection.credentials import KEY_FILE_PROPERTY, PASSPHRASE_OPTION
from odbcdsn.connection.descriptor import ConnectionDescriptor, describe
from odbcdsn.connection.dsn_parts_helper import dsn_to_properties, redact_dsn, redact_options, strip_prefix
from odbcdsn.events import NULL_EVENT_LOGGER


logger = logging.getLogger(__name__)


class BaseConnector:
    """
    Base class for connectors.

    The DSN prefix and driver-inclusion policy are fixed per instance; the
    connection config is supplied per call and never stored.
    """

    def __init__(self, prefix: str, include_driver: bool = True, event_logger=None,
                 key_file_property: str = KEY_FILE_PROPERTY,
                 passphrase_option: str = PASSPHRASE_OPTION,
                 sniff_bytes: int = 64):
        self.prefix = prefix
        self.include_driver = include_driver
        self.event_logger = event_logger or NULL_EVENT_LOGGER
        self.key_file_property = key_file_property
        self.passphrase_option = passphrase_option
        self.sniff_bytes = sniff_bytes

    def describe(self, config: Mapping[str, Any]) -> ConnectionDescriptor:
        return describe(config, self.prefix,
                        include_driver=self.include_driver,
                        event_logger=self.event_logger,
                        key_file_property=self.key_file_property,
                        passphrase_option=self.passphrase_option,
                        sniff_bytes=self.sniff_bytes)

    def connect(self, config: Mapping[str, Any]):
        descriptor = self.describe(config)
        safe_dsn = redact_dsn(descriptor.dsn)
        try:
            conn = self._open(descriptor)
        except Exception as e:
            logger.error(f"Failed to connect with '{safe_dsn}': {e}")
            self.event_logger.emit(events.CONNECTION_FAILED, {
                "dsn": safe_dsn,
                "options": redact_options(descriptor.options),
                "error": repr(e),
            })
            raise

        logger.info(f"Connected to the {self.prefix} data source using {descriptor.auth_mode.value} authentication")
        self.event_logger.emit(events.CONNECTION_ESTABLISHED, {
            "dsn": safe_dsn,
            "auth_mode": descriptor.auth_mode.value,
        })
        return conn

    def _open(self, descriptor: ConnectionDescriptor):
        raise NotImplementedError


def odbc_connection_string(dsn: str, prefix: str) -> str:
    """Drop the '<prefix>:' tag; a bare data source name becomes DSN=<name>."""
    body = strip_prefix(dsn, prefix)
    return body if "=" in body else f"DSN={body}"


class OdbcConnector(BaseConnector):
    """Opens ODBC connections through pyodbc (also used for the Snowflake ODBC driver)."""

    def _open(self, descriptor: ConnectionDescriptor):
        import pyodbc

        conn_str = odbc_connection_string(descriptor.dsn, self.prefix)
        # pyodbc appends unknown keywords to the connection string it hands the driver
        kwargs = dict(descriptor.options)
        if descriptor.username:
            kwargs['uid'] = descriptor.username
        if descriptor.password is not None:
            kwargs['pwd'] = descriptor.password
        if descriptor.server:
            kwargs['server'] = descriptor.server
        if descriptor.port is not None:
            kwargs['port'] = descriptor.port

        return pyodbc.connect(conn_str, **kwargs)


class SnowflakeConnector(BaseConnector):
    """Opens connections through the native snowflake-connector-python driver."""

    def __init__(self, prefix: str = "snowflake", include_driver: bool = False, event_logger=None,
                 key_file_property: str = "private_key_file",
                 passphrase_option: str = "private_key_file_pwd",
                 sniff_bytes: int = 64):
        super().__init__(prefix, include_driver, event_logger,
                         key_file_property=key_file_property,
                         passphrase_option=passphrase_option,
                         sniff_bytes=sniff_bytes)

    def _open(self, descriptor: ConnectionDescriptor):
        from snowflake import connector as snowflake_connector

        _, props = dsn_to_properties(descriptor.dsn)
        if "dsn" in props:
            raise DsnConfigurationError(
                f"The native Snowflake driver cannot open the ODBC data source name {props['dsn']!r}; "
                f"use the 'snowflake' ODBC driver or configure account properties instead.")
        props.pop("driver", None)

        kwargs = {**props, **descriptor.options}
        if descriptor.username:
            kwargs['user'] = descriptor.username
        if descriptor.password is not None:
            kwargs['password'] = descriptor.password
        if descriptor.server:
            kwargs['host'] = descriptor.server
        if descriptor.port is not None:
            kwargs['port'] = descriptor.port

        return snowflake_connector.connect(**kwargs)


def get_connector_class(dbapi):
    """Factory to get the appropriate connector class for a driver module."""
    module = (dbapi or "").lower()

    if module == 'pyodbc':
        return OdbcConnector
    elif module == 'snowflake.connector':
        return SnowflakeConnector
    else:
        raise DsnConfigurationError(f"No connector available for driver module {dbapi!r}")
