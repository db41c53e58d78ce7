"""
Credential routing: decide which authentication values go into the DSN
properties and which travel out-of-band in the option set.
"""
from __future__ import annotations
import dataclasses
from typing import Any, Dict, Tuple

from odbcdsn.config.config import CanonicalConfig
from odbcdsn.connection.normalizer import AuthMode

# Snowflake's documented authenticator for key-pair (JWT) authentication
SNOWFLAKE_JWT = "SNOWFLAKE_JWT"

# Snowflake ODBC driver names; the native connector uses private_key_file/_pwd
KEY_FILE_PROPERTY = "priv_key_file"
PASSPHRASE_OPTION = "priv_key_file_pwd"


def route(config: CanonicalConfig,
          auth_mode: AuthMode,
          key_file_property: str = KEY_FILE_PROPERTY,
          passphrase_option: str = PASSPHRASE_OPTION) -> Tuple[CanonicalConfig, Dict[str, Any]]:
    """
    Returns the config to build the DSN from and the out-of-band option set.

    In key-pair mode the password becomes "", the authenticator is forced to
    SNOWFLAKE_JWT and the key file path is added next to it. When a full DSN
    was supplied it is used verbatim, so both travel in the option set instead.
    The passphrase only ever goes to the option set.
    """
    options: Dict[str, Any] = dict(config.options)

    if auth_mode is not AuthMode.KEYPAIR:
        return config, options

    properties = {k: v for k, v in config.properties.items() if k != passphrase_option}
    options.pop(key_file_property, None)
    options.pop("authenticator", None)

    if config.dsn:
        options["authenticator"] = SNOWFLAKE_JWT
        options[key_file_property] = config.private_key_path
    else:
        # assignment keeps a caller-supplied authenticator in its position
        properties["authenticator"] = SNOWFLAKE_JWT
        properties.pop(key_file_property, None)
        properties[key_file_property] = config.private_key_path

    if config.private_key_passphrase is not None:
        options[passphrase_option] = config.private_key_passphrase
    else:
        options.pop(passphrase_option, None)

    routed = dataclasses.replace(config, password="", properties=properties)
    return routed, options
