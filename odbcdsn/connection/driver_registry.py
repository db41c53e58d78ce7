from __future__ import annotations
import json
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files  # Python 3.9+
from typing import Dict, Optional

from odbcdsn.config.config import DsnConfigurationError
from odbcdsn.connection.credentials import KEY_FILE_PROPERTY, PASSPHRASE_OPTION


@dataclass(frozen=True, slots=True)
class DriverInfo:
    prefix: str                                    # DSN tag, e.g. "odbc", "snowflake"
    include_driver: bool = True                    # prepend driver=<odbc_driver> when building
    dbapi: Optional[str] = None                    # e.g. "pyodbc", "snowflake.connector"
    key_file_property: str = KEY_FILE_PROPERTY     # DSN property carrying the private key path
    passphrase_option: str = PASSPHRASE_OPTION     # option carrying the key passphrase


@lru_cache(maxsize=4)
def load_driver_map(extra_path: Optional[str] = None) -> Dict[str, DriverInfo]:
    # Load the JSON that sits right next to this file (same package)
    text = files(__package__).joinpath("driver_map.json").read_text(encoding="utf-8")
    base = json.loads(text)

    # Optional: allow an external override file
    if extra_path:
        try:
            with open(extra_path, "r", encoding="utf-8") as f:
                base.update(json.load(f))
        except FileNotFoundError:
            raise DsnConfigurationError(f"Driver map override not found: {extra_path}")
        except json.JSONDecodeError as e:
            raise DsnConfigurationError(f"Invalid JSON in {extra_path}: {e}") from e

    # Normalize keys and coerce to DriverInfo
    out: Dict[str, DriverInfo] = {}
    for k, v in base.items():
        if not v.get("prefix"):
            raise DsnConfigurationError(f"Driver map entry {k!r} has no 'prefix'")
        out[k.lower()] = DriverInfo(
            prefix=v["prefix"],
            include_driver=bool(v.get("include_driver", True)),
            dbapi=v.get("dbapi"),
            key_file_property=v.get("key_file_property", KEY_FILE_PROPERTY),
            passphrase_option=v.get("passphrase_option", PASSPHRASE_OPTION),
        )
    return out
