from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Dict
from pathlib import Path
import os, json, re
from types import MappingProxyType

from odbcdsn.file_loader import loader_for


class DsnConfigurationError(ValueError):
    """Raised when a connection cannot be described from its configuration."""

    def __init__(self, message, setting=None):
        super().__init__(message)
        self.setting = setting


# Keys held as typed fields on CanonicalConfig; every other key is a DSN property
CONTROL_KEYS = ("driver", "odbc_driver", "dsn", "options", "username", "password", "name", "prefix")
KEYPAIR_KEYS = ("private_key_path", "private_key_passphrase")

_SCALARS = (str, int, float, bool, type(None))

_ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

# Values used exactly as supplied, never ${VAR}-expanded
_RAW_KEYS = ("dsn", "password", "private_key_passphrase")

def _expand_env_str(v: str) -> str:
    # Expand ${VAR} from os.environ; missing vars become ""
    return _ENV_RE.sub(lambda m: os.environ.get(m.group(1), ""), v)

def _expand_env(obj: Any) -> Any:
    if isinstance(obj, str): return _expand_env_str(obj)
    if isinstance(obj, Mapping): return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list): return [_expand_env(x) for x in obj]
    return obj

def _opt_str(name: str, v: Any) -> str | None:
    if v is None or v == "":
        return None
    if not isinstance(v, (str, int)) or isinstance(v, bool):
        raise DsnConfigurationError(f"Invalid value for {name}: expected a string, got {type(v).__name__}")
    return str(v)

def _to_int(name: str, v: Any) -> int:
    try:
        return int(v)
    except Exception:
        raise DsnConfigurationError(f"Invalid integer for {name}: {v!r}")

def _to_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


@dataclass(frozen=True, slots=True)
class CanonicalConfig:
    """
    Typed view of one connection configuration.

    Control and credential keys become fields; everything else lands in
    ``properties`` in the caller's key order and is eligible for the DSN.
    """
    driver: str | None = None
    dsn: str | None = None
    odbc_driver: str | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    name: str | None = None
    prefix: str | None = None
    private_key_path: str | None = None
    private_key_passphrase: str | None = field(default=None, repr=False)
    options: dict[str, Any] = field(default_factory=dict, repr=False)
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CanonicalConfig":
        if isinstance(data, CanonicalConfig):
            return data
        if not isinstance(data, Mapping):
            raise DsnConfigurationError(
                f"Connection configuration must be a mapping, got {type(data).__name__}")

        d = {k: (v if k in _RAW_KEYS else _expand_env(v)) for k, v in data.items()}

        options = d.get("options") or {}
        if not isinstance(options, Mapping):
            raise DsnConfigurationError("'options' must be a mapping if provided")

        properties: dict[str, Any] = {}
        for key, value in d.items():
            if not isinstance(key, str):
                raise DsnConfigurationError(f"Configuration keys must be strings, got {key!r}")
            if key in CONTROL_KEYS or key in KEYPAIR_KEYS:
                continue
            if not isinstance(value, _SCALARS):
                raise DsnConfigurationError(
                    f"DSN property {key!r} must be a scalar value, got {type(value).__name__}")
            properties[key] = value

        return cls(
            driver=_opt_str("driver", d.get("driver")),
            dsn=_opt_str("dsn", d.get("dsn")),
            odbc_driver=_opt_str("odbc_driver", d.get("odbc_driver")),
            username=_opt_str("username", d.get("username")),
            # an explicit empty password is kept: it is forwarded to the connect call as-is
            password=None if d.get("password") is None else str(d.get("password")),
            name=_opt_str("name", d.get("name")),
            prefix=_opt_str("prefix", d.get("prefix")),
            private_key_path=_opt_str("private_key_path", d.get("private_key_path")),
            private_key_passphrase=_opt_str("private_key_passphrase", d.get("private_key_passphrase")),
            options=dict(options),
            properties=properties,
        )


@dataclass(frozen=True, slots=True)
class ConnectorSettings:
    # debug turns on the structured event log; log_path sends it to a file
    debug: bool = False
    log_path: str | None = None
    default_driver: str | None = None
    key_sniff_bytes: int = 64

    def __post_init__(self):
        # key files are only ever read up to this many bytes
        if self.key_sniff_bytes < 1:
            raise DsnConfigurationError(
                f"key_sniff_bytes must be a positive number of bytes, got {self.key_sniff_bytes}")

    @classmethod
    def from_env(cls, prefix: str = "ODBCDSN_") -> "ConnectorSettings":
        """
        Env contract (all optional):
          {P}DEBUG            : "true"/"1" enables the event log
          {P}LOG_PATH         : file receiving the event log
          {P}DEFAULT_DRIVER   : driver used when a config has no 'driver' key
          {P}KEY_SNIFF_BYTES  : bytes read from a private key file to detect its format
        """
        get = os.getenv
        sniff = get(prefix + "KEY_SNIFF_BYTES")
        return cls(
            debug=_to_bool(get(prefix + "DEBUG", "false")),
            log_path=get(prefix + "LOG_PATH") or None,
            default_driver=get(prefix + "DEFAULT_DRIVER") or None,
            key_sniff_bytes=_to_int(prefix + "KEY_SNIFF_BYTES", sniff) if sniff else 64,
        )


def _read_connections_file(path: str | os.PathLike[str]) -> dict[str, Any]:
    p = Path(path).expanduser()
    if not p.exists():
        raise DsnConfigurationError(f"Config file not found: {p}")

    loader = loader_for(p)
    if loader is None:
        raise DsnConfigurationError(f"Unsupported config file type: {p.suffix or p.name}")
    try:
        return loader(p)
    except json.JSONDecodeError as e:
        raise DsnConfigurationError(f"Invalid JSON in {p}: {e}") from e
    except Exception as e:
        raise DsnConfigurationError(f"Could not read {p}: {e}") from e


@dataclass(frozen=True, slots=True)
class ConnectionsConfig:
    _connections: Dict[str, Dict[str, Any]]
    default_connection: str | None = None

    def require(self, name: str | None = None) -> dict[str, Any]:
        """Return a private copy of the named (or default) connection map."""
        conns = self._connections
        key = name or self.default_connection or next(iter(conns))
        try:
            return dict(conns[key])
        except KeyError as e:
            raise DsnConfigurationError(f"Unknown connection key: {key!r}") from e

    def connections(self) -> Mapping[str, Dict[str, Any]]:
        """Read-only view of all configured connections."""
        return MappingProxyType(self._connections)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConnectionsConfig":
        """
        Accepts either {"default_connection": ..., "connections": {...}}
        or a plain {"name": {...}} map of connections.
        """
        conns = data.get("connections") if "connections" in data else data
        default = data.get("default_connection") if "connections" in data else None

        if not isinstance(conns, Mapping) or not conns:
            raise DsnConfigurationError("No connection configurations found")
        for name, entry in conns.items():
            if not isinstance(entry, Mapping):
                raise DsnConfigurationError(f"Connection {name!r} must be a mapping")
        if default and default not in conns:
            raise DsnConfigurationError(f"Default connection {default!r} is not configured")

        return cls(
            _connections={str(name): dict(entry) for name, entry in conns.items()},
            default_connection=default or None,
        )

    @classmethod
    def from_files(cls, connections_path: str | os.PathLike[str]) -> "ConnectionsConfig":
        return cls.from_mapping(_read_connections_file(connections_path))

    @classmethod
    def from_env(cls, prefix: str = "ODBCDSN_") -> "ConnectionsConfig":
        """
        Env contract:
          - {P}CONNECTIONS_JSON : inline JSON object of connections
          - {P}CONNECTIONS_PATH : path to a JSON, YAML or INI file with connections
          - {P}DEFAULT_CONNECTION : overrides the default connection key
        Precedence: CONNECTIONS_JSON > CONNECTIONS_PATH.
        """
        get = os.getenv
        data: dict[str, Any] = {}
        inline = get(prefix + "CONNECTIONS_JSON")
        if inline:
            try:
                data = json.loads(inline)
            except json.JSONDecodeError as e:
                raise DsnConfigurationError(f"{prefix}CONNECTIONS_JSON is not valid JSON: {e}") from e
        elif get(prefix + "CONNECTIONS_PATH"):
            data = _read_connections_file(get(prefix + "CONNECTIONS_PATH"))
        else:
            raise DsnConfigurationError("No connection configurations found in environment")

        if not isinstance(data, Mapping):
            raise DsnConfigurationError("Connection configuration must be a JSON object")

        cfg = cls.from_mapping(data)
        default = get(prefix + "DEFAULT_CONNECTION")
        if default:
            if default not in cfg._connections:
                raise DsnConfigurationError(f"Default connection {default!r} is not configured")
            cfg = cls(_connections=cfg._connections, default_connection=default)
        return cfg
