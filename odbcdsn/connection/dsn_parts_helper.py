from __future__ import annotations
import re
from typing import Any, Mapping, Dict, Tuple

_PREFIX_RE = re.compile(r"^([A-Za-z][A-Za-z0-9_+.-]*):")

# Property/option names whose values are masked before logging
_SECRET_WORDS = ("pwd", "password", "passphrase", "secret", "token")

REDACTED = "***"


def render_value(v: Any) -> str:
    # booleans follow the driver convention 1/""; None renders empty
    if v is True:
        return "1"
    if v is False or v is None:
        return ""
    return str(v)


def properties_to_dsn(prefix: str, properties: Mapping[str, Any]) -> str:
    """
    Render '<prefix>:k1=v1;k2=v2' from an ordered mapping.
    Values are not escaped; ';' or '=' inside a value is the caller's concern.
    """
    pairs = [f"{k}={render_value(v)}" for k, v in properties.items()]
    return f"{prefix}:" + ";".join(pairs)


def split_prefix(dsn: str) -> Tuple[str | None, str]:
    """'odbc:DSN=x' -> ('odbc', 'DSN=x'); a string without a prefix tag -> (None, dsn)."""
    # 'Driver=C:\...' bodies do not match: the tag may not contain '='
    m = _PREFIX_RE.match(dsn or "")
    if not m:
        return None, dsn or ""
    return m.group(1), dsn[m.end():]


def strip_prefix(dsn: str, prefix: str) -> str:
    tag = f"{prefix}:"
    return dsn[len(tag):] if dsn.startswith(tag) else dsn


def dsn_to_properties(dsn: str) -> Tuple[str | None, Dict[str, str]]:
    """
    Parse '<prefix>:k1=v1;k2=v2' back into (prefix, ordered dict).
    A bare ODBC data source name ('odbc:MyDSN') is returned as {'dsn': 'MyDSN'}.
    """
    prefix, body = split_prefix(dsn)
    props: Dict[str, str] = {}
    for piece in body.split(";"):
        piece = piece.strip()
        if not piece:
            continue
        key, sep, value = piece.partition("=")
        if sep:
            props[key.strip()] = value
        else:
            props["dsn"] = piece
    return prefix, props


def is_secret_key(key: str) -> bool:
    k = str(key).lower()
    return any(word in k for word in _SECRET_WORDS)


def redact_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: (REDACTED if is_secret_key(k) else v) for k, v in (options or {}).items()}


def redact_dsn(dsn: str) -> str:
    """Mask secret-looking properties in a DSN, keeping its layout."""
    prefix, body = split_prefix(dsn)
    pieces = []
    for piece in body.split(";"):
        key, sep, _ = piece.partition("=")
        pieces.append(f"{key}={REDACTED}" if sep and is_secret_key(key.strip()) else piece)
    redacted = ";".join(pieces)
    return f"{prefix}:{redacted}" if prefix else redacted
