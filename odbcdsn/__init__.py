# odbcdsn/__init__.py
import logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .config.config import CanonicalConfig, ConnectionsConfig, ConnectorSettings, DsnConfigurationError
from .connection.descriptor import ConnectionDescriptor
from .connection.normalizer import AuthMode
from .drivers import Driver, register_driver, get_driver, connect, describe

# Optional convenience: explicit plugin loader
_loaded_plugins = False

def load_plugins(
    group: str = "odbcdsn.drivers",
    *,
    strict: bool = False,
    reload: bool = False,
    include: set[str] | None = None,   # ep names to allow; None = all
) -> int:
    """
    Discover and register third-party drivers via entry points.
    Each entry point must resolve to a `Driver` instance.
    Returns the number of drivers loaded. Does nothing unless called.
    """
    global _loaded_plugins
    if _loaded_plugins and not reload:
        return 0

    from importlib.metadata import entry_points
    eps = entry_points().select(group=group)

    loaded = 0
    for ep in eps:
        if include and ep.name not in include:
            continue
        try:
            drv = ep.load()
            if not isinstance(drv, Driver):
                raise TypeError(f"entry point {ep.name!r} did not return a Driver")
            register_driver(drv)
            loaded += 1
        except Exception as e:
            if strict:
                raise
            logging.getLogger(__name__).warning(f"Driver plugin '{ep.name}' failed to load: {e}")
            continue

    _loaded_plugins = True
    return loaded


__all__ = [
    'AuthMode',
    'CanonicalConfig',
    'ConnectionDescriptor',
    'ConnectionsConfig',
    'ConnectorSettings',
    'Driver',
    'DsnConfigurationError',
    'connect',
    'describe',
    'get_driver',
    'load_plugins',
    'register_driver',
]
