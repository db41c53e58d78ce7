import importlib.metadata

import pytest

import odbcdsn
from odbcdsn import drivers
from odbcdsn.config.config import ConnectorSettings, DsnConfigurationError
from odbcdsn.config.runtime import using_settings
from odbcdsn.connection.connectors import OdbcConnector, SnowflakeConnector
from odbcdsn.connection.driver_registry import DriverInfo, load_driver_map


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr(drivers, "_REGISTRY", dict(drivers._REGISTRY))
    return drivers._REGISTRY


def test_builtin_drivers():
    assert drivers.registered_drivers() == ("odbc", "snowflake", "snowflake_native")
    assert drivers.get_driver("ODBC").connector_class is OdbcConnector
    assert drivers.get_driver("snowflake").info.include_driver is True
    native = drivers.get_driver("snowflake_native")
    assert native.connector_class is SnowflakeConnector
    assert native.info.include_driver is False


def test_connector_factory_binds_driver_policy():
    connector = drivers.get_driver("snowflake_native").connector()
    assert connector.prefix == "snowflake"
    assert connector.include_driver is False
    assert connector.key_file_property == "private_key_file"


def test_describe_selects_driver_from_config(pem_key):
    descriptor = odbcdsn.describe({
        "driver": "snowflake_native",
        "account": "acct1",
        "private_key_path": pem_key,
    })
    assert descriptor.dsn == f"snowflake:account=acct1;authenticator=SNOWFLAKE_JWT;private_key_file={pem_key}"


def test_describe_uses_default_driver():
    with using_settings(ConnectorSettings(default_driver="odbc")):
        assert odbcdsn.describe({"dsn": "MyDSN"}).dsn == "odbc:MyDSN"


def test_unknown_driver():
    with pytest.raises(DsnConfigurationError) as exc_info:
        odbcdsn.describe({"driver": "db2", "dsn": "x"})
    assert "db2" in str(exc_info.value)


def test_missing_driver_selector():
    with pytest.raises(DsnConfigurationError):
        odbcdsn.describe({"dsn": "MyDSN"})


def test_connect_writes_event_log_when_debugging(fake_pyodbc, tmp_path):
    log_path = tmp_path / "odbcdsn-events.log"
    settings = ConnectorSettings(debug=True, log_path=str(log_path))
    odbcdsn.connect({"driver": "odbc", "dsn": "MyDSN", "password": "p"}, settings)
    assert fake_pyodbc.calls
    text = log_path.read_text(encoding="utf-8")
    assert "connection_attempt_started" in text
    assert "connection_established" in text


def test_connect_without_debug_writes_nothing(fake_pyodbc, tmp_path):
    log_path = tmp_path / "quiet.log"
    odbcdsn.connect({"driver": "odbc", "dsn": "MyDSN"}, ConnectorSettings(debug=False, log_path=str(log_path)))
    assert fake_pyodbc.calls
    assert not log_path.exists()


def test_register_custom_driver(registry, fake_pyodbc):
    info = DriverInfo(prefix="odbc", include_driver=False, dbapi="pyodbc")
    odbcdsn.register_driver(odbcdsn.Driver(name="FreeTDS", info=info, connector_class=OdbcConnector))
    assert odbcdsn.describe({"driver": "freetds", "server": "db1"}).dsn == "odbc:server=db1"


class _EntryPoint:
    def __init__(self, name, value):
        self.name = name
        self._value = value

    def load(self):
        if isinstance(self._value, Exception):
            raise self._value
        return self._value


class _EntryPoints:
    def __init__(self, eps):
        self._eps = eps

    def select(self, group):
        return self._eps if group == "odbcdsn.drivers" else []


def test_load_plugins(registry, monkeypatch):
    plugin = drivers.Driver(name="sqlite_odbc", info=DriverInfo(prefix="odbc", dbapi="pyodbc"),
                            connector_class=OdbcConnector)
    eps = _EntryPoints([_EntryPoint("sqlite_odbc", plugin), _EntryPoint("broken", ImportError("no module"))])
    monkeypatch.setattr(importlib.metadata, "entry_points", lambda: eps)

    assert odbcdsn.load_plugins(reload=True) == 1
    assert drivers.get_driver("sqlite_odbc") is plugin


def test_load_plugins_strict(registry, monkeypatch):
    eps = _EntryPoints([_EntryPoint("broken", ImportError("no module"))])
    monkeypatch.setattr(importlib.metadata, "entry_points", lambda: eps)
    with pytest.raises(ImportError):
        odbcdsn.load_plugins(reload=True, strict=True)


def test_driver_map_override(tmp_path):
    override = tmp_path / "driver_map.json"
    override.write_text('{"dremio": {"prefix": "odbc", "dbapi": "pyodbc", "include_driver": true}}',
                        encoding="utf-8")
    driver_map = load_driver_map(str(override))
    assert driver_map["dremio"].prefix == "odbc"
    assert "snowflake" in driver_map


def test_driver_map_override_missing(tmp_path):
    with pytest.raises(DsnConfigurationError):
        load_driver_map(str(tmp_path / "absent.json"))
