import pytest

from odbcdsn.connection.descriptor import describe
from odbcdsn.connection.dsn_parts_helper import dsn_to_properties
from odbcdsn.connection.normalizer import AuthMode


@pytest.fixture
def snowflake_config(pem_key):
    return {
        "driver": "snowflake",
        "account": "acct1",
        "warehouse": "wh",
        "username": "u",
        "password": "p",
        "odbc_driver": "/lib/sf.so",
        "private_key_path": pem_key,
    }


def test_keypair_descriptor(snowflake_config, pem_key):
    descriptor = describe(snowflake_config, "snowflake", include_driver=True)
    assert descriptor.auth_mode is AuthMode.KEYPAIR
    assert descriptor.password == ""
    assert descriptor.username == "u"
    assert descriptor.dsn == (
        f"snowflake:driver=/lib/sf.so;account=acct1;warehouse=wh;"
        f"authenticator=SNOWFLAKE_JWT;priv_key_file={pem_key}"
    )
    assert "priv_key_file_pwd" not in descriptor.options


def test_passphrase_never_in_dsn(snowflake_config):
    snowflake_config["private_key_passphrase"] = "correct horse"
    descriptor = describe(snowflake_config, "snowflake")
    assert "correct horse" not in descriptor.dsn
    assert descriptor.options["priv_key_file_pwd"] == "correct horse"
    _, props = dsn_to_properties(descriptor.dsn)
    assert props["authenticator"] == "SNOWFLAKE_JWT"


def test_missing_key_file_keeps_password_flow(snowflake_config, tmp_path, recorder):
    snowflake_config["private_key_path"] = str(tmp_path / "gone.p8")
    descriptor = describe(snowflake_config, "snowflake", event_logger=recorder)
    assert descriptor.auth_mode is AuthMode.STANDARD
    assert descriptor.password == "p"
    assert descriptor.dsn == "snowflake:driver=/lib/sf.so;account=acct1;warehouse=wh"
    assert "keypair_misconfigured" in recorder.names()


def test_options_are_passed_out_of_band():
    descriptor = describe({"dsn": "MyDSN", "options": {"autocommit": True, "timeout": 5}}, "odbc")
    assert descriptor.options == {"autocommit": True, "timeout": 5}
    assert "autocommit" not in descriptor.dsn


def test_describe_is_idempotent(snowflake_config):
    snowflake_config["private_key_passphrase"] = "pw"
    assert describe(snowflake_config, "snowflake") == describe(snowflake_config, "snowflake")


def test_repr_hides_secrets(snowflake_config):
    snowflake_config["private_key_passphrase"] = "pw-in-repr"
    snowflake_config["password"] = "password-in-repr"
    text = repr(describe(snowflake_config, "snowflake"))
    assert "pw-in-repr" not in text
    assert "password-in-repr" not in text


def test_supplied_dsn_is_not_env_expanded(monkeypatch):
    monkeypatch.delenv("X", raising=False)
    raw = "odbc:Driver=/x.so;PWD=ab${X}cd"
    assert describe({"dsn": raw}, "odbc").dsn == raw


def test_secrets_are_not_env_expanded(monkeypatch, snowflake_config):
    monkeypatch.delenv("X", raising=False)
    assert describe({"dsn": "MyDSN", "password": "p${X}w"}, "odbc").password == "p${X}w"
    snowflake_config["private_key_passphrase"] = "pass${X}phrase"
    assert describe(snowflake_config, "snowflake").options["priv_key_file_pwd"] == "pass${X}phrase"


def test_snowflake_location_travels_beside_the_dsn(snowflake_config):
    snowflake_config.update(server="acct1.snowflakecomputing.com", port=443)
    descriptor = describe(snowflake_config, "snowflake")
    assert "snowflakecomputing" not in descriptor.dsn
    assert descriptor.server == "acct1.snowflakecomputing.com"
    assert descriptor.port == 443


def test_odbc_location_stays_in_the_dsn():
    descriptor = describe({"odbc_driver": "/lib/x.so", "server": "db1", "port": 1433}, "odbc")
    assert descriptor.dsn == "odbc:driver=/lib/x.so;server=db1;port=1433"
    assert descriptor.server is None
    assert descriptor.port is None
