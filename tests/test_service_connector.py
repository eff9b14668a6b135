import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sf_connector import service_connector


@pytest.fixture
def pem_key():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def captured_connect(monkeypatch):
    calls = []
    monkeypatch.setattr(service_connector.snowflake_connector, "connect", lambda **kw: calls.append(kw) or "conn")
    return calls


def test_pem_text_becomes_der(pem_key):
    der = service_connector.private_key_der(pem_key)
    assert isinstance(der, bytes)
    assert serialization.load_der_private_key(der, password=None).key_size == 2048


@pytest.mark.parametrize("connector_version, flag", [("3.14.0", "disable_ocsp_checks"), ("3.6.0", "insecure_mode")])
def test_ocsp_flag_follows_connector_version(monkeypatch, connector_version, flag):
    monkeypatch.setattr(service_connector.snowflake_connector, "__version__", connector_version)
    assert service_connector.build_connection_args({})[flag] is True


def test_connect_with_config(pem_key, captured_connect):
    config = {
        "sf_user": "EDU_SVC",
        "sf_account": "xy12345",
        "sf_private_key": pem_key,
        "sf_warehouse": "WH",
        "sf_database": "EDU",
        "sf_schema": "PUBLIC",
        "sf_role": "EDU_ROLE",
    }

    assert service_connector.connect_with_config(config) == "conn"

    kwargs = captured_connect[0]
    assert (kwargs["user"], kwargs["database"], kwargs["schema"], kwargs["role"]) == ("EDU_SVC", "EDU", "PUBLIC", "EDU_ROLE")
    assert isinstance(kwargs["private_key"], bytes)


def test_role_is_optional(pem_key, captured_connect):
    config = {
        "sf_user": "u", "sf_account": "a", "sf_private_key": pem_key,
        "sf_warehouse": "w", "sf_database": "d", "sf_schema": "s",
    }
    service_connector.connect_with_config(config)
    assert "role" not in captured_connect[0]
