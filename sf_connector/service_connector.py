# ---------------- sf_connector/service_connector.py ----------------
import streamlit as st
import snowflake.connector as snowflake_connector
from packaging import version
from cryptography.hazmat.primitives import serialization

# ============================ Helper: Load PEM Key ============================

def load_private_key(pem_input):
    if isinstance(pem_input, str):
        pem_input = pem_input.encode()
    return serialization.load_pem_private_key(
        pem_input,
        password=None
    )


def private_key_der(pem_input) -> bytes:
    """PEM text -> unencrypted PKCS8 DER bytes, the form the connector expects."""
    private_key_obj = load_private_key(pem_input)
    return private_key_obj.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )

# ============================ Helper: Build connection args ============================

def build_connection_args(base_args: dict):
    connector_version = snowflake_connector.__version__

    if version.parse(connector_version) >= version.parse("3.14.0"):
        base_args["disable_ocsp_checks"] = True
    else:
        base_args["insecure_mode"] = True

    return base_args

# ============================ Service Account Connector ============================

def connect_with_config(config: dict):
    """
    Open a Snowflake connection from a [snowflake_connect] style mapping.
    Raises whatever the connector raises; callers decide how to surface it.
    """
    base_args = dict(
        user=config["sf_user"],
        account=config["sf_account"],
        private_key=private_key_der(config["sf_private_key"]),
        warehouse=config["sf_warehouse"],
        database=config["sf_database"],
        schema=config["sf_schema"],
    )
    if config.get("sf_role"):
        base_args["role"] = config["sf_role"]

    return snowflake_connector.connect(**build_connection_args(base_args))


def get_service_account_connection():
    """Connection for the school's state store, configured in st.secrets."""
    secrets = st.secrets["snowflake_connect"]
    return connect_with_config(dict(secrets))
