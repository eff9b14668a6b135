import streamlit as st

# auth/login.py
def fetch_admin_credentials():
    """
    Build streamlit_authenticator credentials from st.secrets.

        [auth.admins.jdoe]
        name = "Jane Doe"
        email = "jdoe@school.org"
        password = "$2b$12$..."   # bcrypt hash

    Usernames are lower-cased; entries without a password hash are skipped.
    """
    creds = {"usernames": {}}
    admins = st.secrets.get("auth", {}).get("admins", {})
    for username, entry in admins.items():
        hashed = str(entry.get("password", "")).strip()
        if not hashed:
            continue
        username_lc = str(username).strip().lower()
        creds["usernames"][username_lc] = {
            "email": entry.get("email", ""),
            "name": entry.get("name") or username_lc,
            "password": hashed,   # keep as hashed; do NOT plaintext here
        }
    return creds


def auth_cookie_settings():
    """(cookie_name, cookie_key, cookie_expiry_days) from [auth]."""
    auth = st.secrets.get("auth", {})
    return (
        auth.get("cookie_name", "edumanager_token"),
        auth["cookie_key"],
        float(auth.get("cookie_expiry_days", 1)),
    )
