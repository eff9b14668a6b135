# utils/logout_utils.py
"""
Logout Utilities

- Wraps streamlit_authenticator.logout() so an already-expired auth cookie
  (KeyError on the cookie name) still logs the admin out.
- Clears the admin session keys either way.
"""

from __future__ import annotations

import logging

import streamlit as st

# Cleared when the admin logs out.
AUTH_SESSION_KEYS = [
    "authentication_status",
    "name",
    "username",
    "admin_section",
    "grid_file_id",
    "grid_state",
    "structure_draft",
]


def _clear_auth_session() -> None:
    for key in AUTH_SESSION_KEYS:
        st.session_state.pop(key, None)


def handle_logout(authenticator, cookie_name="edumanager_token") -> None:
    if authenticator is None:
        return

    try:
        did_logout = authenticator.logout("Logout", "sidebar", key="logout_key")

        if did_logout:
            _clear_auth_session()
            st.rerun()

    except KeyError as e:
        missing = str(e).strip("'\"")
        if missing == cookie_name:
            _clear_auth_session()
            st.warning("Your session had already expired. Logging you out.")
            st.rerun()
        else:
            st.error(f"Unexpected logout error (missing key: {missing}). Please refresh.")

    except Exception as e:
        logging.exception("Logout failed")
        st.error("An unexpected error occurred while logging out. Please refresh.")
        if str(st.secrets.get("environment", "")).lower() == "dev":
            st.exception(e)
