# ------------------ edumanager.py -------------------
"""
EduManager - Main App Entrypoint

Overview for devs:
- Header: school logo + name from the school store (School Settings page).
- Top navigation: "Student Results" (public) and "Admin".
- Admin requires a streamlit_authenticator login; credentials come from
  st.secrets["auth"] (see auth/login.py).
- The SchoolStore is built once per server process (get_school_store) and
  handed to every page's render(store).

Key notes:
- Deep-link protection: the admin router only runs when authentication_status
  is True for this session.
- PersistenceError while loading the header is shown once; the pages still
  render their own errors.
"""

import importlib
import logging

import streamlit as st
import streamlit_authenticator as stauth

from auth.login import auth_cookie_settings, fetch_admin_credentials
from nav.navigation_bar import render_admin_submenu, render_navigation
from utils.import_pipeline.errors import PersistenceError
from utils.logout_utils import handle_logout
from utils.school_models import SchoolSettings
from utils.school_store import get_school_store
from utils.ui_helpers import add_logo, show_flashes

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

ADMIN_ROUTES = {
    "Cycles": "app_pages.cycles",
    "Classes": "app_pages.classes",
    "Data Structure": "app_pages.data_structure",
    "Import Data": "app_pages.import_data",
    "School Settings": "app_pages.school_settings",
}


def _safe_import(module_path: str):
    """Lazy-import a page module by dotted path (e.g. 'app_pages.cycles')."""
    return importlib.import_module(module_path)


# ---------------- Page Config & Global Styles ----------------
st.set_page_config(
    page_title="EduManager",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
        .block-container {
            padding-top: 1rem;
            padding-bottom: 0rem;
            padding-left: 4rem;
            padding-right: 4rem;
        }
        h1 { font-size: 1.75rem !important; }
        #MainMenu, footer {visibility: hidden;}
    </style>
    """,
    unsafe_allow_html=True,
)


# ---------------- Header ----------------
def render_header(store) -> None:
    try:
        settings = store.load_settings()
    except PersistenceError as e:
        st.warning(str(e))
        settings = SchoolSettings()

    logo_col, name_col = st.columns([1, 8])
    with logo_col:
        image = add_logo(settings.logo, width=80)
        if image:
            st.image(image)
    with name_col:
        st.title(settings.name)


# ---------------- Admin ----------------
def render_admin(store) -> None:
    credentials = fetch_admin_credentials()
    if not credentials["usernames"]:
        st.error("No administrator is configured. Add [auth.admins.<username>] to the app secrets.")
        return

    cookie_name, cookie_key, cookie_expiry_days = auth_cookie_settings()
    authenticator = stauth.Authenticate(
        credentials,
        cookie_name,
        cookie_key,
        cookie_expiry_days=cookie_expiry_days,
    )
    authenticator.login(location="main")
    auth_status = st.session_state.get("authentication_status")

    if auth_status is False:
        st.error("Username or password incorrect")
        return
    if auth_status is None:
        st.warning("Please enter your username and password")
        return

    with st.sidebar:
        st.success(f"Welcome, {st.session_state.get('name') or st.session_state.get('username')}!")
        handle_logout(authenticator, cookie_name=cookie_name)

    admin_page = render_admin_submenu()
    route = ADMIN_ROUTES.get(admin_page)
    if not route:
        st.warning("Invalid admin selection.")
        return
    _safe_import(route).render(store)


# ---------------- Main ----------------
def main():
    """Header → nav → router."""
    try:
        store = get_school_store()
    except Exception as e:
        logging.exception("School store could not be initialised")
        st.error("The school database is not reachable. Please try again later.")
        if str(st.secrets.get("environment", "")).lower() == "dev":
            st.exception(e)
        return

    render_header(store)
    show_flashes()

    selected_main = render_navigation()
    if selected_main == "Student Results":
        _safe_import("app_pages.student_results").render(store)
        return

    if selected_main == "Admin":
        render_admin(store)
        return

    st.warning("Unknown menu selection.")


if __name__ == "__main__":
    main()
