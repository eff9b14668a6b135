# ------------ navigation_bar.py ------------

import streamlit as st
from streamlit_option_menu import option_menu
from nav.menu_styles import common_menu_styles, top_menu_styles

ADMIN_SECTIONS = ["Cycles", "Classes", "Data Structure", "Import Data", "School Settings"]


def render_navigation() -> str:
    """
    Top nav. Student Results is public; Admin asks for a login.
    Returns the selected label.
    """
    return option_menu(
        menu_title=None,
        options=["Student Results", "Admin"],
        icons=["mortarboard", "gear"],
        menu_icon="cast",
        default_index=0,
        orientation="horizontal",
        styles=top_menu_styles,
        key="main_nav",
    )


def render_admin_submenu() -> str:
    return option_menu(
        menu_title="",
        options=ADMIN_SECTIONS,
        icons=["diagram-3", "people", "list-columns", "cloud-upload", "building"],
        menu_icon="tools",
        default_index=0,
        orientation="horizontal",
        styles=common_menu_styles,
        key="admin_nav",
    )
