# nav/menu_styles.py

import streamlit as st

# "light" or "dark"
theme = st.get_option("theme.base")

if theme == "dark":
    _container_bg, _icon, _text, _selected = "#1E1E1E", "#9CC3E6", "#FFFFFF", "#333333"
else:
    _container_bg, _icon, _text, _selected = "#F4F7FB", "#2F6DB5", "#000000", "#C9DDF2"

common_menu_styles = {
    "container": {"padding": "0!important", "background-color": _container_bg},
    "icon": {"color": _icon, "font-size": "14px"},
    "nav-link": {
        "font-size": "12px",
        "color": _text,
        "text-align": "center",
        "margin": "0px",
        "font-weight": "500",
    },
    "nav-link-selected": {"background-color": _selected, "color": _text},
}

top_menu_styles = {
    **common_menu_styles,
    "container": {**common_menu_styles["container"], "justify-content": "left"},
}
