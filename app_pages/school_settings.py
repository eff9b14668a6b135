# app_pages/school_settings.py

import streamlit as st

from utils.import_pipeline.errors import PersistenceError
from utils.school_models import SchoolSettings
from utils.ui_helpers import add_logo, flash, logo_to_data_url


def render(store) -> None:
    st.header("School Settings")

    try:
        settings = store.load_settings()
    except PersistenceError as e:
        st.error(str(e))
        return

    image = add_logo(settings.logo, width=160)
    if image:
        st.image(image, caption="Current logo")

    with st.form("school_settings_form"):
        name = st.text_input("School name", value=settings.name)
        logo_file = st.file_uploader("Logo (PNG, JPEG, GIF)", type=["png", "jpg", "jpeg", "gif"])
        remove_logo = st.checkbox("Remove current logo", value=False)
        submit = st.form_submit_button("Save", type="primary")

    if not submit:
        return

    logo = "" if remove_logo else settings.logo
    if logo_file is not None:
        try:
            logo = logo_to_data_url(logo_file.getvalue())
        except ValueError as e:
            st.error(str(e))
            return

    try:
        store.save_settings(SchoolSettings(name=name, logo=logo))
    except (ValueError, PersistenceError) as e:
        st.error(str(e))
        return

    flash("Settings saved.")
    st.rerun()
