# --- app_pages/import_data.py ---

import streamlit as st

from app_pages.import_data_sections import (
    render_files_section,
    render_grid_section,
    render_upload_section,
)
from utils.import_pipeline.errors import PersistenceError
from utils.ui_helpers import select_class


def render(store):
    st.header("Import Data")

    try:
        cycles = store.list_cycles()
    except PersistenceError as e:
        st.error(str(e))
        return

    cycle, school_class = select_class(cycles, "import")
    if school_class is None:
        return

    with st.expander("Upload results", expanded=True):
        render_upload_section(store, cycle, school_class)

    # reload so a file imported above shows up in the table
    try:
        school_class = store.get_class(cycle.id, school_class.id)
    except PersistenceError as e:
        st.error(str(e))
        return

    render_files_section(store, cycle, school_class)
    st.markdown("<hr>", unsafe_allow_html=True)
    render_grid_section(store, cycle, school_class)
