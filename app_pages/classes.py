# app_pages/classes.py

import streamlit as st
import pandas as pd

from utils.import_pipeline.errors import PersistenceError
from utils.school_store import RecordNotFoundError
from utils.ui_helpers import flash


def _classes_frame(cycle) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Class": c.name,
                "Enabled": c.enabled,
                "Fields": len(c.data_structure),
                "Imported files": len(c.imported_data),
            }
            for c in cycle.classes
        ],
        columns=["Class", "Enabled", "Fields", "Imported files"],
    )


def render(store) -> None:
    st.header("Classes")

    try:
        cycles = store.list_cycles()
    except PersistenceError as e:
        st.error(str(e))
        return
    if not cycles:
        st.info("Create a cycle first.")
        return

    by_id = {c.id: c for c in cycles}
    cycle_id = st.selectbox("Cycle", list(by_id), format_func=lambda cid: by_id[cid].name, key="classes_cycle")
    cycle = by_id[cycle_id]

    st.dataframe(_classes_frame(cycle), width="stretch", hide_index=True)

    with st.form(f"add_class_form_{cycle.id}", clear_on_submit=True):
        class_name = st.text_input("New class name")
        submit_add = st.form_submit_button("Add class", type="primary")

    if submit_add:
        try:
            store.add_class(cycle.id, class_name)
            flash(f"Class '{class_name.strip()}' added to {cycle.name}.")
            st.rerun()
        except (ValueError, PersistenceError, RecordNotFoundError) as e:
            st.error(str(e))

    if not cycle.classes:
        return

    # --- Enable / Disable ---
    with st.expander("⏯️ Enable / Disable Classes", expanded=False):
        with st.form(f"class_status_form_{cycle.id}"):
            enabled_ids = st.multiselect(
                "Enabled classes",
                [c.id for c in cycle.classes],
                default=[c.id for c in cycle.classes if c.enabled],
                format_func=lambda cid: cycle.get_class(cid).name,
            )
            submit_status = st.form_submit_button("Apply Changes", type="primary")

        if submit_status:
            changed = 0
            try:
                for school_class in cycle.classes:
                    wanted = school_class.id in enabled_ids
                    if wanted != school_class.enabled:
                        store.set_class_enabled(cycle.id, school_class.id, wanted)
                        changed += 1
                flash(f"Status updated for {changed} class(es).")
                st.rerun()
            except (PersistenceError, RecordNotFoundError) as e:
                st.error(str(e))

    # --- Delete ---
    with st.expander("🗑️ Delete Class", expanded=False):
        with st.form(f"delete_class_form_{cycle.id}", clear_on_submit=True):
            victim = st.selectbox(
                "Class to delete (cannot be undone)",
                [c.id for c in cycle.classes],
                format_func=lambda cid: cycle.get_class(cid).name,
            )
            confirm_text = st.text_input('Type "DELETE" to confirm')
            submit_delete = st.form_submit_button("Delete", type="secondary")

        if submit_delete:
            if confirm_text.strip().upper() != "DELETE":
                st.warning('Confirmation failed. Please type "DELETE" to proceed.')
            else:
                try:
                    store.remove_class(cycle.id, victim)
                    flash("Class deleted.")
                    st.rerun()
                except (PersistenceError, RecordNotFoundError) as e:
                    st.error(str(e))
