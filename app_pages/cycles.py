# app_pages/cycles.py
"""
Cycles admin page (form-driven).

- Add a cycle, rename it, enable/disable it, delete it with a typed "DELETE"
  confirmation (its classes and imported files go with it).
- Disabled cycles are hidden from the Student Results page.
"""

import streamlit as st

from utils.import_pipeline.errors import PersistenceError
from utils.school_store import RecordNotFoundError
from utils.ui_helpers import flash


def _render_cycle(store, cycle) -> None:
    status = "✅ enabled" if cycle.enabled else "⏸️ disabled"
    with st.expander(f"{cycle.name} · {len(cycle.classes)} class(es) · {status}", expanded=False):
        with st.form(f"rename_cycle_{cycle.id}"):
            new_name = st.text_input("Cycle name", value=cycle.name)
            enabled = st.checkbox("Enabled", value=cycle.enabled)
            submit_update = st.form_submit_button("Save", type="primary")

        if submit_update:
            try:
                if new_name.strip() != cycle.name:
                    store.rename_cycle(cycle.id, new_name)
                if enabled != cycle.enabled:
                    store.set_cycle_enabled(cycle.id, enabled)
                flash("Cycle updated.")
                st.rerun()
            except (ValueError, PersistenceError, RecordNotFoundError) as e:
                st.error(str(e))

        with st.form(f"delete_cycle_{cycle.id}", clear_on_submit=True):
            confirm_text = st.text_input('Type "DELETE" to remove this cycle and all its classes')
            submit_delete = st.form_submit_button("Delete cycle", type="secondary")

        if submit_delete:
            if confirm_text.strip().upper() != "DELETE":
                st.warning('Confirmation failed. Please type "DELETE" to proceed.')
            else:
                try:
                    store.delete_cycle(cycle.id)
                    flash(f"Cycle '{cycle.name}' deleted.")
                    st.rerun()
                except (PersistenceError, RecordNotFoundError) as e:
                    st.error(str(e))


def render(store) -> None:
    st.header("Cycles")

    with st.form("add_cycle_form", clear_on_submit=True):
        name = st.text_input("New cycle name", placeholder="Nouveau Cycle")
        submit_add = st.form_submit_button("Add cycle", type="primary")

    if submit_add:
        try:
            cycle = store.add_cycle(name or "Nouveau Cycle")
            st.success(f"Cycle '{cycle.name}' added.")
        except PersistenceError as e:
            st.error(str(e))

    try:
        cycles = store.list_cycles()
    except PersistenceError as e:
        st.error(str(e))
        return

    if not cycles:
        st.info("No cycles yet.")
        return

    for cycle in cycles:
        _render_cycle(store, cycle)
