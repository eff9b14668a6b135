# ---------------- import_data_sections.py ----------------
"""
Import Data Streamlit sections

Overview for future devs:
- render_upload_section()
    * Period type + period pick, file upload (CSV / XLS / XLSX)
    * Calls import_uploaded_file(): type check -> decode -> validate -> persist
    * Shows the record count, or the first validation error
- render_files_section()
    * Table of the class's imported files, newest first
    * Per-file actions: edit in grid, download CSV/XLSX, delete
- render_grid_section()
    * st.data_editor over an EditableGrid kept in st.session_state["grid_state"]
    * Cell edits are applied through EditableGrid.set_cell(); add/delete row
      use the grid's own operations so "new row" flags follow the rows
    * Save re-validates every row; on failure the edits stay on screen

Notes:
- Heavy lifting lives in utils.import_data_helpers and utils.import_pipeline.
- The uploader sits in a form so picking a file does not rerun the page.
"""

import pandas as pd
import streamlit as st

from utils.import_data_helpers import (
    build_grid,
    delete_imported_file,
    export_imported_file,
    import_uploaded_file,
    save_grid_edits,
)
from utils.import_pipeline.decoders import EXPORT_FORMATS
from utils.import_pipeline.errors import (
    DecodeError,
    InvalidFileTypeError,
    PersistenceError,
    ValidationError,
)
from utils.import_pipeline.periods import PERIOD_TYPES, PERIODS, period_label
from utils.results_helpers import sort_imports
from utils.school_store import RecordNotFoundError
from utils.ui_helpers import download_payload, flash, show_unexpected_error

NEW_ROW_MARKER = "🆕"


# ---------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------

def render_upload_section(store, cycle, school_class) -> None:
    st.subheader("Upload results")
    st.caption(
        "Accepted files: CSV, XLS, XLSX. The first row must hold the column names "
        "of the class data structure."
    )

    type_labels = dict(PERIOD_TYPES)
    period_type = st.radio(
        "Period type",
        list(type_labels),
        format_func=type_labels.get,
        horizontal=True,
        key=f"period_type_{school_class.id}",
    )

    with st.form(f"upload_form_{school_class.id}", clear_on_submit=True):
        options = PERIODS[period_type]
        labels = dict(options)
        period = st.selectbox("Period", [pid for pid, _ in options], format_func=labels.get)
        uploaded = st.file_uploader("Choose a file", type=["csv", "xls", "xlsx"])
        submit_upload = st.form_submit_button("Import", type="primary")

    if not submit_upload:
        return
    if uploaded is None:
        st.warning("Please select a file to import.")
        return

    try:
        with st.spinner("Importing…"):
            imported_file, result = import_uploaded_file(
                store,
                cycle.id,
                school_class.id,
                file_name=uploaded.name,
                mime_type=uploaded.type,
                data=uploaded.getvalue(),
                period=period,
            )
    except InvalidFileTypeError as e:
        st.error(str(e))
        return
    except (DecodeError, ValidationError) as e:
        st.error(f"Import failed: {e}")
        return
    except (PersistenceError, RecordNotFoundError) as e:
        st.error(str(e))
        return

    for warning in result.warnings:
        st.warning(warning)
    st.success(
        f"{imported_file.record_count} records imported from {imported_file.file_name} "
        f"for {period_label(imported_file.period)}."
    )


# ---------------------------------------------------------------------
# Imported files
# ---------------------------------------------------------------------

def _files_frame(imports) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "File": f.file_name,
                "Period": period_label(f.period),
                "Uploaded": (f.upload_date or "")[:16].replace("T", " "),
                "Records": f.record_count,
                "Status": f.status,
            }
            for f in imports
        ],
        columns=["File", "Period", "Uploaded", "Records", "Status"],
    )


def _render_downloads(imported_file) -> None:
    cols = st.columns(len(EXPORT_FORMATS))
    for col, fmt in zip(cols, EXPORT_FORMATS):
        with col:
            try:
                payload, name, mime = export_imported_file(imported_file, fmt)
            except ValidationError as e:
                st.caption(str(e))
                return
            download_payload(
                payload,
                name,
                mime,
                label=f"⬇️ {fmt.upper()}",
                key=f"dl_{fmt}_{imported_file.id}",
            )


def render_files_section(store, cycle, school_class) -> None:
    st.subheader("Imported files")
    imports = sort_imports(school_class.imported_data)
    if not imports:
        st.info("No file imported for this class yet.")
        return

    st.dataframe(_files_frame(imports), width="stretch", hide_index=True)

    labels = {f.id: f"{f.file_name} · {period_label(f.period)}" for f in imports}
    file_id = st.selectbox(
        "File",
        list(labels),
        format_func=labels.get,
        key=f"file_pick_{school_class.id}",
    )
    imported_file = next(f for f in imports if f.id == file_id)

    c_edit, c_dl, c_del = st.columns([1, 2, 2])
    with c_edit:
        if st.button("✏️ Edit", key=f"edit_{file_id}"):
            st.session_state["grid_state"] = {
                "file_id": file_id,
                "class_id": school_class.id,
                "grid": build_grid(store, cycle.id, school_class.id, file_id),
                "rev": 0,
            }
            st.rerun()
    with c_dl:
        _render_downloads(imported_file)
    with c_del:
        with st.form(f"delete_file_form_{file_id}", clear_on_submit=True):
            confirm_text = st.text_input('Type "DELETE" to remove this file')
            submit_delete = st.form_submit_button("Delete file", type="secondary")

    if submit_delete:
        if confirm_text.strip().upper() != "DELETE":
            st.warning('Confirmation failed. Please type "DELETE" to proceed.')
            return
        try:
            delete_imported_file(store, cycle.id, school_class.id, file_id)
        except (PersistenceError, RecordNotFoundError) as e:
            st.error(str(e))
            return
        state = st.session_state.get("grid_state")
        if state and state["file_id"] == file_id:
            st.session_state.pop("grid_state", None)
        flash("File deleted.")
        st.rerun()


# ---------------------------------------------------------------------
# Editable grid
# ---------------------------------------------------------------------

def _grid_frame(grid) -> pd.DataFrame:
    columns = grid.columns
    records = []
    for index, row in enumerate(grid.rows):
        record = {NEW_ROW_MARKER: NEW_ROW_MARKER if grid.is_new_row(index) else ""}
        for col in columns:
            value = row.get(col, "")
            record[col] = "" if value is None else str(value)
        records.append(record)
    return pd.DataFrame(records, columns=[NEW_ROW_MARKER] + columns, dtype=object)


def _editor_key(state) -> str:
    return f"grid_editor_{state['file_id']}_{state['rev']}"


def _apply_editor_changes(state) -> None:
    """on_change: push st.data_editor cell edits into the grid."""
    grid = state["grid"]
    changes = st.session_state.get(_editor_key(state), {}).get("edited_rows", {})
    rows = grid.rows
    rejected = False
    for row_index, edits in changes.items():
        row_index = int(row_index)
        for col, value in edits.items():
            if col == NEW_ROW_MARKER:
                continue
            value = "" if value is None else value
            if str(rows[row_index].get(col, "")) == str(value):
                continue
            if not grid.is_cell_editable(row_index, col):
                rejected = True
                continue
            grid.set_cell(row_index, col, value)

    if rejected:
        flash(f"The {grid.id_field} of a saved row cannot be changed.", "warning")
        # redraw the editor from the grid so the refused value disappears
        _bump_layout(state)


def _bump_layout(state) -> None:
    # row positions changed; the editor's index-based deltas must start over
    state["rev"] += 1


def render_grid_section(store, cycle, school_class) -> None:
    state = st.session_state.get("grid_state")
    if not state or state.get("class_id") != school_class.id:
        return

    grid = state["grid"]
    st.subheader("Edit imported data")
    st.caption(
        "New rows (🆕) need a Student ID; saved rows keep theirs. Grades and dates are checked and "
        "normalized when you save."
    )

    st.data_editor(
        _grid_frame(grid),
        key=_editor_key(state),
        num_rows="fixed",
        hide_index=True,
        width="stretch",
        disabled=[NEW_ROW_MARKER],
        on_change=_apply_editor_changes,
        args=(state,),
    )

    c_add, c_pick, c_del = st.columns([1, 2, 1])
    with c_add:
        if st.button("➕ Add row", key=f"grid_add_{state['file_id']}"):
            grid.add_row()
            _bump_layout(state)
            st.rerun()
    with c_pick:
        rows = grid.rows
        delete_index = st.selectbox(
            "Row to delete",
            list(range(len(rows))),
            format_func=lambda i: f"Row {i + 1} · {rows[i].get(grid.id_field, '') or '(no ID)'}",
            key=f"grid_pick_{state['file_id']}_{state['rev']}",
        ) if rows else None
    with c_del:
        if st.button("🗑️ Delete row", key=f"grid_del_{state['file_id']}", disabled=delete_index is None):
            grid.delete_row(delete_index)
            _bump_layout(state)
            st.rerun()

    c_save, c_close = st.columns([1, 1])
    with c_save:
        submit_save = st.button("💾 Save changes", type="primary", key=f"grid_save_{state['file_id']}")
    with c_close:
        if st.button("Close editor", key=f"grid_close_{state['file_id']}"):
            st.session_state.pop("grid_state", None)
            st.rerun()

    if not submit_save:
        return

    try:
        saved = save_grid_edits(store, cycle.id, school_class.id, state["file_id"], grid)
    except ValidationError as e:
        st.error(str(e))
        return
    except (PersistenceError, RecordNotFoundError) as e:
        st.error(f"{e} Your validated changes are kept; press Save again to retry.")
        return
    except Exception as e:
        show_unexpected_error("Saving the edited rows failed.", e)
        return

    _bump_layout(state)
    flash(f"Changes saved ({saved.record_count} records).")
    st.rerun()
