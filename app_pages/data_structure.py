# app_pages/data_structure.py
"""
Data Structure admin page.

Overview for devs:
- Edits one class's field list (name / type / required / has photo), adds and
  deletes fields, moves them up/down. Moves use reorder_fields() so `order`
  stays 0..n-1.
- Edits live in a draft in st.session_state["structure_draft"][class_id]
  until "Save structure" is pressed; save goes through validate_structure()
  (non-empty, unique names).
- An unconfigured class starts from DEFAULT_CLASS_FIELDS. Imports into a
  class without a saved structure use the Student ID / First Name /
  Last Name default instead.
"""

import streamlit as st

from utils.import_data_helpers import files_failing_structure, save_class_structure
from utils.import_pipeline.errors import PersistenceError, ValidationError
from utils.import_pipeline.schema import (
    FIELD_TYPES,
    add_field,
    editor_starting_fields,
    remove_field,
    reorder_fields,
    update_field,
)
from utils.school_store import RecordNotFoundError
from utils.ui_helpers import select_class

TYPE_LABELS = {"text": "Text", "number": "Grade (number)", "date": "Date", "photo": "Photo"}


def _drafts() -> dict:
    return st.session_state.setdefault("structure_draft", {})


def _get_draft(school_class):
    drafts = _drafts()
    if school_class.id not in drafts:
        drafts[school_class.id] = editor_starting_fields(school_class.data_structure)
    return drafts[school_class.id]


def _set_draft(class_id, fields) -> None:
    _drafts()[class_id] = fields


def _render_field_row(class_id, fields, index, data_field) -> None:
    c_name, c_type, c_req, c_photo, c_up, c_down, c_del = st.columns([4, 2, 1, 1, 0.5, 0.5, 0.5])
    key = f"{class_id}_{data_field.id}"

    with c_name:
        name = st.text_input("Name", value=data_field.name, key=f"fname_{key}", label_visibility="collapsed")
    with c_type:
        field_type = st.selectbox(
            "Type",
            FIELD_TYPES,
            index=FIELD_TYPES.index(data_field.type),
            format_func=TYPE_LABELS.get,
            key=f"ftype_{key}",
            label_visibility="collapsed",
        )
    with c_req:
        required = st.checkbox("Required", value=data_field.required, key=f"freq_{key}")
    with c_photo:
        has_photo = st.checkbox(
            "Photo",
            value=data_field.has_photo,
            key=f"fphoto_{key}",
            disabled=field_type == "photo",
        )

    changes = {}
    if name != data_field.name:
        changes["name"] = name
    if field_type != data_field.type:
        changes["type"] = field_type
    if required != data_field.required:
        changes["required"] = required
    if has_photo != data_field.has_photo and field_type == data_field.type:
        changes["has_photo"] = has_photo
    if changes:
        _set_draft(class_id, update_field(fields, data_field.id, **changes))

    with c_up:
        if st.button("↑", key=f"fup_{key}", disabled=index == 0):
            _set_draft(class_id, reorder_fields(_get_draft_by_id(class_id), index, index - 1))
            st.rerun()
    with c_down:
        if st.button("↓", key=f"fdown_{key}", disabled=index == len(fields) - 1):
            _set_draft(class_id, reorder_fields(_get_draft_by_id(class_id), index, index + 1))
            st.rerun()
    with c_del:
        if st.button("🗑️", key=f"fdel_{key}"):
            _set_draft(class_id, remove_field(_get_draft_by_id(class_id), data_field.id))
            st.rerun()


def _get_draft_by_id(class_id):
    return _drafts()[class_id]


def render(store) -> None:
    st.header("Data Structure")

    try:
        cycles = store.list_cycles()
    except PersistenceError as e:
        st.error(str(e))
        return

    cycle, school_class = select_class(cycles, "structure")
    if school_class is None:
        return

    fields = _get_draft(school_class)
    st.caption(
        "Grade fields accept 12-15-13.5, 12/15/13.5 or 121513.5. "
        "Date fields accept DD/MM/YYYY or YYYY-MM-DD."
    )

    header = st.columns([4, 2, 1, 1, 0.5, 0.5, 0.5])
    for col, label in zip(header, ["Field name", "Type", "Required", "Photo"]):
        col.markdown(f"**{label}**")

    for index, data_field in enumerate(fields):
        _render_field_row(school_class.id, _get_draft_by_id(school_class.id), index, data_field)

    c_add, c_reset, c_save = st.columns([1, 1, 2])
    with c_add:
        if st.button("➕ Add field", key=f"fadd_{school_class.id}"):
            _set_draft(school_class.id, add_field(_get_draft_by_id(school_class.id)))
            st.rerun()
    with c_reset:
        if st.button("Discard changes", key=f"freset_{school_class.id}"):
            _drafts().pop(school_class.id, None)
            # widget state would otherwise re-apply the discarded edits
            for key in [k for k in st.session_state if str(k).startswith(("fname_", "ftype_", "freq_", "fphoto_"))]:
                if str(key).split("_", 1)[1].startswith(f"{school_class.id}_"):
                    del st.session_state[key]
            st.rerun()
    with c_save:
        if st.button("💾 Save structure", type="primary", key=f"fsave_{school_class.id}"):
            try:
                saved = save_class_structure(store, cycle.id, school_class.id, _get_draft_by_id(school_class.id))
                _set_draft(school_class.id, saved)
                st.success(f"Structure saved ({len(saved)} fields).")
                for imported_file, error in files_failing_structure(store, cycle.id, school_class.id):
                    st.warning(f"{imported_file.file_name} no longer matches this structure: {error}")
            except (ValidationError, PersistenceError, RecordNotFoundError) as e:
                st.error(str(e))
