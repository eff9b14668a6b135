# ------------- student_results.py ----------------
"""
Student Results Page (public)

Overview for future devs:
- Lookup form: cycle + class (enabled ones only) + Student ID. The ID must be
  present in the class's latest import (lookup_student).
- Once found, the student id + class are kept in st.session_state
  ["student_session"] so changing the period does not ask again.
- Sections:
  1) Period selector over the class's imports (newest first)
  2) Results table: class mark / departmental mark / average per subject
  3) Averages over time (altair line chart)

Notes:
- Subjects are the class's number-typed fields.
"""

import altair as alt
import streamlit as st

from utils.import_pipeline.errors import PersistenceError
from utils.import_pipeline.periods import period_label
from utils.results_helpers import (
    find_student_row,
    grade_fields,
    lookup_student,
    progress_frame,
    results_table,
    sort_imports,
)
from utils.school_store import RecordNotFoundError
from utils.ui_helpers import select_class

SESSION_KEY = "student_session"


def _render_lookup(cycles) -> None:
    st.subheader("Access your results")
    cycle, school_class = select_class(cycles, "student", enabled_only=True)

    with st.form("student_lookup_form"):
        student_id = st.text_input("Student ID")
        submit = st.form_submit_button("View results", type="primary")

    if not submit:
        return

    try:
        lookup_student(cycle, school_class, student_id)
    except LookupError as e:
        st.error(str(e))
        return

    st.session_state[SESSION_KEY] = {
        "cycle_id": cycle.id,
        "class_id": school_class.id,
        "student_id": student_id.strip(),
    }
    st.rerun()


def _render_results(store, session) -> None:
    try:
        school_class = store.get_class(session["cycle_id"], session["class_id"])
    except (PersistenceError, RecordNotFoundError) as e:
        st.error(str(e))
        st.session_state.pop(SESSION_KEY, None)
        return

    student_id = session["student_id"]
    imports = sort_imports(school_class.imported_data)

    c_title, c_back = st.columns([4, 1])
    with c_title:
        st.subheader(f"{school_class.name} · {student_id}")
    with c_back:
        if st.button("⬅️ Back"):
            st.session_state.pop(SESSION_KEY, None)
            st.rerun()

    if not imports:
        st.warning("Données non disponibles")
        return

    labels = {f.id: period_label(f.period) for f in imports}
    file_id = st.selectbox("Period", list(labels), format_func=labels.get, key="student_period")
    current = next(f for f in imports if f.id == file_id)

    row = find_student_row(current, student_id)
    if row is None:
        st.warning("Données non disponibles pour cette période")
        return

    first, last = row.get("First Name", ""), row.get("Last Name", "")
    if first or last:
        st.markdown(f"**{first} {last}**".strip())

    subjects = grade_fields(school_class)
    if not subjects:
        st.info("No grade fields are configured for this class.")
        return

    st.dataframe(results_table(row, subjects), width="stretch", hide_index=True)

    progress = progress_frame(imports, student_id, subjects)
    if progress.empty:
        return

    st.markdown("#### Évolution des moyennes")
    chart = (
        alt.Chart(progress)
        .mark_line(point=True)
        .encode(
            x=alt.X("Period Label:N", title="Period", sort=list(dict.fromkeys(progress["Period Label"]))),
            y=alt.Y("Average:Q", title="Average", scale=alt.Scale(domain=[0, 20])),
            color=alt.Color("Subject:N", title="Subject"),
            tooltip=["Subject", "Period Label", "Average"],
        )
        .properties(height=320)
    )
    st.altair_chart(chart, use_container_width=True)


def render(store) -> None:
    """Entry point for the Student Results page."""
    try:
        cycles = store.list_cycles()
    except PersistenceError as e:
        st.error(str(e))
        return

    session = st.session_state.get(SESSION_KEY)
    if session:
        _render_results(store, session)
    else:
        _render_lookup(cycles)
