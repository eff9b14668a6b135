# utils/results_helpers.py
"""
Student results helpers (public Student Results page).

- A student "logs in" with cycle + class + Student ID; the ID is looked up in
  the class's most recent import.
- Grades are stored canonical ("12-15-13.5"); split_grade() turns them into
  class mark / departmental mark / average for display.
- Everything here is Streamlit-free; the page renders the DataFrames.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from utils.import_pipeline.normalizers import split_grade
from utils.import_pipeline.periods import period_label
from utils.import_pipeline.schema import STUDENT_ID_FIELD, sorted_fields
from utils.school_models import Cycle, ImportedFile, SchoolClass

RESULT_COLUMNS = ["Matière", "Devoir de Classe", "Devoir Départemental", "Moyenne"]


def sort_imports(imported_data: List[ImportedFile]) -> List[ImportedFile]:
    """Newest upload first (ISO timestamps sort lexically)."""
    return sorted(imported_data or [], key=lambda f: f.upload_date or "", reverse=True)


def latest_import(school_class: SchoolClass) -> Optional[ImportedFile]:
    imports = sort_imports(school_class.imported_data)
    return imports[0] if imports else None


def find_student_row(imported_file: Optional[ImportedFile], student_id: str) -> Optional[Dict[str, Any]]:
    if imported_file is None or not imported_file.content:
        return None
    wanted = str(student_id or "").strip()
    for row in imported_file.content:
        if str(row.get(STUDENT_ID_FIELD, "")).strip() == wanted:
            return row
    return None


def grade_fields(school_class: SchoolClass) -> List[str]:
    """Names of the number-typed (grade) fields, in structure order."""
    return [f.name for f in sorted_fields(school_class.data_structure) if f.type == "number"]


def lookup_student(cycle: Optional[Cycle], school_class: Optional[SchoolClass], student_id: str) -> Dict[str, Any]:
    """
    Resolve a student's row in the class's latest import.

    Raises:
        LookupError: with the message shown on the login form.
    """
    if cycle is None or school_class is None or not str(student_id or "").strip():
        raise LookupError("Veuillez remplir tous les champs")

    if not school_class.imported_data:
        raise LookupError("Aucune donnée disponible pour cette classe")

    latest = latest_import(school_class)
    if latest is None or not latest.content:
        raise LookupError("Données de classe non disponibles")

    row = find_student_row(latest, student_id)
    if row is None:
        raise LookupError("Identifiant étudiant non trouvé dans cette classe")
    return row


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


def results_table(row: Dict[str, Any], subjects: List[str]) -> pd.DataFrame:
    """One line per subject: class mark, departmental mark, average (1 decimal)."""
    records = []
    for subject in subjects:
        class_mark, dept_mark, average = split_grade(row.get(subject))
        records.append({
            RESULT_COLUMNS[0]: subject,
            RESULT_COLUMNS[1]: _fmt(class_mark),
            RESULT_COLUMNS[2]: _fmt(dept_mark),
            RESULT_COLUMNS[3]: _fmt(average),
        })
    return pd.DataFrame(records, columns=RESULT_COLUMNS)


def progress_frame(imports: List[ImportedFile], student_id: str, subjects: List[str]) -> pd.DataFrame:
    """
    Long-format averages per period for a line chart.

    Columns: Period, Period Label, Subject, Average. Periods where the student
    is absent (or the subject is blank) are skipped. Oldest period first.
    """
    records = []
    for imported_file in reversed(sort_imports(imports)):
        row = find_student_row(imported_file, student_id)
        if row is None:
            continue
        for subject in subjects:
            _, _, average = split_grade(row.get(subject))
            if average is None:
                continue
            records.append({
                "Period": imported_file.period,
                "Period Label": period_label(imported_file.period),
                "Subject": subject,
                "Average": round(average, 1),
            })
    return pd.DataFrame(records, columns=["Period", "Period Label", "Subject", "Average"])
