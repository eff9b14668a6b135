import pytest

from utils.import_pipeline.schema import DataField
from utils.results_helpers import (
    RESULT_COLUMNS,
    find_student_row,
    grade_fields,
    latest_import,
    lookup_student,
    progress_frame,
    results_table,
    sort_imports,
)
from utils.school_models import Cycle, ImportedFile, SchoolClass


def _file(file_id, period, upload_date, rows):
    return ImportedFile(
        id=file_id,
        file_name=f"{period}.csv",
        period=period,
        upload_date=upload_date,
        record_count=len(rows),
        content=rows,
    )


@pytest.fixture
def school_class():
    return SchoolClass(
        id="c1",
        name="CP",
        data_structure=[
            DataField(id="1", name="Student ID", order=0),
            DataField(id="3", name="French", type="number", order=2),
            DataField(id="2", name="Maths", type="number", order=1),
        ],
        imported_data=[
            _file("f1", "Q1", "2024-01-10T08:00:00.000Z", [{"Student ID": "S1", "Maths": "10-12-11", "French": "14"}]),
            _file("f3", "Q3", "2024-07-10T08:00:00.000Z", [{"Student ID": " S1 ", "Maths": "16-14", "French": ""}]),
            _file("f2", "Q2", "2024-04-10T08:00:00.000Z", [{"Student ID": "S2", "Maths": "09-09-09"}]),
        ],
    )


@pytest.fixture
def cycle(school_class):
    return Cycle(id="1", name="École Primaire", classes=[school_class])


def test_imports_are_sorted_newest_first(school_class):
    assert [f.id for f in sort_imports(school_class.imported_data)] == ["f3", "f2", "f1"]
    assert latest_import(school_class).id == "f3"


def test_student_lookup_trims_identifiers(cycle, school_class):
    assert lookup_student(cycle, school_class, "S1 ")["Maths"] == "16-14"


@pytest.mark.parametrize("student_id, message", [
    ("", "Veuillez remplir tous les champs"),
    ("S2", "Identifiant étudiant non trouvé dans cette classe"),
])
def test_student_lookup_errors(cycle, school_class, student_id, message):
    with pytest.raises(LookupError, match=message):
        lookup_student(cycle, school_class, student_id)


def test_lookup_without_imports(cycle):
    empty = SchoolClass(id="c2", name="CE1")
    with pytest.raises(LookupError, match="Aucune donnée disponible pour cette classe"):
        lookup_student(cycle, empty, "S1")


def test_grade_fields_follow_structure_order(school_class):
    assert grade_fields(school_class) == ["Maths", "French"]


def test_results_table_formats_one_decimal(school_class):
    row = find_student_row(school_class.imported_data[1], "S1")

    table = results_table(row, ["Maths", "French"])

    assert list(table.columns) == RESULT_COLUMNS
    assert table.values.tolist() == [
        ["Maths", "16.0", "14.0", "15.0"],
        ["French", "-", "-", "-"],
    ]


def test_progress_frame_is_oldest_first_and_skips_absent_periods(school_class):
    frame = progress_frame(school_class.imported_data, "S1", ["Maths", "French"])

    assert frame[["Period", "Subject", "Average"]].values.tolist() == [
        ["Q1", "Maths", 11.0],
        ["Q1", "French", 14.0],
        ["Q3", "Maths", 15.0],
    ]
    assert frame["Period Label"].tolist()[0] == "Quarter 1"
