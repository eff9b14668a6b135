from io import BytesIO

import pandas as pd
import pytest

from utils.import_data_helpers import (
    build_grid,
    delete_imported_file,
    export_imported_file,
    files_failing_structure,
    import_uploaded_file,
    save_class_structure,
    save_grid_edits,
)
from utils.import_pipeline.decoders import CSV_MIME, XLSX_MIME
from utils.import_pipeline.errors import (
    DecodeError,
    InvalidFileTypeError,
    PersistenceError,
    ValidationError,
)
from utils.import_pipeline.schema import DataField


def _upload(store, ids, data, name="grades.csv", mime=CSV_MIME, period="Q1"):
    cycle_id, class_id = ids
    return import_uploaded_file(store, cycle_id, class_id, name, mime, data, period)


def test_valid_upload_is_normalized_and_persisted(store, configured_class, make_csv):
    data = make_csv(
        "Student ID,First Name,Birth Date,Maths,French",
        "S1,Ada,2012-05-04,121513.5,14",
        "S2,Bob,04/06/2012,10/12/11,",
    )

    imported, result = _upload(store, configured_class, data)

    assert result.is_valid
    assert imported.record_count == 2
    stored = store.get_imported_file(*configured_class, imported.id)
    assert stored.period == "Q1"
    assert stored.content[0]["Maths"] == "12-15-13.5"
    assert stored.content[0]["Birth Date"] == "04/05/2012"
    assert stored.content[1]["Maths"] == "10-12-11"


def test_invalid_row_rejects_the_whole_file(store, configured_class, make_csv):
    data = make_csv(
        "Student ID,First Name,Maths",
        "S1,Ada,12-15-13.5",
        "S2,Bob,abc",
    )

    with pytest.raises(ValidationError, match="Row 2: Invalid grade format for Maths"):
        _upload(store, configured_class, data)

    assert store.get_class(*configured_class).imported_data == []


def test_missing_required_column(store, configured_class, make_csv):
    with pytest.raises(ValidationError, match="Missing required fields: Maths"):
        _upload(store, configured_class, make_csv("Student ID,First Name", "S1,Ada"))


def test_unconfigured_class_uses_default_structure(store, make_csv):
    data = make_csv("Student ID,First Name,Last Name", "S1,Ada,Lovelace")
    imported, _ = _upload(store, ("1", "2"), data)
    assert imported.content == [{"Student ID": "S1", "First Name": "Ada", "Last Name": "Lovelace"}]

    with pytest.raises(ValidationError, match="Missing required fields: Last Name"):
        _upload(store, ("1", "2"), make_csv("Student ID,First Name", "S1,Ada"))


def test_wrong_file_type_is_rejected_before_any_read(store, configured_class, monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("decoder must not run")

    monkeypatch.setattr("utils.import_data_helpers.decode_file", _fail)
    with pytest.raises(InvalidFileTypeError):
        _upload(store, configured_class, b"%PDF-1.4", name="report.pdf", mime="application/pdf")


def test_empty_file(store, configured_class):
    with pytest.raises(DecodeError):
        _upload(store, configured_class, b"")


def test_header_only_file_has_no_data(store, configured_class, make_csv):
    with pytest.raises(ValidationError, match="No data found in the file"):
        _upload(store, configured_class, make_csv("Student ID,First Name,Maths"))


def test_period_is_required(store, configured_class, make_csv):
    with pytest.raises(ValidationError, match="period"):
        _upload(store, configured_class, make_csv("Student ID", "S1"), period="")


def test_persistence_failure_surfaces_after_validation(store, configured_class, make_csv, monkeypatch):
    def _down(*args, **kwargs):
        raise PersistenceError("Could not save your changes. Please try again.")

    monkeypatch.setattr(store, "append_imported_file", _down)
    with pytest.raises(PersistenceError):
        _upload(store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"))


def test_xlsx_upload(store, configured_class):
    buffer = BytesIO()
    df = pd.DataFrame({"Student ID": ["S1"], "First Name": ["Ada"], "Maths": [15]})
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False)

    imported, _ = _upload(store, configured_class, buffer.getvalue(), name="grades.xlsx", mime=XLSX_MIME)

    assert imported.content == [{"Student ID": "S1", "First Name": "Ada", "Maths": "15"}]


def test_grid_edits_replace_content(store, configured_class, make_csv):
    imported, _ = _upload(store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"))
    grid = build_grid(store, *configured_class, imported.id)

    index = grid.add_row()
    grid.set_cell(index, "Student ID", "S2")
    grid.set_cell(index, "First Name", "Bob")
    grid.set_cell(index, "Maths", "12/14/13")
    updated = save_grid_edits(store, *configured_class, imported.id, grid)

    assert updated.record_count == 2
    stored = store.get_imported_file(*configured_class, imported.id)
    assert stored.content[1]["Maths"] == "12-14-13"
    assert stored.upload_date == imported.upload_date


def test_invalid_grid_edits_are_not_saved(store, configured_class, make_csv):
    imported, _ = _upload(store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"))
    grid = build_grid(store, *configured_class, imported.id)
    grid.set_cell(0, "Maths", "??")

    with pytest.raises(ValidationError):
        save_grid_edits(store, *configured_class, imported.id, grid)

    assert store.get_imported_file(*configured_class, imported.id).content[0]["Maths"] == "15"


def test_export_and_delete(store, configured_class, make_csv):
    imported, _ = _upload(
        store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"), name="T1 grades.csv"
    )

    payload, name, mime = export_imported_file(imported, "csv")
    assert (name, mime) == ("T1 grades_exported.csv", CSV_MIME)
    assert payload.decode("utf-8").splitlines() == ["Student ID,First Name,Maths", "S1,Ada,15"]

    delete_imported_file(store, *configured_class, imported.id)
    assert store.get_class(*configured_class).imported_data == []


def test_export_rejects_unknown_format(store, configured_class, make_csv):
    imported, _ = _upload(store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"))
    with pytest.raises(ValueError):
        export_imported_file(imported, "pdf")


def test_structure_change_reports_files_that_no_longer_validate(store, configured_class, grade_structure, make_csv):
    _upload(store, configured_class, make_csv("Student ID,First Name,Maths", "S1,Ada,15"))

    stricter = grade_structure + [DataField(id="9", name="History", type="number", required=True, order=5)]
    save_class_structure(store, *configured_class, stricter)

    failing = files_failing_structure(store, *configured_class)
    assert len(failing) == 1
    assert failing[0][1] == "Missing required fields: History"
