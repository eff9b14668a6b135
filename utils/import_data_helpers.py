# utils/import_data_helpers.py
"""
Import Data Helpers

Overview for future devs:
- The glue between the Import Data / Data Structure pages and the pipeline in
  utils/import_pipeline. Pages call these and render whatever they raise.
- Upload flow (import_uploaded_file):
    1) file type check   -> InvalidFileTypeError
    2) decode CSV/Excel  -> DecodeError
    3) validate rows against the class structure (or the default
       Student ID / First Name / Last Name structure) -> ValidationError
    4) build ImportedFile and append it to the class -> PersistenceError
  Nothing is written unless 1-3 fully succeeded.
- Grid flow (save_grid_edits): EditableGrid.save() re-validates every row,
  then the file's content + record count are replaced in the store.

Notes:
- These helpers are Streamlit-free; the SchoolStore is passed in explicitly.
"""

import logging
from typing import List, Tuple

from utils.import_pipeline.decoders import (
    EXPORT_FORMATS,
    decode_file,
    encode_rows,
    export_file_name,
    resolve_mime_type,
)
from utils.import_pipeline.editable_grid import EditableGrid
from utils.import_pipeline.errors import ImportPipelineError, ValidationError
from utils.import_pipeline.schema import (
    STUDENT_ID_FIELD,
    DataField,
    resolve_import_structure,
    sorted_fields,
)
from utils.import_pipeline.validation import ValidationResult, validate_rows
from utils.school_models import ImportedFile
from utils.school_store import SchoolStore


def import_uploaded_file(
    store: SchoolStore,
    cycle_id: str,
    class_id: str,
    file_name: str,
    mime_type: str,
    data: bytes,
    period: str,
) -> Tuple[ImportedFile, ValidationResult]:
    """
    Decode, validate and persist one uploaded file for a class.

    Returns:
        (imported_file, validation_result) – the result carries warnings such
        as columns outside the structure.

    Raises:
        ImportPipelineError subclasses, see module docstring.
    """
    if not period:
        raise ValidationError("Please select a period before uploading.")

    try:
        resolve_mime_type(file_name, mime_type)
        school_class = store.get_class(cycle_id, class_id)
        structure = resolve_import_structure(school_class.data_structure)

        rows = list(decode_file(data, file_name, mime_type))
        result = validate_rows(rows, structure)
        if not result.is_valid:
            raise ValidationError(result.error)
    except ImportPipelineError as e:
        logging.warning(f"Import rejected for class {class_id} ({file_name}): {e}")
        raise

    imported_file = ImportedFile.create(file_name=file_name, period=period, rows=rows)
    store.append_imported_file(cycle_id, class_id, imported_file)

    logging.info(
        f"Imported {imported_file.record_count} records from {file_name} "
        f"into class {class_id} for period {period}"
    )
    return imported_file, result


def get_imported_file(store: SchoolStore, cycle_id: str, class_id: str, file_id: str) -> ImportedFile:
    return store.get_imported_file(cycle_id, class_id, file_id)


def class_import_structure(store: SchoolStore, cycle_id: str, class_id: str) -> List[DataField]:
    """Structure used to validate imports for a class (default when none configured)."""
    return resolve_import_structure(store.get_class(cycle_id, class_id).data_structure)


def build_grid(store: SchoolStore, cycle_id: str, class_id: str, file_id: str) -> EditableGrid:
    """Editable grid over an imported file's current content."""
    imported_file = store.get_imported_file(cycle_id, class_id, file_id)
    structure = class_import_structure(store, cycle_id, class_id)
    return EditableGrid(imported_file.content or [], structure, id_field=STUDENT_ID_FIELD)


def save_grid_edits(
    store: SchoolStore,
    cycle_id: str,
    class_id: str,
    file_id: str,
    grid: EditableGrid,
) -> ImportedFile:
    """
    Validate the grid and replace the imported file's content.

    Raises:
        ValidationError: grid rows are invalid (grid keeps the user's edits).
        PersistenceError: store write failed (grid already holds the
                          normalized rows, so a retry only re-saves).
    """
    rows = grid.save()

    imported_file = store.get_imported_file(cycle_id, class_id, file_id)
    imported_file.content = rows
    imported_file.record_count = len(rows)
    store.replace_imported_file(cycle_id, class_id, imported_file)

    logging.info(f"Saved {len(rows)} edited rows for file {file_id} in class {class_id}")
    return imported_file


def delete_imported_file(store: SchoolStore, cycle_id: str, class_id: str, file_id: str) -> None:
    store.delete_imported_file(cycle_id, class_id, file_id)
    logging.info(f"Deleted imported file {file_id} from class {class_id}")


def export_imported_file(imported_file: ImportedFile, fmt: str = "csv") -> Tuple[bytes, str, str]:
    """
    Encode an imported file's content for download.

    Returns:
        (payload, download_file_name, mime_type)
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    if not imported_file.content:
        raise ValidationError("This file has no data to export.")

    payload = encode_rows(imported_file.content, fmt)
    return payload, export_file_name(imported_file.file_name, fmt), EXPORT_FORMATS[fmt]


def save_class_structure(
    store: SchoolStore,
    cycle_id: str,
    class_id: str,
    fields: List[DataField],
) -> List[DataField]:
    """
    Persist a class data structure (names must be non-empty and unique).

    Existing imports are not rewritten; files_failing_structure() tells the
    admin which of them no longer validate.
    """
    saved = store.save_structure(cycle_id, class_id, sorted_fields(fields))
    logging.info(f"Structure for class {class_id} saved with {len(saved)} fields")
    return saved


def files_failing_structure(
    store: SchoolStore,
    cycle_id: str,
    class_id: str,
) -> List[Tuple[ImportedFile, str]]:
    """(file, error) for every imported file whose content no longer validates."""
    school_class = store.get_class(cycle_id, class_id)
    structure = resolve_import_structure(school_class.data_structure)
    failing = []
    for imported_file in school_class.imported_data:
        if not imported_file.content:
            continue
        # validate_rows normalizes in place; check a copy
        rows = [dict(r) for r in imported_file.content]
        result = validate_rows(rows, structure)
        if not result.is_valid:
            failing.append((imported_file, result.error))
    return failing
