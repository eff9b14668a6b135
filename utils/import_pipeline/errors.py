# utils/import_pipeline/errors.py
"""
Import pipeline exceptions.

Every user action (upload, save edits, save structure, delete) catches these
at its own boundary and shows the message with st.error(); none of them are
meant to crash the app.
"""


class ImportPipelineError(Exception):
    """Base class for everything the import pipeline raises on purpose."""


class InvalidFileTypeError(ImportPipelineError):
    """The uploaded file is not CSV / XLS / XLSX. Raised before decoding."""


class DecodeError(ImportPipelineError):
    """The file could not be parsed, or it has no usable header columns."""


class ValidationError(ImportPipelineError):
    """Rows (or a field schema) failed validation. Nothing was committed."""


class PersistenceError(ImportPipelineError):
    """The backing store failed. Validated data is still in memory for a retry."""
