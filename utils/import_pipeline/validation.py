# utils/import_pipeline/validation.py
"""
Row validation against a class data structure.

Overview:
- validate_rows(): core engine that:
    * rejects an empty upload
    * checks required columns against the first row
    * normalizes number (grade) and date fields row by row
    * enforces non-blank required values
- Short-circuits on the first failure, with a 1-indexed row number and the
  field name in the message.
- All-or-nothing: normalized values are staged and only written back into
  the rows once EVERY row passed. A failed validation leaves the rows exactly
  as they came in.

Use:
- Import flow: validate_rows(decoded_rows, structure) before persisting.
- Editable grid: validate_rows(copy_of_grid_rows, structure) on save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import ValidationError
from .normalizers import (
    DATE_FORMAT_HINT,
    GRADE_FORMAT_HINT,
    normalize_date,
    normalize_grade,
)
from .schema import DataField, sorted_fields


@dataclass
class ValidationResult:
    """
    Result of validate_rows().

    Attributes:
        error:    First fatal problem found, or None when the rows are valid.
        warnings: Non-fatal issues (e.g. columns outside the structure).
    """
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.error is None


# type -> (normalizer, format hint shown to the user)
_NORMALIZERS: Dict[str, Tuple[Callable[[Any], str], str]] = {
    "number": (normalize_grade, f"Invalid grade format for {{name}}. Use format: {GRADE_FORMAT_HINT}"),
    "date": (normalize_date, f"Invalid date format for {{name}}. Use {DATE_FORMAT_HINT}"),
}


def is_blank(value: Any) -> bool:
    """None, empty or whitespace-only strings count as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def _unexpected_columns(first_row: Dict[str, Any], structure: List[DataField]) -> List[str]:
    known = {f.name for f in structure}
    return [c for c in first_row.keys() if c not in known]


def validate_rows(rows: List[Dict[str, Any]], structure: List[DataField]) -> ValidationResult:
    """
    Validate (and on success normalize in place) imported rows.

    Steps:
        1) Reject an empty row set.
        2) Every required field must be a key of the first row.
        3) For each row, for each field in structure order:
             - optional + blank  -> skipped
             - number / date     -> normalized (failure aborts)
             - required + blank  -> "Missing required value"

    Returns:
        ValidationResult; rows are only mutated when result.is_valid.
    """
    if not rows:
        return ValidationResult(error="No data found in the file")

    fields = sorted_fields(structure)
    first_row = rows[0]

    missing = [f.name for f in fields if f.required and f.name not in first_row]
    if missing:
        return ValidationResult(error=f"Missing required fields: {', '.join(missing)}")

    warnings: List[str] = []
    extra = _unexpected_columns(first_row, fields)
    if extra:
        warnings.append(f"Columns not in the class structure were kept as-is: {', '.join(extra)}")

    staged: List[Tuple[Dict[str, Any], str, str]] = []

    for index, row in enumerate(rows, start=1):
        for data_field in fields:
            value = row.get(data_field.name)

            if is_blank(value):
                if data_field.required:
                    return ValidationResult(
                        error=f"Row {index}: Missing required value for {data_field.name}",
                        warnings=warnings,
                    )
                continue

            normalizer = _NORMALIZERS.get(data_field.type)
            if normalizer is None:
                continue

            func, message = normalizer
            try:
                normalized = func(value)
            except ValueError:
                return ValidationResult(
                    error=f"Row {index}: " + message.format(name=data_field.name),
                    warnings=warnings,
                )
            staged.append((row, data_field.name, normalized))

    for row, name, normalized in staged:
        row[name] = normalized

    return ValidationResult(warnings=warnings)


def require_valid_rows(rows: List[Dict[str, Any]], structure: List[DataField]) -> ValidationResult:
    """validate_rows() that raises ValidationError instead of returning a failed result."""
    result = validate_rows(rows, structure)
    if not result.is_valid:
        raise ValidationError(result.error)
    return result
