# utils/import_pipeline/editable_grid.py
"""
Editable grid state for already-imported rows.

Overview for future devs:
- Holds the full row set of ONE imported file while an administrator edits it.
- Every row gets a synthetic row_id when the grid is built or the row is
  added; "new row" status is tracked on the row itself, so deleting rows never
  has to re-index a separate set of positions.
- The Student ID of a saved row is read-only; set_cell() refuses it. Only
  new rows take an identity.
- Otherwise set_cell / add_row / delete_row never validate. save() is the
  gate:
    1) every new row needs a Student ID
    2) the full row set is validated + normalized on a COPY
  On failure the grid is left exactly as the user edited it.
- Rendering lives in app_pages/import_data_sections.py; this module is
  Streamlit-free so it can be unit tested.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from .errors import ValidationError
from .schema import STUDENT_ID_FIELD, DataField, sorted_fields
from .validation import ValidationResult, is_blank, validate_rows


@dataclass
class GridRow:
    values: Dict[str, Any]
    is_new: bool = False
    row_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class EditableGrid:
    """
    Mutable working copy of an imported file's rows.

    Args:
        rows:      committed rows (copied; the caller's list is never touched).
        structure: class data structure used for column order and validation.
        id_field:  column that identifies a student (required on new rows).
    """

    def __init__(
        self,
        rows: Iterable[Dict[str, Any]],
        structure: List[DataField],
        id_field: str = STUDENT_ID_FIELD,
    ):
        self.structure = sorted_fields(structure)
        self.id_field = id_field
        self._rows: List[GridRow] = [GridRow(values=dict(r)) for r in rows or []]
        self.version = 0
        self.last_result: ValidationResult | None = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def columns(self) -> List[str]:
        """Identity column first, then structure order, then any extra data keys."""
        cols = [self.id_field]
        for f in self.structure:
            if f.name not in cols:
                cols.append(f.name)
        for row in self._rows:
            for key in row.values.keys():
                if key not in cols:
                    cols.append(key)
        return cols

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return [dict(r.values) for r in self._rows]

    @property
    def row_ids(self) -> List[str]:
        return [r.row_id for r in self._rows]

    @property
    def new_row_indices(self) -> Set[int]:
        return {i for i, r in enumerate(self._rows) if r.is_new}

    def is_new_row(self, row_index: int) -> bool:
        return self._rows[row_index].is_new

    # ------------------------------------------------------------------
    # Mutations (no validation until save)
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        self.version += 1

    def is_cell_editable(self, row_index: int, field_name: str) -> bool:
        """A committed row keeps its Student ID; only new rows may set one."""
        return field_name != self.id_field or self._rows[row_index].is_new

    def set_cell(self, row_index: int, field_name: str, value: Any) -> None:
        """
        Raises:
            ValidationError: the identity of an already-saved row was edited.
        """
        if not self.is_cell_editable(row_index, field_name):
            raise ValidationError(
                f"The {self.id_field} of a saved row cannot be changed."
            )
        self._rows[row_index].values[field_name] = value
        self._touch()

    def add_row(self) -> int:
        """Append a blank row (all known columns empty) and return its index."""
        blank = {col: "" for col in self.columns}
        self._rows.append(GridRow(values=blank, is_new=True))
        self._touch()
        return len(self._rows) - 1

    def delete_row(self, row_index: int) -> None:
        del self._rows[row_index]
        self._touch()

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def _new_rows_missing_id(self) -> List[int]:
        return [
            i for i, r in enumerate(self._rows)
            if r.is_new and is_blank(r.values.get(self.id_field))
        ]

    def save(self) -> List[Dict[str, Any]]:
        """
        Validate the edited rows and return them normalized.

        Raises:
            ValidationError: a new row has no Student ID, or validation failed.
                             The grid keeps its edited (pre-save) state.
        """
        if self._new_rows_missing_id():
            raise ValidationError(
                f"Please provide a {self.id_field} for all new rows before saving."
            )

        staged = copy.deepcopy([r.values for r in self._rows])
        result = validate_rows(staged, self.structure)
        self.last_result = result
        if not result.is_valid:
            raise ValidationError(result.error)

        for grid_row, values in zip(self._rows, staged):
            grid_row.values = values
            grid_row.is_new = False
        self._touch()

        return copy.deepcopy(staged)
