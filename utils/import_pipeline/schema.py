# utils/import_pipeline/schema.py
"""
Class Data Structure Definitions

Overview for future devs:
- DataField describes one column of a class's student data (the "data
  structure" an administrator configures per class).
- The import pipeline, the editable grid and the results pages all read the
  structure through sorted_fields() so column order is always the admin's
  order, never dict/insertion order.
- Structure edits (add / remove / reorder / update) return NEW lists and keep
  `order` as a dense 0..n-1 sequence.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from .errors import ValidationError


FIELD_TYPES = ("text", "number", "date", "photo")

# Identity column of every student row. Student lookup and the editable grid
# key on this name.
STUDENT_ID_FIELD = "Student ID"


@dataclass(frozen=True)
class DataField:
    """
    One configured field of a class data structure.

    Attributes:
        id:        Stable identifier (survives renames and reorders).
        name:      Column name in uploaded files; unique within a structure.
        type:      One of FIELD_TYPES.
        required:  Row must carry a non-empty value for this field.
        order:     Display / import column position (0-based).
        has_photo: Text/number/date fields may carry an attached image.
    """
    id: str
    name: str
    type: str = "text"
    required: bool = False
    order: int = 0
    has_photo: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "order": self.order,
            "hasPhoto": self.has_photo,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataField":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            type=data.get("type", "text"),
            required=bool(data.get("required", False)),
            order=int(data.get("order", 0)),
            has_photo=bool(data.get("hasPhoto", False)),
        )


# ---------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------

# Used by the import pipeline when a class has no configured structure.
DEFAULT_IMPORT_STRUCTURE: List[DataField] = [
    DataField(id="1", name=STUDENT_ID_FIELD, type="text", required=True, order=0),
    DataField(id="2", name="First Name", type="text", required=True, order=1),
    DataField(id="3", name="Last Name", type="text", required=True, order=2),
]

# Starting point offered by the structure editor for an unconfigured class.
DEFAULT_CLASS_FIELDS: List[DataField] = [
    DataField(id="1", name="First Name", type="text", required=True, order=0),
    DataField(id="2", name="Last Name", type="text", required=True, order=1),
    DataField(id="3", name="Birth Date", type="date", required=True, order=2),
    DataField(id="4", name="Student Photo", type="photo", required=False, order=3),
]


# ---------------------------------------------------------------------
# Read helpers
# ---------------------------------------------------------------------

def sorted_fields(fields: Iterable[DataField]) -> List[DataField]:
    """Fields in admin-defined order."""
    return sorted(fields, key=lambda f: f.order)


def resolve_import_structure(data_structure: Optional[List[DataField]]) -> List[DataField]:
    """
    Structure used to validate an import: the class's own structure, or the
    three-field default (Student ID / First Name / Last Name) when the class
    has none configured yet.
    """
    if data_structure:
        return sorted_fields(data_structure)
    return list(DEFAULT_IMPORT_STRUCTURE)


def editor_starting_fields(data_structure: Optional[List[DataField]]) -> List[DataField]:
    """Fields shown when the structure editor opens for a class."""
    if data_structure:
        return sorted_fields(data_structure)
    return list(DEFAULT_CLASS_FIELDS)


def get_field(fields: Iterable[DataField], name: str) -> Optional[DataField]:
    for f in fields:
        if f.name == name:
            return f
    return None


# ---------------------------------------------------------------------
# Edit helpers (pure; return new lists)
# ---------------------------------------------------------------------

def _renumber(fields: List[DataField]) -> List[DataField]:
    return [replace(f, order=index) for index, f in enumerate(fields)]


def new_field(order: int, *, field_id: Optional[str] = None) -> DataField:
    """Blank optional text field appended at `order`."""
    return DataField(
        id=field_id or uuid.uuid4().hex,
        name="New Field",
        type="text",
        required=False,
        order=order,
        has_photo=False,
    )


def add_field(fields: List[DataField], *, field_id: Optional[str] = None) -> List[DataField]:
    ordered = sorted_fields(fields)
    return ordered + [new_field(len(ordered), field_id=field_id)]


def remove_field(fields: List[DataField], field_id: str) -> List[DataField]:
    remaining = [f for f in sorted_fields(fields) if f.id != field_id]
    return _renumber(remaining)


def reorder_fields(fields: List[DataField], source_index: int, destination_index: int) -> List[DataField]:
    """
    Move the field at `source_index` to `destination_index` (list positions,
    same semantics as a drag-and-drop list) and renumber `order` to 0..n-1.
    """
    items = sorted_fields(fields)
    if not 0 <= source_index < len(items):
        raise IndexError(f"No field at position {source_index}")
    moved = items.pop(source_index)
    destination_index = max(0, min(destination_index, len(items)))
    items.insert(destination_index, moved)
    return _renumber(items)


def update_field(fields: List[DataField], field_id: str, **changes: Any) -> List[DataField]:
    """
    Apply `changes` to one field.

    - Changing `type` resets `has_photo` (same as the editor's type select).
    - `photo` fields never carry `has_photo`.
    """
    updated = []
    for f in sorted_fields(fields):
        if f.id != field_id:
            updated.append(f)
            continue
        if "type" in changes and changes["type"] != f.type and "has_photo" not in changes:
            changes = {**changes, "has_photo": False}
        candidate = replace(f, **changes)
        if candidate.type == "photo" and candidate.has_photo:
            candidate = replace(candidate, has_photo=False)
        updated.append(candidate)
    return updated


def validate_structure(fields: List[DataField]) -> List[DataField]:
    """
    Check a structure before it is saved. Returns the fields renumbered in
    their current order.

    Raises:
        ValidationError: blank name, unknown type, or duplicate names.
    """
    ordered = sorted_fields(fields)
    seen: set[str] = set()
    duplicates: List[str] = []
    for f in ordered:
        name = f.name.strip()
        if not name:
            raise ValidationError("Field names cannot be empty.")
        if f.type not in FIELD_TYPES:
            raise ValidationError(f"Field '{name}' has an unknown type '{f.type}'.")
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)

    if duplicates:
        raise ValidationError(f"Duplicate field names: {', '.join(duplicates)}")

    return _renumber([replace(f, name=f.name.strip()) for f in ordered])
