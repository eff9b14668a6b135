# utils/import_pipeline/normalizers.py
"""
Field normalizers for imported rows.

Overview for future devs:
- number fields hold a composite grade: class mark, departmental mark and
  average. Teachers type it three ways and we store ONE canonical form:
      "12-15-13.5"  (dash)        -> "12-15-13.5"
      "12/15/13.5"  (slash)       -> "12-15-13.5"
      "121513.5"    (concatenated)-> "12-15-13.5"
  A plain number (15, 13.5, "15") is a single score and is kept as-is.
- date fields accept DD/MM/YYYY, DD-MM-YYYY, YYYY/MM/DD, YYYY-MM-DD and are
  stored as DD/MM/YYYY after a real calendar check. Each separator is read
  on its own, so "15/03-2024" is accepted too.
- split_grade() is the read side used by the results pages.

Normalizers raise ValueError; the validator turns that into a row/field
specific message.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

_DASH_GRADE = re.compile(r"^(\d{2})-(\d{2})-(\d{2}(?:\.\d+)?)$")
_SLASH_GRADE = re.compile(r"^(\d{2})/(\d{2})/(\d{2}(?:\.\d+)?)$")
_CONCAT_GRADE = re.compile(r"^(\d{2})(\d{2})(\d{2}(?:\.\d+)?)$")
_PLAIN_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")

_DAY_FIRST = re.compile(r"^(\d{2})[/-](\d{2})[/-](\d{4})$")
_YEAR_FIRST = re.compile(r"^(\d{4})[/-](\d{2})[/-](\d{2})$")

GRADE_FORMAT_HINT = "12-15-13.5 or 121513.5"
DATE_FORMAT_HINT = "DD/MM/YYYY or YYYY-MM-DD"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------
# Grades
# ---------------------------------------------------------------------

def normalize_grade(value: Any) -> str:
    """
    Return the canonical dash-separated form of a composite grade.

    Raises:
        ValueError: the value matches none of the accepted encodings.
    """
    if _is_number(value):
        return _format_number(value)

    text = str(value).strip()
    for pattern in (_DASH_GRADE, _SLASH_GRADE, _CONCAT_GRADE):
        match = pattern.match(text)
        if match:
            return "-".join(match.groups())

    if _PLAIN_NUMBER.match(text):
        return text

    raise ValueError(f"Invalid grade format: {text!r}")


def is_valid_grade(value: Any) -> bool:
    try:
        normalize_grade(value)
    except ValueError:
        return False
    return True


def split_grade(value: Any) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """
    Decompose a stored grade into (class mark, departmental mark, average).

    - "12-15-13.5" -> (12.0, 15.0, 13.5)
    - "12-15"      -> (12.0, 15.0, 13.5)   average = mean of the two marks
    - "15"         -> (15.0, None, 15.0)   single score is its own average
    - "" / None    -> (None, None, None)
    """
    if value is None:
        return None, None, None
    text = str(value).strip()
    if not text:
        return None, None, None

    marks = []
    for part in text.split("-")[:3]:
        try:
            marks.append(float(part))
        except ValueError:
            marks.append(None)

    class_mark = marks[0] if len(marks) > 0 else None
    dept_mark = marks[1] if len(marks) > 1 else None
    average = marks[2] if len(marks) > 2 else None

    if len(marks) == 1:
        average = class_mark
    elif not average:
        average = ((class_mark or 0) + (dept_mark or 0)) / 2

    return class_mark, dept_mark, average


# ---------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------

def _parse_date_parts(text: str) -> Tuple[int, int, int]:
    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = match.groups()
        return int(year), int(month), int(day)

    match = _YEAR_FIRST.match(text)
    if match:
        year, month, day = match.groups()
        return int(year), int(month), int(day)

    raise ValueError(f"Invalid date format: {text!r}")


def normalize_date(value: Any) -> str:
    """
    Return the date as DD/MM/YYYY.

    Raises:
        ValueError: unsupported layout, or not a real calendar date
                    (e.g. 31/02/2024, 2024/13/01).
    """
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")

    text = str(value).strip()
    year, month, day = _parse_date_parts(text)

    # date() rejects month 13, Feb 30, year 0, ...
    parsed = date(year, month, day)
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        raise ValueError(f"Invalid calendar date: {text!r}")

    return f"{day:02d}/{month:02d}/{year:04d}"


def is_valid_date(value: Any) -> bool:
    try:
        normalize_date(value)
    except ValueError:
        return False
    return True
