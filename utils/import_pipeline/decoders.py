# utils/import_pipeline/decoders.py
"""
Spreadsheet decoders / encoders

Overview for future devs:
- decode_file() turns an uploaded CSV / XLS / XLSX into row dicts keyed by
  the header row. CSV and workbook paths return the SAME row shape, so the
  validator never needs to know which format came in.
- Parsing happens up front (DecodeError surfaces immediately); the returned
  iterator is lazy and can only be consumed once.
- encode_rows() is the export side: CSV (standard quoting) or a single-sheet
  XLSX built through pandas + openpyxl.

Important:
- CSV cells are read as text (dtype=str) so "0012" or "12-15-13.5" are
  never reinterpreted by pandas.
- Workbook cells keep their numbers (12.0 -> 12) and date cells become ISO
  strings, which the date normalizer accepts.
"""

from __future__ import annotations

import csv
import os
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd

from .errors import DecodeError, InvalidFileTypeError
from .validation import is_blank

CSV_MIME = "text/csv"
XLS_MIME = "application/vnd.ms-excel"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ACCEPTED_MIME_TYPES = (CSV_MIME, XLS_MIME, XLSX_MIME)

_EXTENSION_MIME = {
    ".csv": CSV_MIME,
    ".xls": XLS_MIME,
    ".xlsx": XLSX_MIME,
}

EXPORT_FORMATS = {
    "csv": CSV_MIME,
    "xlsx": XLSX_MIME,
}

EXPORT_SUFFIX = "_exported"

_OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"  # legacy .xls container
_ZIP_MAGIC = b"PK\x03\x04"                         # .xlsx container


# ---------------------------------------------------------------------
# File type checks
# ---------------------------------------------------------------------

def resolve_mime_type(file_name: Optional[str], mime_type: Optional[str]) -> str:
    """
    Return the accepted MIME type for an upload or raise InvalidFileTypeError.

    Browsers sometimes send no type (or application/octet-stream); in that
    case the extension decides.
    """
    mime = (mime_type or "").split(";")[0].strip().lower()
    if not mime or mime == "application/octet-stream":
        ext = os.path.splitext(file_name or "")[1].lower()
        mime = _EXTENSION_MIME.get(ext, mime)

    if mime not in ACCEPTED_MIME_TYPES:
        raise InvalidFileTypeError("Invalid file type. Please select a CSV or Excel file.")
    return mime


def is_supported_file_type(file_name: Optional[str], mime_type: Optional[str]) -> bool:
    try:
        resolve_mime_type(file_name, mime_type)
    except InvalidFileTypeError:
        return False
    return True


# ---------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------

def _normalize_header(c) -> str:
    """
    Clean a header cell:
    - non-breaking spaces from Excel exports
    - wrapped headers (newlines)
    - leading/trailing whitespace
    Case is kept: headers must match the class structure's field names.
    """
    s = str(c) if c is not None else ""
    s = s.replace("\u00A0", " ")          # non-breaking space from Excel exports
    s = s.replace("\n", " ").replace("\r", " ")
    return s.strip()


def _usable_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Drop blank / pandas-generated 'Unnamed: N' header columns."""
    rename = {}
    keep = []
    for col in df.columns:
        name = _normalize_header(col)
        if not name or name.startswith("Unnamed:") or name.lower() == "nan":
            continue
        rename[col] = name
        keep.append(col)

    if not keep:
        raise DecodeError("The file has no usable header columns.")

    return df[keep].rename(columns=rename)


def _read_csv(data: bytes) -> pd.DataFrame:
    # latin-1 decodes any byte sequence, so the loop always ends in a return
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return pd.read_csv(
                BytesIO(data),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding=encoding,
            )
        except UnicodeDecodeError:
            continue
        except pd.errors.EmptyDataError as e:
            raise DecodeError("The file is empty or has no header row.") from e
        except pd.errors.ParserError as e:
            raise DecodeError(f"Could not parse CSV file: {e}") from e
    raise DecodeError("Could not decode CSV file.")


def _read_workbook(data: bytes, engine: str) -> pd.DataFrame:
    try:
        return pd.read_excel(BytesIO(data), sheet_name=0, engine=engine)
    except Exception as e:
        raise DecodeError(f"Could not read Excel file: {e}") from e


def _cell_value(value: Any) -> Any:
    """Map a parsed cell to the row shape shared by CSV and workbook rows."""
    if isinstance(value, np.generic):
        value = value.item()
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _iter_rows(df: pd.DataFrame) -> Iterator[Dict[str, Any]]:
    columns = list(df.columns)
    for values in df.itertuples(index=False, name=None):
        row = {col: _cell_value(v) for col, v in zip(columns, values)}
        if all(is_blank(v) for v in row.values()):
            continue
        yield row


def decode_file(data: bytes, file_name: Optional[str], mime_type: Optional[str]) -> Iterator[Dict[str, Any]]:
    """
    Decode an uploaded spreadsheet into row dicts.

    - CSV: first row is the header, blank lines skipped.
    - Workbook: first sheet only (.xlsx via openpyxl, legacy .xls via xlrd).

    Raises:
        InvalidFileTypeError: not CSV / XLS / XLSX.
        DecodeError: unparseable file or no usable header columns.
    """
    mime = resolve_mime_type(file_name, mime_type)

    if not data:
        raise DecodeError("The file is empty.")

    if mime == XLSX_MIME or data.startswith(_ZIP_MAGIC):
        df = _read_workbook(data, engine="openpyxl")
    elif data.startswith(_OLE_MAGIC):
        df = _read_workbook(data, engine="xlrd")
    else:
        # text/csv, or a CSV that Windows browsers labelled application/vnd.ms-excel
        df = _read_csv(data)

    df = _usable_columns(df)
    return _iter_rows(df)


# ---------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------

def _collect_columns(rows: List[Dict[str, Any]]) -> List[str]:
    columns: List[str] = []
    for row in rows:
        for key in row.keys():
            if key not in columns:
                columns.append(key)
    return columns


def rows_to_dataframe(rows: Iterable[Dict[str, Any]], columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Rows -> object-dtype DataFrame (ints stay ints, missing cells are '')."""
    rows = list(rows)
    columns = columns or _collect_columns(rows)
    records = [
        {c: ("" if row.get(c) is None else row.get(c, "")) for c in columns}
        for row in rows
    ]
    return pd.DataFrame(records, columns=columns, dtype=object)


def encode_rows(rows: Iterable[Dict[str, Any]], fmt: str = "csv") -> bytes:
    """
    Serialize rows for download.

    Args:
        rows: row dicts (header = union of keys, first-seen order).
        fmt:  'csv' or 'xlsx'.
    """
    df = rows_to_dataframe(rows)

    if fmt == "csv":
        return df.to_csv(index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n").encode("utf-8")

    if fmt == "xlsx":
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Sheet1")
        buffer.seek(0)
        return buffer.getvalue()

    raise ValueError(f"Unsupported export format: {fmt!r}")


def export_file_name(original_name: str, fmt: str = "csv") -> str:
    """'grades_T1.xlsx' -> 'grades_T1_exported.csv'"""
    base = os.path.splitext(os.path.basename(original_name or "export"))[0] or "export"
    return f"{base}{EXPORT_SUFFIX}.{fmt}"
