"""
Import pipeline module (EduManager)

Overview for future devs:
- Centralized helpers for the student data import flow:
  * Class data structure definitions (schema.py)
  * Decoding CSV / Excel uploads and encoding exports (decoders.py)
  * Grade + date normalization (normalizers.py)
  * Row validation against a structure (validation.py)
  * Editable grid state for already-imported rows (editable_grid.py)
  * Reporting periods (periods.py)
  * Exception taxonomy (errors.py)

Usage:
- Streamlit pages should go through utils.import_data_helpers, which wires
  these pieces to the school store.
"""
