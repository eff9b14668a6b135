# utils/school_store.py
"""
School store (cycles, classes, imported files, school settings)

Overview for future devs:
- StateBackend is the only thing that talks to storage: load(key) / save(key,
  payload) of JSON documents.
    * SnowflakeStateBackend -> table EDUMANAGER_STATE (MERGE upsert)
    * MemoryStateBackend    -> local dev + tests
- SchoolStore wraps a backend with the operations pages need. It is passed
  around explicitly (get_school_store() builds the configured one once per
  server process); nothing reads a module-level global.
- Every backend failure is re-raised as PersistenceError so pages can show one
  generic "save failed" message while keeping the user's validated data.

Notes:
- Documents:
    "cycles"          -> list of Cycle dicts (classes + imported files nested)
    "school_settings" -> SchoolSettings dict
- The first load of an empty store seeds default_cycles().
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import streamlit as st

from utils.import_pipeline.errors import PersistenceError
from utils.import_pipeline.schema import DataField, validate_structure
from utils.school_models import (
    Cycle,
    ImportedFile,
    SchoolClass,
    SchoolSettings,
    default_cycles,
    new_id,
)

STATE_TABLE = "EDUMANAGER_STATE"
CYCLES_KEY = "cycles"
SETTINGS_KEY = "school_settings"


class RecordNotFoundError(LookupError):
    """Cycle, class or imported file id does not exist."""


# =============================================================================
# Backends
# =============================================================================

class StateBackend:
    """load/save of JSON-serializable documents by key."""

    def load(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def save(self, key: str, payload: Any) -> None:
        raise NotImplementedError


class MemoryStateBackend(StateBackend):
    """
    Process-local backend. Documents are stored as JSON text so callers never
    share mutable objects with the store (same behavior as a real database).
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._docs: Dict[str, str] = {}
        for key, payload in (initial or {}).items():
            self.save(key, payload)

    def load(self, key: str) -> Optional[Any]:
        raw = self._docs.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, payload: Any) -> None:
        self._docs[key] = json.dumps(payload)


class SnowflakeStateBackend(StateBackend):
    """
    JSON documents in a Snowflake table:

        EDUMANAGER_STATE (
            STATE_KEY  STRING PRIMARY KEY,
            PAYLOAD    STRING,
            UPDATED_AT TIMESTAMP_NTZ
        )

    connection_factory returns a NEW connection per call (closed here).
    """

    def __init__(self, connection_factory: Callable[[], Any], table: str = STATE_TABLE):
        self.connection_factory = connection_factory
        self.table = table

    def ensure_table(self) -> None:
        conn = self.connection_factory()
        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        STATE_KEY STRING PRIMARY KEY,
                        PAYLOAD STRING,
                        UPDATED_AT TIMESTAMP_NTZ
                    )
                """)
        finally:
            conn.close()

    def load(self, key: str) -> Optional[Any]:
        conn = self.connection_factory()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT PAYLOAD FROM {self.table} WHERE STATE_KEY = %s",
                    (key,),
                )
                row = cur.fetchone()
        finally:
            conn.close()
        if not row or row[0] is None:
            return None
        return json.loads(row[0])

    def save(self, key: str, payload: Any) -> None:
        conn = self.connection_factory()
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN;")
            cursor.execute(
                f"""
                MERGE INTO {self.table} tgt
                USING (SELECT %s AS STATE_KEY, %s AS PAYLOAD) src
                   ON tgt.STATE_KEY = src.STATE_KEY
                WHEN MATCHED THEN UPDATE SET
                    PAYLOAD = src.PAYLOAD,
                    UPDATED_AT = CURRENT_TIMESTAMP()
                WHEN NOT MATCHED THEN INSERT (STATE_KEY, PAYLOAD, UPDATED_AT)
                    VALUES (src.STATE_KEY, src.PAYLOAD, CURRENT_TIMESTAMP())
                """,
                (key, json.dumps(payload)),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()


# =============================================================================
# Store
# =============================================================================

class SchoolStore:
    """Domain operations over a StateBackend. All writes are load-modify-save."""

    def __init__(self, backend: StateBackend):
        self.backend = backend

    # ------------------------------------------------------------------
    # Backend access (PersistenceError boundary)
    # ------------------------------------------------------------------

    def _load(self, key: str) -> Optional[Any]:
        try:
            return self.backend.load(key)
        except Exception as e:
            logging.exception(f"School store: failed to load '{key}'")
            raise PersistenceError("Could not load school data. Please try again.") from e

    def _save(self, key: str, payload: Any) -> None:
        try:
            self.backend.save(key, payload)
        except Exception as e:
            logging.exception(f"School store: failed to save '{key}'")
            raise PersistenceError("Could not save your changes. Please try again.") from e

    def _load_cycles(self) -> List[Cycle]:
        payload = self._load(CYCLES_KEY)
        if payload is None:
            cycles = default_cycles()
            self._save_cycles(cycles)
            return cycles
        return [Cycle.from_dict(c) for c in payload]

    def _save_cycles(self, cycles: List[Cycle]) -> None:
        self._save(CYCLES_KEY, [c.to_dict() for c in cycles])

    @staticmethod
    def _find_cycle(cycles: List[Cycle], cycle_id: str) -> Cycle:
        for cycle in cycles:
            if cycle.id == cycle_id:
                return cycle
        raise RecordNotFoundError("Cycle not found")

    @classmethod
    def _find_class(cls, cycles: List[Cycle], cycle_id: str, class_id: str) -> SchoolClass:
        school_class = cls._find_cycle(cycles, cycle_id).get_class(class_id)
        if school_class is None:
            raise RecordNotFoundError("Class not found")
        return school_class

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def list_cycles(self) -> List[Cycle]:
        return self._load_cycles()

    def get_cycle(self, cycle_id: str) -> Cycle:
        return self._find_cycle(self._load_cycles(), cycle_id)

    def add_cycle(self, name: str = "Nouveau Cycle") -> Cycle:
        cycles = self._load_cycles()
        cycle = Cycle(id=new_id(), name=name.strip() or "Nouveau Cycle")
        cycles.append(cycle)
        self._save_cycles(cycles)
        logging.info(f"Cycle added: {cycle.name} ({cycle.id})")
        return cycle

    def rename_cycle(self, cycle_id: str, name: str) -> Cycle:
        name = (name or "").strip()
        if not name:
            raise ValueError("Cycle name cannot be empty.")
        cycles = self._load_cycles()
        cycle = self._find_cycle(cycles, cycle_id)
        cycle.name = name
        self._save_cycles(cycles)
        return cycle

    def set_cycle_enabled(self, cycle_id: str, enabled: bool) -> Cycle:
        cycles = self._load_cycles()
        cycle = self._find_cycle(cycles, cycle_id)
        cycle.enabled = bool(enabled)
        self._save_cycles(cycles)
        return cycle

    def delete_cycle(self, cycle_id: str) -> None:
        cycles = self._load_cycles()
        self._find_cycle(cycles, cycle_id)
        self._save_cycles([c for c in cycles if c.id != cycle_id])
        logging.info(f"Cycle deleted: {cycle_id}")

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def get_class(self, cycle_id: str, class_id: str) -> SchoolClass:
        return self._find_class(self._load_cycles(), cycle_id, class_id)

    def add_class(self, cycle_id: str, name: str) -> SchoolClass:
        name = (name or "").strip()
        if not name:
            raise ValueError("Class name cannot be empty.")
        cycles = self._load_cycles()
        cycle = self._find_cycle(cycles, cycle_id)
        school_class = SchoolClass(id=new_id(), name=name)
        cycle.classes.append(school_class)
        self._save_cycles(cycles)
        logging.info(f"Class added: {name} in cycle {cycle_id}")
        return school_class

    def set_class_enabled(self, cycle_id: str, class_id: str, enabled: bool) -> SchoolClass:
        cycles = self._load_cycles()
        school_class = self._find_class(cycles, cycle_id, class_id)
        school_class.enabled = bool(enabled)
        self._save_cycles(cycles)
        return school_class

    def remove_class(self, cycle_id: str, class_id: str) -> None:
        cycles = self._load_cycles()
        cycle = self._find_cycle(cycles, cycle_id)
        self._find_class(cycles, cycle_id, class_id)
        cycle.classes = [c for c in cycle.classes if c.id != class_id]
        self._save_cycles(cycles)
        logging.info(f"Class deleted: {class_id} from cycle {cycle_id}")

    def update_class(self, cycle_id: str, school_class: SchoolClass) -> SchoolClass:
        cycles = self._load_cycles()
        cycle = self._find_cycle(cycles, cycle_id)
        self._find_class(cycles, cycle_id, school_class.id)
        cycle.classes = [school_class if c.id == school_class.id else c for c in cycle.classes]
        self._save_cycles(cycles)
        return school_class

    def save_structure(self, cycle_id: str, class_id: str, fields: List[DataField]) -> List[DataField]:
        """Validate (unique, non-empty names) and store a class data structure."""
        checked = validate_structure(fields)
        cycles = self._load_cycles()
        school_class = self._find_class(cycles, cycle_id, class_id)
        school_class.data_structure = checked
        self._save_cycles(cycles)
        logging.info(f"Data structure saved for class {class_id}: {len(checked)} fields")
        return checked

    # ------------------------------------------------------------------
    # Imported files
    # ------------------------------------------------------------------

    def append_imported_file(self, cycle_id: str, class_id: str, imported_file: ImportedFile) -> None:
        cycles = self._load_cycles()
        school_class = self._find_class(cycles, cycle_id, class_id)
        school_class.imported_data.append(imported_file)
        self._save_cycles(cycles)

    def get_imported_file(self, cycle_id: str, class_id: str, file_id: str) -> ImportedFile:
        school_class = self.get_class(cycle_id, class_id)
        for imported_file in school_class.imported_data:
            if imported_file.id == file_id:
                return imported_file
        raise RecordNotFoundError("Imported file not found")

    def replace_imported_file(self, cycle_id: str, class_id: str, imported_file: ImportedFile) -> None:
        cycles = self._load_cycles()
        school_class = self._find_class(cycles, cycle_id, class_id)
        if not any(f.id == imported_file.id for f in school_class.imported_data):
            raise RecordNotFoundError("Imported file not found")
        school_class.imported_data = [
            imported_file if f.id == imported_file.id else f
            for f in school_class.imported_data
        ]
        self._save_cycles(cycles)

    def delete_imported_file(self, cycle_id: str, class_id: str, file_id: str) -> None:
        cycles = self._load_cycles()
        school_class = self._find_class(cycles, cycle_id, class_id)
        remaining = [f for f in school_class.imported_data if f.id != file_id]
        if len(remaining) == len(school_class.imported_data):
            raise RecordNotFoundError("Imported file not found")
        school_class.imported_data = remaining
        self._save_cycles(cycles)

    # ------------------------------------------------------------------
    # School settings
    # ------------------------------------------------------------------

    def load_settings(self) -> SchoolSettings:
        return SchoolSettings.from_dict(self._load(SETTINGS_KEY))

    def save_settings(self, settings: SchoolSettings) -> SchoolSettings:
        name = (settings.name or "").strip()
        if not name:
            raise ValueError("School name is required")
        settings = SchoolSettings(name=name, logo=settings.logo or "")
        self._save(SETTINGS_KEY, settings.to_dict())
        return settings


# =============================================================================
# Configured store
# =============================================================================

@st.cache_resource
def get_school_store() -> SchoolStore:
    """
    Build the store configured in st.secrets:

        [storage]
        backend = "snowflake"   # or "memory" for local dev
    """
    from sf_connector.service_connector import get_service_account_connection

    storage = st.secrets.get("storage", {})
    backend_name = str(storage.get("backend", "snowflake")).strip().lower()

    if backend_name == "memory":
        logging.info("School store: using in-memory backend (data is lost on restart)")
        return SchoolStore(MemoryStateBackend())

    backend = SnowflakeStateBackend(get_service_account_connection)
    backend.ensure_table()
    return SchoolStore(backend)
