import json

import pytest

from utils.import_pipeline.errors import PersistenceError, ValidationError
from utils.import_pipeline.schema import DataField
from utils.school_models import ImportedFile, SchoolSettings
from utils.school_store import (
    MemoryStateBackend,
    RecordNotFoundError,
    SchoolStore,
    SnowflakeStateBackend,
    StateBackend,
)


class BrokenBackend(StateBackend):
    def load(self, key):
        raise RuntimeError("warehouse suspended")

    def save(self, key, payload):
        raise RuntimeError("warehouse suspended")


class FakeCursor:
    def __init__(self, db):
        self.db = db

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.db.statements.append(" ".join(sql.split()))
        if self.db.fail_on and self.db.fail_on in sql:
            raise RuntimeError("boom")
        if sql.strip().startswith("SELECT"):
            self.db.last_key = params[0]
        elif "MERGE" in sql:
            key, payload = params
            self.db.pending[key] = payload

    def fetchone(self):
        payload = self.db.rows.get(self.db.last_key)
        return (payload,) if payload is not None else None

    def close(self):
        pass


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.closed = False

    def cursor(self):
        return FakeCursor(self.db)

    def commit(self):
        self.db.rows.update(self.db.pending)
        self.db.pending.clear()

    def rollback(self):
        self.db.rollbacks += 1
        self.db.pending.clear()

    def close(self):
        self.closed = True


class FakeSnowflake:
    def __init__(self):
        self.rows = {}
        self.pending = {}
        self.statements = []
        self.rollbacks = 0
        self.last_key = None
        self.fail_on = None
        self.connections = []

    def connect(self):
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn


def test_empty_store_is_seeded_with_default_cycles(store, backend):
    cycles = store.list_cycles()
    assert [c.name for c in cycles] == ["École Primaire", "Collège"]
    assert [c.name for c in cycles[0].classes] == ["CP", "CE1"]
    assert backend.load("cycles") is not None


def test_cycle_lifecycle(store):
    cycle = store.add_cycle("Lycée")
    store.rename_cycle(cycle.id, "  Lycée Général ")
    store.set_cycle_enabled(cycle.id, False)

    reloaded = store.get_cycle(cycle.id)
    assert (reloaded.name, reloaded.enabled) == ("Lycée Général", False)

    store.delete_cycle(cycle.id)
    with pytest.raises(RecordNotFoundError):
        store.get_cycle(cycle.id)


def test_blank_cycle_name_falls_back_to_default(store):
    assert store.add_cycle("   ").name == "Nouveau Cycle"


def test_rename_rejects_blank_name(store):
    with pytest.raises(ValueError):
        store.rename_cycle("1", " ")


def test_class_lifecycle(store):
    school_class = store.add_class("2", "4ème")
    store.set_class_enabled("2", school_class.id, False)
    assert not store.get_class("2", school_class.id).enabled

    store.remove_class("2", school_class.id)
    assert [c.name for c in store.get_cycle("2").classes] == ["6ème", "5ème"]


def test_unknown_class_is_reported(store):
    with pytest.raises(RecordNotFoundError, match="Class not found"):
        store.get_class("1", "nope")


def test_save_structure_validates_and_renumbers(store):
    fields = [DataField(id="x", name=" Maths ", type="number", order=5), DataField(id="y", name="Student ID", order=9)]
    saved = store.save_structure("1", "1", fields)
    assert [(f.name, f.order) for f in saved] == [("Maths", 0), ("Student ID", 1)]
    assert store.get_class("1", "1").data_structure == saved

    with pytest.raises(ValidationError):
        store.save_structure("1", "1", [DataField(id="a", name="A"), DataField(id="b", name="A", order=1)])


def test_imported_files_are_appended_replaced_and_deleted(store):
    first = ImportedFile.create("t1.csv", "Q1", [{"Student ID": "S1"}])
    second = ImportedFile.create("t2.csv", "Q2", [{"Student ID": "S1"}, {"Student ID": "S2"}])
    store.append_imported_file("1", "1", first)
    store.append_imported_file("1", "1", second)

    assert [f.file_name for f in store.get_class("1", "1").imported_data] == ["t1.csv", "t2.csv"]

    second.content = [{"Student ID": "S9"}]
    second.record_count = 1
    store.replace_imported_file("1", "1", second)
    assert store.get_imported_file("1", "1", second.id).content == [{"Student ID": "S9"}]

    store.delete_imported_file("1", "1", first.id)
    assert [f.id for f in store.get_class("1", "1").imported_data] == [second.id]
    with pytest.raises(RecordNotFoundError):
        store.delete_imported_file("1", "1", first.id)


def test_settings_round_trip(store):
    assert store.load_settings() == SchoolSettings()
    store.save_settings(SchoolSettings(name=" Lycée Victor Hugo ", logo="data:image/png;base64,AAAA"))
    assert store.load_settings() == SchoolSettings(name="Lycée Victor Hugo", logo="data:image/png;base64,AAAA")


def test_settings_require_a_name(store):
    with pytest.raises(ValueError, match="School name is required"):
        store.save_settings(SchoolSettings(name="  "))


def test_backend_failures_become_persistence_errors():
    store = SchoolStore(BrokenBackend())
    with pytest.raises(PersistenceError) as excinfo:
        store.list_cycles()
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_memory_backend_hands_out_copies():
    backend = MemoryStateBackend({"k": {"a": [1]}})
    loaded = backend.load("k")
    loaded["a"].append(2)
    assert backend.load("k") == {"a": [1]}
    assert backend.load("missing") is None


def test_snowflake_backend_merges_json_documents():
    db = FakeSnowflake()
    backend = SnowflakeStateBackend(db.connect, table="STATE_T")

    backend.save("school_settings", {"name": "EduManager", "logo": ""})

    assert json.loads(db.rows["school_settings"]) == {"name": "EduManager", "logo": ""}
    assert backend.load("school_settings") == {"name": "EduManager", "logo": ""}
    assert backend.load("cycles") is None
    assert any(s.startswith("MERGE INTO STATE_T") for s in db.statements)
    assert all(conn.closed for conn in db.connections)


def test_snowflake_backend_rolls_back_failed_writes():
    db = FakeSnowflake()
    db.fail_on = "MERGE"
    store = SchoolStore(SnowflakeStateBackend(db.connect))

    with pytest.raises(PersistenceError):
        store.save_settings(SchoolSettings(name="X"))

    assert db.rollbacks == 1
    assert db.rows == {}
    assert all(conn.closed for conn in db.connections)


def test_snowflake_backend_creates_table():
    db = FakeSnowflake()
    SnowflakeStateBackend(db.connect).ensure_table()
    assert db.statements[0].startswith("CREATE TABLE IF NOT EXISTS EDUMANAGER_STATE")


def test_update_class_replaces_the_whole_record(store):
    school_class = store.get_class("1", "2")
    school_class.name = "CE1 A"
    school_class.enabled = False

    store.update_class("1", school_class)

    reloaded = store.get_class("1", "2")
    assert (reloaded.name, reloaded.enabled) == ("CE1 A", False)
    assert [c.id for c in store.get_cycle("1").classes] == ["1", "2"]
