import pytest

from utils.import_pipeline.schema import DataField
from utils.school_store import MemoryStateBackend, SchoolStore


@pytest.fixture
def grade_structure():
    return [
        DataField(id="1", name="Student ID", type="text", required=True, order=0),
        DataField(id="2", name="First Name", type="text", required=True, order=1),
        DataField(id="3", name="Birth Date", type="date", required=False, order=2),
        DataField(id="4", name="Maths", type="number", required=True, order=3),
        DataField(id="5", name="French", type="number", required=False, order=4),
    ]


@pytest.fixture
def backend():
    return MemoryStateBackend()


@pytest.fixture
def store(backend):
    return SchoolStore(backend)


@pytest.fixture
def configured_class(store, grade_structure):
    """(cycle_id, class_id) of seeded class CP with the grade structure saved."""
    store.save_structure("1", "1", grade_structure)
    return "1", "1"


@pytest.fixture
def make_csv():
    def _make(*lines, encoding="utf-8"):
        return ("\n".join(lines) + "\n").encode(encoding)
    return _make
