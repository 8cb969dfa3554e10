import logging
from typing import Any, Dict, List

import pytest

from rectab.column import TabColumn


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep every test away from the settings of the user."""
    path = tmp_path / "config" / "settings.yaml"
    monkeypatch.setenv("RECTAB_SETTINGS", str(path))
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the logging configuration done by the command line."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def attendance() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "employee": "A", "status": "present"},
        {"id": 2, "employee": "B", "status": "absent"},
        {"id": 3, "employee": "C", "status": "present"},
    ]


@pytest.fixture
def attendance_columns() -> List[TabColumn]:
    return [
        TabColumn.for_field("employee", title="employee", searchable=True),
        TabColumn.for_field("status", title="status", searchable=True),
    ]


@pytest.fixture
def people() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "name": "Alice Smith", "dept": "Sales", "age": 31},
        {"id": 2, "name": "Bob Stone", "dept": "Finance", "age": 45},
        {"id": 3, "name": "Carol Smith", "dept": "Finance", "age": 28},
        {"id": 4, "name": "Dan Brown", "dept": "Sales", "age": 52},
        {"id": 5, "name": "Eve Black", "dept": None, "age": 39},
    ]


@pytest.fixture
def people_columns() -> List[TabColumn]:
    return [
        TabColumn.for_field("name", searchable=True),
        TabColumn.for_field("dept", title="Department", searchable=True),
        TabColumn.for_field("age", align="right"),
    ]
