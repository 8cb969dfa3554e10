import os
from typing import Any, Dict, List

import pytest
from PyQt5.QtWidgets import QApplication

from rectab.column import TabColumn
from rectab.settings import LocalSettings
from rectab_qt.context import QtTableContext

# Ensure headless Qt on CI/CLI runs.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app():
    """Ensure a single QApplication exists for Qt-based tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def ctx(qt_app, tmp_path, monkeypatch):
    """A context whose settings live in a temporary directory."""
    path = tmp_path / "settings.yaml"
    monkeypatch.setenv("RECTAB_SETTINGS", str(path))
    result = QtTableContext(stg=LocalSettings(file_path=str(path)))
    yield result
    result.stop()


@pytest.fixture
def people() -> List[Dict[str, Any]]:
    return [
        {"id": i, "name": f"Person {i}", "dept": "Sales" if i % 2 else "IT"}
        for i in range(1, 26)
    ]


@pytest.fixture
def people_columns() -> List[TabColumn]:
    return [
        TabColumn.for_field("name", searchable=True, width=160),
        TabColumn.for_field("dept", title="Department", searchable=True),
        TabColumn.for_field("id", title="No.", align="right"),
    ]
