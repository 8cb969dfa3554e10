import pytest
from PyQt5.QtWidgets import QHeaderView, QTableView

from rectab.presenter import TablePresenter, TableState
from rectab_qt.filter_header import FilterHeader
from rectab_qt.record_model import RecordTableModel


@pytest.fixture
def presenter(people, people_columns):
    return TablePresenter(columns=people_columns, records=people)


@pytest.fixture
def header(ctx, presenter):
    view = QTableView()
    hdr = FilterHeader(ctx, view)
    view.setHorizontalHeader(hdr)
    view.setModel(RecordTableModel(presenter, view))
    hdr.init_filters(presenter)
    yield hdr
    view.deleteLater()


def test_editors_for_searchable_columns(header):
    assert header.editor("name") is not None
    assert header.editor("dept") is not None
    assert header.editor("id") is None
    assert header.editor("name").placeholderText() == "Search Name"


def test_typing_only_changes_the_draft(header, presenter):
    ed = header.editor("name")
    ed.setText("person 1")
    ed.textEdited.emit("person 1")
    assert presenter.state == TableState.FILTERING
    assert presenter.total == 25


def test_search_applies_the_text(header, presenter):
    header.editor("name").setText("person 1")
    header.search("name")
    assert presenter.state == TableState.FILTERED
    assert presenter.total == 11
    assert header.editor("name").property("filtered") is True
    assert "border" in header.editor("name").styleSheet()


def test_return_pressed_searches(header, presenter):
    ed = header.editor("dept")
    ed.setText("it")
    ed.returnPressed.emit()
    assert presenter.total == 12


def test_reset(header, presenter):
    header.editor("name").setText("person 1")
    header.search("name")
    header.reset("name")
    assert header.editor("name").text() == ""
    assert presenter.total == 25
    assert presenter.state == TableState.IDLE
    assert header.editor("name").property("filtered") is False
    assert header.editor("name").styleSheet() == ""


def test_indicators_follow_the_presenter(header, presenter):
    presenter.apply_search("dept", "sales")
    header.update_indicators()
    assert header.editor("dept").property("filtered") is True
    assert header.editor("name").property("filtered") is False


def test_size_hint_has_room_for_editors(header):
    plain = QHeaderView.sizeHint(header).height()
    assert header.sizeHint().height() > plain
