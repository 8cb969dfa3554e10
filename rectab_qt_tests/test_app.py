import pytest

from rectab.repository import RecordRepository
from rectab_qt.app import RecordDialog, ViewerWindow, parse_text
from rectab_qt.context import QtTableContext


@pytest.mark.parametrize(
    "text, original, expected",
    [
        ("12", 12, 12),
        ("13", 12, 13),
        ("", "x", None),
        ("  ", "x", None),
        ("true", None, True),
        ("Sales", "IT", "Sales"),
        ("[1, 2", None, "[1, 2"),
        ("a: 1", None, "a: 1"),
    ],
)
def test_parse_text(text, original, expected):
    assert parse_text(text, original) == expected


@pytest.fixture
def repository(people):
    result = RecordRepository(auto_save=False)
    for record in people:
        result.create(record)
    return result


@pytest.fixture
def window(ctx, repository, people_columns):
    result = ViewerWindow(ctx, repository, people_columns, title="People")
    yield result
    result.deleteLater()


class TestRecordDialog:
    def test_read_only(self, ctx, repository):
        record = repository.get("3")
        dlg = RecordDialog(ctx, record)
        assert dlg.windowTitle() == "Record"
        assert dlg.editors["name"].text() == "Person 3"
        assert all(ed.isReadOnly() for ed in dlg.editors.values())
        assert dlg.changes() == {}

    def test_changes(self, ctx, repository):
        record = repository.get("4")
        dlg = RecordDialog(ctx, record, read_only=False)
        assert not dlg.editors["name"].isReadOnly()
        assert dlg.editors["id"].isReadOnly()
        assert dlg.editors["createdAt"].isReadOnly()

        dlg.editors["dept"].setText("Finance")
        assert dlg.changes() == {"dept": "Finance"}


class TestViewerWindow:
    def test_title_and_rows(self, window):
        assert window.windowTitle() == "People"
        assert window.presenter.total == 25
        assert window.table.model.rowCount() == 10

    def test_delete_confirmed(self, window, repository, mocker):
        mocker.patch.object(window, "confirm_delete", return_value=True)
        notify = mocker.patch.object(QtTableContext, "notify")
        window.delete_record(repository.get("1"))
        assert repository.get("1") is None
        assert window.presenter.total == 24
        notify.assert_called_once_with("Record deleted", "info")

    def test_delete_declined(self, window, repository, mocker):
        mocker.patch.object(window, "confirm_delete", return_value=False)
        window.delete_record(repository.get("1"))
        assert len(repository) == 25

    def test_repository_changes_reach_the_table(self, window, repository):
        repository.update("2", {"name": "Renamed"})
        names = [r["name"] for r in window.presenter.page_records()]
        assert "Renamed" in names
