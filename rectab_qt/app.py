"""A stand-alone window that browses a list of records.

Used by ``rectab show``. The records are kept in a `RecordRepository`; the
row actions open a dialog that shows or changes a record, or remove it
after a confirmation.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import yaml
from PyQt5.QtWidgets import (
    QApplication,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)

from rectab.actions import RowCallbacks
from rectab.column import format_value
from rectab.presenter import TablePresenter
from rectab.repository import (
    CREATED_FIELD,
    ID_FIELD,
    UPDATED_FIELD,
    RecordRepository,
)
from rectab_qt.context import QtTableContext
from rectab_qt.context_use import QtUseContext
from rectab_qt.data_table import DataTable

if TYPE_CHECKING:
    from rectab.column import TabColumn

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = (ID_FIELD, CREATED_FIELD, UPDATED_FIELD)


def parse_text(text: str, original: Any) -> Any:
    """Convert the text of an editor back to a value.

    Unchanged text keeps the original value; other text is read as a YAML
    scalar so that numbers and booleans keep their type.
    """
    if text == format_value(original):
        return original
    if not text.strip():
        return None
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    if isinstance(value, (dict, list)):
        return text
    return value


class RecordDialog(QDialog, QtUseContext):
    """Shows the fields of a record; editable unless `read_only` is set.

    Attributes:
        record: The record being shown.
        editors: The line edits indexed by field name.
    """

    record: Mapping[str, Any]
    editors: Dict[str, QLineEdit]

    def __init__(
        self,
        ctx: "QtTableContext",
        record: Mapping[str, Any],
        read_only: bool = True,
        parent: Optional[QWidget] = None,
    ) -> None:
        self.ctx = ctx
        super().__init__(parent)
        self.record = record
        self.editors = {}
        self.setWindowTitle(
            self.t("app.view", "Record")
            if read_only
            else self.t("app.edit", "Edit record")
        )

        ly = QVBoxLayout(self)
        form = QFormLayout()
        for key, value in record.items():
            ed = QLineEdit(format_value(value), self)
            ed.setObjectName(f"ed_{key}")
            ed.setReadOnly(read_only or key in READ_ONLY_FIELDS)
            form.addRow(key, ed)
            self.editors[key] = ed
        ly.addLayout(form)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Close
            if read_only
            else QDialogButtonBox.StandardButton.Save
            | QDialogButtonBox.StandardButton.Cancel,
            parent=self,
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        ly.addWidget(buttons)

    def changes(self) -> Dict[str, Any]:
        """The fields whose text was changed by the user."""
        result = {}
        for key, ed in self.editors.items():
            if key in READ_ONLY_FIELDS:
                continue
            value = parse_text(ed.text(), self.record.get(key))
            if value != self.record.get(key):
                result[key] = value
        return result


class ViewerWindow(QMainWindow, QtUseContext):
    """Main window holding a `DataTable` over a repository.

    Attributes:
        repository: The records.
        presenter: The state of the table.
        table: The table widget.
    """

    def __init__(
        self,
        ctx: "QtTableContext",
        repository: RecordRepository,
        columns: List["TabColumn"],
        title: Optional[str] = None,
    ) -> None:
        self.ctx = ctx
        super().__init__()
        self.repository = repository
        self.setWindowTitle(title or self.t("app.title", "Records"))
        self.resize(1000, 640)

        self.presenter = TablePresenter(
            columns=columns,
            records=repository.list(),
            row_key=ID_FIELD,
            callbacks=RowCallbacks(
                on_view=self.view_record,
                on_edit=self.edit_record,
                on_delete=self.delete_record,
            ),
            title=title,
            letterhead=ctx.letterhead,
            pagination=ctx.create_pagination(),
            debouncer=ctx.create_debouncer(),
        )
        self.table = DataTable(ctx, self.presenter, self)
        self.setCentralWidget(self.table)
        repository.on_changed(self.on_repository_changed)

    def on_repository_changed(self, kind: str, record: Any) -> None:
        self.presenter.set_records(self.repository.list())

    def view_record(self, record: Mapping[str, Any]) -> None:
        RecordDialog(self.ctx, record, read_only=True, parent=self).exec_()

    def edit_record(self, record: Mapping[str, Any]) -> None:
        dlg = RecordDialog(self.ctx, record, read_only=False, parent=self)
        if dlg.exec_() != QDialog.DialogCode.Accepted:
            return
        changes = dlg.changes()
        if not changes:
            logger.debug("Record %s was not changed", record.get(ID_FIELD))
            return
        self.repository.update(record[ID_FIELD], changes)

    def confirm_delete(self, record: Mapping[str, Any]) -> bool:
        answer = QMessageBox.question(
            self,
            self.t("app.delete_title", "Delete record"),
            self.t(
                "app.delete_msg",
                "Do you want to delete record {id}?",
                id=record.get(ID_FIELD),
            ),
        )
        return answer == QMessageBox.StandardButton.Yes

    def delete_record(self, record: Mapping[str, Any]) -> None:
        if not self.confirm_delete(record):
            return
        self.repository.delete(record[ID_FIELD])
        self.notify(self.t("app.deleted", "Record deleted"), "info")


def run_viewer(
    records: List[Any],
    columns: List["TabColumn"],
    title: Optional[str] = None,
) -> int:
    """Show the records in a window and run the event loop.

    Returns:
        The exit code of the application.
    """
    app = QApplication.instance() or QApplication(sys.argv)
    repository = RecordRepository(auto_save=False)
    for record in records:
        repository.create(record)

    ctx = QtTableContext()
    window = ViewerWindow(ctx, repository, columns, title=title)
    ctx.top_widget = window
    window.show()
    try:
        return app.exec_()
    finally:
        ctx.stop()
