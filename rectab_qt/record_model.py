import logging
from typing import Any, List, Optional

from PyQt5.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt

from rectab.actions import ActionsColumn
from rectab.presenter import TablePresenter

logger = logging.getLogger(__name__)

ALIGNMENT = {
    "left": Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
    "center": Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignVCenter,
    "right": Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
}


class RecordTableModel(QAbstractTableModel):
    """Shows the current page of a table presenter.

    Filtering, sorting and pagination are done by the presenter; the model
    resets itself each time the presenter reports a change.

    Attributes:
        presenter: The source of columns and records.
        rows: The records on the current page.
    """

    presenter: TablePresenter
    rows: List[Any]

    def __init__(
        self, presenter: TablePresenter, parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self.presenter = presenter
        self.rows = presenter.page_records()
        presenter.on_changed.append(self.reload)

    @property
    def columns(self) -> List[Any]:
        return self.presenter.enhanced_columns

    def reload(self) -> None:
        """Read the current page from the presenter."""
        self.beginResetModel()
        self.rows = self.presenter.page_records()
        self.endResetModel()

    def record(self, row: int) -> Any:
        return self.rows[row]

    def column_index(self, key: str) -> int:
        for i, column in enumerate(self.columns):
            if column.key == key:
                return i
        raise KeyError(key)

    def actions_section(self) -> int:
        """The index of the actions column, or -1 if there is none."""
        for i, column in enumerate(self.columns):
            if isinstance(column, ActionsColumn):
                return i
        return -1

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self.rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self.columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        record = self.rows[index.row()]
        column = self.columns[index.column()]
        if role == Qt.ItemDataRole.DisplayRole:
            return column.display_value(record)
        if role == Qt.ItemDataRole.TextAlignmentRole:
            return int(ALIGNMENT.get(column.align, ALIGNMENT["left"]))
        if role == Qt.ItemDataRole.UserRole:
            return record
        return None

    def headerData(
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if orientation != Qt.Orientation.Horizontal:
            if role == Qt.ItemDataRole.DisplayRole:
                start, _ = self.presenter.pagination.bounds(
                    self.presenter.total
                )
                return str(start + section + 1)
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            return self.columns[section].title
        if role == Qt.ItemDataRole.ToolTipRole:
            column = self.columns[section]
            if getattr(column, "filtered", False):
                return f"{column.title}: {column.search.term}"
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlags:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        return Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable

    def sort(
        self, column: int, order: Qt.SortOrder = Qt.SortOrder.AscendingOrder
    ) -> None:
        if column < 0 or column >= len(self.columns):
            self.presenter.sort_by(None)
            return
        target = self.columns[column]
        if not target.has_accessor:
            logger.debug("Column %s can't be sorted", target.key)
            return
        self.presenter.sort_by(
            target.key,
            descending=order == Qt.SortOrder.DescendingOrder,
        )
