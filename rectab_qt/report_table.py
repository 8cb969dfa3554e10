from typing import TYPE_CHECKING, List, Optional

from PyQt5.QtWidgets import QHBoxLayout, QLabel, QWidget

from rectab.presenter import ReportPresenter
from rectab_qt.data_table import DataTable

if TYPE_CHECKING:
    from rectab_qt.context import QtTableContext


class ReportTable(DataTable):
    """A read-only table for reports.

    It shows a summary bar under the rows when the presenter computes one;
    the pager is hidden when pagination is disabled.
    """

    presenter: ReportPresenter
    summary_labels: List[QLabel]

    def __init__(
        self,
        ctx: "QtTableContext",
        presenter: ReportPresenter,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(ctx, presenter, parent)
        self.summary_labels = []

        self.summary_bar = QWidget(self)
        self.summary_bar.setObjectName("summary_bar")
        self.summary_bar.setStyleSheet(
            "#summary_bar { background-color: #f8fafc; font-weight: bold; }"
        )
        ly = QHBoxLayout(self.summary_bar)
        ly.setContentsMargins(4, 2, 4, 2)
        for column in presenter.enhanced_columns:
            lbl = QLabel(self.summary_bar)
            lbl.setObjectName(f"summary_{column.key}")
            ly.addWidget(lbl, 1)
            self.summary_labels.append(lbl)

        layout = self.layout()
        assert layout is not None
        layout.insertWidget(layout.indexOf(self.pager), self.summary_bar)

        presenter.on_changed.append(self.refresh_summary)
        self.refresh_summary()

    def refresh_summary(self) -> None:
        """Show the summary of the visible records."""
        values = self.presenter.summary_row()
        self.summary_bar.setVisible(values is not None)
        if values is None:
            return
        for column, lbl in zip(
            self.presenter.enhanced_columns, self.summary_labels
        ):
            lbl.setText(values.get(column.key, ""))
