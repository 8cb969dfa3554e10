import logging
import os
from typing import TYPE_CHECKING, Any, Dict, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QAction,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QMenu,
    QTableView,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from rectab.export import ExportFormat, resolve_format
from rectab.presenter import TablePresenter
from rectab_qt.actions_delegate import ActionsDelegate
from rectab_qt.context_use import QtUseContext
from rectab_qt.export_worker import ExportJob
from rectab_qt.filter_header import FilterHeader
from rectab_qt.pager import Pager
from rectab_qt.print_surface import open_print_surface
from rectab_qt.record_model import RecordTableModel

if TYPE_CHECKING:
    from rectab_qt.context import QtTableContext

logger = logging.getLogger(__name__)

FILE_FILTERS = {
    ExportFormat.CSV: "CSV Files (*.csv)",
    ExportFormat.XLSX: "Excel Files (*.xlsx)",
    ExportFormat.PDF: "PDF Files (*.pdf)",
}


class DataTable(QWidget, QtUseContext):
    """A searchable, paginated table with row actions and an export menu.

    Attributes:
        presenter: Holds the state; the widgets only render it.
        model: Shows the current page.
        view: The table view.
        header: The header with the search boxes.
        pager: The pagination controls.
        btn_export: The "Export / Print" button; None if exports are off.
        ac_export: The export menu actions by format.
        ac_print: The print menu action.
    """

    presenter: TablePresenter
    model: RecordTableModel
    view: QTableView
    header: FilterHeader
    pager: Pager
    btn_export: Optional[QToolButton]
    ac_export: Dict[ExportFormat, QAction]
    ac_print: Optional[QAction]

    def __init__(
        self,
        ctx: "QtTableContext",
        presenter: TablePresenter,
        parent: Optional[QWidget] = None,
    ) -> None:
        self.ctx = ctx
        super().__init__(parent)
        self.presenter = presenter
        self.ac_export = {}
        self.ac_print = None
        self.btn_export = None

        ly = QVBoxLayout(self)
        ly.setContentsMargins(0, 0, 0, 0)

        if presenter.show_export:
            ly_top = QHBoxLayout()
            ly_top.addStretch(1)
            self.btn_export = self.create_export_button()
            ly_top.addWidget(self.btn_export)
            ly.addLayout(ly_top)

        self.view = QTableView(self)
        self.view.setSelectionBehavior(
            QAbstractItemView.SelectionBehavior.SelectRows
        )
        self.view.setAlternatingRowColors(True)
        self.view.setSortingEnabled(True)
        self.header = FilterHeader(ctx, self.view)
        self.view.setHorizontalHeader(self.header)
        self.model = RecordTableModel(presenter, self)
        self.view.setModel(self.model)
        self.header.init_filters(presenter)
        self.delegate = ActionsDelegate(ctx, presenter, self.view)
        self.apply_column_layout()
        ly.addWidget(self.view, 1)

        self.pager = Pager(ctx, presenter, self)
        ly.addWidget(self.pager)

        presenter.on_changed.append(self.header.update_indicators)

    def create_export_button(self) -> QToolButton:
        btn = QToolButton(self)
        btn.setText(self.t("tab.export_print", "Export / Print"))
        btn.setIcon(self.get_icon("export"))
        btn.setToolButtonStyle(Qt.ToolButtonStyle.ToolButtonTextBesideIcon)
        btn.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)

        menu = QMenu(btn)
        for fmt in ExportFormat:
            ac = QAction(
                self.t(
                    f"tab.export_{fmt.value}",
                    "Export {label}",
                    label=fmt.label,
                ),
                menu,
            )
            ac.setObjectName(f"ac_export_{fmt.value}")
            ac.triggered.connect(lambda *_, f=fmt: self.request_export(f))
            menu.addAction(ac)
            self.ac_export[fmt] = ac
        menu.addSeparator()
        self.ac_print = QAction(
            self.get_icon("print"), self.t("tab.print", "Print"), menu
        )
        self.ac_print.setObjectName("ac_print")
        self.ac_print.triggered.connect(self.print_table)
        menu.addAction(self.ac_print)
        btn.setMenu(menu)
        return btn

    def apply_column_layout(self) -> None:
        """Set the widths of the columns and the delegate of the actions."""
        hdr = self.view.horizontalHeader()
        for i, column in enumerate(self.presenter.enhanced_columns):
            if column.width:
                self.view.setColumnWidth(i, column.width)
            if column.fixed:
                hdr.setSectionResizeMode(i, QHeaderView.ResizeMode.Fixed)
        actions = self.model.actions_section()
        if actions >= 0:
            self.view.setItemDelegateForColumn(actions, self.delegate)

    # ----------------------------
    # Export
    # ----------------------------
    def ask_save_path(self, fmt: ExportFormat) -> Optional[str]:
        """Ask the user where to save an export; None if cancelled."""
        directory = self.get_stg("export.directory") or os.path.expanduser("~")
        suggested = os.path.join(
            directory, f"{self.presenter.export_file_name}.{fmt.extension}"
        )
        file_name, _ = QFileDialog.getSaveFileName(
            self,
            self.t("tab.export_dlg", "Export {label}", label=fmt.label),
            suggested,
            self.t(f"tab.filter_{fmt.value}", FILE_FILTERS[fmt]),
        )
        if not file_name:
            return None
        self.set_stg("export.directory", os.path.dirname(file_name))
        return file_name

    def request_export(self, fmt: Any) -> Optional[str]:
        """Handle a click on one of the export entries of the menu.

        Returns:
            The path the export is written to, or None if nothing happens.
        """
        resolved = resolve_format(fmt)
        if resolved is None:
            raise ValueError(f"Unknown export format: {fmt!r}")
        if not self.presenter.accept_export(resolved):
            return None
        path = self.ask_save_path(resolved)
        if path is None:
            return None
        return self.export_to(resolved, path)

    def export_to(self, fmt: ExportFormat, path: str) -> str:
        """Write an export, in the background for large tables."""
        ext = f".{fmt.extension}"
        if not path.lower().endswith(ext):
            path += ext

        if len(self.presenter.records) >= self.ctx.background_threshold:
            logger.debug("Exporting %s in the background", path)
            self.ctx.work_relay.push_job(
                ExportJob(
                    table=self.presenter.projected(),
                    fmt=fmt,
                    file_name=self.presenter.export_file_name,
                    letterhead=self.presenter.letterhead,
                    path=path,
                    callback=self.on_export_done,
                )
            )
            return path

        try:
            artifact = self.presenter.build_export(fmt)
            with open(path, "wb") as f:
                f.write(artifact.content)
        except Exception as e:
            logger.exception("Failed to export %s", path)
            self.show_error(
                self.t("tab.export_failed", "Export failed: {e}", e=e)
            )
            return path
        self.export_saved(path)
        return path

    def on_export_done(self, job: ExportJob) -> None:
        if job.error is not None:
            self.show_error(
                self.t("tab.export_failed", "Export failed: {e}", e=job.error)
            )
            return
        assert job.path is not None
        self.export_saved(job.path)

    def export_saved(self, path: str) -> None:
        logger.info("Export saved to %s", path)
        self.notify(
            self.t("tab.export_saved", "Saved {path}", path=path), "info"
        )

    # ----------------------------
    # Print
    # ----------------------------
    def print_table(self) -> bool:
        return self.presenter.print_(
            lambda: open_print_surface(self),
            lambda message: self.notify(message, "warning"),
        )
