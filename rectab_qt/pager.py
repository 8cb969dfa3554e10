from typing import TYPE_CHECKING, Optional

from PyQt5.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QSpinBox,
    QToolButton,
    QWidget,
)

from rectab_qt.context_use import QtUseContext

if TYPE_CHECKING:
    from rectab.presenter import TablePresenter
    from rectab_qt.context import QtTableContext


class Pager(QWidget, QtUseContext):
    """Pagination controls: range summary, page navigation and page size.

    The spin box doubles as the quick jumper.
    """

    presenter: "TablePresenter"

    def __init__(
        self,
        ctx: "QtTableContext",
        presenter: "TablePresenter",
        parent: Optional[QWidget] = None,
    ) -> None:
        self.ctx = ctx
        super().__init__(parent)
        self.presenter = presenter
        self._updating = False

        ly = QHBoxLayout(self)
        ly.setContentsMargins(0, 0, 0, 0)

        self.lbl_range = QLabel(self)
        self.lbl_range.setStyleSheet("color: #64748b;")
        ly.addWidget(self.lbl_range)
        ly.addStretch(1)

        self.btn_prev = QToolButton(self)
        self.btn_prev.setIcon(self.get_icon("previous"))
        self.btn_prev.setToolTip(self.t("tab.prev_page", "Previous page"))
        self.btn_prev.clicked.connect(
            lambda: presenter.set_page(presenter.pagination.page - 1)
        )
        ly.addWidget(self.btn_prev)

        self.spin_page = QSpinBox(self)
        self.spin_page.setMinimum(1)
        self.spin_page.setKeyboardTracking(False)
        self.spin_page.valueChanged.connect(self._on_page_changed)
        ly.addWidget(self.spin_page)

        self.lbl_pages = QLabel(self)
        ly.addWidget(self.lbl_pages)

        self.btn_next = QToolButton(self)
        self.btn_next.setIcon(self.get_icon("next"))
        self.btn_next.setToolTip(self.t("tab.next_page", "Next page"))
        self.btn_next.clicked.connect(
            lambda: presenter.set_page(presenter.pagination.page + 1)
        )
        ly.addWidget(self.btn_next)

        self.cmb_size = QComboBox(self)
        for size in presenter.pagination.options:
            self.cmb_size.addItem(
                self.t("tab.page_size", "{size} / page", size=size), size
            )
        self.cmb_size.currentIndexChanged.connect(self._on_size_changed)
        ly.addWidget(self.cmb_size)

        presenter.on_changed.append(self.refresh)
        self.refresh()

    def refresh(self) -> None:
        """Show the state of the presenter."""
        pagination = self.presenter.pagination
        self._updating = True
        try:
            self.lbl_range.setText(self.presenter.range_label)
            count = self.presenter.page_count
            self.spin_page.setMaximum(count)
            self.spin_page.setValue(pagination.page)
            self.lbl_pages.setText(f"/ {count}")
            self.btn_prev.setEnabled(pagination.page > 1)
            self.btn_next.setEnabled(pagination.page < count)
            self.cmb_size.setCurrentIndex(
                self.cmb_size.findData(pagination.page_size)
            )
        finally:
            self._updating = False
        self.setVisible(pagination.enabled)

    def _on_page_changed(self, value: int) -> None:
        if not self._updating:
            self.presenter.set_page(value)

    def _on_size_changed(self, index: int) -> None:
        if self._updating or index < 0:
            return
        self.presenter.set_page_size(self.cmb_size.itemData(index))
        self.set_stg("table.page_size", self.presenter.pagination.page_size)
