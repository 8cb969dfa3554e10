import logging
from typing import TYPE_CHECKING, Any, List, Optional, cast

from PyQt5.QtCore import QSize, Qt
from PyQt5.QtWidgets import QAction, QHeaderView, QLineEdit, QWidget

from rectab.search import SearchColumn
from rectab_qt.context_use import QtUseContext

if TYPE_CHECKING:
    from rectab.presenter import TablePresenter
    from rectab_qt.context import QtTableContext


logger = logging.getLogger(__name__)

ACTIVE_STYLE = "QLineEdit {{ border: 2px solid {color}; font-weight: bold; }}"


class FilterHeader(QHeaderView, QtUseContext):
    """QHeaderView with a search box under each searchable column.

    Typing only changes the draft of the column; pressing Enter or the
    search button applies it and the reset button clears it. A box whose
    filter is applied is highlighted with the accent color.

    Attributes:
        presenter: The table presenter that owns the search state.
        editors: One entry per section; None for columns without search.
    """

    presenter: Optional["TablePresenter"]
    editors: List[Optional[QLineEdit]]
    _filter_height: int

    def __init__(
        self, ctx: "QtTableContext", parent: Optional[QWidget] = None
    ) -> None:
        self.ctx = ctx
        super().__init__(Qt.Orientation.Horizontal, parent)
        self.presenter = None
        self.editors = []
        self._filter_height = 26

        self.setSectionsClickable(True)
        self.setDefaultAlignment(
            cast(
                Qt.AlignmentFlag,
                Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop,
            )
        )
        self.sectionResized.connect(self._adjust_positions)
        self.sectionMoved.connect(lambda *_: self._adjust_positions())
        if parent is not None and hasattr(parent, "horizontalScrollBar"):
            parent.horizontalScrollBar().valueChanged.connect(
                self._adjust_positions
            )

    def sizeHint(self) -> QSize:  # type: ignore[override]
        s = super().sizeHint()
        s.setHeight(s.height() + self._filter_height)
        return s

    def init_filters(self, presenter: "TablePresenter") -> None:
        """Create the search boxes for the columns of the presenter."""
        self.presenter = presenter
        self._clear_editors()
        for column in presenter.enhanced_columns:
            if isinstance(column, SearchColumn):
                self.editors.append(self._create_editor(column))
            else:
                self.editors.append(None)
        self.update_indicators()
        self._adjust_positions()

    def _create_editor(self, column: SearchColumn) -> QLineEdit:
        ed = QLineEdit(self)
        ed.setObjectName(f"search_{column.key}")
        ed.setPlaceholderText(
            self.t(
                "tab.search_placeholder", "Search {title}", title=column.title
            )
        )
        ed.setText(column.search.draft)

        ac_search = QAction(
            self.get_icon("search"), self.t("tab.search", "Search"), ed
        )
        ac_search.triggered.connect(lambda *_, k=column.key: self.search(k))
        ed.addAction(ac_search, QLineEdit.ActionPosition.TrailingPosition)

        ac_reset = QAction(
            self.get_icon("reset"), self.t("tab.reset", "Reset"), ed
        )
        ac_reset.triggered.connect(lambda *_, k=column.key: self.reset(k))
        ed.addAction(ac_reset, QLineEdit.ActionPosition.TrailingPosition)

        ed.textEdited.connect(
            lambda text, k=column.key: self._on_edited(k, text)
        )
        ed.returnPressed.connect(lambda k=column.key: self.search(k))
        return ed

    def editor(self, key: str) -> Optional[QLineEdit]:
        assert self.presenter is not None
        for column, ed in zip(self.presenter.enhanced_columns, self.editors):
            if column.key == key:
                return ed
        return None

    def _on_edited(self, key: str, text: str) -> None:
        assert self.presenter is not None
        self.presenter.edit_search(key, text)

    def search(self, key: str) -> None:
        """Apply the text of the search box of a column."""
        assert self.presenter is not None
        ed = self.editor(key)
        text = ed.text() if ed is not None else None
        self.presenter.apply_search(key, text)
        self.update_indicators()

    def reset(self, key: str) -> None:
        """Clear the search box of a column and its filter."""
        assert self.presenter is not None
        ed = self.editor(key)
        if ed is not None:
            ed.clear()
        self.presenter.reset_search(key)
        self.update_indicators()

    def update_indicators(self) -> None:
        """Highlight the boxes of the columns that are filtered."""
        if self.presenter is None:
            return
        style = ACTIVE_STYLE.format(color=self.presenter.letterhead.accent)
        for column, ed in zip(self.presenter.enhanced_columns, self.editors):
            if ed is None:
                continue
            active = self.presenter.search.is_active(column.key)
            ed.setStyleSheet(style if active else "")
            ed.setProperty("filtered", active)

    def _clear_editors(self) -> None:
        for i_ed, ed in enumerate(self.editors):
            if ed is None:
                continue
            try:
                ed.deleteLater()
            except RuntimeError:
                logger.exception("Failed to delete editor %d", i_ed)
        self.editors = []

    def _adjust_positions(self, *args: Any) -> None:
        y = self.height() - self._filter_height + 1
        for col, ed in enumerate(self.editors):
            if ed is None:
                continue
            if self.isSectionHidden(col):
                ed.hide()
                continue
            ed.show()
            x = self.sectionViewportPosition(col)
            w = self.sectionSize(col)
            ed.setGeometry(x + 2, y, max(0, w - 4), self._filter_height - 2)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._adjust_positions()

    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        self._adjust_positions()
