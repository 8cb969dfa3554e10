import logging
from typing import TYPE_CHECKING, List, Optional, Tuple, cast

from PyQt5.QtCore import QEvent, QModelIndex, QRect, Qt
from PyQt5.QtGui import QMouseEvent, QPainter
from PyQt5.QtWidgets import (
    QStyle,
    QStyledItemDelegate,
    QStyleOptionViewItem,
    QToolTip,
    QWidget,
)

from rectab.actions import RowAction
from rectab_qt.context_use import QtUseContext

if TYPE_CHECKING:
    from rectab.presenter import TablePresenter
    from rectab_qt.context import QtTableContext

logger = logging.getLogger(__name__)

ICON_SIZE = 16
ICON_SPACING = 8


class ActionsDelegate(QStyledItemDelegate, QtUseContext):
    """Paints the row action triggers and invokes them on click.

    Attributes:
        presenter: The presenter that owns the actions column.
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

    @property
    def triggers(self) -> Tuple[RowAction, ...]:
        column = self.presenter.actions_column
        return column.triggers if column is not None else ()

    def trigger_rects(self, cell: QRect) -> List[Tuple[RowAction, QRect]]:
        """The area of each trigger inside a cell, centered horizontally."""
        triggers = self.triggers
        if not triggers:
            return []
        width = len(triggers) * ICON_SIZE + (len(triggers) - 1) * ICON_SPACING
        x = cell.x() + max(0, (cell.width() - width) // 2)
        y = cell.y() + max(0, (cell.height() - ICON_SIZE) // 2)
        result = []
        for action in triggers:
            result.append((action, QRect(x, y, ICON_SIZE, ICON_SIZE)))
            x += ICON_SIZE + ICON_SPACING
        return result

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionViewItem,
        index: QModelIndex,
    ) -> None:
        style = option.widget.style() if option.widget else None
        if style is not None:
            style.drawPrimitive(
                QStyle.PrimitiveElement.PE_PanelItemViewItem,
                option,
                painter,
                option.widget,
            )
        for action, rect in self.trigger_rects(option.rect):
            self.get_icon(action.value).paint(painter, rect)

    def helpEvent(self, event, view, option, index) -> bool:
        if event is not None and event.type() == QEvent.Type.ToolTip:
            for action, rect in self.trigger_rects(option.rect):
                if rect.contains(event.pos()):
                    QToolTip.showText(
                        event.globalPos(),
                        self.t(f"tab.{action.value}", action.value.title()),
                        view,
                    )
                    return True
        return super().helpEvent(event, view, option, index)

    def editorEvent(self, event, model, option, index) -> bool:
        if (
            event is None
            or event.type() != QEvent.Type.MouseButtonRelease
            or cast(QMouseEvent, event).button() != Qt.MouseButton.LeftButton
        ):
            return super().editorEvent(event, model, option, index)

        pos = cast(QMouseEvent, event).pos()
        for action, rect in self.trigger_rects(option.rect):
            if rect.contains(pos):
                record = index.data(Qt.ItemDataRole.UserRole)
                logger.debug("Row action %s clicked", action)
                self.presenter.trigger(action, record)
                return True
        return False
