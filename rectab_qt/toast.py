import logging
import weakref
from typing import Dict, List, Optional, cast

from PyQt5.QtCore import QEasingCurve, QPoint, QPropertyAnimation, Qt, QTimer
from PyQt5.QtGui import QMouseEvent
from PyQt5.QtWidgets import QGraphicsOpacityEffect, QHBoxLayout, QLabel, QWidget

logger = logging.getLogger(__name__)

PALETTE: Dict[str, Dict[str, str]] = {
    "info": {"bg": "#d1ecf1", "border": "#bee5eb", "text": "#0c5460"},
    "warning": {"bg": "#fff3cd", "border": "#ffeeba", "text": "#856404"},
    "error": {"bg": "#fcebea", "border": "#f5c6cb", "text": "#721c24"},
}
MARGIN = 24
SPACING = 8

# Live toasts, per owner, so that new ones stack below the older ones.
_stacks: "weakref.WeakKeyDictionary[QWidget, List[Toast]]" = (
    weakref.WeakKeyDictionary()
)
_orphans: List["Toast"] = []


class Toast(QWidget):
    """A short message that fades in, stays for a while and fades out.

    Clicking the message closes it early. Use the class methods to show
    messages: ``show_info``, ``show_warning``, ``show_error``.
    """

    DEFAULT_DURATION_MS = 5000
    FADE_MS = 300

    def __init__(
        self,
        owner: Optional[QWidget],
        message: str,
        *,
        kind: str = "info",
        duration_ms: int = DEFAULT_DURATION_MS,
    ) -> None:
        super().__init__(None)
        self.owner = owner
        self.kind = kind if kind in PALETTE else "info"
        self.setWindowFlags(
            cast(
                Qt.WindowFlags,
                Qt.WindowType.ToolTip
                | Qt.WindowType.FramelessWindowHint
                | Qt.WindowType.WindowStaysOnTopHint,
            )
        )
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose, True)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, True)

        colors = PALETTE[self.kind]
        self.setObjectName("Toast")
        self.setStyleSheet(
            f"QWidget#Toast {{ background: {colors['bg']}; "
            f"border: 1px solid {colors['border']}; border-radius: 6px; }}"
            f"QLabel {{ color: {colors['text']}; }}"
        )
        self.setAutoFillBackground(True)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        self.label = QLabel(message, self)
        self.label.setWordWrap(True)
        self.label.setMaximumWidth(380)
        layout.addWidget(self.label)

        self._opacity = QGraphicsOpacityEffect(self)
        self._opacity.setOpacity(0.0)
        self.setGraphicsEffect(self._opacity)
        self._anim = QPropertyAnimation(self._opacity, b"opacity", self)
        self._anim.setEasingCurve(QEasingCurve.InOutQuad)
        self._anim.setDuration(self.FADE_MS)

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.fade_out)
        self._duration_ms = max(0, duration_ms)

    @property
    def message(self) -> str:
        return self.label.text()

    @classmethod
    def show_info(cls, owner: Optional[QWidget], message: str) -> "Toast":
        return cls._show(owner, message, "info")

    @classmethod
    def show_warning(cls, owner: Optional[QWidget], message: str) -> "Toast":
        return cls._show(owner, message, "warning")

    @classmethod
    def show_error(cls, owner: Optional[QWidget], message: str) -> "Toast":
        return cls._show(owner, message, "error")

    @classmethod
    def _show(cls, owner: Optional[QWidget], message: str, kind: str):
        logger.debug("Toast (%s): %s", kind, message)
        toast = cls(owner, message, kind=kind)
        stack = _orphans if owner is None else _stacks.setdefault(owner, [])
        stack.append(toast)
        toast.destroyed.connect(lambda *_: _forget(stack, toast))
        toast.present()
        _restack(owner, stack)
        return toast

    def present(self) -> None:
        self.adjustSize()
        self.show()
        self._anim.stop()
        self._anim.setStartValue(0.0)
        self._anim.setEndValue(1.0)
        self._anim.start()
        if self._duration_ms:
            self._timer.start(self._duration_ms)

    def fade_out(self) -> None:
        self._timer.stop()
        self._anim.stop()
        self._anim.setStartValue(self._opacity.opacity())
        self._anim.setEndValue(0.0)
        self._anim.finished.connect(self.close)
        self._anim.start()

    def mouseReleaseEvent(self, a0: Optional[QMouseEvent]) -> None:
        self.fade_out()


def _forget(stack: List[Toast], toast: Toast) -> None:
    try:
        stack.remove(toast)
    except ValueError:
        logger.debug("Toast was already removed from its stack")


def _restack(owner: Optional[QWidget], stack: List[Toast]) -> None:
    """Place the toasts in the top-right corner of the owner (or screen)."""
    if owner is not None:
        rect = owner.rect()
        top_right = owner.mapToGlobal(rect.topRight())
        right, y = top_right.x(), top_right.y() + MARGIN
    else:
        if not stack:
            return
        screen = stack[0].screen()
        if screen is None:
            return
        geo = screen.availableGeometry()
        right, y = geo.right(), geo.top() + MARGIN

    for toast in stack:
        toast.move(QPoint(max(0, right - toast.width() - MARGIN), y))
        y += toast.height() + SPACING
