import logging
import os
from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field
from PyQt5.QtWidgets import QApplication, QMessageBox, QStyle, QWidget

from rectab.letterhead import Letterhead
from rectab.logging_setup import setup_logging
from rectab.presenter import DEFAULT_DEBOUNCE, ExportDebouncer, Pagination
from rectab.settings import LocalSettings
from rectab_qt.toast import Toast

if TYPE_CHECKING:
    from PyQt5.QtGui import QIcon

    from rectab_qt.export_worker import ExportRelay

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND_THRESHOLD = 2000

# Icons come from the current Qt style so that no image files are needed.
STANDARD_ICONS = {
    "view": QStyle.StandardPixmap.SP_FileDialogContentsView,
    "edit": QStyle.StandardPixmap.SP_FileDialogDetailedView,
    "delete": QStyle.StandardPixmap.SP_TrashIcon,
    "search": QStyle.StandardPixmap.SP_FileDialogContentsView,
    "reset": QStyle.StandardPixmap.SP_DialogResetButton,
    "export": QStyle.StandardPixmap.SP_DialogSaveButton,
    "print": QStyle.StandardPixmap.SP_FileIcon,
    "previous": QStyle.StandardPixmap.SP_ArrowLeft,
    "next": QStyle.StandardPixmap.SP_ArrowRight,
}


@define
class QtTableContext:
    """Provides services to the table widgets.

    Attributes:
        top_widget: The main widget of the application; default parent for
            dialogs and notifications.
        stg: The local read-write settings.
        work_relay: Runs large exports in a background thread; created on
            first use.
    """

    top_widget: Optional[QWidget] = field(default=None)
    stg: LocalSettings = field(factory=LocalSettings)
    _work_relay: Optional["ExportRelay"] = field(default=None, init=False)

    def setup_logging(self, debug: bool = False) -> None:
        """Log to the console and to a file next to the settings."""
        log_file = os.path.join(
            os.path.dirname(self.stg.file_path) or ".", "rectab.log"
        )
        setup_logging(debug=debug, log_file=log_file)

    @property
    def work_relay(self) -> "ExportRelay":
        if self._work_relay is None:
            from rectab_qt.export_worker import ExportRelay

            self._work_relay = ExportRelay()
        return self._work_relay

    def stop(self) -> None:
        """Stop the background thread, if it was started."""
        if self._work_relay is not None:
            self._work_relay.stop()

    def t(self, key: str, d: str, **kwargs: Any) -> str:
        """Translate a string.

        No translation catalog is loaded; the default string is formatted
        with the arguments.
        """
        return d.format(**kwargs)

    def get_icon(self, name: str) -> "QIcon":
        pixmap = STANDARD_ICONS.get(name)
        if pixmap is None:
            raise KeyError(f"Unknown icon {name}")
        style = QApplication.style()
        return style.standardIcon(pixmap)

    def show_error(self, message: str, title: str = "Error") -> None:
        QMessageBox.critical(self.top_widget, title, message)

    def notify(self, message: str, kind: str = "warning") -> None:
        """Show a transient notification."""
        if kind == "error":
            Toast.show_error(self.top_widget, message)
        elif kind == "info":
            Toast.show_info(self.top_widget, message)
        else:
            Toast.show_warning(self.top_widget, message)

    def get_stg(self, key: str, default: Any = None) -> Any:
        return self.stg.get_setting(key, default)

    def set_stg(self, key: str, value: Any) -> None:
        self.stg.set_setting(key, value)

    @property
    def letterhead(self) -> Letterhead:
        return Letterhead.from_settings(self.get_stg("letterhead"))

    @property
    def background_threshold(self) -> int:
        return int(
            self.get_stg(
                "export.background_threshold", DEFAULT_BACKGROUND_THRESHOLD
            )
        )

    def create_pagination(self, **kwargs: Any) -> Pagination:
        return Pagination.from_settings(self.stg, **kwargs)

    def create_debouncer(self) -> ExportDebouncer:
        return ExportDebouncer(
            window=float(
                self.get_stg("export.debounce_seconds", DEFAULT_DEBOUNCE)
            )
        )
