import logging
from typing import Optional

from PyQt5.QtGui import QTextDocument
from PyQt5.QtPrintSupport import QPrintDialog, QPrinter, QPrinterInfo
from PyQt5.QtWidgets import QDialog, QWidget

logger = logging.getLogger(__name__)


class QtPrintSurface:
    """Prints an HTML document through the Qt print dialog.

    Attributes:
        parent: The parent of the print dialog.
        document: The loaded document.
        printer: The printer selected by the user.
    """

    auto_print = False

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        self.parent = parent
        self.document = QTextDocument()
        self.printer = QPrinter(QPrinter.PrinterMode.HighResolution)

    def load(self, document: str) -> None:
        self.document.setHtml(document)

    def print_(self) -> None:
        dlg = QPrintDialog(self.printer, self.parent)
        dlg.setWindowTitle("Print")
        if dlg.exec_() != QDialog.DialogCode.Accepted:
            logger.debug("Printing was cancelled")
            return
        self.document.print_(self.printer)


def open_print_surface(
    parent: Optional[QWidget] = None,
) -> Optional[QtPrintSurface]:
    """Create a print surface, or None if the system has no printers."""
    if not QPrinterInfo.availablePrinters():
        logger.debug("No printers are available")
        return None
    return QtPrintSurface(parent)
